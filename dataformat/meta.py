"""
Registration of named formats on application types.

A type can be associated with one or more formats, so that an instance can
be built directly from a stream

    class Item(Serializable):
        default_format = 'legacy'

        legacy = legacy_format
        modern = modern_format

    item = Item.load_from(stream, 'modern')

The formats are plain values: they know nothing about the types using them.
"""
import logging

from .core import Format


logger = logging.getLogger(__name__)


class Meta(object):
    """Class containing metadata about the formats of a type"""

    def __init__(self):
        self.formats = {}
        self.default = None

    def get(self, name=None) -> Format:
        name = name if name is not None else self.default

        if name is None:
            raise KeyError('no format indicated and no default format')
        try:
            return self.formats[name]
        except KeyError:
            raise KeyError(f'unknown format \'{name}\'') from None


class MetaSerializable(type):

    def __new__(cls, names, bases, attrs):
        formats = {_k: _v for _k, _v in attrs.items() if isinstance(_v, Format)}
        new_attrs = {_k: _v for _k, _v in attrs.items() if _k not in formats}

        new_cls = super(MetaSerializable, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        # handle inheritance
        parents = [_ for _ in bases if isinstance(_, MetaSerializable)]
        for parent in parents:
            new_cls._meta.formats.update(parent._meta.formats)
            new_cls._meta.default = parent._meta.default

        for format_name, fmt in formats.items():
            register(new_cls, format_name, fmt)

        if attrs.get('default_format') is not None:
            new_cls._meta.default = attrs['default_format']

        return new_cls


class Serializable(object, metaclass=MetaSerializable):
    """Mixin giving a type the possibility to load itself from a stream
    using one of the formats registered on it."""

    default_format = None

    @classmethod
    def load_from(cls, stream, name=None, **kwargs):
        return decode_as(cls, name, stream, **kwargs)

    @classmethod
    def data_formats(cls):
        return dict(_meta_of(cls).formats)


def _meta_of(cls) -> Meta:
    if '_meta' not in cls.__dict__:
        cls._meta = Meta()

    return cls._meta


def register(cls, name, fmt: Format, default=False):
    """Associate the format with the type under the given name; the first
    format registered becomes the default one, unless told otherwise."""
    if not isinstance(fmt, Format):
        raise ValueError(f'{fmt!r} is not a Format')

    meta = _meta_of(cls)
    logger.debug('registering format \'%s\' for %s' % (name, cls.__name__))
    meta.formats[name] = fmt

    if default or meta.default is None:
        meta.default = name


def decode_as(cls, name, stream, **kwargs):
    """Construct an instance of the type by decoding the stream with the
    format registered under the name (or the default one)."""
    fmt = _meta_of(cls).get(name)

    return fmt.decode(stream, target=cls, **kwargs)
