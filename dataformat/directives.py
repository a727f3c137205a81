'''
A directive is one step of a format, like "read an unsigned 4-byte integer
into the attribute named size".

The kind of a directive ('uint', 'string', 'array', ...) is looked up into
an explicit registry that maps it to the serializer class implementing it;
there is no magic involved: a kind that is not registered is an error at
the moment the directive is created.
'''
import logging
from types import MappingProxyType
from typing import Dict, Tuple

from .exceptions import UnknownDirectiveError, InvalidDirectiveError


logger = logging.getLogger(__name__)


_REGISTRY: Dict[str, type] = {}


def register_kind(kind: str, serializer_cls: type):
    '''Associate a directive kind with the serializer class implementing it.'''
    if kind in _REGISTRY and _REGISTRY[kind] is not serializer_cls:
        raise ValueError(f'kind \'{kind}\' is already registered to {_REGISTRY[kind].__name__}')

    logger.debug('registering kind \'%s\' -> %s' % (kind, serializer_cls.__name__))
    _REGISTRY[kind] = serializer_cls


def register(*kinds: str):
    '''Class decorator form of register_kind().'''
    def _decorator(serializer_cls):
        for kind in kinds:
            register_kind(kind, serializer_cls)
        return serializer_cls

    return _decorator


def lookup(kind: str) -> type:
    try:
        return _REGISTRY[kind]
    except KeyError:
        raise UnknownDirectiveError(f'no serializer found for \'{kind}\'') from None


def registered_kinds() -> Tuple[str, ...]:
    return tuple(_REGISTRY)


class Directive(object):
    '''Immutable description of a single field.'''

    __slots__ = ('kind', 'name', 'options', 'block', 'serializer')

    def __init__(self, kind: str, name: str = None, options=None, block=None):
        serializer = lookup(kind)(kind)
        block = as_block(block)
        options = serializer.prepare(name, dict(options or {}), block)

        object.__setattr__(self, 'kind', kind)
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'options', MappingProxyType(options))
        object.__setattr__(self, 'block', block)
        object.__setattr__(self, 'serializer', serializer)

    def __setattr__(self, name, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __repr__(self):
        return '<%s(%s%s)>' % (
            self.__class__.__name__,
            self.kind,
            f' {self.name}' if self.name else '',
        )

    @property
    def label(self) -> str:
        return self.name or self.kind

    def evaluate(self, context):
        '''Read or write this directive depending on the mode of the context.'''
        with context.enter(self.label):
            if context.is_decoding:
                return self.serializer.read(context, self)

            return self.serializer.write(context, self)


def evaluate_block(context, block):
    for directive in block:
        context.logger.debug('%s %s.%s at offset %d' % (
            context.mode.name.lower(),
            context.target.__class__.__name__,
            directive.label,
            context.cursor.position(),
        ))
        directive.evaluate(context)


def as_block(value) -> Tuple[Directive, ...]:
    '''Normalize the different ways a nested block can be indicated:
    a Format, a Builder, a sequence of Directive or a callable that
    receives a fresh Builder to fill.'''
    if value is None:
        return ()
    if isinstance(value, Directive):
        return (value,)
    if hasattr(value, 'directives'):  # Format
        return tuple(value.directives)
    if hasattr(value, 'build'):  # Builder
        return tuple(value.build().directives)
    if callable(value):
        from .core import Builder
        builder = Builder()
        value(builder)
        return tuple(builder.build().directives)

    block = tuple(value)
    for directive in block:
        if not isinstance(directive, Directive):
            raise InvalidDirectiveError(f'{directive!r} is not a Directive')

    return block
