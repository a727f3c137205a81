"""
Core module for the description of a data format

"""
import logging
from contextlib import contextmanager
from typing import List, Tuple

from .context import EvaluationContext
from .directives import Directive, evaluate_block
from .enum import Mode, DEFAULT_BYTE_ORDER
from .exceptions import DuplicateAttributeError
from .record import new_target
from .streams import ByteCursor, as_cursor


logger = logging.getLogger(__name__)


class Format(object):
    """
    Ordered and immutable sequence of directives describing how to decode
    (and encode) a record from bytes.

    The same instance can be used for as many decodes as wanted, also
    concurrently, as long as each of them has its own stream: all the state
    of a decode lives into its EvaluationContext.
    """

    __slots__ = ('name', 'directives')

    def __init__(self, directives=(), name=None):
        directives = tuple(directives)

        names = set()
        for directive in directives:
            if not directive.name:
                continue
            if directive.name in names:
                raise DuplicateAttributeError(f'duplicate attribute \'{directive.name}\' in format {name!r}')
            names.add(directive.name)

        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'directives', directives)

    def __setattr__(self, name, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __repr__(self):
        return '<%s(%s)>' % (
            self.__class__.__name__,
            ','.join(repr(_) for _ in self.directives),
        )

    def __len__(self):
        return len(self.directives)

    def __iter__(self):
        return iter(self.directives)

    def get_ordered_fields_name(self) -> List[str]:
        return [_.name for _ in self.directives if _.name]

    def decode(self, stream, target=None, byte_order=DEFAULT_BYTE_ORDER, errors=None):
        """This is one of the main APIs: it takes the binary data and
        transforms it in the representation given by this format.

        The stream is a ByteCursor or anything it can wrap (bytes, a path,
        a binary file object); the target is the instance to fill, a class
        to instantiate or None for a generic Record.

        Any failure aborts the whole decode. Passing a list as "errors"
        collects the validation failures into it instead of aborting on
        them (the value is assigned anyway); any other failure still
        aborts."""
        cursor = as_cursor(stream)
        context = EvaluationContext(
            new_target(target),
            cursor,
            byte_order=byte_order,
            mode=Mode.DECODE,
            errors=errors,
        )

        logger.debug('decoding \'%s\' from %r' % (self.name, cursor))
        try:
            evaluate_block(context, self.directives)
        finally:
            # a path opened by us is closed by us
            if cursor is not stream:
                cursor.close()

        return context.target

    def encode(self, record, stream=None, byte_order=DEFAULT_BYTE_ORDER) -> bytes:
        """Encode the record into binary data.

        Without a stream a new in-memory one is used and its contents are
        returned; with an in-memory stream the bytes written by this call
        are returned, with a file (or a path, truncated and written from the
        start) nothing is."""
        cursor = ByteCursor(b'') if stream is None else as_cursor(stream, mode='wb')
        start = cursor.position()

        context = EvaluationContext(
            record,
            cursor,
            byte_order=byte_order,
            mode=Mode.ENCODE,
        )

        logger.debug('encoding \'%s\' into %r' % (self.name, cursor))
        try:
            evaluate_block(context, self.directives)

            if stream is None:
                return cursor.getvalue()

            end = cursor.position()
            if hasattr(cursor.obj, 'getvalue'):
                return cursor.getvalue()[start:end]

            return None
        finally:
            # a path opened by us is closed by us
            if cursor is not stream:
                cursor.close()


class Builder(object):
    """Declarative construction of a Format

        builder = Builder('example')
        builder.declare('uint', 'count')
        with builder.block('array', 'items', length='count') as item:
            item.declare('int', 'id')
            item.declare('float', 'value')

        example = builder.build()

    A nested block can be indicated also with the parameter "block" of
    declare(), as a Builder, a Format, a list of directives or a function
    filling the Builder passed as argument.
    """

    def __init__(self, name=None):
        self.name = name
        self._directives: List[Directive] = []

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.name!r}, {len(self._directives)} directives)>'

    def declare(self, kind: str, name: str = None, block=None, **options) -> 'Builder':
        directive = Directive(kind, name, options, block)
        logger.debug('declared %r' % directive)
        self._directives.append(directive)

        return self

    @contextmanager
    def block(self, kind: str, name: str = None, **options):
        sub = Builder(name)
        yield sub
        self.declare(kind, name, block=sub, **options)

    def build(self) -> Format:
        return Format(self._directives, name=self.name)

    @property
    def format(self) -> Format:
        return self.build()

    @property
    def directives(self) -> Tuple[Directive, ...]:
        return tuple(self._directives)


def description(name=None, function=None):
    """Build a format with a function that fills the builder

        @description('simple')
        def simple(f):
            f.declare('uint', 'size')

    here "simple" is the resulting Format."""
    def _build(function):
        builder = Builder(name)
        function(builder)
        return builder.build()

    if function is not None:
        return _build(function)

    return _build
