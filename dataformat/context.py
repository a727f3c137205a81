'''
The evaluation context is the state of one decode (or encode) in progress:
the object being filled, the cursor over the bytes, the byte order in
force and the direction of the serialization.

It's the only way a directive has to look at what the previous directives
did: expressions are resolved against its target.

Nested blocks that build a separate record (array elements, groups) get a
new context that shares the cursor but not the target, so that the fields
of a sub-record are not visible to its siblings; the enclosing context is
reachable via the "parent" attribute, for Computed expressions only.
'''
import logging
from contextlib import contextmanager

from .enum import ByteOrder, Mode, DEFAULT_BYTE_ORDER
from .exceptions import DataFormatException, ValidationError
from .expressions import as_expression
from .record import binding_for


class EvaluationContext(object):

    def __init__(self, target, cursor, byte_order=DEFAULT_BYTE_ORDER, mode=Mode.DECODE, parent=None, errors=None):
        self.logger = logging.getLogger(f'{self.__module__}.{self.__class__.__name__}')
        self.target = target
        self.cursor = cursor
        self.byte_order = ByteOrder.from_option(byte_order)
        self.mode = mode
        self.parent = parent
        # when not None validation failures are collected here instead of aborting
        self.errors = errors
        self._binding = binding_for(type(target))

    def __repr__(self):
        return '<%s(%s, %s, %s)>' % (
            self.__class__.__name__,
            self.target.__class__.__name__,
            self.byte_order.name,
            self.mode.name,
        )

    @property
    def is_decoding(self) -> bool:
        return self.mode is Mode.DECODE

    @property
    def root(self):
        '''Obtain the outermost context of this decode'''
        context = self
        while context.parent is not None:
            context = context.parent

        return context

    def has(self, name: str) -> bool:
        return self._binding.has(self.target, name)

    def get(self, name: str):
        return self._binding.get(self.target, name)

    def set(self, name: str, value):
        self.logger.debug('set %s.%s = %r' % (self.target.__class__.__name__, name, value))
        self._binding.set(self.target, name, value)

    def resolve(self, value):
        '''Evaluate an option of a directive, coercing it to an Expression first.'''
        return as_expression(value).evaluate(self)

    def nested(self, target, byte_order=None) -> 'EvaluationContext':
        return EvaluationContext(
            target,
            self.cursor,
            byte_order=byte_order or self.byte_order,
            mode=self.mode,
            parent=self,
            errors=self.errors,
        )

    def derive(self, byte_order=None) -> 'EvaluationContext':
        '''Same target, possibly another byte order: used by blocks evaluated in place.'''
        byte_order = ByteOrder.from_option(byte_order)
        if byte_order is None or byte_order is self.byte_order:
            return self

        return EvaluationContext(
            self.target,
            self.cursor,
            byte_order=byte_order,
            mode=self.mode,
            parent=self.parent,
            errors=self.errors,
        )

    def invalid(self, message: str):
        '''Report a validation failure following the policy of this decode.'''
        if self.errors is None or not self.is_decoding:
            raise ValidationError(message)

        self.logger.warning(message)
        self.errors.append(ValidationError(message))

    @contextmanager
    def enter(self, name: str):
        '''Record the name of the directive into the chain of any exception
        crossing it.'''
        try:
            yield self
        except DataFormatException as e:
            e.chain.append(name)
            raise
