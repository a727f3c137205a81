'''
Deferred values used as options of the directives.

An expression is evaluated only when a directive needs it, against the
context of the decode in progress, so it can refer to whatever has been
already decoded

    builder.declare('uint', 'count')
    builder.declare('array', 'items', length=FieldRef('count'), element_kind='ushort')

There are three kinds of them

 - Literal: a constant
 - FieldRef: the value of an already decoded attribute of the record under
   construction; a dotted name like 'header.count' traverses sub-records
 - Computed: an arbitrary function of the context

Expressions can be combined with the usual operators, the result is a
Computed expression, so that ref('flag') != 0 is a predicate evaluated
at decode time.
'''
import logging
import operator

from .exceptions import UnresolvedFieldReferenceError
from .record import binding_for


logger = logging.getLogger(__name__)


class Expression(object):

    def evaluate(self, context):
        raise NotImplementedError(f'method {self.__class__.__name__}.evaluate() not implemented')

    def __bool__(self):
        raise TypeError(
            f'{self!r} is evaluated only during a decode, it has no truth value at construction time')

    # Python sets __hash__ to None when __eq__ is overridden
    __hash__ = object.__hash__

    def _binary(self, other, op, symbol, reverse=False):
        other = as_expression(other)
        left, right = (other, self) if reverse else (self, other)

        def _compute(context):
            return op(left.evaluate(context), right.evaluate(context))

        return Computed(_compute, description=f'({left!r} {symbol} {right!r})')

    def __eq__(self, other):
        return self._binary(other, operator.eq, '==')

    def __ne__(self, other):
        return self._binary(other, operator.ne, '!=')

    def __lt__(self, other):
        return self._binary(other, operator.lt, '<')

    def __le__(self, other):
        return self._binary(other, operator.le, '<=')

    def __gt__(self, other):
        return self._binary(other, operator.gt, '>')

    def __ge__(self, other):
        return self._binary(other, operator.ge, '>=')

    def __add__(self, other):
        return self._binary(other, operator.add, '+')

    def __radd__(self, other):
        return self._binary(other, operator.add, '+', reverse=True)

    def __sub__(self, other):
        return self._binary(other, operator.sub, '-')

    def __rsub__(self, other):
        return self._binary(other, operator.sub, '-', reverse=True)

    def __mul__(self, other):
        return self._binary(other, operator.mul, '*')

    def __rmul__(self, other):
        return self._binary(other, operator.mul, '*', reverse=True)

    def __floordiv__(self, other):
        return self._binary(other, operator.floordiv, '//')

    def __rfloordiv__(self, other):
        return self._binary(other, operator.floordiv, '//', reverse=True)

    def __truediv__(self, other):
        return self._binary(other, operator.truediv, '/')

    def __mod__(self, other):
        return self._binary(other, operator.mod, '%')

    def __pow__(self, other):
        return self._binary(other, operator.pow, '**')

    def __rpow__(self, other):
        return self._binary(other, operator.pow, '**', reverse=True)

    def __and__(self, other):
        return self._binary(other, lambda a, b: bool(a) and bool(b), '&')

    def __or__(self, other):
        return self._binary(other, lambda a, b: bool(a) or bool(b), '|')

    def __invert__(self):
        return Computed(lambda context: not self.evaluate(context), description=f'~{self!r}')

    def __neg__(self):
        return Computed(lambda context: -self.evaluate(context), description=f'-{self!r}')

    def is_in(self, values):
        '''Membership predicate, since "in" can't be overloaded to return an expression.'''
        values = tuple(values)
        return Computed(lambda context: self.evaluate(context) in values,
                        description=f'({self!r} in {values!r})')

    def if_else(self, then, otherwise):
        then, otherwise = as_expression(then), as_expression(otherwise)

        def _compute(context):
            return then.evaluate(context) if self.evaluate(context) else otherwise.evaluate(context)

        return Computed(_compute, description=f'({then!r} if {self!r} else {otherwise!r})')


class Literal(Expression):

    def __init__(self, value):
        self.value = value

    def __repr__(self):
        return f'{self.__class__.__name__}({self.value!r})'

    def evaluate(self, context):
        return self.value


class FieldRef(Expression):
    '''Back-reference to an attribute already assigned on the target.

    The resolution goes through the context so that it works both with
    generic records and with typed targets.'''

    def __init__(self, name: str):
        if not name:
            raise ValueError('a field reference needs a name')
        self.name = name
        self.path = name.split('.')

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name!r})'

    def evaluate(self, context):
        logger.debug('resolving \'%s\'' % self.name)

        head, *tail = self.path
        if not context.has(head):
            raise UnresolvedFieldReferenceError(f'field \'{head}\' is not decoded yet')

        value = context.get(head)

        for component_name in tail:
            binding = binding_for(type(value))
            if not binding.has(value, component_name):
                raise UnresolvedFieldReferenceError(
                    f'field \'{self.name}\' cannot be resolved at component \'{component_name}\'')
            value = binding.get(value, component_name)

        logger.debug(' resolved with value %r' % (value,))

        return value


class Computed(Expression):

    def __init__(self, function, description=None):
        if not callable(function):
            raise ValueError(f'{function!r} is not callable')
        self.function = function
        self.description = description

    def __repr__(self):
        if self.description:
            return self.description
        return f'{self.__class__.__name__}({getattr(self.function, "__name__", self.function)!r})'

    def evaluate(self, context):
        return self.function(context)


def as_expression(value) -> Expression:
    '''Coerce the value of an option to an Expression:

     - expressions are returned as they are
     - strings are references to fields
     - callables are computed with the context as argument
     - everything else is a literal
    '''
    if isinstance(value, Expression):
        return value
    if isinstance(value, str):
        return FieldRef(value)
    if callable(value):
        return Computed(value)

    return Literal(value)


ref = FieldRef
literal = Literal
computed = Computed
