import pytest

from dataformat.context import EvaluationContext
from dataformat.enum import ByteOrder, Mode
from dataformat.exceptions import UnresolvedFieldReferenceError, ValidationError
from dataformat.expressions import Literal, FieldRef, Computed, as_expression, ref
from dataformat.record import Record
from dataformat.streams import ByteCursor


@pytest.fixture
def context():
    record = Record(count=2, flag=0, header=Record(n=5))
    return EvaluationContext(record, ByteCursor(b''))


def test_literal(context):
    assert Literal(42).evaluate(context) == 42


def test_field_ref(context):
    assert FieldRef('count').evaluate(context) == 2
    assert FieldRef('header.n').evaluate(context) == 5


def test_field_ref_unresolved(context):
    with pytest.raises(UnresolvedFieldReferenceError):
        FieldRef('missing').evaluate(context)

    with pytest.raises(UnresolvedFieldReferenceError):
        FieldRef('header.missing').evaluate(context)


def test_field_ref_without_name():
    with pytest.raises(ValueError):
        FieldRef('')


def test_computed(context):
    expression = Computed(lambda ctx: ctx.get('count') * 10)

    assert expression.evaluate(context) == 20


def test_operators(context):
    assert (ref('count') != 0).evaluate(context) is True
    assert (ref('flag') == 0).evaluate(context) is True
    assert (ref('count') > 2).evaluate(context) is False
    assert (ref('count') * 3 + 1).evaluate(context) == 7
    assert (2 ** ref('count')).evaluate(context) == 4
    assert (10 - ref('count')).evaluate(context) == 8
    assert (ref('header.n') // ref('count')).evaluate(context) == 2
    assert (~(ref('flag') == 0)).evaluate(context) is False
    assert ((ref('count') == 2) & (ref('flag') == 0)).evaluate(context) is True
    assert ((ref('count') == 3) | (ref('flag') == 1)).evaluate(context) is False


def test_is_in_and_if_else(context):
    assert ref('count').is_in((1, 2, 4)).evaluate(context) is True
    assert ref('header.n').is_in([1, 2, 4]).evaluate(context) is False
    assert (ref('flag') == 0).if_else('count', 99).evaluate(context) == 2


def test_no_truth_value():
    with pytest.raises(TypeError):
        if ref('flag') == 0:
            pass


def test_as_expression(context):
    original = ref('count')

    assert as_expression(original) is original
    assert isinstance(as_expression('count'), FieldRef)
    assert isinstance(as_expression(lambda ctx: 1), Computed)
    assert isinstance(as_expression(3), Literal)
    assert isinstance(as_expression(None), Literal)


def test_resolve_from_context(context):
    assert context.resolve('count') == 2
    assert context.resolve(5) == 5
    assert context.resolve(lambda ctx: ctx.get('header').n) == 5


def test_typed_target():
    class Header:
        pass

    header = Header()
    header.count = 3
    context = EvaluationContext(header, ByteCursor(b''))

    assert FieldRef('count').evaluate(context) == 3

    with pytest.raises(UnresolvedFieldReferenceError):
        FieldRef('size').evaluate(context)


def test_typed_target_class_attributes_are_not_fields():
    class Header:
        version = 1

        @property
        def double(self):
            return self.count * 2

        def load(self):
            pass

    class Point:
        __slots__ = ('x', 'y')

    header = Header()
    point = Point()
    point.x = 4
    header.point = point
    context = EvaluationContext(header, ByteCursor(b''))

    for name in ('version', 'double', 'load', 'point.y', 'point.__class__'):
        with pytest.raises(UnresolvedFieldReferenceError):
            FieldRef(name).evaluate(context)

    assert FieldRef('point.x').evaluate(context) == 4

    header.version = 2
    assert FieldRef('version').evaluate(context) == 2


def test_nested_context(context):
    element = Record()
    nested = context.nested(element, byte_order=ByteOrder.LITTLE_ENDIAN)

    assert nested.cursor is context.cursor
    assert nested.parent is context
    assert nested.root is context
    assert nested.byte_order is ByteOrder.LITTLE_ENDIAN
    assert context.byte_order is ByteOrder.BIG_ENDIAN

    # the fields of the enclosing record are not visible
    with pytest.raises(UnresolvedFieldReferenceError):
        FieldRef('count').evaluate(nested)

    nested.set('x', 1)
    assert element.x == 1
    assert 'x' not in context.target


def test_derive(context):
    assert context.derive(None) is context
    assert context.derive(ByteOrder.BIG_ENDIAN) is context

    derived = context.derive('little_endian')
    assert derived.target is context.target
    assert derived.byte_order is ByteOrder.LITTLE_ENDIAN


def test_invalid_policy(context):
    with pytest.raises(ValidationError):
        context.invalid('boom')

    errors = []
    collecting = EvaluationContext(Record(), ByteCursor(b''), errors=errors)
    collecting.invalid('boom')
    assert len(errors) == 1
    assert isinstance(errors[0], ValidationError)

    # while encoding a wrong value can't be written anyway
    encoding = EvaluationContext(Record(), ByteCursor(b''), mode=Mode.ENCODE, errors=[])
    with pytest.raises(ValidationError):
        encoding.invalid('boom')
