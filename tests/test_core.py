import struct

import pytest

from dataformat.core import Builder, Format, description
from dataformat.directives import Directive
from dataformat.enum import ByteOrder
from dataformat.exceptions import (
    DuplicateAttributeError,
    MagicMismatchError,
    UnresolvedFieldReferenceError,
)
from dataformat.expressions import ref
from dataformat.record import Record, as_dict
from dataformat.streams import ByteCursor


def test_format():
    """Check that building a Format from directives behaves correctly."""
    builder = Builder('dummy')
    builder.declare('uint', 'a')
    builder.declare('string', 'b', length=0x10)
    builder.declare('uint', 'c')

    dummy = builder.build()

    assert dummy.name == 'dummy'
    assert len(dummy) == 3
    assert dummy.get_ordered_fields_name() == ['a', 'b', 'c']
    assert [_.kind for _ in dummy] == ['uint', 'string', 'uint']


def test_format_is_immutable():
    fmt = Builder().declare('uint', 'a').build()

    with pytest.raises(AttributeError):
        fmt.name = 'other'

    with pytest.raises(AttributeError):
        fmt.directives[0].name = 'b'

    with pytest.raises(TypeError):
        fmt.directives[0].options['size'] = 2


def test_duplicate_attributes():
    with pytest.raises(DuplicateAttributeError):
        Builder().declare('uint', 'a').declare('ushort', 'a').build()

    with pytest.raises(DuplicateAttributeError):
        Format([Directive('uint', 'a'), Directive('uint', 'a')])


def test_end_to_end_little_endian():
    builder = Builder()
    builder.declare('magic', value='BM')
    builder.declare('uint', 'field_a')
    builder.declare('uint', 'field_b')
    builder.declare('uint', 'field_c')
    fmt = builder.build()

    data = b'BM' + struct.pack('<III', 10, 20, 30)
    record = fmt.decode(data, byte_order=ByteOrder.LITTLE_ENDIAN)

    assert record.field_a == 10
    assert record.field_b == 20
    assert record.field_c == 30


def test_magic_leaves_cursor_past_it():
    fmt = Builder().declare('magic', value=b'\x7fELF').build()
    stream = ByteCursor(b'\x7fELF\x01\x02')

    fmt.decode(stream)

    assert stream.position() == 4


def test_magic_mismatch_aborts_decode():
    fmt = Builder().declare('uint', 'a').declare('magic', value=b'XY').build()
    target = Record()

    with pytest.raises(MagicMismatchError):
        fmt.decode(b'\x00\x00\x00\x01AB', target=target)


def test_decode_creates_fresh_records(stream_of):
    fmt = Builder().declare('int', 'a').build()

    first = fmt.decode(stream_of(1))
    second = fmt.decode(stream_of(2))

    assert first is not second
    assert (first.a, second.a) == (1, 2)


def test_decode_into_typed_target(stream_of):
    class ItemList:
        pass

    builder = Builder()
    builder.declare('string', 'name')
    builder.declare('int', 'max_size')
    builder.declare('int', 'arr_len')
    with builder.block('array', 'items', length='arr_len') as item:
        item.declare('string', 'value')
    fmt = builder.build()

    data = ItemList()
    result = fmt.decode(stream_of('the name\x00', 100, 2, 'yes\x00', 'no\x00'), target=data)

    assert result is data
    assert data.name == b'the name'
    assert data.max_size == 100
    assert [_.value for _ in data.items] == [b'yes', b'no']

    # a class is instantiated
    assert isinstance(fmt.decode(stream_of('x\x00', 1, 0), target=ItemList), ItemList)


def test_various_values(stream_of):
    fmt = Builder()\
        .declare('string', 'name')\
        .declare('int', 'int_value')\
        .declare('float', 'float_value')\
        .build()

    data = fmt.decode(stream_of('asd\x00', 1337, -0.1337))

    assert data.name == b'asd'
    assert data.int_value == 1337
    assert data.float_value == struct.unpack('>f', struct.pack('>f', -0.1337))[0]


def test_round_trip():
    builder = Builder('round-trip')
    builder.declare('magic', value=b'RT')
    builder.declare('ushort', 'version')
    builder.declare('int', 'offset')
    builder.declare('double', 'ratio')
    builder.declare('string', 'tag', length=4)
    with builder.block('array', 'entries', length_kind='ubyte') as entry:
        entry.declare('ubyte', 'kind')
        entry.declare('float', 'weight', byte_order=ByteOrder.LITTLE_ENDIAN)
    builder.declare('array', 'checksums', element_kind='ushort', length=2)
    fmt = builder.build()

    data = (
        b'RT' +
        b'\x00\x02' +
        b'\xff\xff\xff\xf0' +
        struct.pack('>d', 3.25) +
        b'TAG!' +
        b'\x02' +
        b'\x01' + struct.pack('<f', 0.5) +
        b'\x02' + struct.pack('<f', -8.0) +
        b'\xca\xfe\xba\xbe'
    )

    record = fmt.decode(data)

    assert record.offset == -16
    assert record.entries[1].weight == -8.0
    assert fmt.encode(record) == data


def test_encode_missing_attribute():
    fmt = Builder().declare('uint', 'a').build()

    with pytest.raises(UnresolvedFieldReferenceError):
        fmt.encode(Record())


def test_encode_conditional_and_case():
    builder = Builder()
    builder.declare('ubyte', 'flag')
    with builder.block('conditional', when=ref('flag') != 0) as extra:
        extra.declare('string', 'elem')
    builder.declare('ubyte', 'type')
    builder.declare('case', discriminator='type', cases={
        1: lambda b: b.declare('ushort', 'short_value'),
    }, default=())
    fmt = builder.build()

    assert fmt.encode(Record(flag=1, elem=b'hi', type=1, short_value=3)) == b'\x01hi\x00\x01\x00\x03'
    assert fmt.encode(Record(flag=0, type=9)) == b'\x00\x09'


def test_encode_group_into_stream():
    builder = Builder()
    with builder.block('group', 'header') as header:
        header.declare('ushort', 'width')
        header.declare('ushort', 'height')
    fmt = builder.build()

    stream = ByteCursor(b'')
    stream.write(b'\xff')

    written = fmt.encode(Record(header=Record(width=2, height=3)), stream, byte_order=ByteOrder.LITTLE_ENDIAN)

    assert written == b'\x02\x00\x03\x00'
    assert stream.getvalue() == b'\xff\x02\x00\x03\x00'


def test_encode_array_length_mismatch():
    from dataformat.exceptions import ValidationError

    fmt = Builder()\
        .declare('ubyte', 'n')\
        .declare('array', 'items', element_kind='ubyte', length='n')\
        .build()

    assert fmt.encode(Record(n=2, items=[1, 2])) == b'\x02\x01\x02'

    with pytest.raises(ValidationError):
        fmt.encode(Record(n=3, items=[1, 2]))


def test_description_decorator(stream_of):
    @description('simple')
    def simple(f):
        f.declare('int', 'the_id')
        f.declare('float', 'value')

    assert isinstance(simple, Format)
    assert simple.name == 'simple'

    data = simple.decode(stream_of(1337, 0.5))

    assert data.the_id == 1337
    assert data.value == 0.5


def test_nested_formats_are_reusable(stream_of):
    point = Builder('point').declare('int', 'x').declare('int', 'y').build()

    builder = Builder()
    builder.declare('group', 'origin', block=point)
    builder.declare('array', 'path', length=2, block=point)
    fmt = builder.build()

    record = fmt.decode(stream_of(0, 0, 1, 2, 3, 4))

    assert record.origin == Record(x=0, y=0)
    assert record.path == [Record(x=1, y=2), Record(x=3, y=4)]
    assert as_dict(record) == {
        'origin': {'x': 0, 'y': 0},
        'path': [{'x': 1, 'y': 2}, {'x': 3, 'y': 4}],
    }


def test_decode_from_file(tmp_path):
    path = tmp_path / 'numbers.bin'
    path.write_bytes(b'\x00\x01\x00\x02')

    fmt = Builder().declare('ushort', 'a').declare('ushort', 'b').build()
    record = fmt.decode(str(path))

    assert (record.a, record.b) == (1, 2)


def test_field_names_of_the_record_api():
    builder = Builder()
    with builder.block('group', 'header') as header:
        header.declare('ubyte', 'get')
    builder.declare('array', 'items', element_kind='ubyte', length=ref('header.get'))
    builder.declare('array', 'get', element_kind='ubyte', length=1)
    fmt = builder.build()

    data = b'\x02\x0a\x0b\x0c'
    record = fmt.decode(data)

    assert record.header.get == 2
    assert record.items == [0x0a, 0x0b]
    assert record.get == [0x0c]
    assert as_dict(record) == {'header': {'get': 2}, 'items': [0x0a, 0x0b], 'get': [0x0c]}
    assert fmt.encode(record) == data


def test_encode_into_file(tmp_path):
    fmt = Builder().declare('ushort', 'a').declare('string', 'b').build()
    path = tmp_path / 'out.bin'
    path.write_bytes(b'previous contents')

    assert fmt.encode(Record(a=1, b=b'xy'), str(path)) is None
    assert path.read_bytes() == b'\x00\x01xy\x00'

    with open(path, 'wb') as f:
        assert fmt.encode(Record(a=2, b=b'z'), f) is None
    assert fmt.decode(str(path)) == Record(a=2, b=b'z')
