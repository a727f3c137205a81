import pytest

from dataformat.size import SizeUnit, Unit, as_byte_count


def test_units():
    assert (3 * Unit.BIT).unit is Unit.BIT
    assert (55 * Unit.BYTE).unit is Unit.BYTE
    assert (128 * Unit.MB).unit is Unit.MB
    assert SizeUnit(4).unit is Unit.BYTE


def test_size_of_one_mb():
    assert 1 * Unit.MB == (1024 * 1024 * 8) * Unit.BIT


def test_comparable():
    assert 8 * Unit.BIT == 1 * Unit.BYTE
    assert 1024 * Unit.BYTE == 1 * Unit.KB
    assert 1024 * Unit.KB == 1 * Unit.MB
    assert 1024 * Unit.GB == 1 * Unit.TB
    assert 7 * Unit.BIT != 1 * Unit.BYTE
    assert 7 * Unit.BIT < 1 * Unit.BYTE

    # equal sizes collapse into the same key
    assert len({8 * Unit.BIT, 1 * Unit.BYTE}) == 1


def test_addable():
    total = 5 * Unit.BIT + 3 * Unit.BIT

    assert total == 1 * Unit.BYTE
    assert total.unit is Unit.BIT
    assert total.magnitude == 8
    assert 2 * Unit.BYTE + 16 * Unit.BIT == 4 * Unit.BYTE


def test_not_addable_with_integers():
    with pytest.raises(TypeError):
        5 + 3 * Unit.BYTE

    with pytest.raises(TypeError):
        3 * Unit.BYTE + 5


def test_conversions():
    assert (10 * Unit.BIT).to_bytes() == 10 / 8
    assert (1 * Unit.KB).to(Unit.KB) == 1
    assert (13 * Unit.MB).to_bits() == 13 * 1024 * 1024 * 8
    assert (1 * Unit.BIT).to(Unit.KB) == 1 / (8 * 1024)


@pytest.mark.parametrize('unit', list(Unit))
def test_bits_round_trip(unit):
    size = SizeUnit(7, unit)

    assert SizeUnit(size.to_bits(), Unit.BIT).to(unit) == 7
    assert size.bits() == size


@pytest.mark.parametrize('magnitude', [-1, 1.5, '3', None, True])
def test_invalid_magnitude(magnitude):
    with pytest.raises(ValueError):
        SizeUnit(magnitude, Unit.BYTE)


def test_invalid_unit():
    with pytest.raises(ValueError):
        SizeUnit(1, 'bytes')


def test_immutable():
    size = 4 * Unit.BYTE

    with pytest.raises(AttributeError):
        size.magnitude = 5


def test_whole_bytes():
    assert (16 * Unit.BIT).whole_bytes() == 2
    assert (1 * Unit.KB).whole_bytes() == 1024

    with pytest.raises(ValueError):
        (3 * Unit.BIT).whole_bytes()


def test_as_byte_count():
    assert as_byte_count(6) == 6
    assert as_byte_count(2 * Unit.BYTE) == 2

    with pytest.raises(ValueError):
        as_byte_count(-1)

    with pytest.raises(ValueError):
        as_byte_count(2.0)
