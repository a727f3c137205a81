'''
Sizes with units.

Widths and lengths of fields can be expressed with the unit that is more
natural for the format at hand; internally everything is normalized to bits

    >>> 8 * Unit.BIT == 1 * Unit.BYTE
    True
    >>> (5 * Unit.BIT + 3 * Unit.BIT).unit
    <Unit.BIT: 1>
'''
from enum import Enum


class Unit(Enum):
    '''Each unit carries as value its factor with respect to the bit.'''
    BIT  = 1
    BYTE = 8
    KB   = 8 * 1024
    MB   = 8 * 1024 ** 2
    GB   = 8 * 1024 ** 3
    TB   = 8 * 1024 ** 4

    @property
    def factor(self) -> int:
        return self.value

    def __rmul__(self, magnitude):
        return SizeUnit(magnitude, self)


class SizeUnit:
    '''Immutable couple (magnitude, unit).'''

    __slots__ = ('_magnitude', '_unit')

    def __init__(self, magnitude: int, unit: Unit = Unit.BYTE):
        if isinstance(magnitude, bool) or not isinstance(magnitude, int):
            raise ValueError(f'magnitude {magnitude!r} is not an integer')
        if magnitude < 0:
            raise ValueError(f'magnitude {magnitude} must be non-negative')
        if not isinstance(unit, Unit):
            raise ValueError(f'invalid unit: {unit!r}')

        object.__setattr__(self, '_magnitude', magnitude)
        object.__setattr__(self, '_unit', unit)

    def __setattr__(self, name, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    @property
    def magnitude(self) -> int:
        return self._magnitude

    @property
    def unit(self) -> Unit:
        return self._unit

    def to_bits(self) -> int:
        return self._magnitude * self._unit.factor

    def to(self, unit: Unit) -> float:
        return self.to_bits() / unit.factor

    def to_bytes(self) -> float:
        return self.to(Unit.BYTE)

    def whole_bytes(self) -> int:
        '''The size in bytes, refusing sizes that don't end on a byte boundary.'''
        nbits = self.to_bits()
        if nbits % Unit.BYTE.factor:
            raise ValueError(f'{self} is not a whole number of bytes')

        return nbits // Unit.BYTE.factor

    def bits(self) -> 'SizeUnit':
        return SizeUnit(self.to_bits(), Unit.BIT)

    def __eq__(self, other):
        if not isinstance(other, SizeUnit):
            return NotImplemented
        return self.to_bits() == other.to_bits()

    def __hash__(self):
        return hash(self.to_bits())

    def __lt__(self, other):
        if not isinstance(other, SizeUnit):
            return NotImplemented
        return self.to_bits() < other.to_bits()

    def __le__(self, other):
        if not isinstance(other, SizeUnit):
            return NotImplemented
        return self.to_bits() <= other.to_bits()

    def __add__(self, other):
        if not isinstance(other, SizeUnit):
            raise TypeError(f'you can only add sizes but other was {other.__class__.__name__}')

        return SizeUnit(self.to_bits() + other.to_bits(), Unit.BIT)

    def __radd__(self, other):
        raise TypeError(f'you can only add sizes but other was {other.__class__.__name__}')

    def __repr__(self):
        return f'<{self.__class__.__name__}({self._magnitude} {self._unit.name.lower()})>'

    def __str__(self):
        return f'{self._magnitude} {self._unit.name.lower()}'


def as_byte_count(value) -> int:
    '''Normalize a width expressed either as a SizeUnit or as a plain number of bytes.'''
    if isinstance(value, SizeUnit):
        return value.whole_bytes()
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f'{value!r} is neither a SizeUnit nor a number of bytes')
    if value < 0:
        raise ValueError(f'negative length {value}')

    return value
