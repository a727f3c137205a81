from enum import Enum, auto


class ByteOrder(Enum):
    BIG_ENDIAN    = 'big_endian'
    LITTLE_ENDIAN = 'little_endian'

    @classmethod
    def from_option(cls, value):
        '''Accept both the enum and its textual name (e.g. 'little_endian').'''
        if value is None or isinstance(value, cls):
            return value

        return cls(value)

    @property
    def struct_prefix(self) -> str:
        return '>' if self is ByteOrder.BIG_ENDIAN else '<'


class Mode(Enum):
    '''Direction of the serialization a context is used for'''
    DECODE = auto()
    ENCODE = auto()


DEFAULT_BYTE_ORDER = ByteOrder.BIG_ENDIAN
