import struct

import pytest

from dataformat.streams import ByteCursor


def pack(*args):
    '''Big-endian encoding of the arguments: bytes and str as they are,
    int as signed 32 bits, float as single precision.'''
    data = b''
    for arg in args:
        if isinstance(arg, bytes):
            data += arg
        elif isinstance(arg, str):
            data += arg.encode('ascii')
        elif isinstance(arg, int):
            data += struct.pack('>i', arg)
        elif isinstance(arg, float):
            data += struct.pack('>f', arg)
        else:
            raise ValueError(f'unknown argument {arg!r}')

    return data


@pytest.fixture
def stream_of():
    def _stream_of(*args):
        return ByteCursor(pack(*args))

    return _stream_of


@pytest.fixture
def packed():
    return pack
