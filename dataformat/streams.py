import io
import logging

from .exceptions import TruncatedStreamError, DelimiterNotFoundError


logger = logging.getLogger(__name__)


class ByteCursor(object):
    '''This is a simple wrapper around bytes/file objects to uniform
    their properties: every directive consumes and produces bytes only
    through read_exact(), read_until(), write() and seek().

    It doesn't buffer anything by itself (apart from streams that can't
    seek), the position is the one of the underlying object.'''

    def __init__(self, obj=b'', mode='rb'):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self.mode = mode
        self.obj = obj
        self.history = []
        self._owned = False

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_fileobj)

        init_method()

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.obj!r} @ {self.position()})>'

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        self.obj = open(self.obj, self.mode)
        self._owned = True

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def init_memoryview(self):
        self.obj = io.BytesIO(self.obj.tobytes())

    def init_fileobj(self):
        '''Anything else must already quack like a binary file.

        A stream we can only read from (a socket file, a pipe) is read
        completely in memory, since the directives need to seek.'''
        reading = 'r' in self.mode
        action = 'read' if reading else 'write'
        if not hasattr(self.obj, action):
            raise ValueError(
                f'\'{self.obj.__class__.__name__}\' cannot be used as a stream: no {action}() method')

        if self._seekable():
            return

        if not reading:
            raise ValueError(f'\'{self.obj.__class__.__name__}\' cannot be used as a stream: it\'s not seekable')

        logger.debug('buffering the non seekable %r' % self.obj)
        self.obj = io.BytesIO(self.obj.read())

    def _seekable(self):
        if not (hasattr(self.obj, 'seek') and hasattr(self.obj, 'tell')):
            return False

        seekable = getattr(self.obj, 'seekable', None)

        return seekable() if seekable is not None else True

    def close(self):
        if self._owned:
            self.obj.close()

    def position(self) -> int:
        return self.obj.tell()

    def seek(self, offset: int):
        if isinstance(offset, bool) or not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)
        if offset < 0:
            raise ValueError(f'negative offset {offset}')

        self.obj.seek(offset)

        return self

    def read_exact(self, n: int) -> bytes:
        '''Read exactly n bytes or fail without consuming anything.'''
        offset = self.position()
        data = self.obj.read(n)

        if len(data) != n:
            self.obj.seek(offset)
            raise TruncatedStreamError(
                f'expected {n} bytes at offset {offset} but only {len(data)} are available')

        return data

    def read_until(self, delimiter: bytes = b'\x00') -> bytes:
        '''Read up to the delimiter; the delimiter is consumed but not returned.'''
        if len(delimiter) != 1:
            raise ValueError(f'the delimiter must be a single byte, not {delimiter!r}')

        offset = self.position()
        data = []
        while True:
            b = self.obj.read(1)
            if not b:
                self.obj.seek(offset)
                raise DelimiterNotFoundError(
                    f'delimiter {delimiter!r} not found starting from offset {offset}')
            if b == delimiter:
                break
            data.append(b)

        return b''.join(data)

    def read_all(self) -> bytes:
        return self.obj.read()

    def write(self, data: bytes) -> int:
        return self.obj.write(data)

    def getvalue(self) -> bytes:
        return self.obj.getvalue()

    def save(self):
        self.history.append(self.position())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)


def as_cursor(stream, mode='rb') -> ByteCursor:
    return stream if isinstance(stream, ByteCursor) else ByteCursor(stream, mode=mode)
