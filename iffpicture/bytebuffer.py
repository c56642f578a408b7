from struct import unpack

from .errors import BadFileError


class ByteBuffer:
    def __init__(self, data: bytes, what: str = 'data'):
        self.data = data
        self.pos = 0
        self.what = what

    def remaining(self):
        return len(self.data) - self.pos

    def skip(self, n: int):
        self.get_bytes(n)

    def get_bytes(self, n: int):
        if n > self.remaining():
            raise BadFileError('Unexpected end of %s at offset %d (wanted %d bytes, %d left)'
                               % (self.what, self.pos, n, self.remaining()))
        self.pos += n
        return self.data[self.pos - n:self.pos]

    def get_byte(self) -> int:
        return unpack('>B', self.get_bytes(1))[0]

    def get_word(self) -> int:
        return unpack('>H', self.get_bytes(2))[0]

    def get_long(self) -> int:
        return unpack('>L', self.get_bytes(4))[0]
