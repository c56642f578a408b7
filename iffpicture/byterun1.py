import logging

from .bytebuffer import ByteBuffer
from .errors import BadFileError

log = logging.getLogger(__name__)

MAX_PACKET = 128


def unpack_row(bb: ByteBuffer, size: int) -> bytearray:
    """Expand exactly `size` bytes of ByteRun1 data from `bb`.

    A packet that would run past `size` is corrupt data, not something to
    truncate.
    """
    row = bytearray()
    while len(row) < size:
        n = bb.get_byte()
        if n <= 127:
            if len(row) + n + 1 > size:
                raise BadFileError('ByteRun1 literal of %d bytes overruns %d-byte row' % (n + 1, size))
            row += bb.get_bytes(n + 1)
        elif n != 128:
            count = 257 - n
            if len(row) + count > size:
                raise BadFileError('ByteRun1 run of %d bytes overruns %d-byte row' % (count, size))
            row += bytes((bb.get_byte(),)) * count
    return row


def unpack_rows(data: bytes, row_size: int, rows: int, what: str = 'BODY') -> bytes:
    bb = ByteBuffer(data, what)
    out = bytearray()
    for i in range(rows):
        try:
            out += unpack_row(bb, row_size)
        except BadFileError as e:
            raise BadFileError('%s decompression failed at row %d: %s' % (what, i, e)) from e
    if bb.remaining():
        log.debug('%d bytes left over after ByteRun1 %s', bb.remaining(), what)
    return bytes(out)


def pack_byterun1(data: bytes) -> bytes:
    out = bytearray()
    literal = bytearray()
    i = 0
    n = len(data)

    def flush():
        if literal:
            out.append(len(literal) - 1)
            out.extend(literal)
            literal.clear()

    while i < n:
        run = 1
        while i + run < n and run < MAX_PACKET and data[i + run] == data[i]:
            run += 1
        if run >= 2:
            flush()
            out.append(257 - run)
            out.append(data[i])
            i += run
        else:
            literal.append(data[i])
            if len(literal) == MAX_PACKET:
                flush()
            i += 1
    flush()
    return bytes(out)
