"""ITU-T T.4/T.6 facsimile decoding for FAXX pages.

Lines are decoded strictly in order: the 2-D modes code every line as a
set of changes relative to the line above it. Each line is kept as a list
of changing elements (the pixel positions where the color flips, starting
from white), which is both the reference for the next line and the input
to row expansion.
"""

import logging

from .errors import BadFileError, UnsupportedError
from .headers import FAX_CMP_MH, FAX_CMP_MMR, FAX_CMP_MR, FAX_CMP_NONE

log = logging.getLogger(__name__)

WHITE, BLACK = 0, 1

EOL_ZEROS = 11
RTC_EOLS = 6

TERMINATING_WHITE = [
    '00110101', '000111', '0111', '1000', '1011', '1100', '1110', '1111',
    '10011', '10100', '00111', '01000', '001000', '000011', '110100', '110101',
    '101010', '101011', '0100111', '0001100', '0001000', '0010111', '0000011', '0000100',
    '0101000', '0101011', '0010011', '0100100', '0011000', '00000010', '00000011', '00011010',
    '00011011', '00010010', '00010011', '00010100', '00010101', '00010110', '00010111', '00101000',
    '00101001', '00101010', '00101011', '00101100', '00101101', '00000100', '00000101', '00001010',
    '00001011', '01010010', '01010011', '01010100', '01010101', '00100100', '00100101', '01011000',
    '01011001', '01011010', '01011011', '01001010', '01001011', '00110010', '00110011', '00110100',
]

TERMINATING_BLACK = [
    '0000110111', '010', '11', '10', '011', '0011', '0010', '00011',
    '000101', '000100', '0000100', '0000101', '0000111', '00000100', '00000111', '000011000',
    '0000010111', '0000011000', '0000001000', '00001100111', '00001101000', '00001101100',
    '00000110111', '00000101000', '00000010111', '00000011000', '000011001010', '000011001011',
    '000011001100', '000011001101', '000001101000', '000001101001', '000001101010', '000001101011',
    '000011010010', '000011010011', '000011010100', '000011010101', '000011010110', '000011010111',
    '000001101100', '000001101101', '000011011010', '000011011011', '000001010100', '000001010101',
    '000001010110', '000001010111', '000001100100', '000001100101', '000001010010', '000001010011',
    '000000100100', '000000110111', '000000111000', '000000100111', '000000101000', '000001011000',
    '000001011001', '000000101011', '000000101100', '000001011010', '000001100110', '000001100111',
]

# 64, 128, ... 1728
MAKEUP_WHITE = [
    '11011', '10010', '010111', '0110111', '00110110', '00110111', '01100100', '01100101',
    '01101000', '01100111', '011001100', '011001101', '011010010', '011010011', '011010100',
    '011010101', '011010110', '011010111', '011011000', '011011001', '011011010', '011011011',
    '010011000', '010011001', '010011010', '011000', '010011011',
]

MAKEUP_BLACK = [
    '0000001111', '000011001000', '000011001001', '000001011011', '000000110011', '000000110100',
    '000000110101', '0000001101100', '0000001101101', '0000001001010', '0000001001011',
    '0000001001100', '0000001001101', '0000001110010', '0000001110011', '0000001110100',
    '0000001110101', '0000001110110', '0000001110111', '0000001010010', '0000001010011',
    '0000001010100', '0000001010101', '0000001011010', '0000001011011', '0000001100100',
    '0000001100101',
]

# 1792, 1856, ... 2560, shared by both colors
MAKEUP_EXTENDED = [
    '00000001000', '00000001100', '00000001001', '000000010010', '000000010011', '000000010100',
    '000000010101', '000000010110', '000000010111', '000000011100', '000000011101',
    '000000011110', '000000011111',
]


def _run_table(terminating, makeup):
    table = {code: (n, True) for n, code in enumerate(terminating)}
    table.update({code: ((n + 1) * 64, False) for n, code in enumerate(makeup)})
    table.update({code: ((n + 28) * 64, False) for n, code in enumerate(MAKEUP_EXTENDED)})
    return table


RUN_CODES = {
    WHITE: _run_table(TERMINATING_WHITE, MAKEUP_WHITE),
    BLACK: _run_table(TERMINATING_BLACK, MAKEUP_BLACK),
}
MAX_RUN_CODE = 13

PASS = 'P'
HORIZONTAL = 'H'
EXTENSION = 'X'

MODE_CODES = {
    '0001': PASS,
    '001': HORIZONTAL,
    '1': 0,
    '011': 1,
    '000011': 2,
    '0000011': 3,
    '010': -1,
    '000010': -2,
    '0000010': -3,
    '0000001': EXTENSION,
}
MAX_MODE_CODE = 7


class BitReader:
    def __init__(self, data: bytes):
        self.bits = ''.join('{:08b}'.format(b) for b in data)
        self.pos = 0

    def remaining(self):
        return len(self.bits) - self.pos

    def peek(self, n: int) -> str:
        return self.bits[self.pos:self.pos + n]

    def read(self, n: int) -> str:
        s = self.peek(n)
        if len(s) < n:
            raise BadFileError('fax data ends in the middle of a code word')
        self.pos += n
        return s

    def zeros_ahead(self):
        n = 0
        while self.pos + n < len(self.bits) and self.bits[self.pos + n] == '0':
            n += 1
        return n

    def lookup(self, table, longest):
        for n in range(1, longest + 1):
            code = self.peek(n)
            if len(code) < n:
                break
            if code in table:
                self.pos += n
                return table[code]
        return None


def skip_eols(reader: BitReader, tagged: bool = False) -> int:
    """Consume fill bits and EOL codes; return how many EOLs were seen.

    With `tagged` (MR) every EOL carries a 1-D/2-D tag bit. Tags directly
    followed by another EOL are consumed here; the last one is left for
    the line decoder.
    """
    eols = 0
    while True:
        zeros = reader.zeros_ahead()
        if zeros < EOL_ZEROS:
            return eols
        if reader.pos + zeros >= len(reader.bits):
            # trailing fill at the end of the page
            reader.pos = len(reader.bits)
            return eols
        reader.pos += zeros + 1
        eols += 1
        if tagged and reader.peek(EOL_ZEROS + 1)[1:] == '0' * EOL_ZEROS:
            reader.pos += 1


def read_run(reader: BitReader, color: int) -> int:
    total = 0
    while True:
        entry = reader.lookup(RUN_CODES[color], MAX_RUN_CODE)
        if entry is None:
            raise BadFileError('invalid %s run code %r' % ('white' if color == WHITE else 'black',
                                                            reader.peek(MAX_RUN_CODE)))
        length, terminating = entry
        total += length
        if terminating:
            return total


def decode_1d(reader: BitReader, width: int):
    changes = []
    pos = 0
    color = WHITE
    while pos < width:
        pos += read_run(reader, color)
        if pos > width:
            raise BadFileError('run ends at %d past line width %d' % (pos, width))
        if pos < width:
            changes.append(pos)
        color ^= 1
    return changes


def _reference_b1(reference, a0, color, width, start):
    # b1: first change on the reference line right of a0 switching to the
    # opposite of `color`; even indices switch to black
    for n in range(start, len(reference)):
        if reference[n] > a0 and n % 2 == color:
            return reference[n], n
    return width, len(reference)


def decode_2d(reader: BitReader, reference, width: int):
    changes = []
    a0 = -1
    color = WHITE
    while True:
        b1, n = _reference_b1(reference, a0, color, width, 0)
        b2 = reference[n + 1] if n + 1 < len(reference) else width
        if a0 < 0:
            a0 = 0
        mode = reader.lookup(MODE_CODES, MAX_MODE_CODE)
        if mode is None:
            raise BadFileError('invalid 2-D mode code %r at column %d' % (reader.peek(MAX_MODE_CODE), a0))
        if mode == PASS:
            a0 = b2
        elif mode == HORIZONTAL:
            a1 = a0 + read_run(reader, color)
            a2 = a1 + read_run(reader, color ^ 1)
            if a2 > width:
                raise BadFileError('horizontal run ends at %d past line width %d' % (a2, width))
            changes.append(a1)
            if a2 < width:
                changes.append(a2)
            a0 = a2
        elif mode == EXTENSION:
            raise UnsupportedError('fax extension (uncompressed) mode is not supported')
        else:
            a1 = b1 + mode
            if a1 < a0 or a1 > width:
                raise BadFileError('vertical mode V%+d puts a1=%d outside %d..%d' % (mode, a1, a0, width))
            if a1 < width:
                changes.append(a1)
            a0 = a1
            color ^= 1
        if a0 >= width:
            return [c for c in changes if c < width]


def expand_line(changes, width: int):
    """1 for black, 0 for white."""
    row = [WHITE] * width
    color = WHITE
    start = 0
    for pos in changes + [width]:
        if color == BLACK:
            row[start:pos] = [BLACK] * (pos - start)
        start = pos
        color ^= 1
    return row


def _raw_rows(data: bytes, width: int, height: int):
    stride = (width + 7) // 8
    if height == 0:
        height = len(data) // stride
    if len(data) < stride * height:
        raise BadFileError('PAGE too short: %d bytes, expected %d' % (len(data), stride * height))
    return [[(data[y * stride + (x >> 3)] >> (7 - (x & 7))) & 1 for x in range(width)]
            for y in range(height)]


def decode_page(data: bytes, width: int, height: int, compression: int):
    """Decode a FAXX page into rows of 0 (white) / 1 (black).

    `height` 0 decodes until the end-of-page marker or the end of data.
    """
    if compression == FAX_CMP_NONE:
        return _raw_rows(data, width, height)
    if compression not in (FAX_CMP_MH, FAX_CMP_MR, FAX_CMP_MMR):
        raise UnsupportedError('Unsupported FAXX compression %d' % compression)

    reader = BitReader(data)
    rows = []
    reference = []
    while not height or len(rows) < height:
        line = len(rows)
        eols = skip_eols(reader, tagged=compression == FAX_CMP_MR)
        if eols >= 2 and (compression == FAX_CMP_MMR or eols >= RTC_EOLS):
            log.debug('end of page marker after %d lines', line)
            break
        if reader.zeros_ahead() == reader.remaining():
            break
        try:
            if compression == FAX_CMP_MH:
                changes = decode_1d(reader, width)
            elif compression == FAX_CMP_MR:
                one_d = reader.read(1) == '1'
                changes = decode_1d(reader, width) if one_d else decode_2d(reader, reference, width)
            else:
                changes = decode_2d(reader, reference, width)
        except BadFileError as e:
            raise BadFileError('fax decompression failed at line %d: %s' % (line, e)) from e
        rows.append(expand_line(changes, width))
        reference = changes

    if height and len(rows) < height:
        raise BadFileError('fax page ends after %d of %d lines' % (len(rows), height))
    log.debug('decoded %d fax lines of %d pixels', len(rows), width)
    return rows
