"""Sample-to-RGB resolution.

The palette paths take a PixelSource of plane indices; the direct-color
paths unpack RGBN/RGB8/DEEP bodies straight into RGB(A) rows. HAM is a
left-to-right fold over each row with the accumulator as explicit local
state, reset for every row.
"""

import logging

from .bytebuffer import ByteBuffer
from .errors import BadFileError, UnsupportedError
from .headers import CMP_BYTERUN1, CMP_IMPULSE, CMP_NONE, DEEP_ALPHA, DEEP_BLUE, DEEP_GREEN, DEEP_RED, NIBBLE_SCALE
from .planes import expand

log = logging.getLogger(__name__)

RED, GREEN, BLUE = 0, 1, 2

# HAM control code (top two bits) -> channel replaced; 0 is a palette load
HAM_CONTROL = {1: GREEN, 2: BLUE, 3: RED}

EHB_COLORS = 32
EHB_HALF_BIT = 0x20

OPAQUE = 255
TRANSPARENT = 0


def ham_expand(value: int, bits: int) -> int:
    """Scale a HAM modify value to 8 bits."""
    if bits == 4:
        return value * NIBBLE_SCALE
    if bits == 6:
        return (value * 255 + 31) // 63
    return (value * 255 + ((1 << bits) - 1) // 2) // ((1 << bits) - 1)


def _lookup(table, index):
    if index >= len(table):
        raise BadFileError('Color index %d outside %d-entry palette' % (index, len(table)))
    return table[index]


def indexed_row(samples, table):
    return [_lookup(table, i) for i in samples]


def ham_row(samples, table, planes: int):
    bits = planes - 2
    mask = (1 << bits) - 1
    out = []
    if not samples:
        return out
    rgb = list(_lookup(table, samples[0] & mask))
    for value in samples:
        control = (value >> bits) & 3
        data = value & mask
        if control == 0:
            rgb = list(_lookup(table, data))
        else:
            rgb[HAM_CONTROL[control]] = ham_expand(data, bits)
        out.append(tuple(rgb))
    return out


def ehb_row(samples, table):
    out = []
    for value in samples:
        r, g, b = _lookup(table, value & (EHB_COLORS - 1))
        if value & EHB_HALF_BIT:
            r, g, b = r // 2, g // 2, b // 2
        out.append((r, g, b))
    return out


def mask_alpha(mask_rows):
    return [[OPAQUE if bit else TRANSPARENT for bit in row] for row in mask_rows]


def transparent_alpha(sample_rows, transparent_color: int):
    return [[TRANSPARENT if s == transparent_color else OPAQUE for s in row] for row in sample_rows]


def pack_pixels(rgb_rows, alpha_rows=None) -> bytes:
    """Flatten RGB rows (plus optional alpha rows) into a byte buffer."""
    out = bytearray()
    if alpha_rows is None:
        for row in rgb_rows:
            for rgb in row:
                out += bytes(rgb[:3])
    else:
        for row, alpha in zip(rgb_rows, alpha_rows):
            for rgb, a in zip(row, alpha):
                out += bytes(rgb[:3])
                out.append(a)
    return bytes(out)


def _impulse_pixels(body: bytes, width: int, height: int, pixel_size: int):
    """Expand Turbo Silver run-length pixels into a flat list of raw values.

    Each pixel carries a repeat count in its low bits (3 for RGBN, 7 for
    RGB8); a zero count is followed by a byte count and, if that is zero
    too, by a word count.
    """
    bb = ByteBuffer(body, 'BODY')
    total = width * height
    count_mask = 0x07 if pixel_size == 2 else 0x7F
    pixels = []
    while len(pixels) < total:
        value = bb.get_word() if pixel_size == 2 else bb.get_long()
        count = value & count_mask
        if count == 0:
            count = bb.get_byte()
            if count == 0:
                count = bb.get_word()
        if len(pixels) + count > total:
            raise BadFileError('run of %d pixels at pixel %d overruns %dx%d image'
                               % (count, len(pixels), width, height))
        pixels.extend([value] * count)
    return pixels


def _rows(values, width, height):
    return [values[y * width:(y + 1) * width] for y in range(height)]


def rgbn_rows(header, body: bytes):
    w, h = header.w, header.h
    if header.compression == CMP_IMPULSE:
        words = _impulse_pixels(body, w, h, 2)
    elif header.compression in (CMP_NONE, CMP_BYTERUN1):
        data = expand(body, header.compression, w * 2, h)
        words = [(data[i] << 8) | data[i + 1] for i in range(0, len(data), 2)]
    else:
        raise UnsupportedError('Unsupported RGBN compression %d' % header.compression)
    pixels = [(((v >> 12) & 0xF) * NIBBLE_SCALE,
               ((v >> 8) & 0xF) * NIBBLE_SCALE,
               ((v >> 4) & 0xF) * NIBBLE_SCALE) for v in words]
    return _rows(pixels, w, h)


def rgb8_rows(header, body: bytes):
    w, h = header.w, header.h
    if header.compression == CMP_IMPULSE:
        pixels = [((v >> 24) & 0xFF, (v >> 16) & 0xFF, (v >> 8) & 0xFF)
                  for v in _impulse_pixels(body, w, h, 4)]
    elif header.compression in (CMP_NONE, CMP_BYTERUN1):
        data = expand(body, header.compression, w * 3, h)
        pixels = [tuple(data[i:i + 3]) for i in range(0, len(data), 3)]
    else:
        raise UnsupportedError('Unsupported RGB8 compression %d' % header.compression)
    return _rows(pixels, w, h)


def deep_rows(header, body: bytes, elements):
    w, h = header.w, header.h
    pixel_size = sum(e.bit_depth for e in elements) // 8
    data = expand(body, header.compression, w * pixel_size, h)
    has_alpha = any(e.type == DEEP_ALPHA for e in elements)
    rows = []
    pos = 0
    for _ in range(h):
        row = []
        for _ in range(w):
            channels = {}
            for e in elements:
                # wide channels keep their most significant byte
                channels[e.type] = data[pos]
                pos += e.bit_depth // 8
            pixel = (channels[DEEP_RED], channels[DEEP_GREEN], channels[DEEP_BLUE])
            if has_alpha:
                pixel += (channels[DEEP_ALPHA],)
            row.append(pixel)
        rows.append(row)
    return rows
