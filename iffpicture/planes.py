"""Bitplane reconstruction.

Turns ILBM (row-interleaved planes), ACBM (contiguous planes) and PBM
(one byte per pixel) bodies into per-pixel sample values.
"""

import logging
from collections import namedtuple

from .byterun1 import unpack_rows
from .errors import BadFileError, UnsupportedError
from .headers import CMP_BYTERUN1, CMP_NONE, MSK_HAS_MASK, row_bytes

log = logging.getLogger(__name__)

# rows: list of per-row sample lists; mask: matching 0/1 rows or None
PixelSource = namedtuple('PixelSource', 'width, height, rows, mask')


def expand(data: bytes, compression: int, row_size: int, rows: int, what: str = 'BODY') -> bytes:
    """Return `rows * row_size` bytes of uncompressed body data."""
    if compression == CMP_BYTERUN1:
        return unpack_rows(data, row_size, rows, what)
    if compression != CMP_NONE:
        raise UnsupportedError('Unsupported %s compression %d' % (what, compression))
    needed = row_size * rows
    if len(data) < needed:
        raise BadFileError('%s too short: %d bytes, expected %d' % (what, len(data), needed))
    return data[:needed]


def unpack_bits(data: bytes, offset: int, width: int):
    return [(data[offset + (x >> 3)] >> (7 - (x & 7))) & 1 for x in range(width)]


def _merge_plane(samples, bits, plane):
    for x, bit in enumerate(bits):
        if bit:
            samples[x] |= 1 << plane


def has_mask_plane(header) -> bool:
    return header.masking == MSK_HAS_MASK


def interleaved(header, body: bytes) -> PixelSource:
    w, h, depth = header.w, header.h, header.planes
    bpr = row_bytes(w)
    planes_per_row = depth + (1 if has_mask_plane(header) else 0)
    data = expand(body, header.compression, bpr, h * planes_per_row)

    rows = []
    mask = [] if has_mask_plane(header) else None
    for y in range(h):
        samples = [0] * w
        base = y * planes_per_row * bpr
        for p in range(depth):
            _merge_plane(samples, unpack_bits(data, base + p * bpr, w), p)
        rows.append(samples)
        if mask is not None:
            mask.append(unpack_bits(data, base + depth * bpr, w))
    log.debug('ILBM reconstructed %dx%d from %d planes, mask=%s', w, h, depth, mask is not None)
    return PixelSource(w, h, rows, mask)


def contiguous(header, body: bytes) -> PixelSource:
    w, h, depth = header.w, header.h, header.planes
    if header.compression != CMP_NONE:
        raise UnsupportedError('ACBM does not support compression %d' % header.compression)
    bpr = row_bytes(w)
    plane_size = bpr * h
    total = depth + (1 if has_mask_plane(header) else 0)
    data = expand(body, CMP_NONE, plane_size, total, 'ABIT')

    rows = []
    mask = [] if has_mask_plane(header) else None
    for y in range(h):
        samples = [0] * w
        for p in range(depth):
            _merge_plane(samples, unpack_bits(data, p * plane_size + y * bpr, w), p)
        rows.append(samples)
        if mask is not None:
            mask.append(unpack_bits(data, depth * plane_size + y * bpr, w))
    log.debug('ACBM reconstructed %dx%d from %d planes', w, h, depth)
    return PixelSource(w, h, rows, mask)


def chunky(header, body: bytes) -> PixelSource:
    w, h = header.w, header.h
    # PBM rows are padded to an even byte count; some writers skip the pad
    bpr = w + (w & 1)
    if header.compression == CMP_NONE and w * h <= len(body) < bpr * h:
        bpr = w
    data = expand(body, header.compression, bpr, h)
    rows = [list(data[y * bpr:y * bpr + w]) for y in range(h)]
    return PixelSource(w, h, rows, None)
