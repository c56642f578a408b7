"""Chunk payload models: BMHD, CMAP, CAMG, FXHD, DPEL and the text chunks.

The chunk layer hands us raw payloads; everything here is a pure parse of
those bytes into immutable values.
"""

import logging
from collections import namedtuple
from struct import pack, unpack

from .bytebuffer import ByteBuffer
from .errors import BadFileError, UnsupportedError

log = logging.getLogger(__name__)

ID_ILBM = b'ILBM'
ID_PBM = b'PBM '
ID_RGBN = b'RGBN'
ID_RGB8 = b'RGB8'
ID_DEEP = b'DEEP'
ID_ACBM = b'ACBM'
ID_FAXX = b'FAXX'

FORM_TYPES = (ID_ILBM, ID_PBM, ID_RGBN, ID_RGB8, ID_DEEP, ID_ACBM, ID_FAXX)

# Viewport mode bits from CAMG
VM_LACE = 0x0004
VM_EXTRA_HALFBRITE = 0x0080
VM_HAM = 0x0800
VM_HIRES = 0x8000

MSK_NONE = 0
MSK_HAS_MASK = 1
MSK_HAS_TRANSPARENT_COLOR = 2
MSK_LASSO = 3

CMP_NONE = 0
CMP_BYTERUN1 = 1
# Turbo Silver / Imagine run-length coding, RGBN and RGB8 only
CMP_IMPULSE = 4

FAX_CMP_NONE = 0
FAX_CMP_MH = 1
FAX_CMP_MR = 2
FAX_CMP_MMR = 4

DEEP_RED = 1
DEEP_GREEN = 2
DEEP_BLUE = 3
DEEP_ALPHA = 4

BMHD_FORMAT = '>HHhhBBBBHBBhh'
BMHD_SIZE = 20
FXHD_FORMAT = '>HHHHB11x'
FXHD_SIZE = 20

# 0-15 nibble -> 0-255
NIBBLE_SCALE = 17


def row_bytes(width: int) -> int:
    """Bytes in one bitplane row, padded to a whole 16-bit word."""
    return ((width + 15) >> 4) << 1


class BitmapHeader(namedtuple('BitmapHeader', 'w, h, x, y, planes, masking, compression, pad1, '
                                              'transparent_color, x_aspect, y_aspect, '
                                              'page_width, page_height')):
    __slots__ = ()

    @classmethod
    def from_bytes(cls, data: bytes):
        if len(data) < BMHD_SIZE:
            raise BadFileError('BMHD chunk too small (%d bytes, expected %d)' % (len(data), BMHD_SIZE))
        bmhd = cls(*unpack(BMHD_FORMAT, data[:BMHD_SIZE]))
        log.debug('BMHD %dx%d planes=%d masking=%d compression=%d',
                  bmhd.w, bmhd.h, bmhd.planes, bmhd.masking, bmhd.compression)
        return bmhd

    def to_bytes(self) -> bytes:
        return pack(BMHD_FORMAT, *self)


class ColorMap:
    """Palette of RGB triplets.

    An old-style 4-bit palette keeps its channels as 0-15 nibbles and is
    scaled by 17 at lookup time, so the stored values always match the
    source file's precision.
    """

    __slots__ = ('colors', 'is_4bit')

    def __init__(self, colors, is_4bit=False):
        self.colors = tuple(tuple(c) for c in colors)
        self.is_4bit = is_4bit

    @classmethod
    def from_bytes(cls, data: bytes):
        if len(data) % 3 != 0:
            raise BadFileError('CMAP chunk size %d is not a multiple of 3' % len(data))
        triplets = [tuple(data[i:i + 3]) for i in range(0, len(data), 3)]
        is_4bit = bool(data) and all(v & 0x0F == 0 for v in data)
        if is_4bit:
            triplets = [tuple(v >> 4 for v in rgb) for rgb in triplets]
        log.debug('CMAP %d colors, is_4bit=%s', len(triplets), is_4bit)
        return cls(triplets, is_4bit)

    def __len__(self):
        return len(self.colors)

    def lookup(self, index: int):
        if index >= len(self.colors):
            raise BadFileError('Color index %d outside %d-entry palette' % (index, len(self.colors)))
        r, g, b = self.colors[index]
        if self.is_4bit:
            return r * NIBBLE_SCALE, g * NIBBLE_SCALE, b * NIBBLE_SCALE
        return r, g, b

    def rgb_table(self):
        return [self.lookup(i) for i in range(len(self.colors))]

    def is_gray(self):
        return all(r == g == b for r, g, b in self.colors)


def parse_camg(data) -> int:
    if data is None:
        return 0
    if len(data) < 4:
        raise BadFileError('CAMG chunk too small (%d bytes)' % len(data))
    modes = unpack('>L', data[:4])[0]
    log.debug('CAMG viewport modes 0x%08x', modes)
    return modes


FaxHeader = namedtuple('FaxHeader', 'width, height, line_length, v_res, compression')


def parse_fxhd(data: bytes) -> FaxHeader:
    if len(data) < FXHD_SIZE:
        raise BadFileError('FXHD chunk too small (%d bytes, expected %d)' % (len(data), FXHD_SIZE))
    fxhd = FaxHeader(*unpack(FXHD_FORMAT, data[:FXHD_SIZE]))
    log.debug('FXHD %dx%d compression=%d', fxhd.width, fxhd.height, fxhd.compression)
    return fxhd


def fax_bitmap_header(fxhd: FaxHeader) -> BitmapHeader:
    return BitmapHeader(fxhd.width, fxhd.height, 0, 0, 1, MSK_NONE, fxhd.compression, 0, 0, 1, 1,
                        fxhd.width, fxhd.height)


DeepElement = namedtuple('DeepElement', 'type, bit_depth')


def parse_dpel(data: bytes):
    bb = ByteBuffer(data, 'DPEL chunk')
    count = bb.get_long()
    elements = tuple(DeepElement(bb.get_word(), bb.get_word()) for _ in range(count))
    log.debug('DPEL %s', elements)
    return elements


DEEP_DEPTHS = (8, 16)


def deep_elements(header, dpel=None):
    """Channel layout of a DEEP pixel, from DPEL or from the plane count."""
    if dpel:
        elements = tuple(dpel)
    else:
        planes = header.planes
        if planes % 3 == 0 and planes // 3 in DEEP_DEPTHS:
            elements = tuple(DeepElement(t, planes // 3) for t in (DEEP_RED, DEEP_GREEN, DEEP_BLUE))
        elif planes % 4 == 0 and planes // 4 in DEEP_DEPTHS:
            elements = tuple(DeepElement(t, planes // 4)
                             for t in (DEEP_RED, DEEP_GREEN, DEEP_BLUE, DEEP_ALPHA))
        else:
            raise UnsupportedError('Unsupported DEEP depth of %d bits per pixel' % planes)
    for element in elements:
        if element.bit_depth not in DEEP_DEPTHS:
            raise UnsupportedError('Unsupported DEEP element depth %d' % element.bit_depth)
    kinds = {e.type for e in elements}
    if not {DEEP_RED, DEEP_GREEN, DEEP_BLUE} <= kinds:
        raise UnsupportedError('DEEP pixel without red, green and blue elements')
    return elements


# Text and property chunks carried alongside the image
ID_COPYRIGHT = b'(c) '
ID_AUTH = b'AUTH'
ID_ANNO = b'ANNO'
ID_TEXT = b'TEXT'
ID_FVER = b'FVER'
ID_GRAB = b'GRAB'
ID_CRNG = b'CRNG'

RNG_ACTIVE = 1
RNG_REVERSE = 2

Point = namedtuple('Point', 'x, y')
ColorRange = namedtuple('ColorRange', 'rate, flags, low, high')
Metadata = namedtuple('Metadata', 'copyright, author, annotations, texts, version, grab, color_ranges')


def decode_text(data: bytes) -> str:
    """IFF text chunks are Latin-1, optionally NUL terminated."""
    return data.split(b'\0', 1)[0].decode('latin-1')


def parse_grab(data: bytes) -> Point:
    if len(data) < 4:
        raise BadFileError('GRAB chunk too small (%d bytes)' % len(data))
    return Point(*unpack('>hh', data[:4]))


def parse_crng(data: bytes) -> ColorRange:
    if len(data) < 8:
        raise BadFileError('CRNG chunk too small (%d bytes)' % len(data))
    _, rate, flags, low, high = unpack('>hhhBB', data[:8])
    return ColorRange(rate, flags, low, high)


def read_metadata(chunks) -> Metadata:
    def text(chunk_id):
        data = chunks.get(chunk_id)
        return decode_text(data) if data is not None else None

    grab = chunks.get(ID_GRAB)
    metadata = Metadata(
        copyright=text(ID_COPYRIGHT),
        author=text(ID_AUTH),
        annotations=[decode_text(d) for d in chunks.get_all(ID_ANNO)],
        texts=[decode_text(d) for d in chunks.get_all(ID_TEXT)],
        version=text(ID_FVER),
        grab=parse_grab(grab) if grab is not None else None,
        color_ranges=[parse_crng(d) for d in chunks.get_all(ID_CRNG)],
    )
    log.debug('metadata %s', metadata)
    return metadata
