"""Decode strategies, one per FormatProfile.strategy.

Every strategy takes the same inputs and returns a new DecodedImage; the
dispatch table is closed over Strategy so each variant can be exercised on
its own.
"""

import logging

from PIL import Image

from . import color, fax, planes
from .analyzer import Strategy
from .errors import InvalidStateError
from .headers import DEEP_ALPHA, ID_ACBM, MSK_HAS_TRANSPARENT_COLOR, deep_elements

log = logging.getLogger(__name__)


class DecodedImage:
    """Row-major RGB or RGBA pixels, 8 bits per channel.

    Palette-based pictures also keep their per-pixel palette indices and
    the resolved palette, so they can be written back out as indexed images.
    """

    __slots__ = ('_width', '_height', '_mode', '_data', '_indices', '_palette')

    def __init__(self, width: int, height: int, mode: str, data: bytes, indices=None, palette=None):
        if len(data) != width * height * len(mode):
            raise ValueError('%d bytes do not make a %dx%d %s image' % (len(data), width, height, mode))
        if indices is not None and len(indices) != width * height:
            raise ValueError('%d palette indices do not make a %dx%d image' % (len(indices), width, height))
        self._width = width
        self._height = height
        self._mode = mode
        self._data = bytes(data)
        self._indices = bytes(indices) if indices is not None else None
        self._palette = tuple(tuple(rgb) for rgb in palette) if palette is not None else None

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    @property
    def size(self):
        return self._width, self._height

    @property
    def mode(self):
        return self._mode

    @property
    def data(self):
        return self._data

    @property
    def has_alpha(self):
        return self._mode == 'RGBA'

    @property
    def indices(self):
        return self._indices

    @property
    def palette(self):
        return self._palette

    def to_image(self) -> Image.Image:
        return Image.frombytes(self._mode, self.size, self._data)

    def to_indexed_image(self) -> Image.Image:
        if self._indices is None:
            raise ValueError('%r has no palette indices' % self)
        im = Image.frombytes('P', self.size, self._indices)
        im.putpalette([c for rgb in self._palette for c in rgb])
        return im

    def __repr__(self):
        return '<DecodedImage %dx%d %s>' % (self._width, self._height, self._mode)


def _image(width, height, rgb_rows, alpha_rows=None, indices=None, palette=None):
    mode = 'RGB' if alpha_rows is None else 'RGBA'
    return DecodedImage(width, height, mode, color.pack_pixels(rgb_rows, alpha_rows), indices, palette)


def _indices(source):
    return bytes(s for row in source.rows for s in row)


def _palette_alpha(header, source):
    if source.mask is not None:
        return color.mask_alpha(source.mask)
    if header.masking == MSK_HAS_TRANSPARENT_COLOR:
        return color.transparent_alpha(source.rows, header.transparent_color)
    return None


def _planar_source(picture):
    if picture.form_type == ID_ACBM:
        return planes.contiguous(picture.header, picture.body)
    return planes.interleaved(picture.header, picture.body)


def _require_cmap(picture):
    if picture.color_map is None:
        raise InvalidStateError('Missing CMAP for %s decoding' % picture.profile.strategy.value)
    return picture.color_map.rgb_table()


def decode_indexed_planar(picture):
    table = _require_cmap(picture)
    source = _planar_source(picture)
    rows = [color.indexed_row(samples, table) for samples in source.rows]
    return _image(source.width, source.height, rows, _palette_alpha(picture.header, source),
                  _indices(source), table)


def decode_indexed_chunky(picture):
    table = _require_cmap(picture)
    source = planes.chunky(picture.header, picture.body)
    rows = [color.indexed_row(samples, table) for samples in source.rows]
    return _image(source.width, source.height, rows, _palette_alpha(picture.header, source),
                  _indices(source), table)


def decode_ham(picture):
    table = _require_cmap(picture)
    source = _planar_source(picture)
    depth = picture.header.planes
    rows = [color.ham_row(samples, table, depth) for samples in source.rows]
    return _image(source.width, source.height, rows, _palette_alpha(picture.header, source))


def decode_ehb(picture):
    table = _require_cmap(picture)
    source = _planar_source(picture)
    rows = [color.ehb_row(samples, table) for samples in source.rows]
    return _image(source.width, source.height, rows, _palette_alpha(picture.header, source))


def decode_rgbn(picture):
    header = picture.header
    return _image(header.w, header.h, color.rgbn_rows(header, picture.body))


def decode_rgb8(picture):
    header = picture.header
    return _image(header.w, header.h, color.rgb8_rows(header, picture.body))


def decode_deep(picture):
    header = picture.header
    elements = deep_elements(header, picture.deep_elements)
    rows = color.deep_rows(header, picture.body, elements)
    alpha = None
    if any(e.type == DEEP_ALPHA for e in elements):
        alpha = [[pixel[3] for pixel in row] for row in rows]
    return _image(header.w, header.h, rows, alpha)


def decode_faxx(picture):
    fxhd = picture.fax_header
    bits = fax.decode_page(picture.body, fxhd.width, fxhd.height, fxhd.compression)
    rows = [[(0, 0, 0) if bit else (255, 255, 255) for bit in row] for row in bits]
    return _image(fxhd.width, len(rows), rows)


STRATEGIES = {
    Strategy.INDEXED_PLANAR: decode_indexed_planar,
    Strategy.INDEXED_CHUNKY: decode_indexed_chunky,
    Strategy.HAM: decode_ham,
    Strategy.EHB: decode_ehb,
    Strategy.RGBN: decode_rgbn,
    Strategy.RGB8: decode_rgb8,
    Strategy.DEEP: decode_deep,
    Strategy.FAXX: decode_faxx,
}


def decode(picture) -> DecodedImage:
    strategy = picture.profile.strategy
    log.debug('decoding %r with %s strategy', picture.form_type, strategy.value)
    image = STRATEGIES[strategy](picture)
    log.debug('decoded %r', image)
    return image
