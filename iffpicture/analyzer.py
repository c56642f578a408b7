import logging
from collections import namedtuple
from enum import Enum

from .errors import InvalidStateError, UnsupportedError
from .headers import (CMP_BYTERUN1, CMP_IMPULSE, CMP_NONE, DEEP_ALPHA, FAX_CMP_MH, FAX_CMP_MMR, FAX_CMP_MR,
                      FAX_CMP_NONE, FORM_TYPES, ID_ACBM, ID_DEEP, ID_FAXX, ID_ILBM, ID_PBM, ID_RGB8,
                      ID_RGBN, MSK_HAS_MASK, MSK_HAS_TRANSPARENT_COLOR, VM_EXTRA_HALFBRITE, VM_HAM,
                      deep_elements)

log = logging.getLogger(__name__)


class ColorType(Enum):
    INDEXED = 'Indexed'
    GRAYSCALE = 'Grayscale'
    RGB = 'RGB'
    RGBA = 'RGBA'


class Strategy(Enum):
    INDEXED_PLANAR = 'indexed-planar'
    INDEXED_CHUNKY = 'indexed-chunky'
    HAM = 'ham'
    EHB = 'ehb'
    RGBN = 'rgbn'
    RGB8 = 'rgb8'
    DEEP = 'deep'
    FAXX = 'faxx'


FormatProfile = namedtuple('FormatProfile', 'form_type, color_type, bit_depth, has_alpha, is_ham, '
                                            'is_ehb, is_compressed, is_grayscale, strategy')

HAM_PLANES = (6, 8)
EHB_PLANES = 6
EHB_PALETTE_SIZE = 32

COMPRESSIONS = {
    ID_ILBM: (CMP_NONE, CMP_BYTERUN1),
    ID_PBM: (CMP_NONE, CMP_BYTERUN1),
    ID_ACBM: (CMP_NONE,),
    ID_RGBN: (CMP_NONE, CMP_BYTERUN1, CMP_IMPULSE),
    ID_RGB8: (CMP_NONE, CMP_BYTERUN1, CMP_IMPULSE),
    ID_DEEP: (CMP_NONE, CMP_BYTERUN1),
    ID_FAXX: (FAX_CMP_NONE, FAX_CMP_MH, FAX_CMP_MR, FAX_CMP_MMR),
}

DIRECT_STRATEGIES = {ID_RGBN: Strategy.RGBN, ID_RGB8: Strategy.RGB8, ID_DEEP: Strategy.DEEP}


def palette_bit_depth(num_colors: int) -> int:
    for depth in (1, 2, 4):
        if num_colors <= 1 << depth:
            return depth
    return 8


def is_ham(header, modes: int) -> bool:
    return bool(modes & VM_HAM) and header.planes in HAM_PLANES


def is_ehb(header, cmap, modes: int) -> bool:
    # HAM wins when both bits are set on a 6-plane image
    if header.planes != EHB_PLANES or is_ham(header, modes):
        return False
    if modes & VM_EXTRA_HALFBRITE:
        return True
    return not modes & VM_HAM and cmap is not None and len(cmap) == EHB_PALETTE_SIZE


def analyze_format(form_type: bytes, header, cmap=None, modes: int = 0, dpel=None):
    """Classify a picture and pick its decode strategy.

    Runs before any body data is touched, so anything unsupported (down to
    the DEEP pixel layout) is reported without a decode attempt.
    """
    if form_type not in FORM_TYPES:
        raise UnsupportedError('Unsupported IFF FORM type %r' % form_type)
    if header is None:
        raise InvalidStateError('Picture header has not been loaded')
    if header.compression not in COMPRESSIONS[form_type]:
        raise UnsupportedError('Unsupported %s compression %d'
                               % (form_type.decode('ascii').strip(), header.compression))

    compressed = header.compression != CMP_NONE
    ham = ehb = gray = False

    if form_type == ID_FAXX:
        strategy = Strategy.FAXX
        color_type, bit_depth, alpha, gray = ColorType.GRAYSCALE, 1, False, True
    elif form_type in DIRECT_STRATEGIES:
        strategy = DIRECT_STRATEGIES[form_type]
        alpha = False
        if form_type == ID_DEEP:
            alpha = any(e.type == DEEP_ALPHA for e in deep_elements(header, dpel))
        color_type, bit_depth = (ColorType.RGBA if alpha else ColorType.RGB), 8
    else:
        if not 1 <= header.planes <= 8:
            raise UnsupportedError('Unsupported depth of %d planes for %s'
                                   % (header.planes, form_type.decode('ascii').strip()))
        if cmap is None or len(cmap) == 0:
            raise InvalidStateError('Missing CMAP for indexed %s picture'
                                    % form_type.decode('ascii').strip())
        alpha = (header.masking == MSK_HAS_TRANSPARENT_COLOR
                 or (header.masking == MSK_HAS_MASK and form_type != ID_PBM))
        ham = form_type != ID_PBM and is_ham(header, modes)
        ehb = form_type != ID_PBM and is_ehb(header, cmap, modes)
        if ham or ehb:
            strategy = Strategy.HAM if ham else Strategy.EHB
            color_type, bit_depth = (ColorType.RGBA if alpha else ColorType.RGB), 8
        else:
            strategy = Strategy.INDEXED_CHUNKY if form_type == ID_PBM else Strategy.INDEXED_PLANAR
            gray = cmap.is_gray()
            color_type = ColorType.GRAYSCALE if gray else ColorType.INDEXED
            bit_depth = palette_bit_depth(len(cmap))

    profile = FormatProfile(form_type, color_type, bit_depth, alpha, ham, ehb, compressed, gray, strategy)
    log.debug('format profile %s', profile)
    return profile
