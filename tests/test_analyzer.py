import pytest

from builders import make_header
from iffpicture.analyzer import ColorType, Strategy, analyze_format, palette_bit_depth
from iffpicture.errors import InvalidStateError, UnsupportedError
from iffpicture.headers import (DEEP_ALPHA, DEEP_BLUE, DEEP_GREEN, DEEP_RED, ID_DEEP, ID_FAXX, ID_ILBM, ID_PBM,
                                ID_RGB8, ID_RGBN, VM_EXTRA_HALFBRITE, VM_HAM, ColorMap, DeepElement, FaxHeader,
                                fax_bitmap_header)


def palette(n, gray=False):
    return ColorMap([(i, i, i) if gray else (i, 0, 0) for i in range(n)])


def test_unknown_form_type():
    with pytest.raises(UnsupportedError):
        analyze_format(b'XXXX', None)


def test_missing_header():
    with pytest.raises(InvalidStateError):
        analyze_format(ID_ILBM, None)


def test_unknown_compression():
    with pytest.raises(UnsupportedError):
        analyze_format(ID_ILBM, make_header(8, 8, 4, compression=2), palette(16))


@pytest.mark.parametrize('planes', [0, 9])
def test_unsupported_depth(planes):
    with pytest.raises(UnsupportedError):
        analyze_format(ID_ILBM, make_header(8, 8, planes), palette(16))


def test_missing_cmap():
    with pytest.raises(InvalidStateError):
        analyze_format(ID_ILBM, make_header(8, 8, 4))


def test_ham_wins_over_ehb():
    profile = analyze_format(ID_ILBM, make_header(8, 8, 6), palette(16), VM_HAM | VM_EXTRA_HALFBRITE)
    assert profile.is_ham and not profile.is_ehb
    assert profile.strategy == Strategy.HAM
    assert profile.color_type == ColorType.RGB


def test_ham_needs_six_or_eight_planes():
    profile = analyze_format(ID_ILBM, make_header(8, 8, 5), palette(32), VM_HAM)
    assert not profile.is_ham
    assert profile.strategy == Strategy.INDEXED_PLANAR


def test_ehb_from_camg():
    profile = analyze_format(ID_ILBM, make_header(8, 8, 6), palette(32), VM_EXTRA_HALFBRITE)
    assert profile.is_ehb
    assert profile.strategy == Strategy.EHB


def test_ehb_heuristic():
    assert analyze_format(ID_ILBM, make_header(8, 8, 6), palette(32)).strategy == Strategy.EHB
    profile = analyze_format(ID_ILBM, make_header(8, 8, 6), palette(64))
    assert profile.strategy == Strategy.INDEXED_PLANAR
    assert profile.bit_depth == 8


def test_pbm():
    profile = analyze_format(ID_PBM, make_header(8, 8, 8, compression=1), palette(256))
    assert profile.strategy == Strategy.INDEXED_CHUNKY
    assert profile.is_compressed
    assert profile.color_type == ColorType.INDEXED


def test_gray_palette():
    profile = analyze_format(ID_ILBM, make_header(8, 8, 2), palette(4, gray=True))
    assert profile.is_grayscale
    assert profile.color_type == ColorType.GRAYSCALE
    assert profile.bit_depth == 2


def test_alpha_sources():
    assert analyze_format(ID_ILBM, make_header(8, 8, 1, masking=2), palette(2)).has_alpha
    assert analyze_format(ID_ILBM, make_header(8, 8, 1, masking=1), palette(2)).has_alpha
    assert not analyze_format(ID_ILBM, make_header(8, 8, 1), palette(2)).has_alpha


def test_direct_color_forms():
    assert analyze_format(ID_RGB8, make_header(8, 8, 25)).strategy == Strategy.RGB8
    profile = analyze_format(ID_RGBN, make_header(8, 8, 13, compression=4))
    assert profile.strategy == Strategy.RGBN
    assert profile.is_compressed
    assert profile.color_type == ColorType.RGB


def test_deep_alpha_from_plane_count():
    profile = analyze_format(ID_DEEP, make_header(8, 8, 32))
    assert profile.color_type == ColorType.RGBA
    assert profile.has_alpha
    assert not analyze_format(ID_DEEP, make_header(8, 8, 24)).has_alpha


def test_deep_alpha_from_dpel():
    dpel = tuple(DeepElement(t, 8) for t in (DEEP_ALPHA, DEEP_BLUE, DEEP_GREEN, DEEP_RED))
    assert analyze_format(ID_DEEP, make_header(8, 8, 32), dpel=dpel).has_alpha


@pytest.mark.parametrize("planes", [20, 36])
def test_deep_unsupported_depth(planes):
    with pytest.raises(UnsupportedError):
        analyze_format(ID_DEEP, make_header(1, 1, planes))


def test_deep_unsupported_element_depth():
    dpel = tuple(DeepElement(t, 12) for t in (DEEP_RED, DEEP_GREEN, DEEP_BLUE))
    with pytest.raises(UnsupportedError):
        analyze_format(ID_DEEP, make_header(1, 1, 36), dpel=dpel)


def test_deep_without_color_elements():
    with pytest.raises(UnsupportedError):
        analyze_format(ID_DEEP, make_header(1, 1, 8), dpel=(DeepElement(DEEP_ALPHA, 8),))


def test_faxx():
    header = fax_bitmap_header(FaxHeader(8, 1, 0, 0, 4))
    profile = analyze_format(ID_FAXX, header)
    assert profile.color_type == ColorType.GRAYSCALE
    assert profile.bit_depth == 1
    assert profile.strategy == Strategy.FAXX


def test_palette_bit_depth():
    assert [palette_bit_depth(n) for n in (2, 3, 16, 17)] == [1, 2, 4, 8]
