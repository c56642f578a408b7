from struct import pack

import pytest

from builders import bits_to_bytes, bmhd, cmap, ilbm_body
from iffpicture.analyzer import ColorType, Strategy
from iffpicture.container import ChunkMap
from iffpicture.decoder import DecodedImage
from iffpicture.errors import BadFileError, InvalidStateError, Status, UnsupportedError
from iffpicture.headers import VM_EXTRA_HALFBRITE, VM_HAM
from iffpicture.picture import IFFPicture

RED, GREEN = (255, 0, 0), (0, 255, 0)


def load(form_type, **chunks):
    picture = IFFPicture(ChunkMap(form_type, {k.ljust(4).encode('ascii'): v for k, v in chunks.items()}))
    picture.load()
    return picture


def decode(form_type, **chunks):
    picture = load(form_type, **chunks)
    picture.analyze()
    return picture.decode()


def test_rgb8_identity():
    image = decode(b'RGB8', BMHD=bmhd(2, 1, 25), BODY=bytes([10, 20, 30, 200, 150, 100]))
    assert image.mode == 'RGB'
    assert image.size == (2, 1)
    assert image.data == bytes([10, 20, 30, 200, 150, 100])


def test_ilbm_indexed():
    image = decode(b'ILBM', BMHD=bmhd(2, 1, 1), CMAP=cmap(RED, GREEN), BODY=ilbm_body([[1, 0]], 1))
    assert image.data == bytes(GREEN + RED)


def test_ilbm_mask_plane():
    body = ilbm_body([[1, 0]], 1, mask=[[1, 0]])
    image = decode(b'ILBM', BMHD=bmhd(2, 1, 1, masking=1), CMAP=cmap(RED, GREEN), BODY=body)
    assert image.mode == 'RGBA'
    assert image.data == bytes(GREEN + (255,) + RED + (0,))


def test_transparent_color():
    body = ilbm_body([[1, 0]], 1)
    image = decode(b'ILBM', BMHD=bmhd(2, 1, 1, masking=2, transparent=0), CMAP=cmap(RED, GREEN), BODY=body)
    assert image.has_alpha
    assert image.data[3] == 255
    assert image.data[7] == 0


def test_ham6():
    palette = [(0, 0, 0)] * 16
    body = ilbm_body([[0b000000, 0b111111]], 6)
    picture = load(b'ILBM', BMHD=bmhd(2, 1, 6), CMAP=cmap(*palette), CAMG=pack('>L', VM_HAM), BODY=body)
    assert picture.viewport_modes == VM_HAM
    assert picture.analyze().strategy == Strategy.HAM
    assert picture.decode().data == bytes([0, 0, 0, 255, 0, 0])


def test_pbm():
    image = decode(b'PBM ', BMHD=bmhd(1, 2, 8), CMAP=cmap(RED, GREEN), BODY=bytes([1, 0, 0, 0]))
    assert image.data == bytes(GREEN + RED)


def test_acbm():
    image = decode(b'ACBM', BMHD=bmhd(1, 1, 1), CMAP=cmap(RED, GREEN), ABIT=bytes([0x80, 0]))
    assert image.data == bytes(GREEN)


def test_deep_body_without_dpel():
    picture = load(b'DEEP', BMHD=bmhd(1, 1, 32), DBOD=bytes([1, 2, 3, 4]))
    assert picture.analyze().color_type == ColorType.RGBA
    assert picture.decode().data == bytes([1, 2, 3, 4])


def test_deep_with_dpel():
    dpel = pack('>LHHHHHH', 3, 3, 8, 2, 8, 1, 8)
    image = decode(b'DEEP', BMHD=bmhd(1, 1, 24), DPEL=dpel, BODY=bytes([30, 20, 10]))
    assert image.data == bytes([10, 20, 30])


def test_faxx():
    fxhd = pack('>HHHHB11x', 8, 1, 0, 0, 1)
    image = decode(b'FAXX', FXHD=fxhd, PAGE=bits_to_bytes('0111' + '10' + '1000'))
    assert image.size == (8, 1)
    assert image.data[:6] == b'\xff' * 6
    assert image.data[6:9] == b'\x00\x00\x00'


def test_decode_before_analyze():
    picture = load(b'RGB8', BMHD=bmhd(1, 1, 25), BODY=bytes(3))
    with pytest.raises(InvalidStateError):
        picture.decode()
    assert picture.last_error == Status.INVALID_STATE
    assert picture.error_string


def test_reload_clears_profile():
    picture = load(b'RGB8', BMHD=bmhd(1, 1, 25), BODY=bytes(3))
    picture.analyze()
    picture.load()
    assert picture.profile is None
    with pytest.raises(InvalidStateError):
        picture.decode()


def test_analyze_before_load():
    picture = IFFPicture(ChunkMap(b'ILBM', {}))
    with pytest.raises(InvalidStateError):
        picture.analyze()


def test_unknown_form_type():
    picture = load(b'XXXX')
    with pytest.raises(UnsupportedError):
        picture.analyze()
    assert picture.last_error == Status.UNSUPPORTED


def test_success_resets_error():
    picture = load(b'RGB8', BMHD=bmhd(1, 1, 25), BODY=bytes(3))
    with pytest.raises(InvalidStateError):
        picture.decode()
    picture.analyze()
    assert picture.last_error == Status.OK
    assert picture.error_string == ''


def test_missing_bmhd():
    picture = IFFPicture(ChunkMap(b'ILBM', {b'BODY': b''}))
    with pytest.raises(BadFileError):
        picture.load()
    assert picture.last_error == Status.BAD_FILE


def test_missing_cmap():
    picture = load(b'ILBM', BMHD=bmhd(1, 1, 1), BODY=bytes(2))
    with pytest.raises(InvalidStateError):
        picture.analyze()


def test_truncated_body():
    picture = load(b'ILBM', BMHD=bmhd(16, 2, 1), CMAP=cmap(RED, GREEN), BODY=bytes(2))
    picture.analyze()
    with pytest.raises(BadFileError):
        picture.decode()


def test_decoded_image():
    image = DecodedImage(2, 1, 'RGB', bytes([1, 2, 3, 4, 5, 6]))
    im = image.to_image()
    assert im.size == (2, 1)
    assert im.getpixel((1, 0)) == (4, 5, 6)
    with pytest.raises(ValueError):
        DecodedImage(2, 2, 'RGB', bytes(6))


def test_deep_layout_checked_by_analyze():
    picture = load(b'DEEP', BMHD=bmhd(1, 1, 20), BODY=bytes(3))
    with pytest.raises(UnsupportedError):
        picture.analyze()
    assert picture.last_error == Status.UNSUPPORTED
    assert picture.profile is None


def test_deep_dpel_element_depth_checked_by_analyze():
    dpel = pack('>LHHHHHH', 3, 1, 12, 2, 12, 3, 12)
    picture = load(b'DEEP', BMHD=bmhd(1, 1, 36), DPEL=dpel, BODY=bytes(6))
    with pytest.raises(UnsupportedError):
        picture.analyze()


def ehb_palette():
    palette = [(0, 0, 0)] * 32
    palette[1] = (24, 100, 200)
    return cmap(*palette)


def test_ehb():
    body = ilbm_body([[1, 1 | 0x20]], 6)
    picture = load(b'ILBM', BMHD=bmhd(2, 1, 6), CMAP=ehb_palette(), CAMG=pack('>L', VM_EXTRA_HALFBRITE), BODY=body)
    assert picture.analyze().strategy == Strategy.EHB
    assert picture.decode().data == bytes([24, 100, 200, 12, 50, 100])


def test_ehb_transparent_color():
    body = ilbm_body([[1, 1 | 0x20]], 6)
    image = decode(b'ILBM', BMHD=bmhd(2, 1, 6, masking=2, transparent=0x21), CMAP=ehb_palette(),
                   CAMG=pack('>L', VM_EXTRA_HALFBRITE), BODY=body)
    assert image.mode == 'RGBA'
    assert image.data == bytes([24, 100, 200, 255, 12, 50, 100, 0])


def test_ham_transparent_color():
    palette = [(0, 0, 0)] * 16
    palette[1] = (17, 34, 51)
    body = ilbm_body([[0b000001, 0b000000]], 6)
    image = decode(b'ILBM', BMHD=bmhd(2, 1, 6, masking=2, transparent=0), CMAP=cmap(*palette),
                   CAMG=pack('>L', VM_HAM), BODY=body)
    assert image.data == bytes([17, 34, 51, 255, 0, 0, 0, 0])


def test_ham8():
    body = ilbm_body([[(2 << 6) | 63, (1 << 6) | 32]], 8)
    picture = load(b'ILBM', BMHD=bmhd(2, 1, 8), CMAP=cmap(*[(0, 0, 0)] * 64), CAMG=pack('>L', VM_HAM), BODY=body)
    profile = picture.analyze()
    assert profile.is_ham
    assert picture.decode().data == bytes([0, 0, 255, 0, 130, 255])


def test_acbm_mask_plane():
    abit = bytes([0x80, 0]) + bytes([0x40, 0])
    picture = load(b'ACBM', BMHD=bmhd(2, 1, 1, masking=1), CMAP=cmap(RED, GREEN), ABIT=abit)
    assert picture.analyze().has_alpha
    image = picture.decode()
    assert image.mode == 'RGBA'
    assert image.data == bytes(GREEN + (0,) + RED + (255,))


def test_indexed_image_keeps_indices():
    image = decode(b'ILBM', BMHD=bmhd(2, 1, 1), CMAP=cmap(RED, GREEN), BODY=ilbm_body([[1, 0]], 1))
    assert image.indices == b'\x01\x00'
    assert image.palette == (RED, GREEN)
    im = image.to_indexed_image()
    assert im.mode == 'P'
    assert im.getpixel((0, 0)) == 1
    assert im.getpalette()[:6] == list(RED + GREEN)


def test_direct_color_has_no_indices():
    image = decode(b'RGB8', BMHD=bmhd(1, 1, 25), BODY=bytes(3))
    assert image.indices is None
    with pytest.raises(ValueError):
        image.to_indexed_image()


def test_metadata():
    chunks = ChunkMap(b'RGB8', {b'BMHD': bmhd(1, 1, 25), b'BODY': bytes(3), b'(c) ': b'1992 Someone\0',
                                b'AUTH': b'A. Painter', b'GRAB': pack('>hh', 3, -1), b'FVER': b'$VER: pic 1.2'})
    chunks.add(b'ANNO', b'first')
    chunks.add(b'ANNO', b'second')
    chunks.add(b'CRNG', pack('>hhhBB', 0, 2730, 1, 4, 9))
    picture = IFFPicture(chunks)
    picture.load()
    assert picture.copyright == '1992 Someone'
    assert picture.author == 'A. Painter'
    assert picture.annotations == ['first', 'second']
    assert picture.metadata.version == '$VER: pic 1.2'
    assert picture.metadata.grab == (3, -1)
    assert picture.metadata.color_ranges[0].low == 4
    assert picture.metadata.color_ranges[0].high == 9


def test_metadata_absent():
    picture = load(b'RGB8', BMHD=bmhd(1, 1, 25), BODY=bytes(3))
    assert picture.copyright is None
    assert picture.author is None
    assert picture.annotations == []
