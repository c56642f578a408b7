import logging
import sys
from argparse import ArgumentParser
from collections import namedtuple
from pathlib import Path

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from .analyzer import ColorType
from .container import read_file
from .errors import IFFPictureError
from .headers import ID_FAXX, MSK_HAS_MASK, VM_HIRES, VM_LACE
from .picture import IFFPicture

log = logging.getLogger(__name__)


def default_target(source: Path) -> Path:
    if source.suffix.lower() == '.iff':
        return source.with_suffix('.png')
    return source.with_name(source.name + '.png')


PNGConfig = namedtuple('PNGConfig', 'mode, bits, transparency')


def png_config(picture, opaque: bool = False) -> PNGConfig:
    """Pick the PNG layout that keeps the picture's own precision.

    Palette pictures stay palette images at 1, 2, 4 or 8 bits, with a
    transparent color written as a single tRNS entry. Gray palettes become
    8-bit grayscale, fax pages 1-bit. Everything else is RGB or RGBA.
    """
    profile, header = picture.profile, picture.header
    alpha = profile.has_alpha and not opaque
    if profile.color_type == ColorType.INDEXED and not (alpha and header.masking == MSK_HAS_MASK):
        return PNGConfig('P', profile.bit_depth, header.transparent_color if alpha else None)
    if profile.color_type == ColorType.GRAYSCALE and not alpha:
        return PNGConfig('1' if profile.form_type == ID_FAXX else 'L', profile.bit_depth, None)
    return PNGConfig('RGBA' if alpha else 'RGB', 8, None)


def png_info(picture) -> PngInfo:
    info = PngInfo()
    if picture.copyright is not None:
        info.add_text('Copyright', picture.copyright)
    if picture.author is not None:
        info.add_text('Author', picture.author)
    return info


def convert(source, target, y_scale: int = 1, opaque: bool = False, strip: bool = False):
    """Decode an IFF picture file and save it as PNG with Pillow.

    Returns the loaded and analyzed IFFPicture.
    """
    picture = IFFPicture(read_file(str(source)))
    picture.load()
    picture.analyze()
    config = png_config(picture, opaque)
    image = picture.decode()

    params = {}
    if config.mode == 'P':
        im = image.to_indexed_image()
        params['bits'] = config.bits
        if config.transparency is not None:
            params['transparency'] = config.transparency
    else:
        im = image.to_image()
        if im.mode != config.mode:
            im = im.convert(config.mode)
    if y_scale > 1:
        im = im.resize((im.width, im.height * y_scale), Image.NEAREST)
    if not strip:
        params['pnginfo'] = png_info(picture)

    im.save(str(target), format='PNG', **params)
    log.debug('wrote %s (%dx%d %s %s)', target, im.width, im.height, im.mode, params)
    return picture


def summary(source, picture) -> str:
    profile, header = picture.profile, picture.header
    flags = [name for name, on in (('HAM', profile.is_ham), ('EHB', profile.is_ehb),
                                   ('alpha', profile.has_alpha), ('compressed', profile.is_compressed),
                                   ('hires', picture.viewport_modes & VM_HIRES),
                                   ('lace', picture.viewport_modes & VM_LACE)) if on]
    return '%s: %s %dx%d, %s %d-bit%s' % (source, profile.form_type.decode('ascii').strip(),
                                         header.w, header.h, profile.color_type.value,
                                         profile.bit_depth, (' [%s]' % ', '.join(flags)) if flags else '')


argparser = ArgumentParser(prog='iff2png', description='Convert IFF pictures to PNG.')
argparser.add_argument('source', type=Path)
argparser.add_argument('target', type=Path, nargs='?')
argparser.add_argument('--force', action='store_true', help='overwrite an existing target')
argparser.add_argument('--quiet', action='store_true', help='do not print a summary')
argparser.add_argument('--opaque', action='store_true', help='drop the alpha channel')
argparser.add_argument('--strip', '--no-metadata', dest='strip', action='store_true',
                       help='do not copy copyright and author text into the PNG')
argparser.add_argument('--y-scale', type=int, default=1, metavar='N', help='repeat every row N times')
argparser.add_argument('--verbose', action='store_true', help='debug logging')


def main(argv=None):
    args = argparser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.y_scale < 1:
        argparser.error('--y-scale must be at least 1')

    target = args.target or default_target(args.source)
    if target.exists() and not args.force:
        print('Error: %s already exists (use --force to overwrite)' % target, file=sys.stderr)
        return 1

    try:
        picture = convert(args.source, target, args.y_scale, args.opaque, args.strip)
    except (IFFPictureError, OSError, ValueError) as e:
        print('Error: %s' % e, file=sys.stderr)
        return 1

    if not args.quiet:
        print(summary(args.source, picture))
    return 0


if __name__ == '__main__':
    sys.exit(main())
