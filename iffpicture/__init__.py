from .analyzer import ColorType, FormatProfile, Strategy, analyze_format
from .byterun1 import pack_byterun1, unpack_rows
from .container import ChunkMap, read_file, read_form
from .decoder import DecodedImage
from .errors import (BadFileError, GenericError, IFFPictureError, InvalidStateError, OutOfMemoryError, Status,
                     UnsupportedError)
from .headers import BitmapHeader, ColorMap, Metadata
from .picture import IFFPicture
