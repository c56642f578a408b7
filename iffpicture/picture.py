import logging
from functools import wraps

from . import decoder
from .analyzer import analyze_format
from .errors import BadFileError, InvalidStateError, IFFPictureError, OutOfMemoryError, Status
from .headers import (FORM_TYPES, ID_ACBM, ID_DEEP, ID_FAXX, BitmapHeader, ColorMap, fax_bitmap_header,
                      parse_camg, parse_dpel, parse_fxhd, read_metadata)

log = logging.getLogger(__name__)


def _records_errors(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            result = method(self, *args, **kwargs)
        except IFFPictureError as e:
            self._set_error(e.status, str(e))
            raise
        except MemoryError as e:
            self._set_error(Status.OUT_OF_MEMORY, 'Out of memory in %s' % method.__name__)
            raise OutOfMemoryError(self._error_string) from e
        self._set_error(Status.OK, '')
        return result
    return wrapper


class IFFPicture:
    """A picture held as chunk payloads, decoded on request.

    `chunks` is the container collaborator: it has a `form_type`, a
    `get(chunk_id)` returning the payload bytes or None, and a
    `get_all(chunk_id)` returning every payload of a repeatable chunk.
    """

    def __init__(self, chunks):
        self._chunks = chunks
        self._header = None
        self._cmap = None
        self._modes = 0
        self._fxhd = None
        self._dpel = None
        self._body = None
        self._metadata = None
        self._profile = None
        self._loaded = False
        self._last_error = Status.OK
        self._error_string = ''

    def _set_error(self, status, message):
        self._last_error = status
        self._error_string = message
        if status != Status.OK:
            log.debug('%s: %s', status.name, message)

    @property
    def form_type(self):
        return self._chunks.form_type

    @property
    def header(self):
        return self._header

    @property
    def color_map(self):
        return self._cmap

    @property
    def viewport_modes(self):
        return self._modes

    @property
    def fax_header(self):
        return self._fxhd

    @property
    def deep_elements(self):
        return self._dpel

    @property
    def body(self):
        return self._body

    @property
    def metadata(self):
        return self._metadata

    @property
    def copyright(self):
        return self._metadata.copyright if self._metadata else None

    @property
    def author(self):
        return self._metadata.author if self._metadata else None

    @property
    def annotations(self):
        return self._metadata.annotations if self._metadata else []

    @property
    def profile(self):
        return self._profile

    @property
    def last_error(self):
        return self._last_error

    @property
    def error_string(self):
        return self._error_string

    def _require(self, chunk_id):
        data = self._chunks.get(chunk_id)
        if data is None:
            raise BadFileError('%s chunk not found' % chunk_id.decode('ascii'))
        return data

    @_records_errors
    def load(self):
        """Parse the header chunks and locate the body."""
        self._profile = None
        self._loaded = False
        form_type = self.form_type
        if form_type not in FORM_TYPES:
            # left for analyze() to reject
            log.debug('not loading unknown FORM type %r', form_type)
            return

        if form_type == ID_FAXX:
            self._fxhd = parse_fxhd(self._require(b'FXHD'))
            self._header = fax_bitmap_header(self._fxhd)
            self._body = self._require(b'PAGE')
        else:
            self._header = BitmapHeader.from_bytes(self._require(b'BMHD'))
            cmap = self._chunks.get(b'CMAP')
            self._cmap = ColorMap.from_bytes(cmap) if cmap else None
            self._modes = parse_camg(self._chunks.get(b'CAMG'))
            if form_type == ID_ACBM:
                self._body = self._require(b'ABIT')
            elif form_type == ID_DEEP:
                dpel = self._chunks.get(b'DPEL')
                self._dpel = parse_dpel(dpel) if dpel is not None else None
                self._body = self._chunks.get(b'DBOD')
                if self._body is None:
                    self._body = self._require(b'BODY')
            else:
                self._body = self._require(b'BODY')
        self._metadata = read_metadata(self._chunks)
        self._loaded = True

    @_records_errors
    def analyze(self):
        if self.form_type in FORM_TYPES and not self._loaded:
            raise InvalidStateError('Picture not loaded')
        self._profile = analyze_format(self.form_type, self._header, self._cmap, self._modes, self._dpel)
        return self._profile

    @_records_errors
    def decode(self):
        """Decode the body into a new DecodedImage owned by the caller."""
        if self._profile is None:
            raise InvalidStateError('Picture must be analyzed before decoding')
        return decoder.decode(self)
