from enum import IntEnum


class Status(IntEnum):
    OK = 0
    GENERIC_ERROR = -1
    OUT_OF_MEMORY = -2
    BAD_FILE = -3
    UNSUPPORTED = -4
    INVALID_STATE = -5


class IFFPictureError(RuntimeError):
    status = Status.GENERIC_ERROR


class GenericError(IFFPictureError):
    pass


class OutOfMemoryError(IFFPictureError):
    status = Status.OUT_OF_MEMORY


class BadFileError(IFFPictureError):
    """Corrupt or truncated chunk data."""
    status = Status.BAD_FILE


class UnsupportedError(IFFPictureError):
    """Recognized but unimplemented FORM type, compression or depth."""
    status = Status.UNSUPPORTED


class InvalidStateError(IFFPictureError):
    """The caller broke the load/analyze/decode contract."""
    status = Status.INVALID_STATE
