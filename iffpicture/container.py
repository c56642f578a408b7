import logging

from .bytebuffer import ByteBuffer
from .errors import BadFileError

log = logging.getLogger(__name__)


class ChunkMap:
    """Chunk payloads of one FORM, keyed by chunk id.

    Every occurrence is kept in file order; `get` answers with the first.
    """

    def __init__(self, form_type: bytes, chunks=None):
        self.form_type = form_type
        self.chunks = {}
        for chunk_id, payload in (chunks or {}).items():
            self.add(chunk_id, payload)

    def add(self, chunk_id: bytes, payload: bytes):
        self.chunks.setdefault(chunk_id, []).append(payload)

    def get(self, chunk_id: bytes):
        payloads = self.chunks.get(chunk_id)
        return payloads[0] if payloads else None

    def get_all(self, chunk_id: bytes):
        return list(self.chunks.get(chunk_id, ()))

    def __contains__(self, chunk_id):
        return chunk_id in self.chunks

    def __repr__(self):
        return '<ChunkMap %r %s>' % (self.form_type, b' '.join(self.chunks).decode('ascii', 'replace'))


def read_form(data: bytes) -> ChunkMap:
    bb = ByteBuffer(data, 'FORM')

    if bb.get_bytes(4) != b'FORM':
        raise BadFileError('Expected FORM header')

    length = bb.get_long()
    if length + 8 > len(data):
        raise BadFileError('FORM length %d exceeds file size %d' % (length, len(data) - 8))
    bb = ByteBuffer(data[:length + 8], 'FORM')
    bb.skip(8)

    chunks = ChunkMap(bb.get_bytes(4))

    while bb.remaining() >= 8:
        chunk_id = bb.get_bytes(4)
        length = bb.get_long()
        chunks.add(chunk_id, bb.get_bytes(length))
        if length & 1 and bb.remaining():
            bb.skip(1)

    log.debug('read %r', chunks)
    return chunks


def read_file(filename: str) -> ChunkMap:
    with open(filename, 'rb') as f:
        return read_form(f.read())
