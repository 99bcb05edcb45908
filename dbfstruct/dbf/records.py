'''
The records of a table kept as they are on disk: nothing is decoded when the
data is loaded, the position of a value is computed from the header geometry.

    record = marker + field_0 + field_1 + ... + field_n-1

The marker is 0x20 for a valid record and 0x2A ("*") for a deleted one.
'''
import logging
from typing import Tuple

from ..exceptions import UnpackException
from .header import Header


logger = logging.getLogger(__name__)

MARKER_VALID = 0x20
MARKER_DELETED = 0x2A


class FieldView(object):
    '''Non-owning view of the bytes of one value inside the records buffer:
    it's valid as long as the RecordStore that created it.'''

    __slots__ = ('buffer', 'offset', 'length')

    def __init__(self, buffer: memoryview, offset: int, length: int):
        self.buffer = buffer
        self.offset = offset
        self.length = length

    def __repr__(self):
        return '<%s(offset=%d, length=%d)>' % (self.__class__.__name__, self.offset, self.length)

    def __len__(self):
        return self.length

    def __bytes__(self):
        return self.tobytes()

    def tobytes(self) -> bytes:
        return self.buffer[self.offset:self.offset + self.length].tobytes()


class RecordStore(object):

    def __init__(self, header: Header, buffer: bytes):
        expected = header.record_byte_size * header.record_count
        if len(buffer) != expected:
            raise UnpackException(f'record data is {len(buffer)} bytes, expected {expected}')

        self.header = header
        self._buffer = memoryview(bytes(buffer))

    @classmethod
    def read(cls, stream, header: Header) -> 'RecordStore':
        size = header.record_byte_size * header.record_count
        logger.debug('reading %d records of %d bytes' % (header.record_count, header.record_byte_size))

        return cls(header, stream.read_exact(size))

    def __repr__(self):
        return '<%s(records=%d, record_size=%d)>' % (
            self.__class__.__name__, len(self), self.header.record_byte_size)

    def __len__(self):
        return self.header.record_count

    def _check_row(self, row: int):
        if not 0 <= row < len(self):
            raise IndexError(f'row {row} out of range [0, {len(self)})')

    def byte_range(self, row: int, column: int) -> Tuple[int, int]:
        self._check_row(row)
        start = row * self.header.record_byte_size + self.header.offset_of(column)

        return start, start + self.header.fields[column].byte_width

    def view(self, row: int, column: int) -> FieldView:
        start, stop = self.byte_range(row, column)

        return FieldView(self._buffer, start, stop - start)

    def record(self, row: int) -> memoryview:
        '''The raw record, deletion marker included.'''
        self._check_row(row)
        start = row * self.header.record_byte_size

        return self._buffer[start:start + self.header.record_byte_size]

    def is_deleted(self, row: int) -> bool:
        self._check_row(row)

        return self._buffer[row * self.header.record_byte_size] == MARKER_DELETED
