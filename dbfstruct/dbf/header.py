'''
Header of a DBF file: a 32 bytes preamble followed by one 32 bytes descriptor
for each field, the list of descriptors is terminated by a single 0x0D byte.

    offset  size  preamble
    0x00    1     version
    0x01    3     date of last update (years since 1900, month, day)
    0x04    4     number of records
    0x08    2     size of the header
    0x0a    2     size of a record (deletion marker included)
    0x0c    2     reserved
    0x0e    1     incomplete transaction flag
    0x0f    1     encryption flag
    0x10    12    reserved
    0x1c    1     production .mdx flag
    0x1d    1     language driver id
    0x1e    2     reserved

    offset  size  field descriptor
    0x00    11    name, null padded
    0x0b    1     type code
    0x0c    4     reserved
    0x10    1     length
    0x11    1     decimal count
    0x12    14    reserved

All the integers are little endian.
'''
import datetime
import logging
from typing import Dict, Iterable, NamedTuple, Optional, Tuple

from ..core import Chunk
from .. import fields
from ..diagnostics import Diagnostics, DiagnosticKind
from ..enum import Compliant
from ..exceptions import (
    ChunkUnpackException,
    ColumnNotFound,
    MalformedHeader,
)
from .types import (
    MAX_NUMERIC_WIDTH,
    MAX_TEXT_WIDTH,
    SemanticType,
    WireType,
    semantic_type_for,
)


logger = logging.getLogger(__name__)

PREAMBLE_SIZE = 32
DESCRIPTOR_SIZE = 32
TERMINATOR = b'\x0d'
MAX_RECORD_COUNT = 2 ** 32 - 1


class FieldDescriptor(NamedTuple):
    '''Name, type and size of a column.'''
    name: str
    wire_type: WireType
    byte_width: int
    decimal_count: int = 0

    def __str__(self):
        return '%s %s(%d,%d)' % (self.name, self.wire_type.value, self.byte_width, self.decimal_count)

    @property
    def semantic_type(self) -> SemanticType:
        return semantic_type_for(self.wire_type, self.decimal_count)

    def check(self):
        '''Raise ValueError if the descriptor can't exist in a DBF file'''
        max_width = MAX_TEXT_WIDTH if self.semantic_type == SemanticType.TEXT else 255
        if not 1 <= self.byte_width <= max_width:
            raise ValueError(f'field {self.name!r} has width {self.byte_width}, it must be in [1, {max_width}]')

        max_decimal = MAX_NUMERIC_WIDTH if self.wire_type in (WireType.NUMERIC, WireType.FLOAT) else 255
        if not 0 <= self.decimal_count <= max_decimal:
            raise ValueError(f'field {self.name!r} has {self.decimal_count} decimals, it must be in [0, {max_decimal}]')


class Header(object):
    '''Immutable description of a table: its metadata and its ordered fields.

    The header and record sizes are always derived from the fields, the value
    found in a file for the header size is kept as declared_header_size since
    some writers leave a gap before the first record.'''

    def __init__(self, fields: Iterable[FieldDescriptor], record_count=0, format_version=3,
                 last_update: Optional[datetime.date] = None, incomplete=False, encrypted=False,
                 mdx=False, language_id=0, declared_header_size=None,
                 compliant=Compliant.DEFAULT, diagnostics: Optional[Diagnostics] = None):
        self._fields = tuple(fields)
        self._record_count = record_count
        self._format_version = format_version
        self._last_update = last_update
        self._incomplete = incomplete
        self._encrypted = encrypted
        self._mdx = mdx
        self._language_id = language_id

        for descriptor in self._fields:
            try:
                descriptor.check()
            except ValueError as e:
                raise MalformedHeader(str(e), chain=[descriptor.name]) from e

        if not 0 <= record_count <= MAX_RECORD_COUNT:
            raise MalformedHeader(f'record count {record_count} out of range')

        self._index = self._build_index(compliant, diagnostics if diagnostics is not None else Diagnostics())

        self._offsets = []
        offset = 1  # the deletion marker
        for descriptor in self._fields:
            self._offsets.append(offset)
            offset += descriptor.byte_width

        self._declared_header_size = declared_header_size if declared_header_size is not None else self.header_byte_size

    def _build_index(self, compliant, diagnostics) -> Dict[str, int]:
        index = {}
        for idx, descriptor in enumerate(self._fields):
            if descriptor.name in index:
                if compliant & Compliant.NAMES:
                    raise MalformedHeader(f'duplicate field name {descriptor.name!r}')

                diagnostics.emit(
                    DiagnosticKind.DUPLICATE_NAME,
                    f'field {descriptor.name!r} at position {idx} hides the one at position {index[descriptor.name]}',
                    column=descriptor.name)
            index[descriptor.name] = idx

        return index

    def __repr__(self):
        return '<%s(version=%d, records=%d, fields=[%s])>' % (
            self.__class__.__name__,
            self.format_version,
            self.record_count,
            ', '.join([str(_) for _ in self._fields]),
        )

    @property
    def fields(self) -> Tuple[FieldDescriptor, ...]:
        return self._fields

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple([_.name for _ in self._fields])

    @property
    def field_count(self) -> int:
        return len(self._fields)

    @property
    def record_count(self) -> int:
        return self._record_count

    @property
    def format_version(self) -> int:
        return self._format_version

    @property
    def last_update(self) -> Optional[datetime.date]:
        '''None when the file doesn't record it (written as zeros).'''
        return self._last_update

    @property
    def incomplete(self) -> bool:
        return self._incomplete

    @property
    def encrypted(self) -> bool:
        return self._encrypted

    @property
    def mdx(self) -> bool:
        return self._mdx

    @property
    def language_id(self) -> int:
        return self._language_id

    @property
    def header_byte_size(self) -> int:
        return PREAMBLE_SIZE + DESCRIPTOR_SIZE * len(self._fields) + len(TERMINATOR)

    @property
    def declared_header_size(self) -> int:
        return self._declared_header_size

    @property
    def record_byte_size(self) -> int:
        return 1 + sum([_.byte_width for _ in self._fields])

    def offset_of(self, column: int) -> int:
        '''Offset of the field inside a record, the deletion marker is at zero.'''
        return self._offsets[column]

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise ColumnNotFound(name) from None


class DBFPreamble(Chunk):
    version     = fields.StructField('B', default=3)
    last_update = fields.DateField(base_year=1900)
    records     = fields.StructField('I')
    header_size = fields.StructField('H')
    record_size = fields.StructField('H')
    reserved0   = fields.ReservedField(2)
    incomplete  = fields.FlagField()
    encrypted   = fields.FlagField()
    reserved1   = fields.ReservedField(12)
    mdx         = fields.FlagField()
    language_id = fields.StructField('B')
    reserved2   = fields.ReservedField(2)


class DBFFieldEntry(Chunk):
    field_name    = fields.TextField(11)
    type          = fields.StringField(1)
    reserved0     = fields.ReservedField(4)
    length        = fields.StructField('B')
    decimal_count = fields.StructField('B')
    reserved1     = fields.ReservedField(14)


class DBFHeaderChunk(Chunk):
    preamble    = DBFPreamble()
    descriptors = fields.ArrayField(DBFFieldEntry(), terminator=TERMINATOR)

    def relayout(self):
        super().relayout()
        self.preamble.header_size.value = self.size
        self.preamble.record_size.value = 1 + sum([_.length.value for _ in self.descriptors])


def parse_header(stream, compliant=Compliant.DEFAULT, diagnostics: Optional[Diagnostics] = None) -> Header:
    '''Read the header from a Stream leaving it positioned just after the terminator.'''
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    chunk = DBFHeaderChunk()
    try:
        chunk.unpack(stream)
    except ChunkUnpackException as e:
        raise MalformedHeader(f'cannot unpack {e.path}: {e}', chain=e.chain) from e

    logger.debug('unpacked header %r' % chunk)

    descriptors = [
        FieldDescriptor(
            entry.field_name.value,
            WireType.from_code(entry.type.value.decode('latin1')),
            entry.length.value,
            entry.decimal_count.value,
        ) for entry in chunk.descriptors
    ]

    preamble = chunk.preamble
    header = Header(
        descriptors,
        record_count=preamble.records.value,
        format_version=preamble.version.value,
        last_update=preamble.last_update.value,
        incomplete=preamble.incomplete.value,
        encrypted=preamble.encrypted.value,
        mdx=preamble.mdx.value,
        language_id=preamble.language_id.value,
        declared_header_size=preamble.header_size.value,
        compliant=compliant,
        diagnostics=diagnostics,
    )

    if header.declared_header_size < header.header_byte_size:
        raise MalformedHeader('declared header size %d is smaller than the %d bytes of the descriptors' % (
            header.declared_header_size, header.header_byte_size))

    if header.last_update is None:
        diagnostics.emit(DiagnosticKind.BLANK_DATE, 'the date of last update is not set')

    if preamble.record_size.value != header.record_byte_size:
        message = 'declared record size %d but fields need %d bytes' % (
            preamble.record_size.value, header.record_byte_size)
        if compliant & Compliant.SIZES:
            raise MalformedHeader(message)

        diagnostics.emit(DiagnosticKind.RECORD_SIZE, message)

    return header


def write_header(stream, header: Header) -> int:
    '''Write the header, terminator included, returning the number of bytes written.'''
    chunk = DBFHeaderChunk()

    preamble = chunk.preamble
    preamble.version.value = header.format_version
    preamble.last_update.value = header.last_update
    preamble.records.value = header.record_count
    preamble.incomplete.value = header.incomplete
    preamble.encrypted.value = header.encrypted
    preamble.mdx.value = header.mdx
    preamble.language_id.value = header.language_id

    for descriptor in header.fields:
        entry = chunk.descriptors.instance_element()
        entry.field_name.value = descriptor.name
        entry.type.value = descriptor.wire_type.value.encode('ascii')
        entry.length.value = descriptor.byte_width
        entry.decimal_count.value = descriptor.decimal_count
        chunk.descriptors.append(entry)

    return len(chunk.pack(stream))
