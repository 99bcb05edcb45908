'''
Tabular view of a DBF file.

A Table is loaded all at once but decoded lazily: iterating it gives Row
objects that decode a value only when it's asked for. The only operation that
decodes a whole column is Table.column() that returns a new list.

Writing accepts anything that looks like a table: an object with a "schema"
attribute, a sequence of entries (name, element type, ...), that iterates over
rows. A row is either a mapping by column name or an iterable of values in
schema order (a Row is read by position, so duplicate names are preserved).
Table itself and ColumnSource (built from a mapping of lists) are such objects.

    table = load('people.dbf')
    for row in table:
        print(row['NAME'], row['BIRTHDATE'])

    write('copy.dbf', table)
    write('new.dbf', ColumnSource({'NAME': ['John', 'Bill'], 'AGE': [33, None]}))
'''
import datetime
import io
import logging
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence

from ..diagnostics import Diagnostics, DiagnosticKind
from ..enum import Compliant
from ..exceptions import ValueEncodingTooWide
from ..streams import Stream
from .header import FieldDescriptor, Header, parse_header, write_header
from .records import RecordStore
from .types import MAX_NUMERIC_WIDTH, MAX_TEXT_WIDTH, SemanticType, WireType
from .values import decode_value, encode_value


logger = logging.getLogger(__name__)

EOF_MARKER = b'\x1a'
NAME_WIDTH = 11


class ColumnSchema(NamedTuple):
    name: str
    type: Any
    nullable: bool = True


class Row(object):
    '''Reference to a row of a Table: values are decoded when accessed,
    by column name or by position.'''

    __slots__ = ('table', 'index')

    def __init__(self, table: 'Table', index: int):
        self.table = table
        self.index = index

    def __repr__(self):
        return '<%s(%d, %r)>' % (self.__class__.__name__, self.index, self.as_dict())

    def __len__(self):
        return self.table.column_count

    def __getitem__(self, key):
        if isinstance(key, int):
            return self.table.value_at(self.index, key)

        return self.table.column_value(key, self.index)

    def __iter__(self):
        for column in range(self.table.column_count):
            yield self.table.value_at(self.index, column)

    @property
    def is_deleted(self) -> bool:
        return self.table.is_deleted(self.index)

    def as_dict(self) -> Dict[str, Any]:
        return dict(zip(self.table.column_names, self))


class Table(object):

    def __init__(self, header: Header, records: RecordStore, encoding='utf-8',
                 diagnostics: Optional[Diagnostics] = None):
        self.header = header
        self.records = records
        self.encoding = encoding
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def __repr__(self):
        return '<%s(rows=%d, columns=[%s])>' % (
            self.__class__.__name__,
            self.row_count,
            ', '.join([str(_) for _ in self.header.fields]),
        )

    def __len__(self):
        return self.row_count

    def __iter__(self) -> Iterator[Row]:
        return self.rows()

    def __getitem__(self, index: int) -> Row:
        if not 0 <= index < self.row_count:
            raise IndexError(f'row {index} out of range [0, {self.row_count})')

        return Row(self, index)

    @property
    def row_count(self) -> int:
        return self.header.record_count

    @property
    def column_count(self) -> int:
        return self.header.field_count

    @property
    def column_names(self) -> List[str]:
        return list(self.header.names)

    @property
    def schema(self) -> List[ColumnSchema]:
        '''Every column is nullable: any field can be blank.'''
        return [ColumnSchema(_.name, _.semantic_type, True) for _ in self.header.fields]

    def rows(self, skip_deleted=False) -> Iterator[Row]:
        for index in range(self.row_count):
            if skip_deleted and self.records.is_deleted(index):
                continue

            yield Row(self, index)

    def is_deleted(self, row: int) -> bool:
        return self.records.is_deleted(row)

    def value_at(self, row: int, column: int):
        descriptor = self.header.fields[column]
        view = self.records.view(row, column)

        return decode_value(descriptor.wire_type, descriptor.decimal_count, view.tobytes(), self.encoding)

    def column_value(self, name: str, row: int):
        return self.value_at(row, self.header.index_of(name))

    def column(self, name: str) -> List[Any]:
        '''Decode the whole column: it's a copy, not a view.'''
        column = self.header.index_of(name)

        return [self.value_at(row, column) for row in range(self.row_count)]

    def to_columns(self, skip_deleted=False) -> Dict[str, List[Any]]:
        result = {name: [] for name in self.column_names}
        for row in self.rows(skip_deleted=skip_deleted):
            for name, value in row.as_dict().items():
                result[name].append(value)

        return result


NUMERIC_SEMANTICS = (SemanticType.BOOLEAN, SemanticType.INTEGER, SemanticType.FLOAT)


def infer_element_type(values: Sequence):
    '''The type shared by the values that are not None.

    Values of different classes with the same SemanticType give that type,
    a mix of booleans, integers and floats is promoted to float, any other mix
    gives object (that has no mapping and is written as text). A column without
    values is str.'''
    kinds = []
    for value in values:
        if value is not None and type(value) not in kinds:
            kinds.append(type(value))

    if not kinds:
        return str

    if len(kinds) == 1:
        return kinds[0]

    semantics = set([SemanticType.from_python_type(_) for _ in kinds])
    if len(semantics) == 1 and None not in semantics:
        return semantics.pop()

    if semantics <= set(NUMERIC_SEMANTICS):
        return float

    return object


class ColumnSource(object):
    '''A tabular source made from a mapping of column name to values.

    The element type of a column is taken from types when given, otherwise
    it's inferred from the values that are not None (see infer_element_type).'''

    def __init__(self, columns: Mapping[str, Sequence], types: Optional[Mapping[str, Any]] = None):
        self.columns = {name: list(values) for name, values in columns.items()}
        lengths = set([len(_) for _ in self.columns.values()])
        if len(lengths) > 1:
            raise ValueError(f'columns have different lengths: {sorted(lengths)}')

        self.types = dict(types or {})
        for name, values in self.columns.items():
            if name not in self.types:
                self.types[name] = infer_element_type(values)

    def __repr__(self):
        return '<%s(rows=%d, columns=%r)>' % (self.__class__.__name__, len(self), list(self.columns))

    def __len__(self):
        return len(next(iter(self.columns.values()), []))

    @property
    def schema(self) -> List[ColumnSchema]:
        return [ColumnSchema(name, self.types[name], True) for name in self.columns]

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        for index in range(len(self)):
            yield {name: values[index] for name, values in self.columns.items()}


def load(source, encoding='utf-8', compliant=Compliant.DEFAULT,
         diagnostics: Optional[Diagnostics] = None) -> Table:
    '''Read a whole DBF file from a path, some bytes or a binary file object.'''
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    with Stream(source) as stream:
        header = parse_header(stream, compliant=compliant, diagnostics=diagnostics)
        logger.debug('loaded header %r' % header)

        gap = header.declared_header_size - header.header_byte_size
        if gap:
            logger.debug('skipping %d bytes after the field descriptors' % gap)
            stream.skip(gap)

        records = RecordStore.read(stream, header)

    return Table(header, records, encoding=encoding, diagnostics=diagnostics)


def _row_values(row, names: List[str]) -> List[Any]:
    if isinstance(row, Mapping):
        return [row[name] for name in names]

    values = list(row)
    if len(values) != len(names):
        raise ValueError(f'row has {len(values)} values, the schema has {len(names)} columns')

    return values


def _truncate(text: str, width: int, encoding: str) -> str:
    return text.encode(encoding)[:width].decode(encoding, errors='ignore')


def plan_column(name: str, element_type, values: List[Any], encoding='utf-8',
                diagnostics: Optional[Diagnostics] = None):
    '''Choose the descriptor for a column from its element type and its values,
    it returns the descriptor and the values ready to be encoded.'''
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    try:
        encoded = name.encode('ascii')
    except UnicodeEncodeError as e:
        raise ValueEncodingTooWide(f'column name {name!r} is not ASCII') from e

    if len(encoded) > NAME_WIDTH:
        raise ValueEncodingTooWide(f'column name {name!r} is longer than {NAME_WIDTH} characters')

    semantic = SemanticType.from_python_type(element_type)
    if semantic is None:
        diagnostics.emit(
            DiagnosticKind.UNMAPPABLE_COLUMN_TYPE,
            f'no known mapping for {element_type!r}, column {name!r} written as text',
            column=name)
        semantic = SemanticType.TEXT
        values = [str(_) if _ is not None else None for _ in values]

    present = [_ for _ in values if _ is not None]

    if semantic == SemanticType.TEXT:
        width = max([len(str(_).encode(encoding)) for _ in present] + [1])
        if width > MAX_TEXT_WIDTH:
            diagnostics.emit(
                DiagnosticKind.TRUNCATION,
                f'column {name!r} needs {width} bytes, values truncated to {MAX_TEXT_WIDTH}',
                column=name)
            width = MAX_TEXT_WIDTH
            values = [_truncate(str(_), width, encoding) if _ is not None else None for _ in values]

        return FieldDescriptor(name, WireType.CHARACTER, width), values

    if semantic == SemanticType.BOOLEAN:
        return FieldDescriptor(name, WireType.LOGICAL, 1), values

    if semantic == SemanticType.DATE:
        return FieldDescriptor(name, WireType.DATE, 8), values

    if semantic == SemanticType.FLOAT:
        return FieldDescriptor(name, WireType.FLOAT, MAX_NUMERIC_WIDTH, 1), values

    width = max([len(str(int(_))) for _ in present]) if present else MAX_NUMERIC_WIDTH
    if width > MAX_NUMERIC_WIDTH:
        raise ValueEncodingTooWide(f'column {name!r} needs {width} digits, at most {MAX_NUMERIC_WIDTH} are allowed')

    return FieldDescriptor(name, WireType.NUMERIC, width), values


def write(destination, source, encoding='utf-8', language_id=0,
          last_update: Optional[datetime.date] = None,
          diagnostics: Optional[Diagnostics] = None) -> int:
    '''Write source as a DBF file returning the number of bytes written.

    The destination is a path or a binary file object, nothing is written to it
    if any of the values cannot be encoded.'''
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    schema = list(source.schema)
    names = [entry[0] for entry in schema]
    rows = [_row_values(row, names) for row in source]

    descriptors = []
    columns = []
    for idx, entry in enumerate(schema):
        descriptor, values = plan_column(entry[0], entry[1], [_[idx] for _ in rows], encoding, diagnostics)
        logger.debug('column %s planned as %s' % (entry[0], descriptor))
        descriptors.append(descriptor)
        columns.append(values)

    header = Header(
        descriptors,
        record_count=len(rows),
        format_version=3,
        last_update=last_update or datetime.date.today(),
        language_id=language_id,
        diagnostics=diagnostics,
    )

    buffer = io.BytesIO()
    with Stream(buffer, flags='wb') as stream:
        write_header(stream, header)
        for row in zip(*columns) if columns else [()] * len(rows):
            stream.write(b' ')
            for descriptor, value in zip(descriptors, row):
                stream.write(encode_value(descriptor, value, encoding=encoding, diagnostics=diagnostics))
        stream.write(EOF_MARKER)

    data = buffer.getvalue()
    with Stream(destination, flags='wb') as stream:
        stream.write(data)

    logger.debug('written %d records in %d bytes' % (len(rows), len(data)))

    return len(data)
