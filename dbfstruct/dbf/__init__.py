'''
# dBASE III+ tables

A .dbf file is a header describing the columns followed by fixed width
records without delimiters, the whole file is terminated by 0x1A.

  .----------------------------------.
  | preamble (32 bytes)              |
  | field descriptor 1 (32 bytes)    |
    ...
  | field descriptor N (32 bytes)    |
  | terminator 0x0D                  |
  | record 1                         |
    ...
  | record M                         |
  | 0x1A                             |
  '----------------------------------'

Each record starts with a deletion marker followed by the fields in the order
of the descriptors. Memo files, indexes and the dBASE IV+ extensions are not
handled.
'''
from .types import WireType, SemanticType
from .header import FieldDescriptor, Header, parse_header, write_header
from .values import decode_value, encode_value
from .records import FieldView, RecordStore
from .table import ColumnSchema, ColumnSource, Row, Table, load, write

__all__ = [
    'WireType',
    'SemanticType',
    'FieldDescriptor',
    'Header',
    'parse_header',
    'write_header',
    'decode_value',
    'encode_value',
    'FieldView',
    'RecordStore',
    'ColumnSchema',
    'ColumnSource',
    'Row',
    'Table',
    'load',
    'write',
]
