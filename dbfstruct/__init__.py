"""
# dbfstruct: dBASE tables for humans.

A file format is described declaratively: a Chunk is a class whose attributes
are the fields composing it, in order, so that

 1. unpack(): reads the binary data from a stream and builds a high-level
    representation of it, each field reading as many bytes as its size.

 2. pack(): encodes the high-level representation into binary data, after
    relayout() has updated the fields derived from the others (sizes, counts).

The dbf subpackage uses this to describe the header of a dBASE III+ table and
adds the codec for its records:

    from dbfstruct import load, write

    table = load('people.dbf')
    write('copy.dbf', table)
"""
from .dbf import (
    ColumnSchema,
    ColumnSource,
    Row,
    Table,
    load,
    write,
)
from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from .enum import Compliant
