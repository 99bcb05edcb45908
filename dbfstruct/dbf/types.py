import datetime
import numbers
from enum import Enum, auto

from ..exceptions import UnsupportedFieldType


MAX_TEXT_WIDTH = 254
MAX_NUMERIC_WIDTH = 20


class WireType(Enum):
    '''The type code stored in the field descriptor: it identifies the
    on-disk encoding of the field.'''
    CHARACTER     = 'C'
    DATE          = 'D'
    NUMERIC       = 'N'
    FLOAT         = 'F'
    DOUBLE        = 'O'  # binary
    INTEGER       = 'I'  # binary
    AUTOINCREMENT = '+'  # binary
    LOGICAL       = 'L'
    MEMO          = 'M'  # block reference, kept as opaque text

    @classmethod
    def from_code(cls, code: str) -> 'WireType':
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedFieldType(code)


class SemanticType(Enum):
    '''The kind of value a field decodes to.'''
    TEXT    = auto()
    INTEGER = auto()
    FLOAT   = auto()
    BOOLEAN = auto()
    DATE    = auto()

    @property
    def python_type(self) -> type:
        return {
            SemanticType.TEXT:    str,
            SemanticType.INTEGER: int,
            SemanticType.FLOAT:   float,
            SemanticType.BOOLEAN: bool,
            SemanticType.DATE:    datetime.date,
        }[self]

    @classmethod
    def from_python_type(cls, element_type):
        '''Map an element type (a SemanticType or a python class) to a SemanticType,
        None if there isn't a mapping.'''
        if isinstance(element_type, cls):
            return element_type

        if not isinstance(element_type, type):
            return None

        # order matters: bool is an int and datetime is a date
        for python_type, semantic in (
                (bool, cls.BOOLEAN),
                (numbers.Integral, cls.INTEGER),
                (numbers.Real, cls.FLOAT),
                (datetime.date, cls.DATE),
                (str, cls.TEXT)):
            if issubclass(element_type, python_type):
                return semantic

        return None


def _numeric(decimal_count):
    return SemanticType.INTEGER if decimal_count == 0 else SemanticType.FLOAT


wire2semantic = {
    WireType.CHARACTER:     lambda dec: SemanticType.TEXT,
    WireType.DATE:          lambda dec: SemanticType.DATE,
    WireType.NUMERIC:       _numeric,
    WireType.FLOAT:         lambda dec: SemanticType.FLOAT,
    WireType.DOUBLE:        lambda dec: SemanticType.FLOAT,
    WireType.INTEGER:       lambda dec: SemanticType.INTEGER,
    WireType.AUTOINCREMENT: lambda dec: SemanticType.INTEGER,
    WireType.LOGICAL:       lambda dec: SemanticType.BOOLEAN,
    WireType.MEMO:          lambda dec: SemanticType.TEXT,
}


def check_exhaustive(mapping, name):
    '''Dispatch tables keyed by WireType must handle every code.'''
    missing = set(WireType) - set(mapping)
    if missing:
        raise TypeError('%s does not handle %s' % (name, ', '.join(sorted(_.value for _ in missing))))


check_exhaustive(wire2semantic, 'wire2semantic')


def semantic_type_for(wire_type: WireType, decimal_count: int) -> SemanticType:
    return wire2semantic[wire_type](decimal_count)
