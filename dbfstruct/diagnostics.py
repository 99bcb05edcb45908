'''
Non-fatal problems found while reading or writing a table.

Every function that can lose information without failing (truncating a column,
shortening a float, falling back to text for a type without mapping) reports it
to a Diagnostics instance passed by the caller: the problem is logged as a
warning, kept in the instance and forwarded to an optional callback so that the
caller can react or assert on it.

    diagnostics = Diagnostics()
    write('out.dbf', source, diagnostics=diagnostics)
    if diagnostics.of_kind(DiagnosticKind.PRECISION_LOSS):
        ...
'''
import logging
from enum import Enum, auto
from typing import Callable, List, NamedTuple, Optional


logger = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    TRUNCATION             = auto()
    PRECISION_LOSS         = auto()
    UNMAPPABLE_COLUMN_TYPE = auto()
    DUPLICATE_NAME         = auto()
    RECORD_SIZE            = auto()
    BLANK_DATE             = auto()


class Diagnostic(NamedTuple):
    kind: DiagnosticKind
    message: str
    column: Optional[str] = None


class Diagnostics(object):

    def __init__(self, callback: Optional[Callable[[Diagnostic], None]] = None):
        self.callback = callback
        self.entries: List[Diagnostic] = []

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.entries)

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def emit(self, kind: DiagnosticKind, message: str, column: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(kind, message, column)
        logger.warning('%s: %s' % (kind.name, message))

        self.entries.append(diagnostic)
        if self.callback:
            self.callback(diagnostic)

        return diagnostic

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [_ for _ in self.entries if _.kind == kind]
