'''
Conversion between the fixed width bytes of a field and its value.

None is the absent value: blank or unparseable numeric and date content decodes
to None and None encodes to the filler of the field (nulls for text, "?" for
logicals, spaces for everything else).

Textual numerics are limited to 20 characters: a float whose repr() doesn't fit
is written in exponential notation with as many digits as the width allows,
and the loss of precision is reported as a diagnostic.
'''
import datetime
import logging
import struct
from typing import Optional

from ..diagnostics import Diagnostics, DiagnosticKind
from ..exceptions import (
    UnknownLogicalValue,
    UnpackException,
    ValueEncodingTooWide,
)
from ..meta import Endianess, ENDIANESS_PREFIX
from .types import (
    MAX_NUMERIC_WIDTH,
    MAX_TEXT_WIDTH,
    SemanticType,
    WireType,
    check_exhaustive,
    semantic_type_for,
)


logger = logging.getLogger(__name__)

LOGICAL_TRUE = b'YyTt'
LOGICAL_FALSE = b'NnFf'
LOGICAL_ABSENT = b'?'
LOGICAL_BLANK = b' '  # never written, found in uninitialized records

BINARY_FORMATS = {
    WireType.DOUBLE:        'd',
    WireType.INTEGER:       'i',
    WireType.AUTOINCREMENT: 'q',
}


def _binary_format(wire_type):
    # the binary numerics are stored in native byte order
    return ENDIANESS_PREFIX[Endianess.NATIVE] + BINARY_FORMATS[wire_type]


# decoding

def _decode_text(raw, decimal_count, encoding):
    try:
        text = raw.split(b'\x00', 1)[0].decode(encoding).rstrip()
    except UnicodeDecodeError as e:
        raise UnpackException(f'{raw!r} is not valid {encoding}') from e

    return text or None


def _decode_date(raw, decimal_count, encoding):
    if not raw.strip(b' \x00'):
        return None

    text = raw.decode('latin1')
    if len(text) != 8 or not text.isdigit():
        raise UnpackException(f'malformed date {text!r}')

    try:
        return datetime.date(int(text[:4]), int(text[4:6]), int(text[6:]))
    except ValueError as e:
        raise UnpackException(f'malformed date {text!r}') from e


def _decode_logical(raw, decimal_count, encoding):
    marker = raw[:1]
    if marker and marker in LOGICAL_TRUE:
        return True
    if marker and marker in LOGICAL_FALSE:
        return False
    if marker in (LOGICAL_ABSENT, LOGICAL_BLANK):
        return None

    raise UnknownLogicalValue(marker.decode('latin1'))


def _decode_numeric(raw, decimal_count, encoding):
    kind = semantic_type_for(WireType.NUMERIC, decimal_count).python_type
    try:
        return kind(raw.decode('ascii'))
    except (ValueError, UnicodeDecodeError):
        return None


def _decode_float(raw, decimal_count, encoding):
    try:
        return float(raw.decode('ascii'))
    except (ValueError, UnicodeDecodeError):
        return None


def _binary_decoder(wire_type):
    def _decode(raw, decimal_count, encoding):
        try:
            return struct.unpack(_binary_format(wire_type), raw)[0]
        except struct.error:
            return None

    return _decode


decoders = {
    WireType.CHARACTER:     _decode_text,
    WireType.MEMO:          _decode_text,
    WireType.DATE:          _decode_date,
    WireType.LOGICAL:       _decode_logical,
    WireType.NUMERIC:       _decode_numeric,
    WireType.FLOAT:         _decode_float,
    WireType.DOUBLE:        _binary_decoder(WireType.DOUBLE),
    WireType.INTEGER:       _binary_decoder(WireType.INTEGER),
    WireType.AUTOINCREMENT: _binary_decoder(WireType.AUTOINCREMENT),
}

check_exhaustive(decoders, 'decoders')


def decode_value(wire_type, decimal_count: int, raw: bytes, encoding='utf-8'):
    '''Convert the bytes of a field to its value, None if absent.

    An unknown wire type (also as a type code) decodes to None.'''
    if not isinstance(wire_type, WireType):
        try:
            wire_type = WireType(wire_type)
        except ValueError:
            logger.debug('no decoder for type %r' % (wire_type,))
            return None

    return decoders[wire_type](bytes(raw), decimal_count, encoding)


# encoding

def _encode_text(descriptor, value, diagnostics, encoding):
    raw = str(value).encode(encoding)

    if len(raw) > MAX_TEXT_WIDTH:
        raise ValueEncodingTooWide(f'string too long for DBF ({len(raw)} bytes)')

    if len(raw) > descriptor.byte_width:
        raise ValueEncodingTooWide(f'{len(raw)} bytes don\'t fit field {descriptor}')

    return raw.ljust(descriptor.byte_width, b'\x00')


def _encode_date(descriptor, value, diagnostics, encoding):
    text = '%04d%02d%02d' % (value.year, value.month, value.day)

    return text.encode('ascii').ljust(descriptor.byte_width)


def _encode_logical(descriptor, value, diagnostics, encoding):
    return (b'T' if value else b'F').ljust(descriptor.byte_width)


def _encode_integer(descriptor, value, diagnostics, encoding):
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f'{value!r} is not an integer for field {descriptor}')

    text = str(int(value))
    if len(text) > min(descriptor.byte_width, MAX_NUMERIC_WIDTH):
        raise ValueEncodingTooWide(f'{text} is too wide for field {descriptor}')

    return text.rjust(descriptor.byte_width).encode('ascii')


def shorten_float(value: float, width: int) -> str:
    '''Exponential notation of value with the most digits fitting in width
    characters, the exponent is written without "+" and leading zeros.'''
    for digits in range(17, -1, -1):
        mantissa, exponent = ('%.*e' % (digits, value)).split('e')
        sign = '-' if exponent.startswith('-') else ''
        text = '%se%s%s' % (mantissa, sign, exponent.lstrip('+-').lstrip('0') or '0')
        if len(text) <= width:
            return text

    raise ValueEncodingTooWide(f'{value!r} cannot be written in {width} characters')


def _encode_float(descriptor, value, diagnostics, encoding):
    value = float(value)
    width = min(descriptor.byte_width, MAX_NUMERIC_WIDTH)
    text = repr(value)

    if len(text) > width:
        shortened = shorten_float(value, width)
        diagnostics.emit(
            DiagnosticKind.PRECISION_LOSS,
            f'{text} written as {shortened} in field {descriptor}',
            column=descriptor.name)
        text = shortened

    return text.rjust(descriptor.byte_width).encode('ascii')


def _encode_numeric(descriptor, value, diagnostics, encoding):
    if descriptor.semantic_type == SemanticType.INTEGER:
        return _encode_integer(descriptor, value, diagnostics, encoding)

    return _encode_float(descriptor, value, diagnostics, encoding)


def _binary_encoder(wire_type):
    def _encode(descriptor, value, diagnostics, encoding):
        try:
            raw = struct.pack(_binary_format(wire_type), value)
        except struct.error as e:
            raise ValueEncodingTooWide(f'{value!r} doesn\'t fit field {descriptor}') from e

        if len(raw) != descriptor.byte_width:
            raise ValueEncodingTooWide(f'field {descriptor} cannot hold {len(raw)} bytes')

        return raw

    return _encode


encoders = {
    WireType.CHARACTER:     _encode_text,
    WireType.MEMO:          _encode_text,
    WireType.DATE:          _encode_date,
    WireType.LOGICAL:       _encode_logical,
    WireType.NUMERIC:       _encode_numeric,
    WireType.FLOAT:         _encode_float,
    WireType.DOUBLE:        _binary_encoder(WireType.DOUBLE),
    WireType.INTEGER:       _binary_encoder(WireType.INTEGER),
    WireType.AUTOINCREMENT: _binary_encoder(WireType.AUTOINCREMENT),
}

check_exhaustive(encoders, 'encoders')


def absent_value(descriptor) -> bytes:
    if descriptor.wire_type == WireType.LOGICAL:
        return LOGICAL_ABSENT.ljust(descriptor.byte_width)

    if descriptor.semantic_type == SemanticType.TEXT:
        return b'\x00' * descriptor.byte_width

    return b' ' * descriptor.byte_width


def encode_value(descriptor, value, encoding='utf-8', diagnostics: Optional[Diagnostics] = None) -> bytes:
    '''Convert value to exactly descriptor.byte_width bytes.'''
    if value is None:
        return absent_value(descriptor)

    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    return encoders[descriptor.wire_type](descriptor, value, diagnostics, encoding)
