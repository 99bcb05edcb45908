import datetime
import struct
import sys

import pytest

from dbfstruct.diagnostics import Diagnostics, DiagnosticKind
from dbfstruct.exceptions import (
    UnknownLogicalValue,
    UnpackException,
    ValueEncodingTooWide,
)
from dbfstruct.dbf.header import FieldDescriptor
from dbfstruct.dbf.types import WireType
from dbfstruct.dbf.values import decode_value, encode_value, shorten_float


def test_decode_text():
    assert decode_value(WireType.CHARACTER, 0, b'John       ') == 'John'
    assert decode_value(WireType.CHARACTER, 0, b'John\x00\x00\x00') == 'John'
    assert decode_value(WireType.CHARACTER, 0, b'  padded  ') == '  padded'
    assert decode_value(WireType.CHARACTER, 0, b'\x00' * 5) is None
    assert decode_value(WireType.CHARACTER, 0, b' ' * 5) is None
    assert decode_value(WireType.MEMO, 0, b'        12') == '        12'
    assert decode_value(WireType.CHARACTER, 0, 'città'.encode('latin1'), encoding='latin1') == 'città'


def test_decode_text_wrong_encoding():
    with pytest.raises(UnpackException):
        decode_value(WireType.CHARACTER, 0, b'\xff\xfe')


def test_decode_date():
    assert decode_value(WireType.DATE, 0, b'19900102') == datetime.date(1990, 1, 2)
    assert decode_value(WireType.DATE, 0, b'        ') is None

    with pytest.raises(UnpackException):
        decode_value(WireType.DATE, 0, b'1990-1-2')

    with pytest.raises(UnpackException):
        decode_value(WireType.DATE, 0, b'19901301')


@pytest.mark.parametrize('raw,expected', [
    (b'T', True),
    (b't', True),
    (b'Y', True),
    (b'y', True),
    (b'F', False),
    (b'f', False),
    (b'N', False),
    (b'n', False),
    (b'?', None),
    (b' ', None),
])
def test_decode_logical(raw, expected):
    assert decode_value(WireType.LOGICAL, 0, raw) is expected


def test_decode_logical_unknown():
    with pytest.raises(UnknownLogicalValue) as excinfo:
        decode_value(WireType.LOGICAL, 0, b'X')

    assert excinfo.value.value == 'X'


def test_decode_numeric():
    assert decode_value(WireType.NUMERIC, 0, b'  102') == 102
    assert decode_value(WireType.NUMERIC, 0, b'   -7') == -7
    assert decode_value(WireType.NUMERIC, 2, b'12.21') == 12.21
    assert isinstance(decode_value(WireType.NUMERIC, 2, b'   12'), float)
    assert decode_value(WireType.FLOAT, 1, b'   10.21') == 10.21
    assert decode_value(WireType.FLOAT, 1, b'1.5e-300') == 1.5e-300

    # absent, never an error
    assert decode_value(WireType.NUMERIC, 0, b'     ') is None
    assert decode_value(WireType.NUMERIC, 0, b'*****') is None
    assert decode_value(WireType.NUMERIC, 0, b' 12.5') is None
    assert decode_value(WireType.FLOAT, 1, b'\x00\x00\x00') is None


def test_decode_binary():
    assert decode_value(WireType.DOUBLE, 0, struct.pack('=d', 2.5)) == 2.5
    assert decode_value(WireType.INTEGER, 0, struct.pack('=i', -42)) == -42
    assert decode_value(WireType.AUTOINCREMENT, 0, struct.pack('=q', 2 ** 40)) == 2 ** 40

    assert decode_value(WireType.INTEGER, 0, b'\x01\x02') is None


def test_decode_unknown_type():
    assert decode_value('G', 0, b'whatever') is None
    assert decode_value('L', 0, b'T') is True


def descriptor(wire_type, width, decimal_count=0):
    return FieldDescriptor('FIELD', wire_type, width, decimal_count)


def test_encode_absent():
    assert encode_value(descriptor(WireType.LOGICAL, 1), None) == b'?'
    assert encode_value(descriptor(WireType.CHARACTER, 4), None) == b'\x00' * 4
    assert encode_value(descriptor(WireType.DATE, 8), None) == b' ' * 8
    assert encode_value(descriptor(WireType.NUMERIC, 5), None) == b' ' * 5
    assert encode_value(descriptor(WireType.FLOAT, 20, 1), None) == b' ' * 20


def test_encode_text():
    assert encode_value(descriptor(WireType.CHARACTER, 6), 'John') == b'John\x00\x00'
    assert encode_value(descriptor(WireType.CHARACTER, 3), 12) == b'12\x00'

    with pytest.raises(ValueEncodingTooWide):
        encode_value(descriptor(WireType.CHARACTER, 3), 'John')


def test_encode_text_too_long():
    with pytest.raises(ValueEncodingTooWide):
        encode_value(descriptor(WireType.CHARACTER, 254), 'x' * 300)


def test_encode_logical_and_date():
    assert encode_value(descriptor(WireType.LOGICAL, 1), True) == b'T'
    assert encode_value(descriptor(WireType.LOGICAL, 1), False) == b'F'
    assert encode_value(descriptor(WireType.DATE, 8), datetime.date(1990, 1, 2)) == b'19900102'
    assert encode_value(descriptor(WireType.DATE, 8), datetime.date(33, 3, 3)) == b'00330303'


def test_encode_integer():
    assert encode_value(descriptor(WireType.NUMERIC, 5), 102) == b'  102'
    assert encode_value(descriptor(WireType.NUMERIC, 5), -7) == b'   -7'
    assert encode_value(descriptor(WireType.NUMERIC, 5), 3.0) == b'    3'

    with pytest.raises(ValueEncodingTooWide):
        encode_value(descriptor(WireType.NUMERIC, 5), 123456)

    with pytest.raises(ValueEncodingTooWide):
        encode_value(descriptor(WireType.NUMERIC, 30), 10 ** 21)


def test_encode_float():
    assert encode_value(descriptor(WireType.FLOAT, 20, 1), 10.21) == b'10.21'.rjust(20)
    assert encode_value(descriptor(WireType.NUMERIC, 20, 1), -0.5) == b'-0.5'.rjust(20)
    assert encode_value(descriptor(WireType.FLOAT, 20, 1), 3) == b'3.0'.rjust(20)


def test_encode_float_precision_loss():
    diagnostics = Diagnostics()
    value = -sys.float_info.max  # the float next to -inf

    raw = encode_value(descriptor(WireType.FLOAT, 20, 1), value, diagnostics=diagnostics)

    assert len(raw) == 20
    assert raw == b'-1.7976931348623e308'
    assert [_.kind for _ in diagnostics] == [DiagnosticKind.PRECISION_LOSS]
    assert decode_value(WireType.FLOAT, 1, raw) == pytest.approx(value)


def test_encode_float_exactly_twenty_characters():
    value = -2.0 ** -20
    assert repr(value) == '-9.5367431640625e-07'

    diagnostics = Diagnostics()
    raw = encode_value(descriptor(WireType.FLOAT, 20, 1), value, diagnostics=diagnostics)

    assert raw == b'-9.5367431640625e-07'
    assert len(diagnostics) == 0


def test_shorten_float():
    assert shorten_float(1.2345678901234567e-300, 12) == '1.23457e-300'
    assert shorten_float(123456789.123, 5) == '1.2e8'
    assert shorten_float(123456789.123, 4) == '1e8'
    assert shorten_float(1.5e-07, 6) == '1.5e-7'
    assert shorten_float(3.0, 3) == '3e0'

    with pytest.raises(ValueEncodingTooWide):
        shorten_float(1e300, 3)


def test_encode_binary():
    assert encode_value(descriptor(WireType.DOUBLE, 8), 2.5) == struct.pack('=d', 2.5)
    assert encode_value(descriptor(WireType.INTEGER, 4), -42) == struct.pack('=i', -42)
    assert encode_value(descriptor(WireType.AUTOINCREMENT, 8), 7) == struct.pack('=q', 7)

    with pytest.raises(ValueEncodingTooWide):
        encode_value(descriptor(WireType.INTEGER, 4), 2 ** 40)
