import struct

import pytest


SAMPLE_FIELDS = [
    ('CHAR',    'C', 11, 0),
    ('DATE',    'D', 8,  0),
    ('BOOL',    'L', 1,  0),
    ('FLOAT',   'F', 20, 1),
    ('NUMERIC', 'N', 20, 1),
    ('INTEGER', 'N', 20, 0),
]


def _num(text):
    return text.rjust(20).encode('ascii')


SAMPLE_RECORDS = [
    (b' ', [b'Bob'.ljust(11),  b'19900102', b'T', _num('10.21'), _num('11.21'), _num('100')]),
    (b' ', [b'John'.ljust(11), b'19900103', b'Y', _num('11.21'), _num('12.21'), _num('101')]),
    (b' ', [b'Bill'.ljust(11), b'19900104', b'F', _num('12.21'), _num('13.21'), _num('102')]),
    (b' ', [b' ' * 11,         b'19900105', b'?', _num('13.21'), _num('14.21'), _num('103')]),
    (b' ', [b'Sue'.ljust(11, b'\x00'), b' ' * 8, b'n', b' ' * 20, b' ' * 20, b' ' * 20]),
    (b' ', [b'Ann'.ljust(11),  b'20000101', b't', _num('-1.5'), _num('0.0'), _num('-7')]),
    (b'*', [b'Gone'.ljust(11), b'20000102', b'T', _num('1.0'), _num('1.0'), _num('1')]),
]


def build_dbf(fields, records, declared_header_size=None, record_size=None,
              last_update=(90, 1, 2), padding=b'', terminator=b'\x0d', eof=b'\x1a'):
    '''Assemble a DBF file byte by byte, independently from the writer.'''
    header_size = 32 + 32 * len(fields) + 1 + len(padding)
    preamble = struct.pack(
        '<B3BIHH2xBB12xBB2x',
        3, *last_update,
        len(records),
        declared_header_size if declared_header_size is not None else header_size,
        record_size if record_size is not None else 1 + sum([_[2] for _ in fields]),
        0, 0, 0, 0x57,
    )
    descriptors = b''.join([
        struct.pack('<11sc4xBB14x', name.encode('ascii'), code.encode('ascii'), length, decimal)
        for name, code, length, decimal in fields
    ])
    body = b''.join([marker + b''.join(values) for marker, values in records])

    return preamble + descriptors + terminator + padding + body + eof


@pytest.fixture
def dbf_builder():
    return build_dbf


@pytest.fixture
def sample_dbf():
    return build_dbf(SAMPLE_FIELDS, SAMPLE_RECORDS)


@pytest.fixture
def sample_path(tmp_path, sample_dbf):
    path = tmp_path / 'test.dbf'
    path.write_bytes(sample_dbf)

    return path
