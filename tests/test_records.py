import pytest

from dbfstruct.exceptions import UnpackException
from dbfstruct.dbf.header import parse_header
from dbfstruct.dbf.records import RecordStore
from dbfstruct.streams import Stream


@pytest.fixture
def store(sample_dbf):
    stream = Stream(sample_dbf)
    header = parse_header(stream)

    return RecordStore.read(stream, header)


def test_record_store_geometry(store):
    record_size = store.header.record_byte_size

    assert len(store) == 7
    assert store.byte_range(0, 0) == (1, 12)
    assert store.byte_range(1, 0) == (record_size + 1, record_size + 12)
    assert store.byte_range(2, 2) == (2 * record_size + 20, 2 * record_size + 21)


def test_record_store_view(store):
    view = store.view(1, 0)

    assert len(view) == 11
    assert view.tobytes() == b'John       '
    assert bytes(store.view(0, 1)) == b'19900102'
    assert bytes(store.view(4, 5)) == b' ' * 20


def test_record_store_record(store):
    record = store.record(6)

    assert len(record) == store.header.record_byte_size
    assert record[:5].tobytes() == b'*Gone'


def test_record_store_deleted(store):
    assert [store.is_deleted(_) for _ in range(len(store))] == [False] * 6 + [True]


def test_record_store_out_of_range(store):
    with pytest.raises(IndexError):
        store.view(7, 0)

    with pytest.raises(IndexError):
        store.is_deleted(-1)


def test_record_store_truncated(sample_dbf):
    stream = Stream(sample_dbf[:-10])
    header = parse_header(stream)

    with pytest.raises(UnpackException):
        RecordStore.read(stream, header)


def test_record_store_wrong_buffer(sample_dbf):
    header = parse_header(Stream(sample_dbf))

    with pytest.raises(UnpackException):
        RecordStore(header, b'\x20' * (header.record_byte_size + 1))
