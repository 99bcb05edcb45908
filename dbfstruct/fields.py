"""
A Field is "fundamental" datatype from the format point of view, something directly
packable/unpackable: it knows its size and how to convert between its raw bytes and
its value.
"""
import datetime
import logging
import struct

from .meta import FieldBase, Endianess, ENDIANESS_PREFIX
from .exceptions import (
    UnpackException,
    ChunkUnpackException,
    ValueEncodingTooWide,
)


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    def _set_raw(self, value) -> None:
        raise NotImplementedError(f"method {self.__class__.__name__}._set_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
        fset=lambda self, value: self._set_raw(value),
    )

    def relayout(self):
        '''Hook to update derived values before packing'''
        pass

    def pack(self, stream=None):
        '''Encode the value and, if a stream is passed, write it there.'''
        self.relayout()
        raw = self.raw

        if stream is not None:
            self.logger.debug('packing %d bytes for %s' % (len(raw), self.__class__.__name__))
            stream.write(raw)

        return raw

    def unpack(self, stream):
        self.offset = stream.tell()
        self.raw = stream.read_exact(self.size)


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes.
    """

    def __init__(self, format, default=0, **kw):
        self.format = format
        super().__init__(default=default, **kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

    def get_format(self):
        return '%s%s' % (ENDIANESS_PREFIX[self.endianess], self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        try:
            return struct.pack(self.get_format(), self.value)
        except struct.error as e:
            raise ValueEncodingTooWide(f'{self.value!r} does not fit format {self.get_format()!r}') from e

    def _set_raw(self, raw: bytes) -> None:
        try:
            self.value = struct.unpack(self.get_format(), raw)[0]
        except struct.error as e:
            self.logger.error(e)
            raise UnpackException(str(e))


class FlagField(StructField):
    """A single byte used as boolean."""

    def __init__(self, default=False, **kw):
        super().__init__('B', default=default, **kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, self.value)

    def _get_raw(self) -> bytes:
        return bytes([1 if self.value else 0])

    def _set_raw(self, raw: bytes) -> None:
        super()._set_raw(raw)
        self.value = bool(self.value)


class StringField(Field):
    """Represent a contiguous chunk of bytes with a fixed length."""

    def __init__(self, n, **kw):
        self.length = n
        super().__init__(**kw)

    def __len__(self):
        return self.length

    def value_from_default(self):
        return b'\x00' * self.length if not self.default else self.default

    def _get_size(self):
        return self.length

    def _get_raw(self) -> bytes:
        if len(self.value) != self.length:
            raise ValueError(f'you are trying to pack a value with the wrong size (that is {self.length} bytes)')

        return bytes(self.value)

    def _set_raw(self, raw: bytes) -> None:
        self.value = raw


class TextField(StringField):
    """Text stored null padded: decoding stops at the first null byte and drops
    the trailing whitespace."""

    def __init__(self, n, encoding='ascii', **kw):
        self.encoding = encoding
        super().__init__(n, **kw)

    def value_from_default(self):
        return self.default or ''

    def _get_raw(self) -> bytes:
        try:
            raw = self.value.encode(self.encoding)
        except UnicodeEncodeError as e:
            raise ValueEncodingTooWide(f'{self.value!r} cannot be encoded as {self.encoding}') from e

        if len(raw) > self.length:
            raise ValueEncodingTooWide(f'{self.value!r} is longer than {self.length} bytes')

        return raw.ljust(self.length, b'\x00')

    def _set_raw(self, raw: bytes) -> None:
        try:
            self.value = raw.split(b'\x00', 1)[0].decode(self.encoding).rstrip()
        except UnicodeDecodeError as e:
            self.logger.error(e)
            raise UnpackException(f'{raw!r} is not valid {self.encoding}')


class ReservedField(StringField):
    '''Bytes without meaning: whatever is read is discarded, zeros are written.'''

    def value_from_default(self):
        return None

    def __repr__(self):
        return '<%s(%d)>' % (self.__class__.__name__, self.length)

    def _get_raw(self) -> bytes:
        return b'\x00' * self.length

    def _set_raw(self, raw: bytes) -> None:
        pass


class DateField(Field):
    '''Three unsigned bytes: years since base_year, month and day.

    All zeros (a date never set) is None.'''

    BLANK = b'\x00\x00\x00'

    def __init__(self, base_year=1900, **kw):
        self.base_year = base_year
        super().__init__(**kw)

    def value_from_default(self):
        return self.default or datetime.date.today()

    def _get_size(self):
        return 3

    def _get_raw(self) -> bytes:
        if self.value is None:
            return self.BLANK

        try:
            return bytes([self.value.year - self.base_year, self.value.month, self.value.day])
        except ValueError as e:
            raise ValueEncodingTooWide(f'year {self.value.year} cannot be represented from {self.base_year}') from e

    def _set_raw(self, raw: bytes) -> None:
        if raw == self.BLANK:
            self.value = None
            return

        year, month, day = raw
        try:
            self.value = datetime.date(self.base_year + year, month, day)
        except ValueError as e:
            self.logger.error(e)
            raise UnpackException(f'invalid date bytes {raw!r}')


class ArrayField(Field):
    '''Un/Pack an array of Chunks.

    You can indicate an explicit number of elements via the parameter named "n"
    or you can indicate the bytes that terminate the list via the parameter
    named "terminator": before unpacking each element the stream is peeked and
    if the terminator is found it's consumed and the array is complete.
    '''

    def __init__(self, field_cls, n=0, terminator=None, **kw):
        self.field_cls = field_cls
        self._n = n
        self.terminator = terminator
        kw.setdefault('default', None)
        super().__init__(**kw)

    def value_from_default(self):
        return [self.instance_element() for _ in range(self._n)]

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value!r})>'

    def __getitem__(self, item):
        return self.value[item]

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    def clear(self):
        self.value.clear()

    def _get_raw(self) -> bytes:
        raw = b''.join([element.raw for element in self.value])

        return raw + (self.terminator or b'')

    def _get_size(self):
        return sum([element.size for element in self.value]) + len(self.terminator or b'')

    def relayout(self):
        for element in self.value:
            element.relayout()

    def instance_element(self):
        return self.field_cls.create(father=self)  # pass the father so that we don't lose the hierarchy

    def append(self, element):
        element.father = self
        self.value.append(element)

    def _has_more(self, stream, idx):
        if self.terminator is None:
            return idx < self._n

        marker = stream.peek(len(self.terminator))
        if marker == self.terminator:
            stream.skip(len(self.terminator))
            return False

        if len(marker) < len(self.terminator):
            raise UnpackException(f'missing terminator {self.terminator!r}')

        return True

    def unpack(self, stream):
        self.offset = stream.tell()
        self.value = []

        idx = 0
        while self._has_more(stream, idx):
            element = self.instance_element()
            self.logger.debug('unpacking element %d at offset %d' % (idx, stream.tell()))
            try:
                element.unpack(stream)
            except (UnpackException, ChunkUnpackException) as e:
                e.chain.append(str(idx))
                raise

            self.value.append(element)
            idx += 1
