"""
The composite side of the declarative layer: a Chunk groups fields and other
chunks and derives from them its size, its bytes and its layout.
"""
from typing import Dict, List, Tuple

from .fields import Field
from .meta import MetaChunk
from .streams import Stream
from .exceptions import (
    ChunkUnpackException,
    UnpackException,
)


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: a Chunk is an
    ordered sequence of fields (possibly other chunks) declared as class attributes,
    its size and its raw data are derived from them.

        class Example(Chunk):
            length = fields.StructField('H')
            title  = fields.TextField(11)

    If a source is passed to the constructor (a path, some bytes or a file object)
    the chunk is unpacked from it.
    """

    # instance attributes of Field, not available as field names
    reserved_names = ('name', 'father', 'default', 'offset', 'endianess', 'logger')

    def __init__(self, source=None, **kwargs):
        super().__init__(**kwargs)

        if source is not None:
            with Stream(source) as stream:
                self.logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
                self.unpack(stream)

    def init(self):
        for name in self._meta.fields:
            setattr(self, name, self._meta.prototypes[name].create(father=self))

    @property
    def value(self):
        return self

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        return '<%s(%s)>' % (
            self.__class__.__name__,
            ','.join(['%s=%r' % (name, field) for name, field in self.get_fields()]),
        )

    def __str__(self):
        return ''.join(['%s: %r\n' % (name, field) for name, field in self.get_fields()])

    def _get_size(self):
        '''the size MUST be derived from the subchunks'''
        return sum([field.size for _, field in self.get_fields()])

    def _get_raw(self) -> bytes:
        parts = []
        for name, field in self.get_fields():
            raw = field.raw
            self.logger.debug('%s.%s is %d bytes' % (self.__class__.__name__, name, len(raw)))
            parts.append(raw)

        return b''.join(parts)

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        '''Offset (relative to the chunk) and size of each field.'''
        result = {}
        offset = 0
        for name, field in self.get_fields():
            result[name] = (offset, field.size)
            offset += field.size

        return result

    def relayout(self):
        '''This method triggers the chunk's children to update the values derived
        from other fields, subclasses recompute their own after calling it.'''
        for field_name, field_instance in self.get_fields():
            self.logger.debug('relayouting %s.%s' % (self.__class__.__name__, field_name))
            field_instance.relayout()

    def unpack(self, stream):
        '''Take the binary data from the stream and set every field from it,
        in declaration order.

        A failure is re-raised as ChunkUnpackException where the chain
        contains the path (innermost first) of the field that failed.'''
        self.offset = stream.tell()
        for field_name, field in self.get_fields():
            self.logger.debug('unpacking %s.%s at offset %d' % (self.__class__.__name__, field_name, stream.tell()))

            try:
                field.unpack(stream)
            except (UnpackException, ChunkUnpackException) as e:
                chain = e.chain
                chain.append(field_name)
                raise ChunkUnpackException(str(e), chain=chain) from e
