import copy
import logging
from enum import Enum, auto


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()
    NETWORK       = auto()
    NATIVE        = auto()


ENDIANESS_PREFIX = {
    Endianess.LITTLE_ENDIAN: '<',
    Endianess.BIG_ENDIAN:    '>',
    Endianess.NETWORK:       '!',
    Endianess.NATIVE:        '=',
}


class FieldBase(object):

    def contribute_to_chunk(self, cls, name):
        if name in cls._meta.prototypes:
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')

        # a field would shadow (or be shadowed by) the attributes of the chunk itself
        if hasattr(cls, name) or name in getattr(cls, 'reserved_names', ()):
            raise AttributeError(f'field {name} clashes with an attribute of class {cls.__name__}')

        self.name = name
        cls._meta.fields.append(name)
        cls._meta.prototypes[name] = self

    def create(self, father):
        '''Every chunk instance gets its own copy of the declared fields.'''
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class Meta(object):
    """Class containing metadata about the abstraction"""

    def __init__(self):
        self.fields = []
        self.prototypes = {}


class MetaChunk(type):

    def __new__(cls, names, bases, attrs):
        '''The fields declared as class attributes are removed from the class
        and kept, in declaration order, as prototypes inside _meta.'''
        declared = {name: obj for name, obj in attrs.items() if hasattr(obj, 'contribute_to_chunk')}
        new_attrs = {name: obj for name, obj in attrs.items() if name not in declared}

        new_cls = super(MetaChunk, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        # handle inheritance
        parents = [_ for _ in bases if isinstance(_, MetaChunk)]
        for parent in parents:
            for obj_name in parent._meta.fields:
                new_cls._meta.fields.append(obj_name)
                new_cls._meta.prototypes[obj_name] = parent._meta.prototypes[obj_name]

        for obj_name, obj in declared.items():
            new_cls.add_to_class(obj_name, obj)

        return new_cls

    def add_to_class(cls, name, value):
        logging.getLogger(__name__).debug('contribute_to_chunk() found for field \'%s\'' % name)
        value.contribute_to_chunk(cls, name)
