class DBFStructException(Exception):
    '''Base class to extend in order to throw exception in dbfstruct.

    Besides the usual message it takes a keyword argument that represents
    the chain of the layers that caused the exception, innermost first.
    '''

    def __init__(self, *args, chain=None):
        self.chain = chain if chain is not None else []
        super().__init__(*args)

    @property
    def path(self):
        '''The dotted path of the failing sub-component, outermost first.'''
        return '.'.join(reversed(self.chain))


class UnpackException(DBFStructException):
    pass


class ChunkUnpackException(DBFStructException):
    pass


class MalformedHeader(UnpackException):
    '''The preamble or the field descriptors are not decodable or are
    inconsistent with each other.'''
    pass


class UnsupportedFieldType(UnpackException):

    def __init__(self, code, **kwargs):
        self.code = code
        super().__init__(f'unsupported field type {code!r}', **kwargs)


class UnknownLogicalValue(UnpackException):

    def __init__(self, value, **kwargs):
        self.value = value
        super().__init__(f'unknown logical value {value!r}', **kwargs)


class ColumnNotFound(DBFStructException, LookupError):

    def __init__(self, name, **kwargs):
        self.name = name
        super().__init__(f'no column named {name!r}', **kwargs)


class ValueEncodingTooWide(DBFStructException, ValueError):
    pass
