import io
import logging
import os

from .exceptions import UnpackException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/path/file objects to
    uniform their properties: mainly we need exact reads, a lookahead
    that doesn't consume the data and a clear ownership of the
    underlying file handle.

    Only what the stream opened by itself is closed by close(), use it
    as a context manager to be sure that happens on every exit path.'''

    def __init__(self, obj, flags='rb'):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        if isinstance(obj, os.PathLike):
            obj = os.fspath(obj)

        self.flags = flags
        self.obj = obj
        self.owned = False
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, self.init_file)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.obj)

    def close(self):
        if self.owned:
            logger.debug('closing %r' % self.obj)
            self.obj.close()
            self.owned = False

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\' with flags \'%s\'' % (self.obj, self.flags))
        self.obj = open(self.obj, self.flags)
        self.owned = True

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    init_bytearray = init_bytes
    init_memoryview = init_bytes

    def init_file(self):
        '''A file-like object owned by the caller: if it cannot seek we read it
        all in memory since the lookahead needs to rewind.'''
        if 'r' in self.flags and not self.obj.seekable():
            logger.debug('buffering non seekable %r' % self.obj)
            self.obj = io.BytesIO(self.obj.read())

    def read_exact(self, size):
        data = self.obj.read(size)
        if len(data) != size:
            raise UnpackException(f'expected {size} bytes, got {len(data)}')

        return data

    def peek(self, size=1):
        '''Return the next bytes without consuming them (could be less than size at EOF)'''
        self.save()
        try:
            return self.obj.read(size)
        finally:
            self.restore()

    def skip(self, size):
        self.read_exact(size)

    def write(self, data):
        return self.obj.write(data)

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)
