"""
Descriptions of where the content for a write operation comes from.

Content for a new or updated datastream (or a new object) can come from a local file
(:py:class:`FilePath`), from a string supplied by the caller (:py:class:`InlineString`),
or, for datastreams, from a URL that the repository fetches itself
(:py:class:`DsLocationURI`).  Exactly one source is given per request;
:py:func:`select_content` enforces this.
"""
import os
from typing import Union

from .exceptions import NoContentSpecified, AmbiguousContentSpecified, EncodingError

__all__ = [ "FilePath", "InlineString", "DsLocationURI", "ContentSource", "select_content",
            "as_source" ]

class FilePath:
    """
    content to be read from a local file.  For compatibility with older callers, a
    leading ``@`` on the path (meaning "read from this file") is accepted and removed.
    """
    __slots__ = ('path',)

    def __init__(self, path):
        path = os.fspath(path)
        if isinstance(path, str) and path.startswith('@'):
            path = path[1:]
        if not path:
            raise ValueError("FilePath: empty path")
        self.path = path

    @property
    def filename(self):
        """
        the base name of the file
        """
        return os.path.basename(self.path)

    def read(self) -> bytes:
        """
        return the contents of the file.
        :raises OSError:  if the file cannot be opened or read
        """
        with open(self.path, 'rb') as fd:
            return fd.read()

    def __eq__(self, other):
        return isinstance(other, FilePath) and other.path == self.path

    def __hash__(self):
        return hash(('FilePath', self.path))

    def __repr__(self):
        return f"FilePath({self.path!r})"

class InlineString:
    """
    content given directly as a string
    """
    __slots__ = ('text', 'encoding')

    def __init__(self, text: str, encoding: str='utf-8'):
        if text is None:
            raise ValueError("InlineString: text is None")
        self.text = text
        self.encoding = encoding

    def read(self) -> bytes:
        """
        return the text encoded as bytes
        """
        if isinstance(self.text, bytes):
            return self.text
        try:
            return self.text.encode(self.encoding)
        except (UnicodeError, LookupError) as ex:
            raise EncodingError(f"Unable to encode inline content as {self.encoding}: {str(ex)}") from ex

    def __eq__(self, other):
        return isinstance(other, InlineString) and other.text == self.text and \
               other.encoding == self.encoding

    def __hash__(self):
        return hash(('InlineString', self.text, self.encoding))

    def __repr__(self):
        txt = self.text if len(self.text) <= 40 else self.text[:37] + "..."
        return f"InlineString({txt!r})"

class DsLocationURI:
    """
    content that the repository should retrieve itself from the given URI
    """
    __slots__ = ('uri',)

    def __init__(self, uri: str):
        if not uri:
            raise ValueError("DsLocationURI: empty URI")
        self.uri = uri

    def __eq__(self, other):
        return isinstance(other, DsLocationURI) and other.uri == self.uri

    def __hash__(self):
        return hash(('DsLocationURI', self.uri))

    def __repr__(self):
        return f"DsLocationURI({self.uri!r})"

ContentSource = Union[FilePath, InlineString, DsLocationURI]

def as_source(value, kind):
    """
    wrap a plain value as a content source of the given kind (one of the classes in this
    module).  Values that are already content sources are returned unchanged.
    """
    if isinstance(value, (FilePath, InlineString, DsLocationURI)):
        return value
    return kind(value)

def select_content(operation: str=None, required: bool=True, **sources):
    """
    return the single content source provided among the keyword arguments.  Each keyword
    names a kind of source (e.g. ``file``, ``string``, ``location``); a value of None
    (or an empty string) means that source was not given.

    :param str operation:  the name of the operation, for error messages
    :param bool required:  if True, raise an exception when no source is given; otherwise
                           return None.
    :return:  a (name, value) tuple for the source that was given, or None
    :raises AmbiguousContentSpecified:  if more than one source was given
    :raises NoContentSpecified:  if no source was given and ``required`` is True
    """
    given = [(name, val) for name, val in sources.items() if val is not None and val != '']
    if len(given) > 1:
        raise AmbiguousContentSpecified([g[0] for g in given], operation)
    if not given:
        if required:
            raise NoContentSpecified(operation)
        return None
    return given[0]
