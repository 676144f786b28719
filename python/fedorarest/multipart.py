"""
Encoding of ``multipart/form-data`` request bodies for uploads to the repository.

The repository expects each uploaded part to carry three headers, always in this order:
``Content-Disposition``, ``Content-Transfer-Encoding``, and ``Content-Type``.  The values
depend on the kind of part (see :py:class:`FieldKind`).  A body with a single binary file
looks like this (lines end in CRLF, and there is nothing after the closing boundary)::

    --BOUNDARY
    Content-Disposition: form-data; name="file"; filename="img.png"
    Content-Transfer-Encoding: binary
    Content-Type: application/octet-stream

    <file bytes>
    --BOUNDARY--
"""
import re, uuid
from collections.abc import Mapping
from enum import Enum

from .content import FilePath, InlineString
from .exceptions import EncodingError, FileReadError

__all__ = [ "FieldKind", "MultipartField", "choose_boundary", "content_type", "encode", "make_field" ]

CRLF = b"\r\n"

# RFC 2046 bchars; a space is allowed but not as the last character
_boundary_re = re.compile(r"^[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]$")

class FieldKind(Enum):
    """
    the kinds of parts that can appear in an upload body.  The value of each member is
    the (Content-Type, Content-Transfer-Encoding, include-filename) triple used for it.
    """
    BINARY_FILE = ("application/octet-stream", "binary",  True)
    XML_FILE    = ("text/xml",                 "UTF-8",   True)
    XML_STRING  = ("text/xml",                 "UTF-8",   False)
    PLAIN_TEXT  = ("text/plain",               "UTF-8",   False)

    @property
    def content_type(self):
        return self.value[0]

    @property
    def transfer_encoding(self):
        return self.value[1]

    @property
    def has_filename(self):
        return self.value[2]

class MultipartField:
    """
    a single named part of a multipart body.

    :ivar str name:        the form field name
    :ivar FieldKind kind:  the kind of part, which determines its headers
    :ivar payload:         the content: bytes, a :py:class:`~fedorarest.content.FilePath`,
                           or an :py:class:`~fedorarest.content.InlineString`
    :ivar str filename:    the filename to report for file kinds (defaults to the file's
                           base name or, for bytes, the field name)
    """

    def __init__(self, name: str, kind: FieldKind, payload, filename: str=None):
        _check_token(name, "field name")
        if not isinstance(kind, FieldKind):
            raise EncodingError(f"{name}: not a FieldKind: {kind!r}")
        if not isinstance(payload, (bytes, bytearray, FilePath, InlineString)):
            raise EncodingError(f"{name}: unsupported payload type: {type(payload).__name__}")
        if filename is None and kind.has_filename:
            filename = payload.filename if isinstance(payload, FilePath) else name
        if filename is not None:
            _check_token(filename, "filename")
        self.name = name
        self.kind = kind
        self.payload = payload
        self.filename = filename

    def headers(self):
        """
        return the part's header lines (without line terminators) in the order they are sent
        """
        disp = f'Content-Disposition: form-data; name="{self.name}"'
        if self.kind.has_filename:
            disp += f'; filename="{self.filename}"'
        return [ disp,
                 f"Content-Transfer-Encoding: {self.kind.transfer_encoding}",
                 f"Content-Type: {self.kind.content_type}" ]

    def read(self) -> bytes:
        """
        return the raw bytes of the payload
        :raises FileReadError:  if the payload is a file that cannot be read
        """
        if isinstance(self.payload, (bytes, bytearray)):
            return bytes(self.payload)
        if isinstance(self.payload, FilePath):
            try:
                return self.payload.read()
            except OSError as ex:
                raise FileReadError(self.payload.path, cause=ex) from ex
        return self.payload.read()

    def __repr__(self):
        return f"MultipartField({self.name!r}, {self.kind.name}, {self.payload!r})"

def _check_token(value, what):
    if not isinstance(value, str) or not value:
        raise EncodingError(f"Empty or non-string {what}: {value!r}")
    if '"' in value or '\r' in value or '\n' in value:
        raise EncodingError(f"Illegal character in {what}: {value!r}")

def make_field(name: str, source) -> MultipartField:
    """
    create a field from a plain content source, inferring its kind:

    * a :py:class:`~fedorarest.content.FilePath` becomes an XML file part when the field
      is named ``foxml_file`` and a binary file part otherwise;
    * an :py:class:`~fedorarest.content.InlineString` becomes an XML string part when the
      field is named ``foxml_string`` and a plain text part otherwise;
    * bytes become a binary file part;
    * a str beginning with ``@`` is taken as a file path; any other str as inline text.
    """
    if isinstance(source, MultipartField):
        return source
    if isinstance(source, str):
        source = FilePath(source) if source.startswith('@') else InlineString(source)

    if isinstance(source, FilePath):
        kind = FieldKind.XML_FILE if name == "foxml_file" else FieldKind.BINARY_FILE
    elif isinstance(source, InlineString):
        kind = FieldKind.XML_STRING if name == "foxml_string" else FieldKind.PLAIN_TEXT
    elif isinstance(source, (bytes, bytearray)):
        kind = FieldKind.BINARY_FILE
    else:
        raise EncodingError(f"{name}: unsupported content source: {type(source).__name__}")
    return MultipartField(name, kind, source)

def choose_boundary() -> str:
    """
    return a new random boundary token
    """
    return "----fedorarest" + uuid.uuid4().hex

def content_type(boundary: str) -> str:
    """
    return the Content-Type header value for a body encoded with the given boundary
    """
    return f"multipart/form-data; boundary={boundary}"

def _check_boundary(boundary):
    if not isinstance(boundary, str) or not _boundary_re.fullmatch(boundary):
        raise EncodingError(f"Malformed multipart boundary: {boundary!r}")

def encode(boundary: str, fields: Mapping):
    """
    encode the given fields into a multipart body.

    :param str boundary:  the boundary token delimiting the parts; see :py:func:`choose_boundary`
    :param fields:        a mapping of field names to content sources (or
                          :py:class:`MultipartField` instances); a sequence of
                          :py:class:`MultipartField` instances is also accepted.  Parts are
                          written in iteration order.
    :return:  the encoded body as bytes, or None if there are no fields (meaning there is
              no body to send)
    :raises EncodingError:  if the boundary or a field is malformed or if the boundary
                            appears in any of the content
    :raises FileReadError:  if a file given as content cannot be read
    """
    if isinstance(fields, Mapping):
        fields = [make_field(name, src) for name, src in fields.items()]
    else:
        fields = list(fields)
    if not fields:
        return None
    _check_boundary(boundary)

    token = boundary.encode('ascii')
    delim = b"--" + token
    out = bytearray()
    for field in fields:
        if not isinstance(field, MultipartField):
            raise EncodingError(f"Not a MultipartField: {field!r}")
        payload = field.read()
        if token in payload:
            raise EncodingError(f"{field.name}: content contains the multipart boundary")
        out += delim + CRLF
        for hdr in field.headers():
            out += hdr.encode('utf-8') + CRLF
        out += CRLF
        out += payload + CRLF
    out += delim + b"--"
    return bytes(out)
