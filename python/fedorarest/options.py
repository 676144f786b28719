"""
Named option sets for the repository operations.

Each class here collects the optional query parameters accepted by one operation (or a
family of operations).  The fields are declared in the order the parameters are sent to
the service, and each field records the parameter's name on the wire; see
:py:meth:`Options.parameters`.  A field left at None is not sent.  Values are checked when
an instance is created, so a bad option fails before any request is attempted.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Optional, Sequence, Union

from .exceptions import InvalidParameter

__all__ = [ "Options", "FindObjectsOptions", "ObjectProfileOptions", "ListDatastreamsOptions",
            "ListMethodsOptions", "HistoryOptions", "DatastreamOptions",
            "DatastreamContentOptions", "ExportOptions", "NextPIDOptions", "AddDatastreamOptions",
            "ModifyDatastreamOptions", "IngestOptions", "ModifyObjectOptions",
            "PurgeObjectOptions", "PurgeDatastreamOptions", "RelationshipOptions",
            "DEFAULT_DISPLAY_FIELDS", "OBJECT_FIELDS" ]

DateTime = Union[datetime, str]

# the object properties that findObjects can search on and report
OBJECT_FIELDS = ( "pid", "label", "state", "ownerId", "cDate", "mDate", "dcmDate", "title",
                  "creator", "subject", "description", "publisher", "contributor", "date",
                  "type", "format", "identifier", "source", "language", "relation",
                  "coverage", "rights" )
DEFAULT_DISPLAY_FIELDS = ("pid", "title")

RESPONSE_FORMATS = ("xml", "html")
STATES = ("A", "I", "D")
CONTROL_GROUPS = ("X", "M", "R", "E")
CHECKSUM_TYPES = ("DEFAULT", "DISABLED", "MD5", "SHA-1", "SHA-256", "SHA-384", "SHA-512")
EXPORT_CONTEXTS = ("public", "migrate", "archive")

def param(wirename: str, default=None):
    """
    declare an option field that is sent as the query parameter ``wirename``
    """
    return field(default=default, metadata={'param': wirename})

class Options:
    """
    a base for the option sets.  Subclasses are frozen dataclasses whose fields are
    declared with :py:func:`param`.
    """

    def parameters(self):
        """
        return the (wire-name, value) pairs for this option set in wire order.  Values
        that are None are included; they are dropped when the query is built.
        """
        return [(f.metadata['param'], getattr(self, f.name)) for f in fields(self)
                if 'param' in f.metadata]

    def _check_choice(self, name, allowed):
        val = getattr(self, name)
        if val is not None and val not in allowed:
            raise InvalidParameter(name, val, f"{name} must be one of {', '.join(allowed)}; got {val!r}")

    def _check_positive(self, name):
        val = getattr(self, name)
        if val is None:
            return
        if isinstance(val, bool) or not isinstance(val, int) or val < 1:
            raise InvalidParameter(name, val, f"{name} must be a positive integer; got {val!r}")

    def _check_datetime(self, name):
        val = getattr(self, name)
        if val is not None and not isinstance(val, (datetime, str)):
            raise InvalidParameter(name, val, f"{name} must be a datetime or a timestamp string")

@dataclass(frozen=True)
class FindObjectsOptions(Options):
    """
    options for searching for objects (``findObjects``) and for continuing a search
    (``resumeFindObjects``).  At most one of ``terms`` or ``query`` may be set; if neither
    is, all objects match.

    :ivar str terms:          a phrase to search for across all fields (``*`` and ``?``
                              wildcards allowed)
    :ivar str query:          a field-specific query, e.g. ``pid~demo:* state=A``
    :ivar int max_results:    the maximum number of results per response
    :ivar str result_format:  ``xml`` (default) or ``html``
    :ivar display_fields:     the object fields to include in results; each is sent as
                              ``field=true``.  Default: pid and title.
    :ivar str session_token:  the token from a previous response, when resuming a search
    """
    session_token: Optional[str] = param("sessionToken")
    terms: Optional[str] = param("terms")
    query: Optional[str] = param("query")
    max_results: Optional[int] = param("maxResults")
    result_format: str = param("resultFormat", "xml")
    display_fields: Union[Sequence[str], Mapping] = DEFAULT_DISPLAY_FIELDS

    def __post_init__(self):
        if self.terms and self.query:
            raise InvalidParameter("query", self.query,
                                   "Only one of terms or query may be given")
        self._check_positive("max_results")
        self._check_choice("result_format", RESPONSE_FORMATS)
        if isinstance(self.display_fields, str):
            raise InvalidParameter("display_fields", self.display_fields,
                                   "display_fields must be a list of field names")
        unknown = [f for f in self.display_fields if f not in OBJECT_FIELDS]
        if unknown:
            raise InvalidParameter("display_fields", unknown,
                                   "Unrecognized display field(s): " + ", ".join(unknown))

@dataclass(frozen=True)
class ObjectProfileOptions(Options):
    """
    options for retrieving an object's profile

    :ivar str format:         ``xml`` (default) or ``html``
    :ivar as_of_datetime:     return the profile as it was at this time
    """
    format: str = param("format", "xml")
    as_of_datetime: Optional[DateTime] = param("asOfDateTime")

    def __post_init__(self):
        self._check_choice("format", RESPONSE_FORMATS)
        self._check_datetime("as_of_datetime")

@dataclass(frozen=True)
class ListDatastreamsOptions(Options):
    """
    options for listing an object's datastreams

    :ivar bool profiles:  if True, include each datastream's full profile
    """
    format: str = param("format", "xml")
    as_of_datetime: Optional[DateTime] = param("asOfDateTime")
    profiles: Optional[bool] = param("profiles")

    def __post_init__(self):
        self._check_choice("format", RESPONSE_FORMATS)
        self._check_datetime("as_of_datetime")

@dataclass(frozen=True)
class ListMethodsOptions(Options):
    format: str = param("format", "xml")
    as_of_datetime: Optional[DateTime] = param("asOfDateTime")

    def __post_init__(self):
        self._check_choice("format", RESPONSE_FORMATS)
        self._check_datetime("as_of_datetime")

@dataclass(frozen=True)
class HistoryOptions(Options):
    """
    options for retrieving the version history of an object or datastream
    """
    format: str = param("format", "xml")

    def __post_init__(self):
        self._check_choice("format", RESPONSE_FORMATS)

@dataclass(frozen=True)
class DatastreamOptions(Options):
    """
    options for retrieving a datastream's profile

    :ivar bool validate_checksum:  if True, have the server recompute and verify the
                                   datastream's checksum
    """
    as_of_datetime: Optional[DateTime] = param("asOfDateTime")
    format: str = param("format", "xml")
    validate_checksum: Optional[bool] = param("validateChecksum")

    def __post_init__(self):
        self._check_choice("format", RESPONSE_FORMATS)
        self._check_datetime("as_of_datetime")

@dataclass(frozen=True)
class DatastreamContentOptions(Options):
    """
    options for retrieving a datastream's content

    :ivar bool download:  if True, ask the server to send a Content-Disposition header so
                          that browsers save the content as a file
    """
    as_of_datetime: Optional[DateTime] = param("asOfDateTime")
    download: Optional[bool] = param("download")

    def __post_init__(self):
        self._check_datetime("as_of_datetime")

@dataclass(frozen=True)
class ExportOptions(Options):
    """
    options for exporting an object

    :ivar str format:    the export format URI (server default: FOXML 1.1)
    :ivar str context:   one of ``public``, ``migrate``, or ``archive``
    :ivar str encoding:  the character encoding (server default: UTF-8)
    """
    format: Optional[str] = param("format")
    context: Optional[str] = param("context")
    encoding: Optional[str] = param("encoding")

    def __post_init__(self):
        self._check_choice("context", EXPORT_CONTEXTS)

@dataclass(frozen=True)
class NextPIDOptions(Options):
    """
    options for reserving new object identifiers

    :ivar int num_pids:    the number of identifiers to reserve (server default: 1)
    :ivar str namespace:   the namespace for the identifiers (server default: the
                           repository's configured namespace)
    :ivar str format:      ``xml`` (default) or ``html``
    """
    num_pids: Optional[int] = param("numPIDS")
    namespace: Optional[str] = param("namespace")
    format: str = param("format", "xml")

    def __post_init__(self):
        self._check_positive("num_pids")
        self._check_choice("format", RESPONSE_FORMATS)

class _DatastreamWriteChecks:

    def _check_write(self):
        self._check_choice("ds_state", STATES)
        self._check_choice("checksum_type", CHECKSUM_TYPES)
        if self.alt_ids is not None and not isinstance(self.alt_ids, (str, list, tuple)):
            raise InvalidParameter("alt_ids", self.alt_ids, "alt_ids must be a string or a list")

@dataclass(frozen=True)
class AddDatastreamOptions(Options, _DatastreamWriteChecks):
    """
    options for adding a datastream to an object.  The content for the datastream is not
    set here but given to :py:meth:`~fedorarest.client.FedoraClient.add_datastream`
    directly; ``ds_location`` is filled in from a location content source.

    :ivar str control_group:   ``X`` (inline XML), ``M`` (managed, the server default),
                               ``R`` (redirect), or ``E`` (external reference)
    :ivar alt_ids:             alternate identifiers (a string or a list of strings)
    :ivar str ds_label:        a label for the datastream
    :ivar bool versionable:    whether the server should keep old versions
    :ivar str ds_state:        ``A`` (active), ``I`` (inactive), or ``D`` (deleted)
    :ivar str format_uri:      a URI identifying the content's format
    :ivar str checksum_type:   the checksum algorithm, e.g. ``MD5`` or ``SHA-256``
    :ivar str checksum:        the expected checksum value for the content
    :ivar str mime_type:       the content's MIME type
    :ivar str log_message:     a message to record in the object's audit trail
    """
    control_group: Optional[str] = param("controlGroup")
    ds_location: Optional[str] = param("dsLocation")
    alt_ids: Optional[Union[str, Sequence[str]]] = param("altIDs")
    ds_label: Optional[str] = param("dsLabel")
    versionable: Optional[bool] = param("versionable")
    ds_state: Optional[str] = param("dsState")
    format_uri: Optional[str] = param("formatURI")
    checksum_type: Optional[str] = param("checksumType")
    checksum: Optional[str] = param("checksum")
    mime_type: Optional[str] = param("mimeType")
    log_message: Optional[str] = param("logMessage")

    def __post_init__(self):
        self._check_choice("control_group", CONTROL_GROUPS)
        self._check_write()

@dataclass(frozen=True)
class ModifyDatastreamOptions(Options, _DatastreamWriteChecks):
    """
    options for modifying an existing datastream; see :py:class:`AddDatastreamOptions`
    for the shared fields.

    :ivar bool force:             force the update even if it would break a content model
    :ivar bool ignore_content:    update only the datastream's properties
    :ivar last_modified_date:     fail if the datastream has changed since this time
    """
    ds_location: Optional[str] = param("dsLocation")
    alt_ids: Optional[Union[str, Sequence[str]]] = param("altIDs")
    ds_label: Optional[str] = param("dsLabel")
    versionable: Optional[bool] = param("versionable")
    ds_state: Optional[str] = param("dsState")
    format_uri: Optional[str] = param("formatURI")
    checksum_type: Optional[str] = param("checksumType")
    checksum: Optional[str] = param("checksum")
    mime_type: Optional[str] = param("mimeType")
    log_message: Optional[str] = param("logMessage")
    force: Optional[bool] = param("force")
    ignore_content: Optional[bool] = param("ignoreContent")
    last_modified_date: Optional[DateTime] = param("lastModifiedDate")

    def __post_init__(self):
        self._check_write()
        self._check_datetime("last_modified_date")

@dataclass(frozen=True)
class IngestOptions(Options):
    """
    options for ingesting a new object

    :ivar str label:        the object's label
    :ivar str format:       the format URI of the ingest document (server default: FOXML 1.1)
    :ivar str encoding:     the ingest document's character encoding (server default: UTF-8)
    :ivar str namespace:    the namespace to mint a new identifier in
    :ivar str owner_id:     the object's owner
    :ivar str log_message:  a message to record in the object's audit trail
    :ivar bool ignore_mime: ignore the request's Content-Type header
    """
    label: Optional[str] = param("label")
    format: Optional[str] = param("format")
    encoding: Optional[str] = param("encoding")
    namespace: Optional[str] = param("namespace")
    owner_id: Optional[str] = param("ownerId")
    log_message: Optional[str] = param("logMessage")
    ignore_mime: Optional[bool] = param("ignoreMime")

@dataclass(frozen=True)
class ModifyObjectOptions(Options):
    """
    options for updating an object's properties
    """
    label: Optional[str] = param("label")
    owner_id: Optional[str] = param("ownerId")
    state: Optional[str] = param("state")
    log_message: Optional[str] = param("logMessage")
    last_modified_date: Optional[DateTime] = param("lastModifiedDate")

    def __post_init__(self):
        self._check_choice("state", STATES)
        self._check_datetime("last_modified_date")

@dataclass(frozen=True)
class PurgeObjectOptions(Options):
    log_message: Optional[str] = param("logMessage")
    force: Optional[bool] = param("force")

@dataclass(frozen=True)
class PurgeDatastreamOptions(Options):
    """
    options for purging a datastream.  If ``start_dt`` and/or ``end_dt`` are given, only
    the versions created within that range are purged.
    """
    start_dt: Optional[DateTime] = param("startDT")
    end_dt: Optional[DateTime] = param("endDT")
    log_message: Optional[str] = param("logMessage")
    force: Optional[bool] = param("force")

    def __post_init__(self):
        self._check_datetime("start_dt")
        self._check_datetime("end_dt")
        if isinstance(self.start_dt, datetime) and isinstance(self.end_dt, datetime) and \
           self.start_dt.tzinfo is not None and self.end_dt.tzinfo is not None and \
           self.start_dt > self.end_dt:
            raise InvalidParameter("end_dt", self.end_dt, "end_dt is earlier than start_dt")

@dataclass(frozen=True)
class RelationshipOptions(Options):
    """
    a relationship statement about an object, used to add, purge, or select relationships.
    When adding or purging, ``predicate`` and ``object`` are required.

    :ivar str subject:     the subject URI; the server defaults to the object itself
    :ivar str predicate:   the predicate URI
    :ivar str object:      the object, a URI or (if ``is_literal``) a literal value
    :ivar bool is_literal: True if ``object`` is a literal
    :ivar str datatype:    the XML Schema datatype URI of a literal ``object``
    :ivar str format:      the response format when retrieving relationships
    """
    subject: Optional[str] = param("subject")
    predicate: Optional[str] = param("predicate")
    object: Optional[str] = param("object")
    is_literal: Optional[bool] = param("isLiteral")
    datatype: Optional[str] = param("datatype")
    format: Optional[str] = param("format")

    def __post_init__(self):
        if self.datatype and not self.is_literal:
            raise InvalidParameter("datatype", self.datatype,
                                   "datatype may only be given for a literal object")
