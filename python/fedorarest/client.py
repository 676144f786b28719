"""
This module provides a client class, FedoraClient, for the REST interface of a Fedora-style
digital-object repository.  Each public method corresponds to one operation of the
service:  it builds the request URL (see :py:mod:`fedorarest.request`), encodes an upload
body where the operation takes one (see :py:mod:`fedorarest.multipart`), sends the request,
and returns the :py:class:`requests.Response` without examining it.

Problems with the caller's inputs (a missing identifier, conflicting content sources, an
unreadable file) are raised before anything is sent.  Any exception raised by the transport
(normally a :py:class:`requests.RequestException`) is logged with the URL that was attempted
and re-raised as-is; HTTP error statuses are logged and the response returned.  Nothing is
retried.
"""
import logging
from collections.abc import Mapping
from dataclasses import replace

import requests

from .config import ConnectionConfig
from .content import FilePath, InlineString, DsLocationURI, as_source, select_content
from .exceptions import MissingParameter
from .multipart import MultipartField, FieldKind, choose_boundary, content_type, encode
from .options import (FindObjectsOptions, ObjectProfileOptions, ListDatastreamsOptions,
                      ListMethodsOptions, HistoryOptions, DatastreamOptions,
                      DatastreamContentOptions, ExportOptions, NextPIDOptions,
                      AddDatastreamOptions, ModifyDatastreamOptions, IngestOptions,
                      ModifyObjectOptions, PurgeObjectOptions, PurgeDatastreamOptions,
                      RelationshipOptions)
from .request import QueryBuilder, build_url
from .transport import Transport

__all__ = [ "FedoraClient", "DEFAULT_LOCATION_MIME_TYPE" ]

DEFAULT_LOCATION_MIME_TYPE = "application/octet-stream"

OBJECTS_EP      = "objects"
OBJECT_EP       = "objects/{pid}"
NEXTPID_EP      = "objects/nextPID"
DATASTREAMS_EP  = OBJECT_EP + "/datastreams"
DATASTREAM_EP   = DATASTREAMS_EP + "/{dsid}"
DSCONTENT_EP    = DATASTREAM_EP + "/content"
DSHISTORY_EP    = DATASTREAM_EP + "/history"
METHODS_EP      = OBJECT_EP + "/methods"
SDEF_METHODS_EP = METHODS_EP + "/{sdef}"
DISSEMINATE_EP  = SDEF_METHODS_EP + "/{method}"
VERSIONS_EP     = OBJECT_EP + "/versions"
EXPORT_EP       = OBJECT_EP + "/export"
OBJECTXML_EP    = OBJECT_EP + "/objectXML"
VALIDATE_EP     = OBJECT_EP + "/validate"
RELS_EP         = OBJECT_EP + "/relationships"
NEWREL_EP       = RELS_EP + "/new"
UPLOAD_EP       = "upload"
DESCRIBE_EP     = "describe"

def _options(cls, options, kw):
    # merge keyword overrides into an option set, creating one if necessary
    if options is None:
        return cls(**kw)
    if not isinstance(options, cls):
        raise TypeError(f"options: expected {cls.__name__}, got {type(options).__name__}")
    if kw:
        return replace(options, **kw)
    return options

class FedoraClient:
    """
    a client for a Fedora-style repository's REST interface.

    Example usage::

        from fedorarest import FedoraClient, ConnectionConfig

        cli = FedoraClient(ConnectionConfig("http://localhost:8080/fedora", "fedoraAdmin", "pw"))
        resp = cli.find_objects(terms="demo*", max_results=20)
        resp = cli.add_datastream("demo:1", "TN", location="http://example.org/img.png",
                                  mime_type="image/png")

    Most methods accept their optional parameters either as an option set from
    :py:mod:`fedorarest.options` (via ``options=``) or as keyword arguments named after
    that option set's fields; keywords override values in a given option set.
    """

    def __init__(self, conn: ConnectionConfig, transport=None, log: logging.Logger=None):
        """
        initialize the client

        :param ConnectionConfig conn:  the parameters for connecting to the service
        :param transport:  the object used to send requests; it must provide a ``send(url,
                           method, headers, body)`` method (see
                           :py:class:`~fedorarest.transport.Transport`).  If not provided,
                           a :py:class:`~fedorarest.transport.Transport` is created.
        :param Logger log: the Logger object to use for messages from this client.  If not
                           provided, a default logger with the name "fedorarest" will be used.
        """
        if not log:
            log = logging.getLogger("fedorarest")
        self.log = log
        self.conn = conn
        if transport is None:
            transport = Transport(conn, log.getChild("transport"))
        self.transport = transport

    @classmethod
    def from_config(cls, config: Mapping, log: logging.Logger=None):
        """
        create a client from a configuration dictionary; see :py:mod:`fedorarest.config` for
        the supported parameters.
        :raises ConfigurationException:  if the configuration is missing or has bad values
        """
        return cls(ConnectionConfig.from_config(config), log=log)

    @property
    def base_url(self):
        return self.conn.base_url

    def _url(self, template, path_args=None, params=None, operation=None):
        return build_url(self.conn.base_url, template, path_args, params, operation)

    def _send(self, operation, method, url, headers=None, body=None, stream=False):
        self.log.debug("%s: %s %s", operation, method, url)
        kw = {"stream": True} if stream else {}
        try:
            resp = self.transport.send(url, method, headers, body, **kw)
        except Exception as ex:
            self.log.error("%s: %s %s failed: %s", operation, method, url, str(ex))
            raise
        if resp.status_code >= 400:
            self.log.warning("%s: HTTP Error %d (%s) for %s %s", operation, resp.status_code,
                             resp.reason, method, url)
        return resp

    def _multipart(self, *fields):
        # returns the headers and the body for an upload of the given fields
        boundary = choose_boundary()
        body = encode(boundary, fields)
        if body is None:
            return {}, None
        return {'Content-Type': content_type(boundary)}, body

    def _datastream_content(self, operation, dsid, options, required, file, string, location):
        # choose the content source for a datastream write, returning the updated options,
        # the request headers, and the request body
        chosen = select_content(operation, required, file=file, string=string, location=location,
                                **{"options.ds_location": options.ds_location})
        if chosen is None:
            return options, {}, None

        name, src = chosen
        if name in ("location", "options.ds_location"):
            src = src.uri if isinstance(src, DsLocationURI) else src
            options = replace(options, ds_location=src)
            return options, {'Content-Type': options.mime_type or DEFAULT_LOCATION_MIME_TYPE}, None

        if name == "file":
            field = MultipartField("file", FieldKind.BINARY_FILE, as_source(src, FilePath))
        else:
            if not isinstance(src, (bytes, bytearray)):
                src = as_source(src, InlineString)
            field = MultipartField("file", FieldKind.BINARY_FILE, src, filename=dsid or None)
        headers, body = self._multipart(field)
        return options, headers, body

    ### Search and access

    def describe_repository(self) -> requests.Response:
        """
        retrieve a description of the repository
        """
        url = self._url(DESCRIBE_EP, params=[("xml", True)])
        return self._send("describe_repository", "GET", url)

    def find_objects(self, options: FindObjectsOptions=None, **kw) -> requests.Response:
        """
        search for objects.  The search is given via ``terms`` (a phrase matched against all
        fields) or ``query`` (field-specific conditions); see
        :py:class:`~fedorarest.options.FindObjectsOptions` for all options.  If more results
        are available than were returned, the response includes a session token that can be
        passed to :py:meth:`resume_find_objects`.
        """
        options = _options(FindObjectsOptions, options, kw)
        query = QueryBuilder(options.parameters()).add_flags(options.display_fields)
        return self._send("find_objects", "GET", self._url(OBJECTS_EP, params=query))

    def resume_find_objects(self, session_token: str, options: FindObjectsOptions=None,
                            **kw) -> requests.Response:
        """
        retrieve the next batch of results from a previous search.  The options should match
        those of the original search.
        """
        if not session_token:
            raise MissingParameter("session_token", "resume_find_objects")
        kw['session_token'] = session_token
        options = _options(FindObjectsOptions, options, kw)
        query = QueryBuilder(options.parameters()).add_flags(options.display_fields)
        return self._send("resume_find_objects", "GET", self._url(OBJECTS_EP, params=query))

    def get_object_profile(self, pid: str, options: ObjectProfileOptions=None, **kw) -> requests.Response:
        """
        retrieve the profile (the top-level properties) of an object
        """
        options = _options(ObjectProfileOptions, options, kw)
        url = self._url(OBJECT_EP, {'pid': pid}, options.parameters(), "get_object_profile")
        return self._send("get_object_profile", "GET", url)

    def get_object_history(self, pid: str, options: HistoryOptions=None, **kw) -> requests.Response:
        """
        retrieve the list of times at which an object was changed
        """
        options = _options(HistoryOptions, options, kw)
        url = self._url(VERSIONS_EP, {'pid': pid}, options.parameters(), "get_object_history")
        return self._send("get_object_history", "GET", url)

    def get_object_xml(self, pid: str) -> requests.Response:
        """
        retrieve the complete stored XML serialization of an object
        """
        url = self._url(OBJECTXML_EP, {'pid': pid}, operation="get_object_xml")
        return self._send("get_object_xml", "GET", url)

    def export(self, pid: str, options: ExportOptions=None, stream: bool=False, **kw) -> requests.Response:
        """
        export an object for migration or archiving

        :param bool stream:  if True, return before the response body is read so that large
                             exports can be read in chunks
        """
        options = _options(ExportOptions, options, kw)
        url = self._url(EXPORT_EP, {'pid': pid}, options.parameters(), "export")
        return self._send("export", "GET", url, stream=stream)

    def validate(self, pid: str, as_of_datetime=None) -> requests.Response:
        """
        ask the server to validate an object against its content models
        """
        url = self._url(VALIDATE_EP, {'pid': pid}, [("asOfDateTime", as_of_datetime)], "validate")
        return self._send("validate", "GET", url)

    def list_datastreams(self, pid: str, options: ListDatastreamsOptions=None, **kw) -> requests.Response:
        """
        list the datastreams attached to an object
        """
        options = _options(ListDatastreamsOptions, options, kw)
        url = self._url(DATASTREAMS_EP, {'pid': pid}, options.parameters(), "list_datastreams")
        return self._send("list_datastreams", "GET", url)

    def list_methods(self, pid: str, sdef_pid: str=None, options: ListMethodsOptions=None,
                     **kw) -> requests.Response:
        """
        list the dissemination methods available for an object, optionally restricted to
        those of one service definition
        """
        options = _options(ListMethodsOptions, options, kw)
        if sdef_pid:
            url = self._url(SDEF_METHODS_EP, {'pid': pid, 'sdef': sdef_pid}, options.parameters(),
                            "list_methods")
        else:
            url = self._url(METHODS_EP, {'pid': pid}, options.parameters(), "list_methods")
        return self._send("list_methods", "GET", url)

    def get_dissemination(self, pid: str, sdef_pid: str, method: str, method_params: Mapping=None,
                          as_of_datetime=None, stream: bool=False) -> requests.Response:
        """
        invoke a dissemination method on an object

        :param str pid:            the object's identifier
        :param str sdef_pid:       the identifier of the service definition providing the method
        :param str method:         the method name
        :param dict method_params: the method's parameters, sent in the order given
        :param as_of_datetime:     disseminate the object as it was at this time
        """
        query = QueryBuilder(method_params or {}).add("asOfDateTime", as_of_datetime)
        url = self._url(DISSEMINATE_EP, {'pid': pid, 'sdef': sdef_pid, 'method': method}, query,
                        "get_dissemination")
        return self._send("get_dissemination", "GET", url, stream=stream)

    def get_datastream(self, pid: str, dsid: str, options: DatastreamOptions=None, **kw) -> requests.Response:
        """
        retrieve the profile of a datastream
        """
        options = _options(DatastreamOptions, options, kw)
        url = self._url(DATASTREAM_EP, {'pid': pid, 'dsid': dsid}, options.parameters(),
                        "get_datastream")
        return self._send("get_datastream", "GET", url)

    def compare_datastream_checksum(self, pid: str, dsid: str, as_of_datetime=None) -> requests.Response:
        """
        retrieve a datastream's profile after having the server verify its checksum; the
        result of the check is included in the profile.
        """
        return self.get_datastream(pid, dsid, as_of_datetime=as_of_datetime, validate_checksum=True)

    def get_datastream_dissemination(self, pid: str, dsid: str, options: DatastreamContentOptions=None,
                                     stream: bool=False, **kw) -> requests.Response:
        """
        retrieve the content of a datastream

        :param bool stream:  if True, return before the response body is read so that large
                             content can be read in chunks
        """
        options = _options(DatastreamContentOptions, options, kw)
        url = self._url(DSCONTENT_EP, {'pid': pid, 'dsid': dsid}, options.parameters(),
                        "get_datastream_dissemination")
        return self._send("get_datastream_dissemination", "GET", url, stream=stream)

    def get_datastream_history(self, pid: str, dsid: str, options: HistoryOptions=None,
                               **kw) -> requests.Response:
        """
        retrieve the profiles of all versions of a datastream
        """
        options = _options(HistoryOptions, options, kw)
        url = self._url(DSHISTORY_EP, {'pid': pid, 'dsid': dsid}, options.parameters(),
                        "get_datastream_history")
        return self._send("get_datastream_history", "GET", url)

    def get_relationships(self, pid: str, subject: str=None, predicate: str=None,
                          format: str=None) -> requests.Response:
        """
        retrieve the relationships asserted by an object, optionally filtered by subject
        and/or predicate
        """
        rel = RelationshipOptions(subject=subject, predicate=predicate, format=format)
        params = [p for p in rel.parameters() if p[0] in ("subject", "predicate", "format")]
        url = self._url(RELS_EP, {'pid': pid}, params, "get_relationships")
        return self._send("get_relationships", "GET", url)

    ### Management

    def get_next_pid(self, num_pids: int=None, namespace: str=None, format: str="xml") -> requests.Response:
        """
        reserve one or more new object identifiers

        :param int num_pids:   the number of identifiers to reserve (server default: 1)
        :param str namespace:  the namespace to reserve them in (server default: the
                               repository's configured namespace)
        """
        options = NextPIDOptions(num_pids=num_pids, namespace=namespace, format=format)
        url = self._url(NEXTPID_EP, params=options.parameters())
        return self._send("get_next_pid", "POST", url)

    def ingest(self, pid: str=None, file=None, string=None, options: IngestOptions=None,
               **kw) -> requests.Response:
        """
        create a new object from an ingest document (FOXML by default).  Exactly one of
        ``file`` or ``string`` must be given.

        :param str pid:     the identifier for the new object; if not given, the server
                            takes it from the document or mints a new one.
        :param file:        the path to a file containing the ingest document (a
                            :py:class:`~fedorarest.content.FilePath` is also accepted)
        :param str string:  the ingest document itself
        :raises NoContentSpecified:        if neither ``file`` nor ``string`` is given
        :raises AmbiguousContentSpecified: if both are given
        :raises FileReadError:             if ``file`` cannot be read
        """
        options = _options(IngestOptions, options, kw)
        name, src = select_content("ingest", True, file=file, string=string)
        if name == "file":
            field = MultipartField("foxml_file", FieldKind.XML_FILE,
                                   as_source(src, FilePath))
        else:
            field = MultipartField("foxml_string", FieldKind.XML_STRING,
                                   as_source(src, InlineString))
        url = self._url(OBJECT_EP, {'pid': pid or "new"}, options.parameters(), "ingest")
        headers, body = self._multipart(field)
        return self._send("ingest", "POST", url, headers, body)

    def modify_object(self, pid: str, options: ModifyObjectOptions=None, **kw) -> requests.Response:
        """
        update an object's properties (label, owner, state)
        """
        options = _options(ModifyObjectOptions, options, kw)
        url = self._url(OBJECT_EP, {'pid': pid}, options.parameters(), "modify_object")
        return self._send("modify_object", "PUT", url)

    def purge_object(self, pid: str, options: PurgeObjectOptions=None, **kw) -> requests.Response:
        """
        permanently remove an object from the repository
        """
        options = _options(PurgeObjectOptions, options, kw)
        url = self._url(OBJECT_EP, {'pid': pid}, options.parameters(), "purge_object")
        return self._send("purge_object", "DELETE", url)

    def add_datastream(self, pid: str, dsid: str, file=None, string=None, location: str=None,
                       options: AddDatastreamOptions=None, **kw) -> requests.Response:
        """
        add a new datastream to an object.  The content comes from exactly one of ``file``,
        ``string``, or ``location``.  File and string content is uploaded with the
        request; for a location, the server retrieves the content itself and the
        request's Content-Type is taken from ``mime_type`` (default:
        ``application/octet-stream``).

        :param str pid:       the object's identifier
        :param str dsid:      the identifier for the new datastream
        :param file:          the path to a file holding the content
        :param string:        the content itself, as str or bytes
        :param str location:  a URL the server should retrieve the content from
        :raises NoContentSpecified:        if no content source is given
        :raises AmbiguousContentSpecified: if more than one content source is given
        :raises FileReadError:             if ``file`` cannot be read
        """
        options = _options(AddDatastreamOptions, options, kw)
        options, headers, body = self._datastream_content("add_datastream", dsid, options, True,
                                                          file, string, location)
        url = self._url(DATASTREAM_EP, {'pid': pid, 'dsid': dsid}, options.parameters(),
                        "add_datastream")
        return self._send("add_datastream", "POST", url, headers, body)

    def modify_datastream(self, pid: str, dsid: str, file=None, string=None, location: str=None,
                          options: ModifyDatastreamOptions=None, **kw) -> requests.Response:
        """
        update a datastream's content and/or properties.  Content is given as with
        :py:meth:`add_datastream`, except that it is optional:  if no content source is
        given, only the properties are changed.
        :raises AmbiguousContentSpecified: if more than one content source is given
        :raises FileReadError:             if ``file`` cannot be read
        """
        options = _options(ModifyDatastreamOptions, options, kw)
        options, headers, body = self._datastream_content("modify_datastream", dsid, options, False,
                                                          file, string, location)
        url = self._url(DATASTREAM_EP, {'pid': pid, 'dsid': dsid}, options.parameters(),
                        "modify_datastream")
        return self._send("modify_datastream", "PUT", url, headers, body)

    def set_datastream_state(self, pid: str, dsid: str, ds_state: str) -> requests.Response:
        """
        set the state of a datastream:  ``A`` (active), ``I`` (inactive), or ``D`` (deleted)
        """
        return self.modify_datastream(pid, dsid, ds_state=ds_state)

    def set_datastream_versionable(self, pid: str, dsid: str, versionable: bool) -> requests.Response:
        """
        turn versioning of a datastream on or off
        """
        return self.modify_datastream(pid, dsid, versionable=bool(versionable))

    def purge_datastream(self, pid: str, dsid: str, options: PurgeDatastreamOptions=None,
                         **kw) -> requests.Response:
        """
        permanently remove a datastream, or some of its versions, from an object
        """
        options = _options(PurgeDatastreamOptions, options, kw)
        url = self._url(DATASTREAM_EP, {'pid': pid, 'dsid': dsid}, options.parameters(),
                        "purge_datastream")
        return self._send("purge_datastream", "DELETE", url)

    def _relationship_request(self, operation, method, template, pid, predicate, object,
                              subject, is_literal, datatype):
        if not predicate:
            raise MissingParameter("predicate", operation)
        if object is None or object == '':
            raise MissingParameter("object", operation)
        rel = RelationshipOptions(subject=subject, predicate=predicate, object=object,
                                  is_literal=is_literal, datatype=datatype)
        params = [p for p in rel.parameters() if p[0] != "format"]
        url = self._url(template, {'pid': pid}, params, operation)
        return self._send(operation, method, url)

    def add_relationship(self, pid: str, predicate: str, object: str, subject: str=None,
                         is_literal: bool=False, datatype: str=None) -> requests.Response:
        """
        assert a relationship on an object

        :param str predicate:   the relationship's predicate URI
        :param str object:      the object URI or, if ``is_literal`` is True, a literal value
        :param str subject:     the subject URI (server default: the object itself)
        :param str datatype:    the XML Schema datatype of a literal object
        """
        return self._relationship_request("add_relationship", "POST", NEWREL_EP, pid, predicate,
                                          object, subject, is_literal, datatype)

    def purge_relationship(self, pid: str, predicate: str, object: str, subject: str=None,
                           is_literal: bool=False, datatype: str=None) -> requests.Response:
        """
        remove a relationship from an object; the arguments are as for :py:meth:`add_relationship`
        """
        return self._relationship_request("purge_relationship", "DELETE", RELS_EP, pid, predicate,
                                          object, subject, is_literal, datatype)

    def upload(self, file=None, string=None) -> requests.Response:
        """
        upload content to the server's temporary storage.  On success, the response body
        holds a location identifier that can be given as the ``location`` of a later
        :py:meth:`add_datastream` or :py:meth:`modify_datastream`.

        :param file:    the path to a file holding the content
        :param string:  the content itself, as str or bytes
        """
        name, src = select_content("upload", True, file=file, string=string)
        if name == "file":
            field = MultipartField("file", FieldKind.BINARY_FILE, as_source(src, FilePath))
        else:
            if not isinstance(src, (bytes, bytearray)):
                src = as_source(src, InlineString)
            field = MultipartField("file", FieldKind.BINARY_FILE, src)
        headers, body = self._multipart(field)
        return self._send("upload", "POST", self._url(UPLOAD_EP), headers, body)

    def close(self):
        """
        release any connections held by the transport
        """
        if hasattr(self.transport, 'close'):
            self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"FedoraClient(base_url={self.conn.base_url!r})"
