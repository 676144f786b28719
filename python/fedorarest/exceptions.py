"""
Exceptions raised by the Fedora REST client.

Errors detected while a request is being put together (missing identifiers, conflicting
content sources, unreadable upload files, and the like) are raised before any network
traffic occurs.  Failures in the transport itself are not wrapped:  they surface as the
:py:class:`requests.RequestException` raised by the ``requests`` library, which this
module re-exports as :py:data:`TransportError`.
"""
from requests import RequestException as TransportError

__all__ = [ "FedoraRestException", "ConfigurationException", "InvalidRequest", "MissingParameter",
            "InvalidParameter", "NoContentSpecified", "AmbiguousContentSpecified", "EncodingError",
            "FileReadError", "TransportError" ]

class FedoraRestException(Exception):
    """
    a base class for all exceptions raised by this package (other than transport failures)
    """

    def __init__(self, message: str=None):
        if not message:
            message = "Unspecified problem using the repository REST interface"
        super(FedoraRestException, self).__init__(message)

class ConfigurationException(FedoraRestException):
    """
    an exception indicating a missing or invalid configuration parameter
    """

    def __init__(self, message: str=None, param: str=None):
        if not message:
            message = "Configuration error"
            if param:
                message += f": bad or missing parameter, {param}"
        super(ConfigurationException, self).__init__(message)
        self.param = param

class InvalidRequest(FedoraRestException):
    """
    an exception indicating that a request could not be constructed from the inputs provided
    by the caller.  It is always raised before any attempt is made to contact the service.

    :ivar str operation:  the name of the operation being prepared (may be None)
    """

    def __init__(self, message: str=None, operation: str=None):
        if not message:
            message = "Unable to construct request"
            if operation:
                message += f" for {operation}"
        super(InvalidRequest, self).__init__(message)
        self.operation = operation

class MissingParameter(InvalidRequest):
    """
    a required argument, such as an object identifier, was not provided or was empty
    """

    def __init__(self, param: str, operation: str=None, message: str=None):
        if not message:
            message = f"Missing required parameter: {param}"
            if operation:
                message = f"{operation}: {message}"
        super(MissingParameter, self).__init__(message, operation)
        self.param = param

class InvalidParameter(InvalidRequest, ValueError):
    """
    an optional parameter was given a value that the service does not accept
    """

    def __init__(self, param: str, value=None, message: str=None, operation: str=None):
        if not message:
            message = f"Invalid value for {param}: {value!r}"
        super(InvalidParameter, self).__init__(message, operation)
        self.param = param
        self.value = value

class NoContentSpecified(InvalidRequest):
    """
    a write operation that requires content was given no content source
    """

    def __init__(self, operation: str=None, message: str=None):
        if not message:
            message = "No content provided"
            if operation:
                message += f" for {operation}"
            message += " (set one of file, string, or location)"
        super(NoContentSpecified, self).__init__(message, operation)

class AmbiguousContentSpecified(InvalidRequest):
    """
    a write operation was given more than one content source

    :ivar list sources:  the names of the content sources that were set
    """

    def __init__(self, sources, operation: str=None, message: str=None):
        self.sources = list(sources)
        if not message:
            message = "Only one content source may be given; got " + ", ".join(self.sources)
            if operation:
                message = f"{operation}: {message}"
        super(AmbiguousContentSpecified, self).__init__(message, operation)

class EncodingError(FedoraRestException):
    """
    a request body could not be encoded, e.g. because of a malformed boundary or field
    """
    pass

class FileReadError(EncodingError):
    """
    a file named as the source of upload content could not be read

    :ivar str path:  the path to the file that was to be read
    """

    def __init__(self, path, message: str=None, cause: Exception=None):
        if not message:
            message = f"{path}: unable to read upload content"
            if cause:
                message += ": " + (getattr(cause, 'strerror', None) or str(cause))
        super(FileReadError, self).__init__(message)
        self.path = path
        self.cause = cause
