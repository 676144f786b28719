"""
A client library for the REST interface of a Fedora-style digital-object repository.

The client translates repository operations (object lifecycle, datastream management,
search, and dissemination retrieval) into HTTP requests and returns the raw responses
from the service.  The interesting parts live in :py:mod:`fedorarest.request`, which
builds request URLs, and :py:mod:`fedorarest.multipart`, which encodes upload bodies;
:py:class:`fedorarest.client.FedoraClient` ties them to a transport.
"""
try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"

from .exceptions import *
from .config import ConnectionConfig, ConfigurationException
from .content import FilePath, InlineString, DsLocationURI
from .client import FedoraClient
