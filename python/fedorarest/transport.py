"""
The HTTP transport used by :py:class:`~fedorarest.client.FedoraClient` to send requests.

The transport sends exactly one request per call and hands back the
:py:class:`requests.Response` as received.  It does not retry, and it does not turn HTTP
error statuses into exceptions; failures to communicate with the server propagate as the
:py:class:`requests.RequestException` raised by ``requests``.
"""
import logging, time
from collections.abc import Mapping

import requests

from .config import ConnectionConfig, blab
from .version import __version__

__all__ = [ "Transport", "METHODS" ]

METHODS = ("GET", "HEAD", "POST", "PUT", "DELETE")

class Transport:
    """
    a requests-based transport bound to a single service connection.

    Other transports may be substituted for this one; they only need to provide a
    :py:meth:`send` method with the same signature.
    """

    def __init__(self, conn: ConnectionConfig, log: logging.Logger=None, session: requests.Session=None):
        """
        initialize the transport

        :param ConnectionConfig conn:  the connection parameters; its credentials are sent
                                       with every request.
        :param Logger log:    the Logger to send diagnostic messages to; if not provided,
                              a default logger named "fedorarest.transport" will be used.
        :param Session session:  the requests Session to send requests through; if not
                              provided, one will be created.
        """
        if not log:
            log = logging.getLogger("fedorarest.transport")
        self.log = log
        self.conn = conn

        if session is None:
            session = requests.Session()
            session.headers['User-Agent'] = "fedorarest/%s (python-requests/%s)" % \
                                            (__version__, requests.__version__)
        self.session = session

        self._reqkw = {}
        if conn.auth:
            self._reqkw['auth'] = conn.auth
        if conn.ca_bundle:
            self._reqkw['verify'] = conn.ca_bundle
        if conn.timeout:
            self._reqkw['timeout'] = conn.timeout

    def send(self, url: str, method: str="GET", headers: Mapping=None, body: bytes=None,
             stream: bool=False) -> requests.Response:
        """
        send a request and return the server's response.

        :param str url:       the complete request URL
        :param str method:    the HTTP method: GET, HEAD, POST, PUT, or DELETE
        :param dict headers:  extra request headers
        :param bytes body:    the request body; None sends no body
        :param bool stream:   if True, do not read the response body before returning
        :raises requests.RequestException:  if the request could not be completed
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Transport.send(): unsupported HTTP method: {method}")

        blab(self.log, "%s %s headers=%s body=%s bytes", method, url, dict(headers or {}),
             len(body) if body is not None else 0)
        start = time.time()
        resp = self.session.request(method, url, headers=headers, data=body, stream=stream,
                                    **self._reqkw)
        self.log.debug("%s %s => %d (%.3f sec)", method, url, resp.status_code, time.time() - start)
        return resp

    def close(self):
        """
        release the connections held by the underlying session
        """
        self.session.close()
