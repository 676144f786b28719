"""
Configuration support for the Fedora REST client.

A client is configured with a :py:class:`ConnectionConfig`, an immutable description of
how to reach the repository service.  It is normally created from a configuration
dictionary (see :py:meth:`ConnectionConfig.from_config`) which in turn may be read from a
JSON or YAML file via :py:func:`load_from_file`.  The configuration dictionary supports
these parameters:

``service_endpoint``
    (str) _required_.  the base URL for the repository service, e.g.
    ``http://localhost:8080/fedora``.
``authentication``
    (dict) _optional_.  the credentials to connect with, given as ``user`` and ``pass``
    sub-parameters.  If not provided, it is assumed that authentication is not required.
``ca_bundle``
    (str) _optional_.  the path to a CA certificate bundle that should be used to validate
    the remote server's site certificate.
``timeout``
    (float) _optional_.  the number of seconds to wait for the server to respond.
``logging``
    (dict) _optional_.  parameters for :py:func:`configure_log`:  ``logfile``, ``loglevel``,
    and ``format``.
"""
import os, sys, json, logging
from collections import namedtuple
from collections.abc import Mapping
from copy import deepcopy

import yaml

from .exceptions import ConfigurationException

__all__ = [ "ConnectionConfig", "ConfigurationException", "load_from_file", "merge_config",
            "configure_log", "BLAB", "blab" ]

BLAB = logging.DEBUG - 1
DEF_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

_ConnectionConfig = namedtuple('ConnectionConfig', "base_url username password ca_bundle timeout",
                               defaults=(None, None, None, None))

class ConnectionConfig(_ConnectionConfig):
    """
    the immutable parameters needed to connect to a repository service.

    :ivar str base_url:   the base URL of the service; every request URL is built on it
    :ivar str username:   the user to authenticate as (None if no authentication is needed)
    :ivar str password:   the password for ``username``
    :ivar str ca_bundle:  the path to a CA bundle for verifying the server's certificate
    :ivar float timeout:  the number of seconds to wait for a response (None waits forever)
    """
    __slots__ = ()

    def __new__(cls, base_url, username=None, password=None, ca_bundle=None, timeout=None):
        if not base_url:
            raise ConfigurationException("ConnectionConfig: Missing required parameter: base_url",
                                         "base_url")
        if username and password is None:
            raise ConfigurationException("ConnectionConfig: username given without password",
                                         "password")
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError) as ex:
                raise ConfigurationException(f"ConnectionConfig: timeout is not a number: {timeout}",
                                             "timeout") from ex
            if timeout <= 0:
                raise ConfigurationException(f"ConnectionConfig: timeout must be positive: {timeout}",
                                             "timeout")
        return super(ConnectionConfig, cls).__new__(cls, base_url.rstrip('/'), username, password,
                                                    ca_bundle, timeout)

    @property
    def auth(self):
        """
        the credentials as a (user, password) tuple suitable for ``requests``, or None
        """
        if not self.username:
            return None
        return (self.username, self.password)

    @classmethod
    def from_config(cls, config: Mapping):
        """
        create a ConnectionConfig from a configuration dictionary (see module documentation
        for the supported parameters).
        :raises ConfigurationException:  if a required parameter is missing or a value is invalid
        """
        if not isinstance(config, Mapping):
            raise ConfigurationException("Configuration is not a dictionary: " + repr(config))
        baseurl = config.get('service_endpoint')
        if not baseurl:
            raise ConfigurationException("Missing required config parameter: service_endpoint",
                                         "service_endpoint")

        authcfg = config.get('authentication') or {}
        if not isinstance(authcfg, Mapping):
            raise ConfigurationException("authentication: value is not a dictionary", "authentication")
        user = authcfg.get('user')
        passwd = authcfg.get('pass')
        if user and passwd is None:
            raise ConfigurationException("Missing required config parameter: authentication.pass",
                                         "authentication.pass")

        cabundle = config.get('ca_bundle')
        if cabundle and not os.path.isfile(cabundle):
            raise ConfigurationException(f"{cabundle}: CA bundle file not found", "ca_bundle")

        return cls(baseurl, user, passwd, cabundle, config.get('timeout'))

    def __repr__(self):
        # keep the password out of logs
        return "ConnectionConfig(base_url=%r, username=%r, ca_bundle=%r, timeout=%r)" % \
               (self.base_url, self.username, self.ca_bundle, self.timeout)

def load_from_file(configfile: str) -> Mapping:
    """
    read the configuration from the given file and return it as a dictionary.  The file
    can be either in JSON or YAML format; files ending in ".json" are read as JSON, and
    everything else is read as YAML.
    :raises ConfigurationException:  if the file contents cannot be parsed
    :raises IOError:                 if the file cannot be opened or read
    """
    with open(configfile) as fd:
        try:
            if configfile.endswith('.json'):
                out = json.load(fd)
            else:
                out = yaml.safe_load(fd)
        except (ValueError, yaml.YAMLError) as ex:
            raise ConfigurationException(f"{configfile}: config parsing error: {str(ex)}") from ex

    if out is None:
        out = {}
    if not isinstance(out, Mapping):
        raise ConfigurationException(f"{configfile}: config file does not contain a dictionary")
    return out

def merge_config(primary: Mapping, defconf: Mapping) -> Mapping:
    """
    merge two configurations, with values in ``primary`` overriding those in ``defconf``.
    Sub-dictionaries are merged recursively; all other values are replaced.  Neither input
    is changed.
    """
    out = deepcopy(defconf)
    for key, val in primary.items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def configure_log(logfile: str=None, level=None, format: str=None, config: Mapping=None,
                  addstderr: bool=False):
    """
    set up the root logger to record messages from the client.

    :param str logfile:  a file to write messages to; if None, the ``logfile`` config
                         parameter is consulted.
    :param level:        the minimum level (name or number) to record; default: INFO
    :param str format:   the message format; default: :py:data:`DEF_LOG_FORMAT`
    :param dict config:  the ``logging`` configuration dictionary
    :param bool addstderr:  if True, messages are written to standard error as well
    :return:  the root Logger
    """
    if config is None:
        config = {}
    if not logfile:
        logfile = config.get('logfile')
    if level is None:
        level = config.get('loglevel', logging.INFO)
    if isinstance(level, str):
        lev = logging.getLevelName(level.upper())
        if not isinstance(lev, int):
            raise ConfigurationException(f"Unrecognized log level: {level}", "loglevel")
        level = lev
    if not format:
        format = config.get('format', DEF_LOG_FORMAT)

    rootlog = logging.getLogger()
    fmtr = logging.Formatter(format)
    if logfile:
        hdlr = logging.FileHandler(logfile)
        hdlr.setFormatter(fmtr)
        hdlr.setLevel(level)
        rootlog.addHandler(hdlr)
    if addstderr:
        hdlr = logging.StreamHandler(sys.stderr)
        hdlr.setFormatter(fmtr)
        hdlr.setLevel(level)
        rootlog.addHandler(hdlr)
    if not rootlog.handlers:
        rootlog.addHandler(logging.NullHandler())
    rootlog.setLevel(level)
    return rootlog

def blab(log, msg, *args, **kwargs):
    """
    record request-level detail (URLs, header dictionaries, body sizes) at the BLAB level.
    BLAB sits just below DEBUG, so these messages only appear when the logger and its
    handlers are set to BLAB or lower.

    :param Logger log:  where to send the message
    :param str    msg:  the message, optionally a %-style template
    :param args:        values for the template
    :param kwargs:      passed through to log.log()
    """
    log.log(BLAB, msg, *args, **kwargs)

logging.addLevelName(BLAB, "BLAB")
