"""
Construction of request URLs for the repository's REST interface.

Resources are addressed with path segments for identifiers (``objects/{pid}/datastreams/{dsID}``)
and query parameters for options.  :py:func:`build_url` combines the two:  each path
argument is percent-encoded once and substituted into the operation's path template, and
the optional parameters are rendered by a :py:class:`QueryBuilder`, which emits only
non-empty values, in the order given, with no stray separators.
"""
from collections.abc import Mapping
from datetime import datetime, timezone
from string import Formatter
from typing import Iterable, Tuple, Any
from urllib.parse import quote

from .exceptions import MissingParameter

__all__ = [ "encode_segment", "format_value", "is_empty", "QueryBuilder", "build_path", "build_url" ]

def encode_segment(value) -> str:
    """
    percent-encode a single path segment or query value.  Every character outside of the
    unreserved set (letters, digits, ``-._~``) is escaped, including ``/``, ``:`` and
    space, so the result can be placed into a path or query string as a single token.
    The value should be given unencoded; encoding an already encoded value will escape
    its ``%`` characters.
    """
    return quote(format_value(value), safe='')

def format_value(value) -> str:
    """
    render a parameter value as the string the service expects:  booleans become ``true``
    or ``false``, datetimes become UTC timestamps with millisecond precision
    (``2012-03-01T12:00:00.000Z``; naive datetimes are assumed to be UTC already), lists
    and tuples become space-delimited lists, and everything else is converted with ``str()``.
    """
    if isinstance(value, (list, tuple)):
        return " ".join(format_value(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + "%03dZ" % (value.microsecond // 1000)
    return str(value)

def is_empty(value) -> bool:
    """
    return True if the value should be treated as absent:  None, an empty string, or an
    empty collection.  Note that False and 0 are *not* empty.
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, set, frozenset, Mapping)):
        return len(value) == 0
    return False

class QueryBuilder:
    """
    an accumulator for the query portion of a request URL.

    Parameters are emitted in the order they are added; those with empty values are
    skipped.  Because the separators are only inserted when the query string is rendered,
    the result never has a leading, trailing, or doubled ``&``, and :py:meth:`apply` only
    adds a ``?`` when at least one parameter was emitted.
    """

    def __init__(self, params: Iterable[Tuple[str, Any]]=None):
        self._pairs = []
        if params:
            self.extend(params)

    @property
    def emitted(self) -> bool:
        """
        True if at least one parameter has been added to the query
        """
        return len(self._pairs) > 0

    def add(self, name: str, value):
        """
        add a ``name=value`` parameter if the value is not empty
        :return:  this builder, so that calls can be chained
        """
        if not name:
            raise ValueError("QueryBuilder.add(): empty parameter name")
        if not is_empty(value):
            self._pairs.append((encode_segment(name), encode_segment(value)))
        return self

    def extend(self, params: Iterable[Tuple[str, Any]]):
        """
        add a sequence of (name, value) pairs in order.  A Mapping may be given as well,
        in which case its items are added in iteration order.
        """
        if isinstance(params, Mapping):
            params = params.items()
        for name, value in params:
            self.add(name, value)
        return self

    def add_flags(self, names: Iterable[str]):
        """
        add a ``name=true`` parameter for each name given.  If a Mapping is given, only
        those names mapped to a true value are added.
        """
        if isinstance(names, Mapping):
            names = [n for n, v in names.items() if v]
        for name in names:
            self.add(name, True)
        return self

    def __len__(self):
        return len(self._pairs)

    def __str__(self):
        return "&".join("=".join(p) for p in self._pairs)

    def apply(self, url: str) -> str:
        """
        append the query string to the given URL
        """
        if not self._pairs:
            return url
        return url + "?" + str(self)

def build_path(template: str, path_args: Mapping=None, operation: str=None) -> str:
    """
    substitute encoded path arguments into a path template.  The template uses
    ``str.format()`` syntax, e.g. ``objects/{pid}/datastreams/{dsid}``; literal portions
    of the template are left untouched.
    :raises MissingParameter:  if a value referenced by the template is missing or empty
    """
    if path_args is None:
        path_args = {}
    encoded = {}
    for _, field, _, _ in Formatter().parse(template):
        if field is None:
            continue
        if is_empty(path_args.get(field)):
            raise MissingParameter(field, operation)
        encoded[field] = encode_segment(path_args[field])
    return template.format(**encoded)

def build_url(base_url: str, template: str, path_args: Mapping=None,
              params: Iterable[Tuple[str, Any]]=None, operation: str=None) -> str:
    """
    build a complete request URL

    :param str base_url:   the service's base URL (e.g. ``http://host:8080/fedora``)
    :param str template:   the operation's path template, relative to ``base_url``
    :param dict path_args: the unencoded values to substitute into the template
    :param params:         the (name, value) query parameters in the order they should
                           appear; a :py:class:`QueryBuilder` may also be given
    :param str operation:  the operation's name, used in error messages
    :raises MissingParameter:  if a value referenced by the template is missing or empty
    """
    url = base_url.rstrip('/') + '/' + build_path(template, path_args, operation).lstrip('/')
    if params is None:
        return url
    if not isinstance(params, QueryBuilder):
        params = QueryBuilder(params)
    return params.apply(url)
