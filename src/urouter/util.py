import dataclasses
import re
import urllib.parse
import typing as t

_SLASH_RUN_RE = re.compile(r"//+")


@dataclasses.dataclass(frozen=True, slots=True)
class UrlData:
    """A raw request url split into its normalized path and query parts."""
    path: str
    query_string: str | None
    query_params: dict[str, str]


def trim(val: str, char: str = "/") -> str:
    """Strip every leading and trailing `char`."""
    return val.strip(char)


def normalize_path(path: str) -> str:
    """Collapse runs of '/' and drop the leading/trailing one.

    Request paths and route templates both go through here, so "//a//b/"
    and "a/b" are the same path on either side of the match.
    """
    return trim(_SLASH_RUN_RE.sub("/", path))


def parse_query(query_string: str | None) -> dict[str, str]:
    # parse_qsl splits on '&' then on the first '='; dict() keeps the last
    # value of a repeated key.
    if not query_string:
        return {}
    return dict(urllib.parse.parse_qsl(query_string, keep_blank_values=True))


def parse_url(url: str) -> UrlData:
    path, sep, query_string = url.partition("?")
    return UrlData(normalize_path(path),
                   query_string if sep else None,
                   parse_query(query_string))


def callable_name(func: t.Callable) -> str:
    """Best-effort readable name for a handler or predicate."""
    return getattr(func, "__qualname__", None) or type(func).__qualname__


def unquote(val: t.Any) -> t.Any:
    """Percent-decode a captured string (UTF-8); other values pass through."""
    return urllib.parse.unquote(val) if isinstance(val, str) else val
