"""Compile route patterns into matchers.

A route's path is one of three things, and each becomes a matcher once, when
the router is built:

* a string template -- ``"category/:id/..."``
* a raw regular expression -- ``re.compile(r"^item-(?P<id>\\d+)$")``
* a predicate -- ``lambda path: {"id": path[5:]} if path.startswith("item-") else None``

Template rules:

1. Leading/trailing ``/`` are ignored and runs of ``/`` count as one, the
   same normalization the router applies to request paths.
2. A segment starting with ``:`` captures one non-empty segment under that
   name: ``users/:name`` matches ``users/alice`` with ``{"name": "alice"}``.
3. A final ``...`` segment captures whatever is left, slashes included, and
   may capture nothing at all: ``files/...`` matches ``files``,
   ``files/a`` and ``files/a/b``. The capture is stored under ``REST_GROUP``.
4. Everything else matches literally, and the template has to match the
   whole path, not a prefix of it.

Raw regular expressions are used as given with ``search``; anchor them if a
prefix match isn't what you want. A named group called ``REST_GROUP`` in a raw
expression is treated just like the template rest token.
"""

import re
from collections.abc import Mapping
import typing as t

from . import util
from .errors import InvalidPatternError

REST_TOKEN = "..."
REST_GROUP = "_rest"

Captures = dict[str, t.Any]
Predicate = t.Callable[[str], t.Any]
PatternSpec = t.Union[str, re.Pattern, Predicate]


@t.runtime_checkable
class Matcher(t.Protocol):
    def try_match(self, path: str) -> Captures | None: ...


class TemplateMatcher:
    def __init__(self, template: str):
        self.template = template
        self.names, self.has_rest, self.pattern = _compile_template(template)

    def try_match(self, path: str) -> Captures | None:
        if m := self.pattern.fullmatch(path):
            return _groups(m)
        return None

    def __repr__(self):
        return f"TemplateMatcher({self.template!r})"


class RegexMatcher:
    def __init__(self, pattern: re.Pattern[str]):
        self.pattern = pattern

    def try_match(self, path: str) -> Captures | None:
        if m := self.pattern.search(path):
            return _groups(m)
        return None

    def __repr__(self):
        return f"RegexMatcher({self.pattern.pattern!r})"


class PredicateMatcher:
    """Let a callable decide.

    Falsy result: no match. A mapping: the captures. Any other truthy value
    (typically ``True``): a match with no captures.
    """

    def __init__(self, func: Predicate):
        self.func = func

    def try_match(self, path: str) -> Captures | None:
        result = self.func(path)
        if not result:
            return None
        if isinstance(result, Mapping):
            return dict(result)
        return {}

    def __repr__(self):
        return f"PredicateMatcher({util.callable_name(self.func)})"


def compile_pattern(pattern: PatternSpec) -> Matcher:
    """Build the matcher for a route's `path`."""
    if isinstance(pattern, str):
        return TemplateMatcher(pattern)
    if isinstance(pattern, re.Pattern):
        return RegexMatcher(_str_regex(pattern))
    if callable(pattern):
        return PredicateMatcher(pattern)
    raise InvalidPatternError(
        pattern, "expected a template string, a compiled regex or a callable")


def compile_regex(regex: str | re.Pattern) -> RegexMatcher:
    """Build the matcher for a route's `regex`."""
    if isinstance(regex, re.Pattern):
        return RegexMatcher(_str_regex(regex))
    if not isinstance(regex, str):
        raise InvalidPatternError(regex, "expected a regex string or compiled regex")
    try:
        return RegexMatcher(re.compile(regex))
    except re.error as ex:
        raise InvalidPatternError(regex, str(ex)) from ex


def _str_regex(regex: re.Pattern) -> re.Pattern[str]:
    # request paths are str
    if isinstance(regex.pattern, bytes):
        raise InvalidPatternError(regex, "bytes patterns can't match str paths")
    return regex


def _groups(m: re.Match[str]) -> Captures:
    # optional groups that didn't take part in the match come back as None
    return {k: v for k, v in m.groupdict().items() if v is not None}


def _compile_template(template: str) -> tuple[tuple[str, ...], bool, re.Pattern[str]]:
    segments = util.normalize_path(template).split("/")
    if segments == [""]:
        segments = []
    has_rest = bool(segments) and segments[-1] == REST_TOKEN
    if has_rest:
        segments.pop()

    names: list[str] = []
    parts: list[str] = []
    for seg in segments:
        if not seg.startswith(":"):
            parts.append(re.escape(seg))
            continue
        name = seg[1:]
        if not name.isidentifier():
            raise InvalidPatternError(template, f"bad parameter name {name!r}")
        if name == REST_GROUP:
            raise InvalidPatternError(template, f"parameter name {name!r} is reserved")
        if name in names:
            raise InvalidPatternError(template, f"duplicate parameter name {name!r}")
        names.append(name)
        parts.append(f"(?P<{name}>[^/]+)")

    regex = "/".join(parts)
    if has_rest:  # the separator before the rest belongs to the optional group
        sep = "/" if parts else ""
        regex += f"(?:{sep}(?P<{REST_GROUP}>.+))?"
    return tuple(names), has_rest, re.compile(regex)
