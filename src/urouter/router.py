import re
from collections.abc import Mapping
from dataclasses import dataclass, field
import typing as t

from . import util
from .errors import InvalidPatternError, InvalidRouteError, InvalidRouteListError
from .log import LogEvent, Logger, ensure_logger
from .pattern import REST_GROUP, Matcher, PatternSpec, compile_pattern, compile_regex

NOT_FOUND_PATH = "not-found"


class HandlerFn(t.Protocol):
    def __call__(self, request: t.Any, response: t.Any, params: "Params",
                 /) -> t.Any: ...


@dataclass(frozen=True)
class Route:
    """A route declaration: a handler plus exactly one of `path` or `regex`.

    `path` is a template string, a compiled regex or a predicate (see
    `urouter.pattern`). `regex` is a raw regex, either compiled or as a
    string. A route whose template is "not-found" becomes the router's
    fallback.
    """
    func: HandlerFn | None = None
    path: PatternSpec | None = None
    regex: str | re.Pattern | None = None
    name: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, t.Any]) -> t.Self:
        return cls(func=data.get("func"), path=data.get("path"),
                   regex=data.get("regex"), name=data.get("name"))

    @property
    def is_not_found(self) -> bool:
        return isinstance(self.path, str) and util.trim(self.path) == NOT_FOUND_PATH


@dataclass(frozen=True)
class CompiledRoute:
    route: Route
    matcher: Matcher

    @property
    def func(self) -> HandlerFn:
        return t.cast(HandlerFn, self.route.func)

    @property
    def path(self) -> PatternSpec | None:
        return self.route.path

    @property
    def name(self) -> str:
        if self.route.name:
            return self.route.name
        if isinstance(self.route.path, str):
            return self.route.path
        return repr(self.matcher)


@dataclass(frozen=True)
class Params:
    """Everything a match pulled out of the url.

    Path captures, the rest-of-path pieces and the query string are kept
    apart, so a query key can never shadow a path parameter.
    """
    path: dict[str, t.Any] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    rest: tuple[str, ...] = ()

    def __getitem__(self, name: str) -> t.Any:
        return self.path[name]

    def __contains__(self, name: object) -> bool:
        return name in self.path

    def get(self, name: str, default: t.Any = None) -> t.Any:
        return self.path.get(name, default)

    @property
    def vars(self) -> dict[str, t.Any]:
        """Query and path values in one dict; path values win."""
        return self.query | self.path


@dataclass(frozen=True)
class RouteMatch:
    route: CompiledRoute
    params: Params


class Router:
    """Ordered route table. The first route that matches a path wins.

    Usage::

        router = Router([
            Route(show_item, path="category/:id"),
            Route(show_files, path="files/..."),
            Route(not_found, path="not-found"),
        ])
        if match := router.match_url("/category/42?sort=asc"):
            match.route.func(request, response, match.params)

    Routes are validated and compiled here, once; a router never changes
    after construction, so `match_url` is safe to call from any thread.
    """

    def __init__(self, routes: t.Sequence[Route | Mapping[str, t.Any]],
                 logger: Logger | None = None):
        if not isinstance(routes, (list, tuple)) or not routes:
            raise InvalidRouteListError(f"Invalid routes list: {routes!r}")
        self._logger = ensure_logger(logger)
        compiled: list[CompiledRoute] = []
        not_found: CompiledRoute | None = None
        for index, decl in enumerate(routes):
            route = self._compile_route(index, decl)
            if route.route.is_not_found:
                if not_found is not None:
                    raise InvalidRouteError(index, "more than one not-found route")
                not_found = route
            else:
                compiled.append(route)
        self._routes = tuple(compiled)
        self._not_found_route = not_found

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        """The matchable routes in precedence order (not-found excluded)."""
        return self._routes

    @property
    def not_found_route(self) -> CompiledRoute | None:
        return self._not_found_route

    def _compile_route(self, index: int, decl: Route | Mapping[str, t.Any]) -> CompiledRoute:
        if isinstance(decl, Mapping):
            decl = Route.from_mapping(decl)
        elif not isinstance(decl, Route):
            raise InvalidRouteError(index, f"expected a Route or a mapping, got {decl!r}")
        if not callable(decl.func):
            raise InvalidRouteError(index, f"route function is not callable: {decl.func!r}")
        if decl.path is None and decl.regex is None:
            raise InvalidRouteError(index, "missing route path")
        if decl.path is not None and decl.regex is not None:
            raise InvalidRouteError(index, "route declares both path and regex")
        try:
            if decl.regex is not None:
                matcher = compile_regex(decl.regex)
            else:
                matcher = compile_pattern(decl.path)
        except InvalidPatternError as ex:
            ex.index = index
            raise
        self._logger.log(LogEvent("route.compiled", {"index": index, "matcher": matcher}))
        return CompiledRoute(decl, matcher)

    def parse_url(self, url: str) -> util.UrlData:
        return util.parse_url(url)

    def match_url(self, url: str) -> RouteMatch | None:
        """Find the route for a raw url ("<path>[?<query>]", no host).

        Falls back to the not-found route when nothing matches; returns
        None when there is no such route either.
        """
        url_data = self.parse_url(url)
        for route in self._routes:
            if (captures := route.matcher.try_match(url_data.path)) is not None:
                self._logger.log(LogEvent("url.matched", {
                    "url": url, "path": url_data.path, "route": route.name}))
                return RouteMatch(route, self._make_params(captures, url_data))
        self._logger.log(LogEvent("url.not_found", {"url": url, "path": url_data.path}))
        if self._not_found_route is None:
            return None
        return RouteMatch(self._not_found_route, Params(query=url_data.query_params))

    @staticmethod
    def _make_params(captures: dict[str, t.Any], url_data: util.UrlData) -> Params:
        # captures are still percent-encoded; split the rest before decoding so
        # an encoded "/" stays inside its piece
        rest = captures.pop(REST_GROUP, None)
        return Params(path={k: util.unquote(v) for k, v in captures.items()},
                      query=url_data.query_params,
                      rest=tuple(util.unquote(p) for p in rest.split("/")) if rest else ())
