"""urouter is a small URL router with a thin WSGI server around it.

Routes are declared up front as an ordered list; the first one whose pattern
matches a request path wins:

    router = urouter.Router([
        urouter.Route(show_item, path="category/:id"),
        urouter.Route(show_files, path="files/..."),
        urouter.Route(not_found, path="not-found"),
    ])
    urouter.HttpServer(router).listen(8080)
"""

from .config import ServerConfig
from .errors import (ConfigurationError, InvalidPatternError, InvalidRouteError,
                     InvalidRouteListError, RouterError, ServerStateError)
from .log import LogEvent, Logger, NullLogger, StdlibLogger
from .pattern import (Matcher, PredicateMatcher, RegexMatcher, TemplateMatcher,
                      compile_pattern, compile_regex)
from .router import CompiledRoute, Params, Route, RouteMatch, Router
from .server import HttpError, HttpServer, Redirect, Request, Response
from .util import UrlData, parse_url

__all__ = [
    "ServerConfig",
    "ConfigurationError", "InvalidPatternError", "InvalidRouteError",
    "InvalidRouteListError", "RouterError", "ServerStateError",
    "LogEvent", "Logger", "NullLogger", "StdlibLogger",
    "Matcher", "PredicateMatcher", "RegexMatcher", "TemplateMatcher",
    "compile_pattern", "compile_regex",
    "CompiledRoute", "Params", "Route", "RouteMatch", "Router",
    "HttpError", "HttpServer", "Redirect", "Request", "Response",
    "UrlData", "parse_url",
]
