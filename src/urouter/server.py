import contextlib
from dataclasses import dataclass, field
import html
import http
import json
import socketserver
import wsgiref.headers
import wsgiref.simple_server
import wsgiref.types
import urllib.parse
import typing as t

from .config import ServerConfig, validate_port
from .errors import ServerStateError
from .log import LogEvent, Logger, ensure_logger
from .router import Router

Headers = wsgiref.headers.Headers
_AnyHeaders: t.TypeAlias = dict[str, str] | list[tuple[str, str]] | Headers

NOT_FOUND_BODY = "Not Found."
REDIRECT_CODES = (301, 302)
# everything RFC 3986 allows unescaped in a path; "?", "#" and "%" get re-quoted
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass(kw_only=True)
class HttpError(Exception):
    """Throwable HTTP Error.

    Raise one from a handler to answer with that status instead of whatever
    the handler had written so far.
    """
    code: int = field(kw_only=False, default=500)
    short: str | None = field(kw_only=False, default=None)
    desc: str | None = None
    headers: dict[str, str] = field(default_factory=dict)  # type:ignore

    def default_headers(self) -> dict[str, str]: return {}
    def all_headers(self): return self.default_headers() | self.headers
    def has_cause(self): return self.__cause__ is not None

    def causes(self):
        cause = self.__cause__
        seen = []  # circular reference prevention
        while cause:
            if cause in seen:
                break
            yield cause
            seen.append(cause)
            cause = cause.__cause__

    @classmethod
    @contextlib.contextmanager
    def wrap_exceptions(cls, *args, **kwargs):
        try:
            yield
        except HttpError:
            raise
        except Exception as ex:
            raise cls(*args, **kwargs) from ex


@dataclass(kw_only=True)
class Redirect(HttpError):
    location: str
    code: int = field(kw_only=False, default=302)

    def default_headers(self):
        return {'Location': self.location}


@dataclass
class Request:
    environ: wsgiref.types.WSGIEnvironment
    url: str
    path: str
    method: str
    headers: Headers

    @classmethod
    def from_wsgi(cls, environ: wsgiref.types.WSGIEnvironment):
        hlist = [(k[5:].replace("_", "-").title(), v)
                 for k, v in environ.items() if k.startswith("HTTP_")]
        path = environ.get('PATH_INFO', '') or '/'
        query = environ.get('QUERY_STRING', '')
        # PATH_INFO arrives percent-decoded as latin-1; undo that so the router
        # sees the url the client sent.
        raw_path = urllib.parse.quote(path, safe=_PATH_SAFE, encoding='latin-1')
        url = f"{raw_path}?{query}" if query else raw_path
        return cls(environ, url, path, environ.get('REQUEST_METHOD', 'GET'),
                   Headers(hlist))

    @property
    def scheme(self) -> str:
        return self.environ.get('wsgi.url_scheme', 'http')

    @property
    def host(self) -> str:
        if host := self.headers.get('Host'):
            return host
        name, port = self.environ.get('SERVER_NAME', ''), self.environ.get('SERVER_PORT', '')
        return f"{name}:{port}" if port else name



@dataclass(kw_only=True)
class Response:
    """Status, headers and body of one response, built up by the handler.

    Handlers rarely touch this directly; they pass it to one of the
    HttpServer writers (write_html, write_json, redirect).
    """
    code: int = 200
    headers: Headers = field(default_factory=lambda: Headers([]))
    charset: str = 'utf-8'
    http_error: HttpError | None = None
    ended: bool = field(default=False, init=False)

    def __post_init__(self):
        self._chunks: list[bytes] = []
        if self.http_error and self.http_error.code:
            self.code = self.http_error.code

    def write_head(self, code: int, headers: _AnyHeaders | None = None) -> None:
        self._check_open()
        self.code = code
        items = headers if isinstance(headers, list) else (headers or {}).items()
        for k, v in items:
            self.headers[k] = v

    def write(self, data: str | bytes) -> None:
        self._check_open()
        self._chunks.append(data.encode(self.charset) if isinstance(data, str) else data)

    def end(self) -> None:
        self.ended = True

    @property
    def body(self) -> bytes:
        return b''.join(self._chunks)

    def _check_open(self):
        if self.ended:
            raise ServerStateError("Response already ended")

    def _http_status(self) -> str:
        """Get the HTTP status text for the current response code."""
        try:
            return http.HTTPStatus(self.code).phrase
        except ValueError:
            return "StatusPhraseUnknown"

    def _wsgi_start_response_args(self):
        """Get the args that will go to WSGI's start_response()."""
        status_line = f"{self.code} {self._http_status()}"
        if self.http_error and self.http_error.has_cause():
            cause = self.http_error.__cause__
            return (status_line, self.headers.items(),
                    (type(cause), cause, cause.__traceback__))
        return (status_line, self.headers.items(), None)

    def _wsgi_response(self) -> t.Iterable[bytes]:
        return tuple(self._chunks)


class HttpServer:
    """WSGI front end for a Router.

    Every request is matched against the router and the winning route's
    function is called as ``func(request, response, params)``. Requests that
    match nothing (and find no not-found route) get a bare 404.

        server = HttpServer(Router(routes), config=ServerConfig(port=3000))
        server.listen()
    """

    def __init__(self, router: Router, logger: Logger | None = None,
                 config: ServerConfig | None = None):
        self.router = router
        self.config = config or ServerConfig()
        self._logger = ensure_logger(logger)
        self._server: wsgiref.simple_server.WSGIServer | None = None
        self._listening_on: int | None = None

    # Writers -------------------------------------------------------------

    def write_html(self, response: Response, data: str | bytes, code: int = 200,
                   headers: dict[str, str] | None = None) -> None:
        self._write(response, data, code, headers, 'text/html')

    def write_json(self, response: Response, data: t.Any, code: int = 200,
                   headers: dict[str, str] | None = None) -> None:
        """Write `data` as JSON; strings and bytes are taken as already encoded."""
        if not isinstance(data, (str, bytes)):
            data = json.dumps(data)
        self._write(response, data, code, headers, 'application/json')

    def redirect(self, response: Response, to: str, code: int = 301) -> None:
        if code not in REDIRECT_CODES:
            raise ValueError(f"Invalid redirect code: {code}")
        self._logger.log(LogEvent("redirect", {"to": to, "code": code}))
        response.write_head(code, {'Location': to})
        response.end()

    def _write(self, response, data, code, headers, content_type):
        merged = self.config.default_headers | (headers or {})
        merged['Content-Type'] = f"{content_type};charset={response.charset}"
        response.write_head(code, merged)
        response.write(data)
        response.end()

    def get_url(self, request: Request) -> str:
        """Absolute url of the request as the client addressed it."""
        return f"{request.scheme}://{request.host}{request.url}"

    # Request Handling ----------------------------------------------------

    def handle_request(self, request: Request) -> Response:
        try:
            with HttpError.wrap_exceptions():
                return self._dispatch(request)
        except HttpError as http_error:
            self._logger.log(LogEvent("request.error", {
                "url": request.url, "code": http_error.code,
                "causes": [repr(c) for c in http_error.causes()]}))
            return self.error_response(http_error)

    def _dispatch(self, request: Request) -> Response:
        response = Response()
        matched = self.router.match_url(request.url)
        if matched is None:
            response.write_head(404)
            response.write(NOT_FOUND_BODY)
            response.end()
            return response
        matched.route.func(request, response, matched.params)
        return response

    def error_response(self, http_error: HttpError) -> Response:
        resp = Response(http_error=http_error)
        headers = self.config.default_headers | http_error.all_headers()
        headers['Content-Type'] = f"text/html;charset={resp.charset}"
        resp.write_head(resp.code, headers)
        resp.write(f"<h2>HTTP {resp.code} - {resp._http_status()}</h2>\n")
        if http_error.short:
            resp.write(f"<h3>{html.escape(http_error.short)}</h3>\n")
        if http_error.desc:
            resp.write(f"<div>{html.escape(http_error.desc)}</div>\n")
        resp.end()
        return resp

    def __call__(self, environ, start_response):
        """WSGI entrypoint."""
        request = Request.from_wsgi(environ)
        self._logger.log(LogEvent("request.start", {"method": request.method, "url": request.url}))
        response = self.handle_request(request)
        self._logger.log(LogEvent("request.end", {"url": request.url, "code": response.code}))
        start_response(*response._wsgi_start_response_args())
        return response._wsgi_response()

    # Server Running ----------------------------------------------------

    def create_server(self, port: int | None = None) -> wsgiref.simple_server.WSGIServer:
        if self._server is not None:
            raise ServerStateError("Server already created")
        port = validate_port(self.config.port if port is None else port)
        svr = wsgiref.simple_server.WSGIServer
        if self.config.threaded:  # Add threading mix-in
            svr = type('ThreadedServer', (socketserver.ThreadingMixIn, svr),
                       {'daemon_threads': True})
        self._server = wsgiref.simple_server.make_server(
            self.config.host, port, self, server_class=svr)
        return self._server

    def listen(self, port: int | None = None) -> None:
        """Bind (creating the server if needed) and serve until Ctrl+C."""
        if self._listening_on is not None:
            raise ServerStateError("Server already listening")
        if self._server is None:
            self.create_server(port)
        elif port is not None and port != self._server.server_address[1]:
            raise ServerStateError(
                f"Server already created on port {self._server.server_address[1]}, not {port}")
        server = self._server
        self._listening_on = server.server_address[1]
        self._logger.log(LogEvent("server.listening", {
            "host": self.config.host, "port": self._listening_on}))
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            self.close()

    def close(self) -> None:
        if self._server is not None:
            self._server.server_close()
        self._server = None
        self._listening_on = None
