from tests.util import wsgi
from tests import _config

import json
import typing as t
import urouter
from dataclasses import dataclass
from _pytest.assertion import util as _pytest_util


@dataclass(slots=True)
class _Fault:
    key: str
    want: t.Any
    got: t.Any

    def __str__(self):
        return f"{self.key}: expected={self.want!r}, got={self.got!r}"


def basic_handler(content: str, code: int = 200):
    def handler(request: urouter.Request, response: urouter.Response, params: urouter.Params):
        response.write_head(code, {'Content-Type': 'text/plain'})
        response.write(content)
        response.end()
    return handler


def echo_params(request: urouter.Request, response: urouter.Response, params: urouter.Params):
    """Answer with the match's params as JSON."""
    response.write_head(200, {'Content-Type': 'application/json'})
    response.write(json.dumps(dict(path=params.path, query=params.query,
                                   rest=list(params.rest))))
    response.end()


def make_server(*routes: urouter.Route, **kwargs) -> urouter.HttpServer:
    return urouter.HttpServer(urouter.Router(list(routes)), **kwargs)


def assert_response(resp: wsgi.Response,
                    code: int,
                    content: None | str | bytes | dict | list = None,
                    headers: None | dict[str, str] = None,
                    ):
    __tracebackhide__ = True
    faults = []

    if code != resp.code:
        faults.append(_Fault("Response.code", code, resp.code))

    if content is not None:
        match content:
            case bytes():
                resp_content = resp.output_bytes()
            case str():
                resp_content = resp.output_str()
            case dict() | list():
                resp_content = resp.output_json()
            case _:
                raise ValueError(f"content is unknown type: ({type(content)})")
        if content != resp_content:
            faults.append(_Fault("Response.content", content, resp_content))

    for k, want in {k.lower(): v for k, v in (headers or {}).items()}.items():
        got = resp.headers_normalized.get(k)
        if want != got:
            faults.append(_Fault(f"Response.header[{k}]", want, got))

    if faults:
        if len(faults) == 1 and not _config.verbose:
            msg = str(faults[0])
        else:
            details = [repr(resp), *[f">> {f}" for f in faults]]
            if _config.verbose:
                details.append(">-----RESPONSE DUMP-----")
                details.extend(
                    f">|{line}" for line in resp.dump().splitlines())
            msg = "\n".join(details)
        raise AssertionError(_pytest_util.format_explanation(msg))


def assert_produces_response(
        app: wsgi.WSGIApplication,
        url: str,
        code: int,
        content: str | bytes | dict | list | None = None,
        headers: None | dict[str, str] = None,
        **argv) -> wsgi.Response:
    __tracebackhide__ = True
    got = wsgi.Request(url, **argv).get_response(app)
    assert_response(got, code, content, headers)
    return got
