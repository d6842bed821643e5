"""A small demo site: request dump, item properties, custom 404.

    $ urouter-demo --port 8080
    $ curl localhost:8080/cat-id-props/shoes/42/color/size
"""

import html
import json
import logging
import re
import typing as t

from .config import ServerConfig
from .log import Logger, StdlibLogger
from .router import Params, Route, Router
from .server import HttpServer, Request, Response

_PLURAL_RE = re.compile(r"/(cat-id-prop)s/")


class DemoSite:
    def __init__(self, config: ServerConfig | None = None, logger: Logger | None = None):
        self.router = Router(self.routes(), logger=logger)
        self.server = HttpServer(self.router, logger=logger, config=config)

    def routes(self) -> list[Route]:
        return [
            Route(self.print_request, path="/print-request"),
            Route(self.cat_id_prop, path="cat-id-prop/:cat/:id/:prop"),
            Route(self.cat_id_props, path="cat-id-props/:cat/:id/..."),
            Route(self.not_found, path="not-found"),
        ]

    def print_request(self, request: Request, response: Response, params: Params):
        data = "".join(
            f"<br><b>{html.escape(k)}:</b> {html.escape(json.dumps(v, default=repr))}"
            for k, v in sorted(request.environ.items()))
        self.server.write_html(response, data)

    def cat_id_prop(self, request: Request, response: Response, params: Params):
        data = (f"Displaying property '{params['prop']}' of item #{params['id']} "
                f"from category '{params['cat']}'.")
        self.server.write_html(response, html.escape(data, quote=False))

    def cat_id_props(self, request: Request, response: Response, params: Params):
        if len(params.rest) == 1:  # a single property has its own url
            to = _PLURAL_RE.sub(r"/\1/", self.server.get_url(request), count=1)
            return self.server.redirect(response, to)
        data = (f"Displaying properties '{','.join(params.rest)}' of item "
                f"#{params['id']} from category '{params['cat']}'.")
        self.server.write_html(response, html.escape(data, quote=False))

    def not_found(self, request: Request, response: Response, params: Params):
        self.server.write_html(response, "<h1>Not Found</h1>", 404)


def main(argv: t.Sequence[str] | None = None):
    """Program entry point."""
    config = ServerConfig.from_args(argv)
    logging.basicConfig(level=logging.DEBUG,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    site = DemoSite(config, logger=StdlibLogger())
    site.server.listen()


if __name__ == "__main__":
    main()
