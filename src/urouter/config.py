"""Server configuration.

ServerConfig is a frozen dataclass: build one, hand it to HttpServer, and it
won't change underneath the running server.
"""

import argparse
from dataclasses import dataclass, field, replace
import typing as t

from .errors import ConfigurationError

DEFAULT_PORT = 8080


@dataclass(frozen=True)
class ServerConfig:
    """Where to listen and which headers every written response carries.

        config = ServerConfig(port=3000, default_headers={"X-Frame-Options": "DENY"})
    """
    host: str = ""
    port: int = DEFAULT_PORT
    threaded: bool = True
    default_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        validate_port(self.port)
        if not isinstance(self.default_headers, dict):
            raise ConfigurationError(
                f"Invalid default_headers (expected a dict): {self.default_headers!r}")

    def with_headers(self, **headers: str) -> t.Self:
        """Copy of this config with extra default headers (underscores become dashes)."""
        extra = {k.replace("_", "-"): v for k, v in headers.items()}
        return replace(self, default_headers=self.default_headers | extra)

    @classmethod
    def from_args(cls, argv: t.Sequence[str] | None = None, **defaults) -> t.Self:
        """Build a config from command line flags; unset flags fall back to `defaults`."""
        args = arg_parser().parse_args(argv)
        overrides = {k: v for k, v in vars(args).items() if v is not None}
        return cls(**(defaults | overrides))


def validate_port(port: t.Any) -> int:
    # bool is an int subclass; True is not a port
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
        raise ConfigurationError(f"Invalid port: {port!r}")
    return port


def arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="urouter",
                                     description="Serve the urouter demo site.")
    parser.add_argument("-p", "--port", type=int, default=None,
                        help=f"port to listen on (default {DEFAULT_PORT})")
    parser.add_argument("--host", default=None,
                        help="interface to bind (default: all)")
    parser.add_argument("--single-threaded", dest="threaded", action="store_false",
                        default=None, help="handle one request at a time")
    return parser
