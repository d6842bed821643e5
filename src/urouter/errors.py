from dataclasses import dataclass
import typing as t


class RouterError(Exception):
    """Base for every error raised while building a router or server."""


class InvalidRouteListError(RouterError):
    """The route collection is missing, empty, or not a list."""


@dataclass
class InvalidRouteError(RouterError):
    """A single route declaration is malformed."""
    index: int
    reason: str

    def __str__(self):
        return f"Invalid route at index {self.index}: {self.reason}"


@dataclass
class InvalidPatternError(RouterError):
    """A route pattern is of an unsupported kind or does not compile."""
    pattern: t.Any
    reason: str
    index: int | None = None

    def __str__(self):
        where = f" at index {self.index}" if self.index is not None else ""
        return f"Invalid route pattern{where}: {self.pattern!r} ({self.reason})"


class ConfigurationError(RouterError):
    """Server configuration is invalid."""


class ServerStateError(RouterError):
    """Server lifecycle call made out of order (e.g. listening twice)."""
