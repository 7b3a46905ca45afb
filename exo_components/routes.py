"""Route table projection: map discovered functions to routes and handlers.

Naming and handler policies are injected so the same projection serves
targets with different handler conventions::

    routes = project(functions, lambda_name_builder("my-api"), default_handler)
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from exo_components.discovery import ModuleFunction

# Matches any HTTP method
ANY_METHOD = "ANY"

# AWS resource name limit
NAME_CEILING = 64
# Provider appends "-" plus 7 random characters to each resource name
RESERVED_SUFFIX_LENGTH = 8

NameBuilder = Callable[[ModuleFunction], str]
HandlerBuilder = Callable[[ModuleFunction], str]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[\s._\-]+")


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A routable path for one function inside the bundle.

    Attributes:
        path: URL path, ``/{module}/{function}``.
        method: HTTP method matched; always :data:`ANY_METHOD`.
        handler: Identifier of the callable inside the bundle.
        name: Resource name for the deployable unit.
        module: Module the function belongs to.
        function: Function name.

    """

    path: str
    method: str
    handler: str
    name: str
    module: str
    function: str


def project(
    functions: Iterable[ModuleFunction],
    name_builder: NameBuilder,
    handler_builder: HandlerBuilder,
) -> tuple[RouteEntry, ...]:
    """Return one RouteEntry per function, in input order."""
    return tuple(
        RouteEntry(
            path=route_path(fn),
            method=ANY_METHOD,
            handler=handler_builder(fn),
            name=name_builder(fn),
            module=fn.module,
            function=fn.function,
        )
        for fn in functions
    )


def route_path(fn: ModuleFunction) -> str:
    return f"/{fn.module}/{fn.function}"


def default_handler(fn: ModuleFunction) -> str:
    """Handler for a bundle rooted at the distribution directory.

    ``modules/users/create.default`` resolves to the default export of
    ``modules/users/create`` inside the archive.
    """
    return f"modules/{fn.module}/{fn.function}.default"


def truncate_name(
    name: str,
    ceiling: int = NAME_CEILING,
    reserved_suffix_length: int = RESERVED_SUFFIX_LENGTH,
) -> str:
    """Cut *name* so a provider-generated suffix still fits under *ceiling*.

    Names longer than ``ceiling - reserved_suffix_length`` are cut from the
    end to exactly that length.  Collisions caused by truncation are not
    detected here.
    """
    limit = ceiling - reserved_suffix_length
    if limit < 1:
        msg = f"Reserved suffix ({reserved_suffix_length}) leaves no room under ceiling {ceiling}"
        raise ValueError(msg)
    if len(name) > limit:
        return name[:limit]
    return name


def dash_case(text: str) -> str:
    """``myApi_users.createUser`` -> ``my-api-users-create-user``."""
    spaced = _CAMEL_BOUNDARY.sub(" ", text)
    return "-".join(part.lower() for part in _SEPARATORS.split(spaced) if part)


def lambda_name_builder(
    stack_name: str,
    ceiling: int = NAME_CEILING,
    reserved_suffix_length: int = RESERVED_SUFFIX_LENGTH,
) -> NameBuilder:
    """Name builder producing ``{stack}-{module}-{function}`` within the limit."""

    def build_name(fn: ModuleFunction) -> str:
        name = dash_case(f"{stack_name}-{fn.module}-{fn.function}")
        return truncate_name(name, ceiling, reserved_suffix_length)

    return build_name
