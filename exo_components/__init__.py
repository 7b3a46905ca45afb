"""exo-components: Pulumi components for Lambda APIs, build projects and static sites.

The packaging core (discovery, bundling, route projection) does not touch
the provisioning engine and can be used on its own::

    from exo_components import discover, build, project

    functions = discover("my-api", "ts")
    archive = build("my-api", "yarn build", "dist")
"""

from exo_components.bundle import build
from exo_components.discovery import ModuleFunction, discover
from exo_components.errors import (
    BuildCommandError,
    ConfigError,
    ExoComponentsError,
    NotFoundError,
    PackagingError,
)
from exo_components.routes import RouteEntry, project, truncate_name

__version__ = "0.1.0"
__all__ = [
    "BuildCommandError",
    "ConfigError",
    "ExoComponentsError",
    "ModuleFunction",
    "NotFoundError",
    "PackagingError",
    "RouteEntry",
    "__version__",
    "build",
    "discover",
    "project",
    "truncate_name",
]
