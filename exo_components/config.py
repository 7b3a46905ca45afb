"""Component configuration.

Each deployable component takes a frozen args record.  Records are built
directly in code or loaded from the stack's Pulumi config::

    config = pulumi.Config("exo")
    args = load_lambda_api_args(config)

Stack config keys are camelCase (``sourceDir``, ``buildCommand``, ...).
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pulumi

from exo_components.bundle import LAMBDA_API_ARCHIVE_NAME
from exo_components.errors import ConfigError

# Source languages a function module may be written in
LANGUAGE_EXTENSIONS: frozenset[str] = frozenset({"ts", "py", "go", "cs", "js", "swift"})

# Lambda limits
MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 900
MIN_MEMORY_MB = 128
MAX_MEMORY_MB = 10_240

# CodeBuild limits
MIN_BUILD_TIMEOUT_MINUTES = 5
MAX_BUILD_TIMEOUT_MINUTES = 480


@dataclass(frozen=True, slots=True)
class EnvironmentVariable:
    """A name/value pair injected into a deployable unit."""

    name: str
    value: str


@dataclass(frozen=True, slots=True)
class LambdaApiArgs:
    """Configuration for a Lambda-backed HTTP API.

    Attributes:
        source_dir: Project root containing ``src/modules``.  Resolved to an
            absolute path on construction.
        source_ext: Extension of function source files (``ts``, ``py``, ...).
        runtime: Lambda runtime identifier, e.g. ``nodejs18.x``.
        timeout: Lambda timeout in seconds.
        memory: Lambda memory size in MB.
        dist_dir_name: Build output directory relative to *source_dir*.
        build_command: Command producing *dist_dir_name*.  Selecting between
            build variants is done by choosing this value, not by the process
            environment.
        pre_build_commands: Commands run before *build_command*.
        environment_variables: Variables set on every function.
        build_timeout: Wall-clock limit in seconds for each build command.
        archive_name: File name of the code archive in *source_dir*.

    """

    source_dir: Path
    source_ext: str
    runtime: str
    timeout: int = 3
    memory: int = 128
    dist_dir_name: str = "dist"
    build_command: str = ""
    pre_build_commands: tuple[str, ...] = ()
    environment_variables: tuple[EnvironmentVariable, ...] = ()
    build_timeout: float | None = None
    archive_name: str = LAMBDA_API_ARCHIVE_NAME

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_dir", Path(self.source_dir).resolve())
        ext = self.source_ext.lstrip(".")
        if ext not in LANGUAGE_EXTENSIONS:
            msg = (
                f"Unsupported source extension {self.source_ext!r}; "
                f"expected one of {', '.join(sorted(LANGUAGE_EXTENSIONS))}"
            )
            raise ConfigError(msg)
        object.__setattr__(self, "source_ext", ext)
        _check_range("timeout", self.timeout, MIN_TIMEOUT_SECONDS, MAX_TIMEOUT_SECONDS)
        _check_range("memory", self.memory, MIN_MEMORY_MB, MAX_MEMORY_MB)
        if self.build_timeout is not None and self.build_timeout <= 0:
            msg = f"build_timeout must be positive, got {self.build_timeout}"
            raise ConfigError(msg)

    @property
    def environment(self) -> dict[str, str]:
        return environment_dict(self.environment_variables)


@dataclass(frozen=True, slots=True)
class CodeBuildArgs:
    """Configuration for a remote build project.

    Attributes:
        source_dir: Directory uploaded as the build source.
        build_command: Command the build runs, e.g. ``yarn run build-script``.
        image: Docker image to build on; must carry every build dependency.
        build_timeout_minutes: Limit after which the build is killed (5..480).
        environment_variables: Variables available to the build.

    """

    source_dir: Path
    build_command: str
    image: str
    build_timeout_minutes: int = 60
    environment_variables: tuple[EnvironmentVariable, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_dir", Path(self.source_dir).resolve())
        if not self.build_command.strip():
            raise ConfigError("build_command must not be empty")
        _check_range(
            "build_timeout_minutes",
            self.build_timeout_minutes,
            MIN_BUILD_TIMEOUT_MINUTES,
            MAX_BUILD_TIMEOUT_MINUTES,
        )


@dataclass(frozen=True, slots=True)
class StaticWebsiteArgs:
    """Configuration for a static website built locally and served from S3."""

    source_dir: Path
    dist_dir: str = "dist"
    pre_build_command: str = ""
    build_command: str = ""
    index_document: str = "index.html"
    error_document: str = "404.html"
    build_timeout: float | None = None
    tags: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_dir", Path(self.source_dir).resolve())

    @property
    def distribution_path(self) -> Path:
        return self.source_dir / self.dist_dir.lstrip("/\\")


def environment_dict(variables: tuple[EnvironmentVariable, ...]) -> dict[str, str]:
    """Collapse variables into a dict; later names override earlier ones."""
    return {var.name: var.value for var in variables}


def parse_environment_variables(raw: Any) -> tuple[EnvironmentVariable, ...]:
    """Parse ``[{"name": ..., "value": ...}]`` or ``{"NAME": "value"}`` config."""
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        return tuple(EnvironmentVariable(str(k), str(v)) for k, v in raw.items())
    if not isinstance(raw, list):
        msg = f"environmentVariables must be a list or mapping, got {type(raw).__name__}"
        raise ConfigError(msg)

    variables: list[EnvironmentVariable] = []
    for item in raw:
        if not isinstance(item, Mapping) or "name" not in item or "value" not in item:
            msg = f"Invalid environment variable entry {item!r}: needs 'name' and 'value'"
            raise ConfigError(msg)
        variables.append(EnvironmentVariable(str(item["name"]), str(item["value"])))
    return tuple(variables)


def parse_tags(raw: Any) -> tuple[tuple[str, str], ...]:
    """Parse a ``{"Key": "value"}`` mapping into sorted, hashable pairs."""
    if raw is None:
        return ()
    if not isinstance(raw, Mapping):
        msg = f"tags must be a mapping, got {type(raw).__name__}"
        raise ConfigError(msg)
    return tuple(sorted((str(k), str(v)) for k, v in raw.items()))


def load_lambda_api_args(config: pulumi.Config) -> LambdaApiArgs:
    """Build LambdaApiArgs from stack config."""
    return LambdaApiArgs(
        source_dir=Path(config.require("sourceDir")),
        source_ext=config.require("sourceExt"),
        runtime=config.require("runtime"),
        environment_variables=parse_environment_variables(
            _get_object(config, "environmentVariables"),
        ),
        pre_build_commands=_commands(config.get("preBuildCommands")),
        **_present(
            timeout=config.get_int("timeout"),
            memory=config.get_int("memory"),
            dist_dir_name=config.get("distDirName"),
            build_command=config.get("buildCommand"),
            build_timeout=config.get_float("buildTimeout"),
        ),
    )


def load_code_build_args(config: pulumi.Config) -> CodeBuildArgs:
    """Build CodeBuildArgs from stack config."""
    return CodeBuildArgs(
        source_dir=Path(config.require("sourceDir")),
        build_command=config.require("buildCommand"),
        image=config.require("image"),
        environment_variables=parse_environment_variables(
            _get_object(config, "environmentVariables"),
        ),
        **_present(build_timeout_minutes=config.get_int("buildTimeoutMinutes")),
    )


def load_static_website_args(config: pulumi.Config) -> StaticWebsiteArgs:
    """Build StaticWebsiteArgs from stack config."""
    return StaticWebsiteArgs(
        source_dir=Path(config.require("sourceDir")),
        **_present(
            dist_dir=config.get("distDir"),
            pre_build_command=config.get("preBuildCommand"),
            build_command=config.get("buildCommand"),
            index_document=config.get("indexDocument"),
            error_document=config.get("errorDocument"),
            build_timeout=config.get_float("buildTimeout"),
        ),
        tags=parse_tags(_get_object(config, "tags")),
    )


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        msg = f"{name} must be between {low} and {high}, got {value}"
        raise ConfigError(msg)


def _commands(raw: str | None) -> tuple[str, ...]:
    """Read a JSON list of commands, or a single plain command."""
    if raw is None:
        return ()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return (raw,)
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        return (raw,)
    if all(isinstance(c, str) for c in value):
        return tuple(value)
    msg = f"preBuildCommands must be a string or list of strings, got {raw!r}"
    raise ConfigError(msg)


def _get_object(config: pulumi.Config, key: str) -> Any:
    try:
        return config.get_object(key)
    except pulumi.ConfigTypeError as exc:
        raise ConfigError(str(exc)) from exc


def _present(**values: Any) -> dict[str, Any]:
    """Drop unset keys so dataclass defaults apply."""
    return {k: v for k, v in values.items() if v is not None}
