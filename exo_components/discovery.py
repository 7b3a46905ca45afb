"""Function discovery: find deployable functions in a source tree.

Looks in ``{root}/src/modules`` for module directories and treats every file
with the configured extension directly inside one as a function::

    src/modules/users/create.ts   -> module "users", function "create"
    src/modules/users/list.ts     -> module "users", function "list"
    src/modules/.gitkeep          -> ignored (not a directory)
    src/modules/users/lib/x.ts    -> ignored (nested directory)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from exo_components.errors import NotFoundError

logger = logging.getLogger(__name__)

MODULES_DIR = Path("src") / "modules"


@dataclass(frozen=True, slots=True)
class ModuleFunction:
    """One invocable unit of source code.

    Attributes:
        module: Name of the module directory the file lives in.
        function: File name with the extension stripped.
        source_file_path: Path to the source file.
        import_path: Path to the source file without its extension.

    """

    module: str
    function: str
    source_file_path: Path
    import_path: Path


def modules_root(root_path: Path | str) -> Path:
    """Return the modules directory for a source root."""
    return Path(root_path) / MODULES_DIR


def discover(root_path: Path | str, extension: str) -> tuple[ModuleFunction, ...]:
    """Return a ModuleFunction for every ``{module}/{function}.{extension}`` file.

    Results follow directory-listing order, modules first and then the files
    within each module. That order is not stable across filesystems and is only
    meant for display.

    Raises:
        NotFoundError: If ``{root_path}/src/modules`` does not exist.

    """
    root = modules_root(root_path)
    if not root.is_dir():
        raise NotFoundError(root, f"Modules directory not found: {root}")

    suffix = "." + extension.lstrip(".")
    functions: list[ModuleFunction] = []
    module_count = 0

    with os.scandir(root) as modules:
        for module in modules:
            if not module.is_dir():
                continue
            module_count += 1
            functions.extend(_discover_module(Path(module.path), module.name, suffix))

    logger.debug(
        "Discovered %d functions in %d modules under %s",
        len(functions), module_count, root,
    )
    return tuple(functions)


def _discover_module(module_dir: Path, module_name: str, suffix: str) -> list[ModuleFunction]:
    results: list[ModuleFunction] = []
    with os.scandir(module_dir) as entries:
        for entry in entries:
            if entry.is_dir():
                continue
            if not entry.name.endswith(suffix) or entry.name == suffix:
                continue
            func_name = entry.name[: -len(suffix)]
            source = module_dir / entry.name
            results.append(ModuleFunction(
                module=module_name,
                function=func_name,
                source_file_path=source,
                import_path=module_dir / func_name,
            ))
    return results
