"""Shared test fixtures for exo-components."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pulumi
import pytest


def write_file(root: Path, rel: str, content: str = "") -> Path:
    """Write *content* to ``root/rel``, creating parents, and return the path."""
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)
    return p


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A project with two modules, a stray file, and a built dist/ directory.

    Layout::

        src/modules/.gitkeep
        src/modules/users/create.ts
        src/modules/users/list.ts
        src/modules/users/helpers.js
        src/modules/users/lib/util.ts
        src/modules/orders/get.ts
        dist/modules/users/create.js
        dist/modules/users/list.js
        dist/modules/orders/get.js
    """
    root = tmp_path / "api"
    write_file(root, "src/modules/.gitkeep")
    write_file(root, "src/modules/users/create.ts", "export default () => 'create'\n")
    write_file(root, "src/modules/users/list.ts", "export default () => 'list'\n")
    write_file(root, "src/modules/users/helpers.js", "module.exports = {}\n")
    write_file(root, "src/modules/users/lib/util.ts", "export const x = 1\n")
    write_file(root, "src/modules/orders/get.ts", "export default () => 'get'\n")
    for rel in ("users/create.js", "users/list.js", "orders/get.js"):
        write_file(root, f"dist/modules/{rel}", "exports.default = () => null\n")
    return root


@pytest.fixture
def site_tree(tmp_path: Path) -> Path:
    """A static site project whose dist/ already holds built files."""
    root = tmp_path / "site"
    write_file(root, "dist/index.html", "<!DOCTYPE html><html></html>\n")
    write_file(root, "dist/404.html", "<!DOCTYPE html><p>missing</p>\n")
    write_file(root, "dist/css/a.css", "body { margin: 0; }\n")
    return root


class FakeConfig:
    """Stand-in for ``pulumi.Config`` backed by a dict.

    Values are held as strings the way stack config stores them; non-string
    values are JSON-encoded, and typed getters parse like the real ones.
    """

    def __init__(self, values: dict[str, Any]) -> None:
        self._values = {
            k: v if isinstance(v, str) else json.dumps(v) for k, v in values.items()
        }

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def require(self, key: str) -> str:
        if key not in self._values:
            raise pulumi.ConfigMissingError(key)
        return self._values[key]

    def get_int(self, key: str) -> int | None:
        value = self._values.get(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError as exc:
            raise pulumi.ConfigTypeError(key, value, "int") from exc

    def get_float(self, key: str) -> float | None:
        value = self._values.get(key)
        if value is None:
            return None
        try:
            return float(value)
        except ValueError as exc:
            raise pulumi.ConfigTypeError(key, value, "float") from exc

    def get_object(self, key: str) -> Any:
        value = self._values.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise pulumi.ConfigTypeError(key, value, "JSON object") from exc
