# Copyright Rand Arete @ Ananke 2025
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================
"""package.json manifests and package scopes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .errors import InvalidPackageConfig
from .targets import SubpathMap, parse_exports, parse_imports
from .urls import path_dirname

MANIFEST_NAME = "package.json"

# (raw manifest, manifest path, package directory) -> rewritten raw manifest
PackageFilter = Callable[[Dict[str, Any], str, str], Any]


@dataclass(frozen=True)
class Manifest:
    """The fields of package.json that drive resolution.

    Attributes:
        name: Package name (None unless a string)
        main: Legacy entry point (None unless a string)
        type: "module", "commonjs", or "none" when absent/unrecognized
        exports: Normalized exports map
        imports: Normalized imports map
        raw: The manifest as read (after any package filter)
    """

    name: Optional[str] = None
    main: Optional[str] = None
    type: str = "none"
    exports: Optional[SubpathMap] = None
    imports: Optional[SubpathMap] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


EMPTY_MANIFEST = Manifest()


@dataclass(frozen=True)
class PackageConfig:
    """Snapshot of a (possibly missing) package.json.

    Attributes:
        manifest: Parsed manifest (empty when the file does not exist)
        manifest_path: Path of the package.json that was probed
        exists: Whether the file exists
    """

    manifest: Manifest
    manifest_path: str
    exists: bool

    @property
    def package_path(self) -> str:
        """Directory containing the manifest."""
        return path_dirname(self.manifest_path)


def missing_package_config(manifest_path: str) -> PackageConfig:
    return PackageConfig(manifest=EMPTY_MANIFEST, manifest_path=manifest_path, exists=False)


def manifest_from_raw(raw: Dict[str, Any]) -> Manifest:
    """Build a Manifest from a decoded package.json object."""
    name = raw.get("name")
    main = raw.get("main")
    module_type = raw.get("type")
    return Manifest(
        name=name if isinstance(name, str) else None,
        main=main if isinstance(main, str) else None,
        type=module_type if module_type in ("module", "commonjs") else "none",
        exports=parse_exports(raw.get("exports")),
        imports=parse_imports(raw.get("imports")),
        raw=raw,
    )


def parse_manifest(
    text: str,
    manifest_path: str,
    package_filter: Optional[PackageFilter] = None,
    canonical_path: Optional[str] = None,
) -> Manifest:
    """Parse package.json text.

    Args:
        text: File contents
        manifest_path: Path used in error messages
        package_filter: Optional hook rewriting the raw manifest
        canonical_path: Symlink-resolved manifest path handed to the filter

    Raises:
        InvalidPackageConfig: If the text is not a JSON object, or the filter
            does not return one
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidPackageConfig(manifest_path, detail=str(e)) from e
    except RecursionError as e:
        raise InvalidPackageConfig(manifest_path, detail="package.json nests too deeply") from e
    if not isinstance(raw, dict):
        raise InvalidPackageConfig(manifest_path, detail="package.json must contain an object")

    if package_filter is not None:
        filter_path = canonical_path or manifest_path
        raw = package_filter(raw, filter_path, path_dirname(filter_path))
        if not isinstance(raw, dict):
            raise InvalidPackageConfig(manifest_path, detail="package filter did not return an object")

    return manifest_from_raw(raw)
