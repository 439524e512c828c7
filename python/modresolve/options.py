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
"""Resolver configuration.

ResolverOptions mirrors the options object a test runner hands to a custom
resolver hook. ``from_dict`` accepts the runner's camelCase keys.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from .cache import ResolverCache
from .manifest import PackageFilter
from .urls import path_join

# Presence of this condition selects the import-style (ESM) algorithm
IMPORT_CONDITION = "import"

# Conditions used by require-style lookups of exports/imports maps
REQUIRE_CONDITIONS: FrozenSet[str] = frozenset({"node", "require"})

# Tooling-defined condition asking for original sources over build output
SOURCE_PREFERRED_CONDITION = "source-preferred"

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".js",)
DEFAULT_MODULE_DIRECTORIES: Tuple[str, ...] = ("node_modules",)

# Referrer file name used when only a base directory is known
SYNTHETIC_REFERRER = "dummy.js"

DefaultResolver = Callable[[str, Any], str]


def _as_tuple(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass
class ResolverOptions:
    """Options for a single resolution.

    Attributes:
        basedir: Directory of the requesting module (required without filename)
        filename: Path of the requesting module
        conditions: Active export conditions
        extensions: Extensions tried for extensionless requires, in order
        package_filter: Hook rewriting each raw package.json before caching
        root_dir: Source redirection only applies to configs under this path
        default_resolver: The host's own resolver, used on any failure
        trace: Log every algorithm step
        module_directories: Directory names searched for packages
        paths: Extra directories searched after the module directories
        cache: Cache context; the process-wide cache when None
    """

    basedir: Optional[str] = None
    filename: Optional[str] = None
    conditions: Tuple[str, ...] = ()
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    package_filter: Optional[PackageFilter] = None
    root_dir: Optional[str] = None
    default_resolver: Optional[DefaultResolver] = None
    trace: bool = False
    module_directories: Tuple[str, ...] = DEFAULT_MODULE_DIRECTORIES
    paths: Tuple[str, ...] = ()
    cache: Optional[ResolverCache] = None

    def __post_init__(self) -> None:
        self.conditions = _as_tuple(self.conditions)
        self.extensions = _as_tuple(self.extensions) or DEFAULT_EXTENSIONS
        self.module_directories = _as_tuple(self.module_directories) or DEFAULT_MODULE_DIRECTORIES
        self.paths = _as_tuple(self.paths)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ResolverOptions":
        """Create from a host options mapping (camelCase keys)."""
        return cls(
            basedir=d.get("basedir"),
            filename=d.get("filename"),
            conditions=d.get("conditions") or (),
            extensions=d.get("extensions") or DEFAULT_EXTENSIONS,
            package_filter=d.get("packageFilter"),
            root_dir=d.get("rootDir"),
            default_resolver=d.get("defaultResolver"),
            trace=bool(d.get("trace", False)),
            module_directories=d.get("moduleDirectory") or DEFAULT_MODULE_DIRECTORIES,
            paths=d.get("paths") or (),
            cache=d.get("cache"),
        )

    def with_conditions(self, *conditions: str) -> "ResolverOptions":
        """Copy of these options with extra conditions appended."""
        extra = tuple(c for c in conditions if c not in self.conditions)
        return dataclasses.replace(self, conditions=self.conditions + extra)

    @property
    def is_esm(self) -> bool:
        return IMPORT_CONDITION in self.conditions

    @property
    def prefers_source(self) -> bool:
        return SOURCE_PREFERRED_CONDITION in self.conditions

    def referrer_path(self) -> str:
        """Path of the requesting module, synthesized from basedir if needed."""
        if self.filename:
            return self.filename
        if self.basedir is None:
            raise ValueError("ResolverOptions requires either filename or basedir")
        return path_join(self.basedir, SYNTHETIC_REFERRER)
