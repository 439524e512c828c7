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
"""Memoized filesystem access for the resolvers.

Each resolution step issues several existence probes (the file itself, then
the file plus every configured extension). ResolverCache memoizes stat
classification, realpath canonicalization, package.json parsing and
tsconfig.json parsing. Entries are computed once per key and never
overwritten; ``clear()`` drops everything for long-running hosts.

The filesystem functions are injected so callers can substitute counting or
in-memory implementations.
"""

from __future__ import annotations

import logging
import os
import stat as stat_module
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Optional, Sequence

from .build_config import BUILD_CONFIG_NAME, BuildConfig, load_build_config
from .manifest import MANIFEST_NAME, PackageConfig, PackageFilter, missing_package_config, parse_manifest
from .urls import normalize_slashes, path_dirname, path_join

logger = logging.getLogger(__name__)


class PathKind(Enum):
    """Classification of a filesystem path.

    Attributes:
        FILE: Regular file (or FIFO)
        DIRECTORY: Directory
        OTHER: Missing, or anything else
    """

    FILE = auto()
    DIRECTORY = auto()
    OTHER = auto()


@dataclass
class CacheStats:
    """Counters of calls that reached the filesystem."""

    stat_calls: int = 0
    realpath_calls: int = 0
    read_calls: int = 0

    @property
    def total(self) -> int:
        return self.stat_calls + self.realpath_calls + self.read_calls


def _realpath(path: str) -> str:
    return os.path.realpath(path, strict=True)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class ResolverCache:
    """Cache context shared by one resolution session.

    Example:
        >>> cache = ResolverCache()
        >>> cache.classify("/")
        <PathKind.DIRECTORY: 2>
    """

    def __init__(
        self,
        stat: Callable[[str], os.stat_result] = os.stat,
        realpath: Callable[[str], str] = _realpath,
        read_text: Callable[[str], str] = _read_text,
    ) -> None:
        """Initialize the cache.

        Args:
            stat: os.stat-compatible function
            realpath: Returns the symlink-resolved path, raising
                FileNotFoundError for missing paths
            read_text: Reads a UTF-8 file
        """
        self._stat = stat
        self._realpath = realpath
        self._read_text = read_text

        self._kinds: Dict[str, PathKind] = {}
        self._realpaths: Dict[str, str] = {}
        self._package_configs: Dict[str, PackageConfig] = {}
        self._build_configs: Dict[str, Optional[BuildConfig]] = {}
        self._nearest_build_configs: Dict[str, Optional[BuildConfig]] = {}

        self.stats = CacheStats()

    # -------------------------------------------------------------------------
    # Stat / realpath
    # -------------------------------------------------------------------------

    def classify(self, path: str) -> PathKind:
        """Classify ``path`` as file, directory, or other (missing)."""
        path = normalize_slashes(path)
        kind = self._kinds.get(path)
        if kind is not None:
            return kind

        self.stats.stat_calls += 1
        try:
            info = self._stat(path)
        except (FileNotFoundError, NotADirectoryError):
            kind = PathKind.OTHER
        else:
            if stat_module.S_ISREG(info.st_mode) or stat_module.S_ISFIFO(info.st_mode):
                kind = PathKind.FILE
            elif stat_module.S_ISDIR(info.st_mode):
                kind = PathKind.DIRECTORY
            else:
                kind = PathKind.OTHER

        return self._kinds.setdefault(path, kind)

    def is_file(self, path: str) -> bool:
        return self.classify(path) is PathKind.FILE

    def is_directory(self, path: str) -> bool:
        return self.classify(path) is PathKind.DIRECTORY

    def canonicalize(self, path: str) -> str:
        """Resolve symlinks in ``path``; missing paths map to themselves."""
        path = normalize_slashes(path)
        value = self._realpaths.get(path)
        if value is not None:
            return value

        self.stats.realpath_calls += 1
        try:
            value = normalize_slashes(self._realpath(path))
        except (FileNotFoundError, NotADirectoryError):
            value = path

        return self._realpaths.setdefault(path, value)

    def read_text(self, path: str) -> Optional[str]:
        """Read a file, or return None if it is not a file. Not cached."""
        if not self.is_file(path):
            return None
        self.stats.read_calls += 1
        return self._read_text(path)

    # -------------------------------------------------------------------------
    # Package manifests
    # -------------------------------------------------------------------------

    def read_package_config(
        self,
        manifest_path: str,
        package_filter: Optional[PackageFilter] = None,
    ) -> PackageConfig:
        """Read the package.json at ``manifest_path``.

        A missing file yields a PackageConfig with ``exists=False``.

        Raises:
            InvalidPackageConfig: If the file is not a valid manifest
        """
        canonical = self.canonicalize(manifest_path)
        config = self._package_configs.get(canonical)
        if config is not None:
            return config

        text = self.read_text(canonical)
        if text is None:
            config = missing_package_config(manifest_path)
        else:
            manifest = parse_manifest(text, manifest_path, package_filter, canonical)
            config = PackageConfig(manifest=manifest, manifest_path=manifest_path, exists=True)

        return self._package_configs.setdefault(canonical, config)

    def find_package_config(
        self,
        start_dir: str,
        package_filter: Optional[PackageFilter] = None,
        module_directories: Sequence[str] = ("node_modules",),
    ) -> PackageConfig:
        """Find the nearest package.json at or above ``start_dir``.

        The walk stops at a module directory (a package installed there is
        its own scope) and at the filesystem root.
        """
        directory = path_join(start_dir)
        while True:
            manifest_path = path_join(directory, MANIFEST_NAME)
            if any(manifest_path.endswith(f"/{name}/{MANIFEST_NAME}") for name in module_directories):
                break
            config = self.read_package_config(manifest_path, package_filter)
            if config.exists:
                return config
            parent = path_dirname(directory)
            if parent == directory:
                break
            directory = parent
        return missing_package_config(manifest_path)

    # -------------------------------------------------------------------------
    # Build configs
    # -------------------------------------------------------------------------

    def read_build_config(self, config_path: str) -> Optional[BuildConfig]:
        """Read and cache the tsconfig.json at ``config_path``."""
        config_path = normalize_slashes(config_path)
        if config_path in self._build_configs:
            return self._build_configs[config_path]
        config = load_build_config(config_path, self.read_text)
        return self._build_configs.setdefault(config_path, config)

    def find_build_config(self, start_dir: str) -> Optional[BuildConfig]:
        """Find the nearest tsconfig.json at or above ``start_dir``.

        Package boundaries are ignored. An unreadable nearest config ends
        the search.
        """
        start_dir = path_join(start_dir)
        if start_dir in self._nearest_build_configs:
            return self._nearest_build_configs[start_dir]

        result = None
        directory = start_dir
        while True:
            config_path = path_join(directory, BUILD_CONFIG_NAME)
            if self.is_file(config_path):
                result = self.read_build_config(config_path)
                break
            parent = path_dirname(directory)
            if parent == directory:
                break
            directory = parent

        return self._nearest_build_configs.setdefault(start_dir, result)

    def clear(self) -> None:
        """Drop every cached entry."""
        self._kinds.clear()
        self._realpaths.clear()
        self._package_configs.clear()
        self._build_configs.clear()
        self._nearest_build_configs.clear()
        logger.debug("Resolver caches cleared")


_default_cache = ResolverCache()


def default_cache() -> ResolverCache:
    """The process-wide cache used when options do not supply one."""
    return _default_cache


def clear_default_cache() -> None:
    _default_cache.clear()
