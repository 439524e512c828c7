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
"""Redirect compiled output paths back to TypeScript sources.

When the "source-preferred" condition is active, a path such as
``<pkg>/dist/foo.js`` is mapped to ``<pkg>/src/foo.ts`` using the geometry
declared in the package's tsconfig.json, so tests can run against sources
without building first. The compiled file does not need to exist.

Redirection is best effort: every precondition miss, and every error while
reading configuration, means "no redirection".
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Tuple

from .context import ResolutionContext
from .errors import ResolutionError
from .urls import is_within, path_dirname, path_join, path_resolve

logger = logging.getLogger(__name__)

# Compiled extension -> source extensions to try, in priority order
SOURCE_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    ".d.ts": (".ts", ".tsx", ".js", ".jsx"),
    ".d.mts": (".mts", ".mjs"),
    ".d.cts": (".cts", ".cjs"),
    ".js": (".ts", ".tsx", ".js", ".jsx"),
    ".jsx": (".tsx", ".jsx"),
    ".mjs": (".mts", ".mjs"),
    ".cjs": (".cts", ".cjs"),
    ".json": (".json",),
}

# Longest first so ".d.ts" wins over ".ts"
_COMPILED_EXTENSIONS = sorted(SOURCE_EXTENSIONS, key=len, reverse=True)

_MODULE_DIRECTORY_SEGMENT = "/node_modules/"


def split_compiled_extension(relative_path: str) -> Optional[Tuple[str, str]]:
    """Split an output-relative path into stem and compiled extension.

    Extensionless paths are treated as ".js" requests. Returns None for any
    other extension.

    Example:
        >>> split_compiled_extension("lib/foo.d.ts")
        ('lib/foo', '.d.ts')
    """
    for ext in _COMPILED_EXTENSIONS:
        if relative_path.endswith(ext) and len(relative_path) > len(ext):
            return relative_path[: -len(ext)], ext
    if not os.path.splitext(relative_path)[1]:
        return relative_path, ".js"
    return None


def redirect_to_source(path: str, ctx: ResolutionContext) -> Optional[str]:
    """Map a compiled output path to an existing source file.

    Args:
        path: Absolute path of a (possibly missing) compiled file
        ctx: Resolution context

    Returns:
        Path of the source file, or None when no redirection applies
    """
    ctx.trace("REDIRECT_TO_SOURCE", path)
    try:
        return _redirect(path, ctx)
    except (OSError, ResolutionError) as e:
        logger.debug(f"Source redirection of {path} failed: {e}")
        return None


def _redirect(path: str, ctx: ResolutionContext) -> Optional[str]:
    if not path or path.endswith("/"):
        return None

    options = ctx.options
    cache = ctx.cache
    directory = path_dirname(path)

    package_config = cache.find_package_config(directory, options.package_filter, options.module_directories)
    if not package_config.exists:
        return None
    package_path = package_config.package_path

    build_config = cache.find_build_config(directory)
    if build_config is None:
        return None

    # The config must belong to this package, not to one of its dependencies
    config_dir = build_config.config_dir
    if not is_within(config_dir, package_path):
        return None
    if _MODULE_DIRECTORY_SEGMENT in config_dir[len(package_path):] + "/":
        return None

    if options.root_dir and not is_within(build_config.config_path, path_resolve(options.root_dir)):
        return None

    output_dirs = build_config.output_dirs()
    source_root = build_config.source_root
    if not output_dirs or source_root is None:
        return None

    for out_dir in output_dirs:
        if out_dir == source_root or path == out_dir or not is_within(path, out_dir):
            continue
        split = split_compiled_extension(path[len(out_dir.rstrip("/")) + 1:])
        if split is None:
            continue
        stem, compiled_ext = split
        for source_ext in SOURCE_EXTENSIONS[compiled_ext]:
            candidate = path_join(source_root, stem + source_ext)
            if cache.is_file(candidate):
                logger.debug(f"Redirected {path} to source {candidate}")
                return candidate

    return None
