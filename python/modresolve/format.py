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
"""Module format detection for resolved files."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .context import ResolutionContext
from .options import ResolverOptions
from .urls import path_dirname


class ModuleFormat(Enum):
    """How a resolved file is loaded.

    Attributes:
        MODULE: ES module
        COMMONJS: CommonJS module
        JSON: JSON document
    """

    MODULE = "module"
    COMMONJS = "commonjs"
    JSON = "json"


_EXPLICIT_FORMATS = {
    ".mjs": ModuleFormat.MODULE,
    ".mts": ModuleFormat.MODULE,
    ".cjs": ModuleFormat.COMMONJS,
    ".cts": ModuleFormat.COMMONJS,
    ".json": ModuleFormat.JSON,
}

# Format decided by the nearest package.json "type"
_SCOPED_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")


def module_format(path: str, ctx: Optional[ResolutionContext] = None) -> Optional[ModuleFormat]:
    """Determine the format of the file at ``path``.

    Args:
        path: Absolute path of a resolved file
        ctx: Resolution context (a default one when omitted)

    Returns:
        ModuleFormat, or None for extensions with no JavaScript format
    """
    for ext, fmt in _EXPLICIT_FORMATS.items():
        if path.endswith(ext):
            return fmt

    if not path.endswith(_SCOPED_EXTENSIONS):
        return None

    ctx = ctx or ResolutionContext(ResolverOptions())
    options = ctx.options
    package_config = ctx.cache.find_package_config(
        path_dirname(path), options.package_filter, options.module_directories
    )
    if package_config.exists and package_config.manifest.type == "module":
        return ModuleFormat.MODULE
    return ModuleFormat.COMMONJS
