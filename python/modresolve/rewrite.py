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
"""Rewrite "#" subpath imports into relative specifiers.

Code transforms targeting runtimes without package imports support replace
``require("#internal/util")`` with ``require("./internal/util.js")``.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Optional

from .cjs import resolve_require
from .context import ResolutionContext
from .errors import ResolutionError
from .options import ResolverOptions
from .urls import normalize_slashes, path_dirname

logger = logging.getLogger(__name__)

REWRITE_CONDITIONS = ("node", "require", "default")


def rewrite_subpath_import(
    specifier: str,
    source_file: str,
    options: Optional[ResolverOptions] = None,
) -> str:
    """Rewrite ``specifier`` as a path relative to ``source_file``.

    Args:
        specifier: Module specifier found in ``source_file``
        source_file: Absolute path of the file being transformed
        options: Extensions, cache and package filter to resolve with

    Returns:
        A "./" or "../" specifier when ``specifier`` is a "#" import that
        resolves to a file, otherwise ``specifier`` unchanged
    """
    if not specifier.startswith("#"):
        return specifier

    directory = path_dirname(source_file)
    base = options or ResolverOptions()
    resolve_options = dataclasses.replace(
        base, basedir=directory, filename=source_file, conditions=REWRITE_CONDITIONS
    )
    ctx = ResolutionContext(resolve_options)

    try:
        resolved = resolve_require(specifier, source_file, ctx)
    except ResolutionError as e:
        logger.debug(f"Leaving {specifier} in {source_file} unchanged: {e}")
        return specifier

    if not ctx.cache.is_file(resolved):
        return specifier

    # Resolved paths are canonical, so compare against the canonical directory
    relative = normalize_slashes(os.path.relpath(resolved, path_dirname(ctx.cache.canonicalize(source_file))))
    return relative if relative.startswith(("./", "../")) else f"./{relative}"

