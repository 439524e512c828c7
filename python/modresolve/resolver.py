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
"""Resolver hook entry points.

``resolve(request, options)`` picks the import-style algorithm when the
"import" condition is active and the require-style one otherwise. Any
failure is delegated to the host's ``default_resolver``: this resolver only
ever improves on the host's native resolution.

Example:
    >>> resolve("./util", {"basedir": "/repo/src", "defaultResolver": host_resolve})
    '/repo/src/util.js'
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Union

from .cache import clear_default_cache
from .cjs import resolve_require
from .context import ResolutionContext
from .esm import resolve_import
from .node_builtins import is_builtin
from .options import SOURCE_PREFERRED_CONDITION, ResolverOptions
from .source_redirect import redirect_to_source
from .urls import file_url_to_path, path_resolve, path_to_file_url, url_scheme

logger = logging.getLogger(__name__)

OptionsLike = Union[ResolverOptions, Dict[str, Any]]


def as_resolver_options(options: OptionsLike) -> ResolverOptions:
    """Accept either ResolverOptions or a host options mapping."""
    if isinstance(options, ResolverOptions):
        return options
    return ResolverOptions.from_dict(options)


def resolve(request: str, options: OptionsLike) -> str:
    """Resolve ``request`` for the module described by ``options``.

    Args:
        request: Module specifier
        options: ResolverOptions or a host options mapping

    Returns:
        Absolute path, a builtin name, or a ``node:`` URL

    Raises:
        Exception: Only when resolution fails and no default resolver is set
    """
    resolver_options = as_resolver_options(options)
    try:
        return resolve_with_options(request, resolver_options)
    except Exception as e:
        if resolver_options.default_resolver is None:
            raise
        logger.debug(f"Delegating {request!r} to the default resolver: {e}")
        return resolver_options.default_resolver(request, options)


def resolve_with_options(request: str, options: ResolverOptions) -> str:
    """Resolve without the default-resolver fallback.

    Raises:
        ResolutionError: If resolution fails
        ValueError: If options name neither filename nor basedir
    """
    ctx = ResolutionContext(options)
    referrer = path_resolve(options.basedir or "", options.referrer_path())

    if options.is_esm:
        url = resolve_import(request, path_to_file_url(referrer), frozenset(options.conditions), ctx)
        if url_scheme(url) == "node":
            return url
        result = file_url_to_path(url)
    else:
        result = resolve_require(request, referrer, ctx)
        if is_builtin(result) or url_scheme(result) == "node":
            return result

    if ctx.prefer_source:
        redirected = redirect_to_source(result, ctx)
        if redirected is not None:
            return redirected
    return result


def resolve_source_preferred(request: str, options: OptionsLike) -> str:
    """``resolve`` with the "source-preferred" condition added."""
    if isinstance(options, ResolverOptions):
        return resolve(request, options.with_conditions(SOURCE_PREFERRED_CONDITION))

    host_options = dict(options)
    conditions = list(host_options.get("conditions") or ())
    if SOURCE_PREFERRED_CONDITION not in conditions:
        conditions.append(SOURCE_PREFERRED_CONDITION)
    host_options["conditions"] = conditions
    return resolve(request, host_options)


def clear_default_resolver_cache() -> None:
    """Drop every cached filesystem and manifest entry of the default cache."""
    clear_default_cache()
