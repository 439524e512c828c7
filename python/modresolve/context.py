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
"""Per-resolution state threaded through the resolver functions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import AbstractSet, Any, Iterator, Optional, Set, Tuple

from .cache import ResolverCache, default_cache
from .errors import MAX_RESOLUTION_DEPTH, ResolutionCycle
from .options import ResolverOptions

trace_logger = logging.getLogger("modresolve.trace")


def _format_trace_arg(arg: Any) -> str:
    if isinstance(arg, (set, frozenset)):
        return ",".join(sorted(arg))
    return str(arg)


class ResolutionContext:
    """Options, cache and cycle guard for one call into the resolvers.

    Attributes:
        options: The resolver options
        cache: Filesystem/manifest cache (options.cache or the default cache)
        depth: Current package resolution nesting
    """

    def __init__(self, options: ResolverOptions, cache: Optional[ResolverCache] = None) -> None:
        self.options = options
        self.cache = cache or options.cache or default_cache()
        self.depth = 0
        self._active: Set[Tuple[str, str, Tuple[str, ...]]] = set()

    @property
    def prefer_source(self) -> bool:
        return self.options.prefers_source

    def trace(self, step: str, *args: Any) -> None:
        """Log an algorithm step when tracing is enabled."""
        if self.options.trace:
            trace_logger.debug(f"[resolve:{step}] {', '.join(_format_trace_arg(a) for a in args)}")

    @contextmanager
    def guard(self, specifier: str, parent_url: str, conditions: AbstractSet[str]) -> Iterator[None]:
        """Track a nested package resolution.

        Raises:
            ResolutionCycle: If the same resolution is already in progress, or
                nesting exceeds MAX_RESOLUTION_DEPTH
        """
        key = (specifier, parent_url, tuple(sorted(conditions)))
        if key in self._active:
            raise ResolutionCycle(specifier, parent_url, detail="package resolution re-entered")

        with self.descend(specifier, parent_url):
            self._active.add(key)
            try:
                yield
            finally:
                self._active.discard(key)

    @contextmanager
    def descend(self, specifier: str, parent_url: Optional[str] = None) -> Iterator[None]:
        """Enter one level of nesting (a package resolution or a nested target).

        Raises:
            ResolutionCycle: If nesting exceeds MAX_RESOLUTION_DEPTH
        """
        if self.depth >= MAX_RESOLUTION_DEPTH:
            raise ResolutionCycle(specifier, parent_url, detail=f"nesting exceeds {MAX_RESOLUTION_DEPTH}")
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1
