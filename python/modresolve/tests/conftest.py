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
"""Pytest configuration for modresolve tests.

Puts the ``python/`` source directory on sys.path so the tests run without
installing the package, and provides fixtures that build package trees on
disk.
"""

import json
import os
import sys
from pathlib import Path

import pytest

python_dir = Path(__file__).parent.parent.parent
if str(python_dir) not in sys.path:
    sys.path.insert(0, str(python_dir))

from modresolve import ResolutionContext, ResolverCache, ResolverOptions  # noqa: E402


@pytest.fixture
def root(tmp_path):
    """Canonical (symlink-free) temporary directory."""
    return Path(os.path.realpath(tmp_path))


@pytest.fixture
def make_tree(root):
    """Create files under ``root`` from a {relative path: content} mapping.

    dict/list contents are written as JSON, paths ending in "/" become empty
    directories. Returns ``root``.
    """

    def _make(files):
        for relative, content in files.items():
            path = root / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            path.write_text(content)
        return root

    return _make


@pytest.fixture
def cache():
    return ResolverCache()


@pytest.fixture
def make_ctx(cache):
    """Build a ResolutionContext sharing the test's cache."""

    def _make(**kwargs):
        kwargs.setdefault("basedir", "/")
        return ResolutionContext(ResolverOptions(cache=cache, **kwargs))

    return _make
