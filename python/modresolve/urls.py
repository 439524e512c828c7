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
"""Path and URL helpers shared by the resolvers.

Paths are handled as strings with forward slashes. Trailing slashes carry
meaning in the CommonJS algorithm ("./dir/" only loads as a directory), so
pathlib is not used here.
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote, unquote, urljoin, urlsplit

_URL_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")

# Characters left unescaped when turning a path into a file URL
_PATH_SAFE = "/!$&'()*+,;=:@~"


def normalize_slashes(path: str) -> str:
    return path.replace("\\", "/")


def path_resolve(*parts: str) -> str:
    """Resolve path segments to an absolute, normalized path."""
    return normalize_slashes(os.path.abspath(os.path.join(*parts)))


def path_join(*parts: str) -> str:
    """Join and normalize path segments (drops trailing slashes)."""
    return normalize_slashes(os.path.normpath(os.path.join(*parts)))


def path_dirname(path: str) -> str:
    return normalize_slashes(os.path.dirname(path))


def is_within(path: str, directory: str) -> bool:
    """Whether ``path`` equals ``directory`` or lies beneath it."""
    directory = directory.rstrip("/")
    return path == directory or path.startswith(directory + "/") or directory == ""


def is_url(text: str) -> bool:
    """Whether ``text`` parses as an absolute URL (has a scheme)."""
    return bool(_URL_SCHEME_RE.match(text))


def is_file_url(text: str) -> bool:
    return text.startswith("file:")


def url_scheme(url: str) -> str:
    return urlsplit(url).scheme


def url_pathname(url: str) -> str:
    return urlsplit(url).path


def url_resolve(reference: str, base: str) -> str:
    """URL resolution of ``reference`` against ``base``."""
    return urljoin(base, reference)


def url_directory(url: str) -> str:
    """The URL of the directory containing ``url`` (ends in '/')."""
    return urljoin(url, ".")


def path_to_file_url(path: str) -> str:
    """Convert an absolute path to a file URL, keeping a trailing slash."""
    path = normalize_slashes(path)
    if not path.startswith("/"):
        path = "/" + path
    return "file://" + quote(path, safe=_PATH_SAFE)


def file_url_to_path(url: str) -> str:
    """Convert a file URL to a path.

    Raises:
        ValueError: If ``url`` is not a file URL or encodes a path separator
    """
    parts = urlsplit(url)
    if parts.scheme != "file":
        raise ValueError(f"Not a file URL: {url}")
    if re.search(r"%2f|%5c", parts.path, re.IGNORECASE):
        raise ValueError(f"File URL path must not include encoded / or \\ characters: {url}")
    return unquote(parts.path)
