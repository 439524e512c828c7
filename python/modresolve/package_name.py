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
"""Bare specifier parsing: ``@scope/name/sub/path`` -> name + subpath."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidModuleSpecifier


@dataclass(frozen=True)
class PackageName:
    """A bare specifier split into package name and subpath.

    Attributes:
        name: Package name, including the scope for scoped packages
        subpath: "." or "./..." relative to the package root
        is_scoped: Whether the name has an @scope/ prefix
    """

    name: str
    subpath: str
    is_scoped: bool


def parse_package_name(specifier: str, referrer: Optional[str] = None) -> PackageName:
    """Split a bare specifier into package name and subpath.

    Unscoped names end at the first "/", scoped names at the second.

    Args:
        specifier: Bare module specifier (e.g. "lodash/get", "@babel/core")
        referrer: Importing file or URL, used in error messages

    Returns:
        PackageName

    Raises:
        InvalidModuleSpecifier: If the specifier is not a valid package name
    """
    if not specifier:
        raise InvalidModuleSpecifier(specifier, "is not a valid package name", referrer)

    is_scoped = specifier.startswith("@")
    separator = specifier.find("/")
    if not is_scoped:
        name = specifier if separator == -1 else specifier[:separator]
    else:
        if separator == -1:
            raise InvalidModuleSpecifier(specifier, "is not a valid package name", referrer)
        second = specifier.find("/", separator + 1)
        name = specifier if second == -1 else specifier[:second]
        if len(name) == separator + 1:
            raise InvalidModuleSpecifier(specifier, "is not a valid package name", referrer)

    if name.startswith(".") or "\\" in name or "%" in name:
        raise InvalidModuleSpecifier(specifier, "is not a valid package name", referrer)

    return PackageName(name=name, subpath="." + specifier[len(name):], is_scoped=is_scoped)
