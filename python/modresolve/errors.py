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
"""Error taxonomy for module resolution.

Every failure raised by the resolvers is a ResolutionError carrying a stable
``code``. The codes group into four families:

- malformed request: INVALID_MODULE_SPECIFIER
- malformed config: INVALID_PACKAGE_CONFIG
- target shape: INVALID_PACKAGE_TARGET
- not found: MODULE_NOT_FOUND, PACKAGE_PATH_NOT_EXPORTED,
  PACKAGE_IMPORT_NOT_DEFINED, UNSUPPORTED_DIR_IMPORT

RESOLUTION_CYCLE is raised when exports/imports indirection does not
terminate.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from .urls import file_url_to_path, is_file_url

# Ceiling on nested package resolutions and exports/imports target nesting
MAX_RESOLUTION_DEPTH = 64


def _display(location: Optional[str]) -> Optional[str]:
    """Render a path or file URL for a message."""
    if location and is_file_url(location):
        return file_url_to_path(location)
    return location


def _with_referrer(referrer: Optional[str]) -> str:
    return f" imported from '{_display(referrer)}'" if referrer else ""


def _with_package_json(package_path: Optional[str]) -> str:
    if not package_path:
        return ""
    return f" in package config '{_display(package_path).rstrip('/')}/package.json'"


class ResolutionError(Exception):
    """Base class for resolution failures.

    Attributes:
        code: Stable error code
        specifier: The request being resolved (if known)
        referrer: The importing file or URL (if known)
        package_path: Directory of the offending package (if known)
    """

    code = "RESOLUTION_ERROR"

    def __init__(
        self,
        message: str,
        specifier: Optional[str] = None,
        referrer: Optional[str] = None,
        package_path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.specifier = specifier
        self.referrer = referrer
        self.package_path = package_path


class ModuleNotFound(ResolutionError):
    code = "MODULE_NOT_FOUND"

    def __init__(self, specifier: str, referrer: Optional[str] = None, kind: str = "package") -> None:
        super().__init__(
            f"Cannot find {kind} '{specifier}'{_with_referrer(referrer)}",
            specifier=specifier,
            referrer=referrer,
        )
        self.kind = kind


class InvalidModuleSpecifier(ResolutionError):
    code = "INVALID_MODULE_SPECIFIER"

    def __init__(self, specifier: str, reason: str, referrer: Optional[str] = None) -> None:
        super().__init__(
            f"Invalid module '{specifier}' {reason}{_with_referrer(referrer)}",
            specifier=specifier,
            referrer=referrer,
        )
        self.reason = reason


class PackagePathNotExported(ResolutionError):
    code = "PACKAGE_PATH_NOT_EXPORTED"

    def __init__(self, package_path: str, subpath: str, referrer: Optional[str] = None) -> None:
        if subpath == ".":
            message = f'No "exports" main defined{_with_package_json(package_path)}{_with_referrer(referrer)}'
        else:
            message = (
                f"Package subpath '{subpath}' is not defined by \"exports\""
                f"{_with_package_json(package_path)}{_with_referrer(referrer)}"
            )
        super().__init__(message, specifier=subpath, referrer=referrer, package_path=package_path)
        self.subpath = subpath


class PackageImportNotDefined(ResolutionError):
    code = "PACKAGE_IMPORT_NOT_DEFINED"

    def __init__(self, specifier: str, package_path: Optional[str] = None, referrer: Optional[str] = None) -> None:
        super().__init__(
            f'Package import specifier "{specifier}" is not defined'
            f"{_with_package_json(package_path)}{_with_referrer(referrer)}",
            specifier=specifier,
            referrer=referrer,
            package_path=package_path,
        )


class InvalidPackageTarget(ResolutionError):
    code = "INVALID_PACKAGE_TARGET"

    def __init__(
        self,
        package_path: str,
        key: str,
        target: Any,
        is_import: bool,
        referrer: Optional[str] = None,
    ) -> None:
        try:
            rendered = json.dumps(target)
        except (TypeError, ValueError):
            rendered = repr(target)
        relative_hint = ""
        if not is_import and isinstance(target, str) and target and not target.startswith("./"):
            relative_hint = "; targets must start with './'"
        location = f"{_with_package_json(package_path)}{_with_referrer(referrer)}"
        if key == "." and not is_import:
            message = f'Invalid "exports" main target {rendered} defined{location}{relative_hint}'
        else:
            field_name = "imports" if is_import else "exports"
            message = f"Invalid \"{field_name}\" target {rendered} defined for '{key}'{location}{relative_hint}"
        super().__init__(message, specifier=key, referrer=referrer, package_path=package_path)
        self.target = target


class InvalidPackageConfig(ResolutionError):
    code = "INVALID_PACKAGE_CONFIG"

    def __init__(self, config_path: str, referrer: Optional[str] = None, detail: Optional[str] = None) -> None:
        suffix = f"; {detail}" if detail else ""
        super().__init__(
            f"Invalid package config '{_display(config_path)}'{_with_referrer(referrer)}{suffix}",
            referrer=referrer,
            package_path=config_path,
        )


class UnsupportedDirImport(ResolutionError):
    code = "UNSUPPORTED_DIR_IMPORT"

    def __init__(self, path: str, referrer: Optional[str] = None) -> None:
        super().__init__(
            f"Directory import '{path}' is not supported when resolving ES modules from '{_display(referrer)}'",
            specifier=path,
            referrer=referrer,
        )


class ResolutionCycle(ResolutionError):
    code = "RESOLUTION_CYCLE"

    def __init__(self, specifier: str, referrer: Optional[str] = None, detail: str = "") -> None:
        suffix = f" ({detail})" if detail else ""
        super().__init__(
            f"Resolution of '{specifier}' does not terminate{suffix}{_with_referrer(referrer)}",
            specifier=specifier,
            referrer=referrer,
        )
