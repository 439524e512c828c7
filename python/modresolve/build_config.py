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
"""tsconfig.json parsing for source redirection.

Only the output geometry matters here: where sources live (rootDir, or the
config directory for composite projects) and where compiled files are written
(outDir, declarationDir, and the dual-format output directories).

References:
    - TypeScript tsconfig: https://www.typescriptlang.org/tsconfig
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .urls import path_dirname, path_join

logger = logging.getLogger(__name__)

BUILD_CONFIG_NAME = "tsconfig.json"

# Top-level tsconfig.json section holding resolver-specific settings
TOOLING_SECTION = "modresolve"

_DUAL_OUTPUTS = ("/dist/cjs", "/dist/esm")


@dataclass(frozen=True)
class BuildConfig:
    """Output geometry of a TypeScript project.

    All directories are absolute.

    Attributes:
        config_path: Path of the tsconfig.json
        root_dir: compilerOptions.rootDir
        out_dir: compilerOptions.outDir
        declaration_dir: compilerOptions.declarationDir
        composite: compilerOptions.composite
        cjs_out_dir: modresolve.cjsOutDir (CommonJS build output)
        esm_out_dir: modresolve.esmOutDir (ES module build output)
    """

    config_path: str
    root_dir: Optional[str] = None
    out_dir: Optional[str] = None
    declaration_dir: Optional[str] = None
    composite: bool = False
    cjs_out_dir: Optional[str] = None
    esm_out_dir: Optional[str] = None

    @property
    def config_dir(self) -> str:
        return path_dirname(self.config_path)

    @property
    def source_root(self) -> Optional[str]:
        """Directory mirrored by the output directories, if any."""
        if self.root_dir:
            return self.root_dir
        if self.composite:
            return self.config_dir
        return None

    def output_dirs(self) -> List[str]:
        """Every directory compiled files may be written to, deduplicated."""
        candidates = [self.out_dir, self.declaration_dir, self.cjs_out_dir, self.esm_out_dir]
        if self.out_dir:
            for suffix in _DUAL_OUTPUTS:
                if self.out_dir.endswith(suffix):
                    sibling = _DUAL_OUTPUTS[1] if suffix == _DUAL_OUTPUTS[0] else _DUAL_OUTPUTS[0]
                    candidates.append(self.out_dir[: -len(suffix)] + sibling)
        result: List[str] = []
        for candidate in candidates:
            if candidate and candidate not in result:
                result.append(candidate)
        return result


def strip_json_comments(text: str) -> str:
    """Strip comments and trailing commas from JSON.

    TypeScript accepts both in tsconfig.json.

    Args:
        text: JSON text with possible comments

    Returns:
        Plain JSON text
    """
    result = []
    i = 0
    in_string = False
    escape_next = False

    while i < len(text):
        char = text[i]

        if escape_next:
            result.append(char)
            escape_next = False
            i += 1
            continue

        if char == '\\' and in_string:
            result.append(char)
            escape_next = True
            i += 1
            continue

        if char == '"':
            in_string = not in_string
            result.append(char)
            i += 1
            continue

        if not in_string:
            # Check for // comment
            if char == '/' and i + 1 < len(text) and text[i + 1] == '/':
                while i < len(text) and text[i] != '\n':
                    i += 1
                continue

            # Check for /* */ comment
            if char == '/' and i + 1 < len(text) and text[i + 1] == '*':
                i += 2
                while i + 1 < len(text) and not (text[i] == '*' and text[i + 1] == '/'):
                    i += 1
                i += 2
                continue

            # Drop a trailing comma before } or ]
            if char == ',':
                j = i + 1
                while j < len(text) and text[j] in " \t\r\n":
                    j += 1
                if j < len(text) and text[j] in "}]":
                    i += 1
                    continue

        result.append(char)
        i += 1

    return ''.join(result)


def _extends_paths(data: Dict[str, Any], config_path: str) -> List[str]:
    """Resolve relative ``extends`` entries; package references are skipped."""
    extends = data.get("extends")
    if isinstance(extends, str):
        extends = [extends]
    if not isinstance(extends, list):
        return []
    paths = []
    for entry in extends:
        if not isinstance(entry, str) or not (entry.startswith(".") or entry.startswith("/")):
            continue
        path = path_join(path_dirname(config_path), entry)
        if not path.endswith(".json"):
            path += ".json"
        paths.append(path)
    return paths


def _collect_options(
    config_path: str,
    read_text: Callable[[str], Optional[str]],
    seen: Tuple[str, ...],
) -> Optional[Dict[str, Any]]:
    """Read a config and its ``extends`` chain into one option set.

    Directory options are made absolute relative to the config declaring
    them; later configs override earlier ones.
    """
    if config_path in seen:
        logger.debug(f"Circular tsconfig extends at {config_path}")
        return None
    text = read_text(config_path)
    if text is None:
        return None
    try:
        data = json.loads(strip_json_comments(text))
    except json.JSONDecodeError as e:
        logger.debug(f"Unparseable build config {config_path}: {e}")
        return None
    if not isinstance(data, dict):
        return None

    merged: Dict[str, Any] = {}
    for base_path in _extends_paths(data, config_path):
        base = _collect_options(base_path, read_text, seen + (config_path,))
        if base:
            merged.update(base)

    config_dir = path_dirname(config_path)
    compiler_options = data.get("compilerOptions")
    if isinstance(compiler_options, dict):
        for key in ("rootDir", "outDir", "declarationDir"):
            value = compiler_options.get(key)
            if isinstance(value, str):
                merged[key] = path_join(config_dir, value)
        if isinstance(compiler_options.get("composite"), bool):
            merged["composite"] = compiler_options["composite"]

    tooling = data.get(TOOLING_SECTION)
    if isinstance(tooling, dict):
        for key in ("cjsOutDir", "esmOutDir"):
            value = tooling.get(key)
            if isinstance(value, str):
                merged[key] = path_join(config_dir, value)

    return merged


def load_build_config(config_path: str, read_text: Callable[[str], Optional[str]]) -> Optional[BuildConfig]:
    """Load a tsconfig.json, following relative ``extends``.

    Args:
        config_path: Absolute path to tsconfig.json
        read_text: Returns file text, or None when the file does not exist

    Returns:
        BuildConfig, or None if the file is missing or invalid
    """
    options = _collect_options(config_path, read_text, ())
    if options is None:
        return None
    return BuildConfig(
        config_path=config_path,
        root_dir=options.get("rootDir"),
        out_dir=options.get("outDir"),
        declaration_dir=options.get("declarationDir"),
        composite=options.get("composite", False),
        cjs_out_dir=options.get("cjsOutDir"),
        esm_out_dir=options.get("esmOutDir"),
    )
