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
"""Node.js built-in module names.

References:
    - Node.js Modules: https://nodejs.org/api/modules.html#built-in-modules
"""

from __future__ import annotations

from typing import FrozenSet

NODE_BUILTIN_MODULES: FrozenSet[str] = frozenset({
    # Core
    "assert",
    "async_hooks",
    "buffer",
    "child_process",
    "cluster",
    "console",
    "constants",
    "crypto",
    "dgram",
    "diagnostics_channel",
    "dns",
    "domain",
    "events",
    "fs",
    "http",
    "http2",
    "https",
    "inspector",
    "module",
    "net",
    "os",
    "path",
    "perf_hooks",
    "process",
    "punycode",
    "querystring",
    "readline",
    "repl",
    "stream",
    "string_decoder",
    "sys",
    "timers",
    "tls",
    "trace_events",
    "tty",
    "url",
    "util",
    "v8",
    "vm",
    "wasi",
    "worker_threads",
    "zlib",
})

# Submodules that resolve as builtins on their own
NODE_SUBMODULES: FrozenSet[str] = frozenset({
    "assert/strict",
    "dns/promises",
    "fs/promises",
    "inspector/promises",
    "path/posix",
    "path/win32",
    "readline/promises",
    "stream/consumers",
    "stream/promises",
    "stream/web",
    "timers/promises",
    "util/types",
})

# Only reachable through the "node:" scheme
NODE_SCHEME_ONLY_MODULES: FrozenSet[str] = frozenset({
    "node:sea",
    "node:sqlite",
    "node:test",
    "node:test/reporters",
})

ALL_NODE_BUILTINS: FrozenSet[str] = (
    NODE_BUILTIN_MODULES
    | NODE_SUBMODULES
    | frozenset(f"node:{name}" for name in NODE_BUILTIN_MODULES | NODE_SUBMODULES)
    | NODE_SCHEME_ONLY_MODULES
)


def is_builtin(name: str) -> bool:
    """Check whether ``name`` names a Node.js built-in module."""
    return name in ALL_NODE_BUILTINS
