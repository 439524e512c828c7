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
"""Resolve a single request from the command line.

Usage:
    python -m modresolve lodash/get --basedir ./packages/app
    python -m modresolve ./util --from src/index.js --condition import --trace
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .errors import ResolutionError
from .options import ResolverOptions
from .resolver import resolve_with_options


# Error code reported for failures that are not resolution errors
INVALID_ARGUMENT = "INVALID_ARGUMENT"


def _report_failure(args: argparse.Namespace, code: str, error: Exception) -> int:
    if args.json:
        print(json.dumps({"request": args.request, "error": code, "message": str(error)}))
    else:
        print(f"{code}: {error}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="modresolve", description="Resolve a module request like Node.js")
    parser.add_argument("request", help="Module specifier to resolve")
    parser.add_argument(
        "--from",
        dest="filename",
        help="Path of the requesting module"
    )
    parser.add_argument(
        "--basedir",
        default=None,
        help="Directory of the requesting module (default: current directory)"
    )
    parser.add_argument(
        "--condition",
        action="append",
        default=[],
        help="Active export condition (repeatable; 'import' selects ES module resolution)"
    )
    parser.add_argument(
        "--extension",
        action="append",
        default=[],
        help="Extension tried for extensionless requires (repeatable, default .js)"
    )
    parser.add_argument(
        "--root-dir",
        default=None,
        help="Only redirect to sources for tsconfig.json files under this directory"
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log every resolution step to stderr"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON"
    )

    args = parser.parse_args(argv)

    if args.trace:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")

    options = ResolverOptions(
        basedir=args.basedir or (None if args.filename else os.getcwd()),
        filename=args.filename,
        conditions=tuple(args.condition),
        extensions=tuple(args.extension),
        root_dir=args.root_dir,
        trace=args.trace,
    )

    try:
        resolved = resolve_with_options(args.request, options)
    except ResolutionError as e:
        return _report_failure(args, e.code, e)
    except ValueError as e:
        # Unusable paths (e.g. embedded NUL bytes) or options naming no referrer
        return _report_failure(args, INVALID_ARGUMENT, e)

    if args.json:
        print(json.dumps({"request": args.request, "resolved": resolved}))
    else:
        print(resolved)
    return 0


if __name__ == "__main__":
    sys.exit(main())
