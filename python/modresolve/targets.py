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
"""Exports/imports map targets as a tagged union.

A package.json ``exports`` or ``imports`` value is one of:

- a string: package-relative template, possibly containing "*"
- null: explicitly absent
- an array: ordered fallbacks
- an object: condition name -> target, tried in declaration order

Anything else (numbers, booleans) is kept as an InvalidTarget so the error
surfaces only when that branch is actually evaluated.

References:
    - package.json exports: https://nodejs.org/api/packages.html#packages_exports
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, ClassVar, FrozenSet, Iterator, Optional, Tuple, Union

from .errors import MAX_RESOLUTION_DEPTH, ResolutionCycle


class TargetKind(Enum):
    STRING = auto()
    NULL = auto()
    ARRAY = auto()
    CONDITIONAL = auto()
    INVALID = auto()


@dataclass(frozen=True)
class StringTarget:
    value: str
    kind: ClassVar[TargetKind] = TargetKind.STRING


@dataclass(frozen=True)
class NullTarget:
    kind: ClassVar[TargetKind] = TargetKind.NULL


@dataclass(frozen=True)
class ArrayTarget:
    items: Tuple["Target", ...]
    kind: ClassVar[TargetKind] = TargetKind.ARRAY


@dataclass(frozen=True)
class ConditionalTarget:
    """Condition-keyed target.

    Attributes:
        branches: (condition, target) pairs in declaration order
        has_index_keys: Whether any key is an array index ("0", "1", ...)
    """

    branches: Tuple[Tuple[str, "Target"], ...]
    has_index_keys: bool = False
    kind: ClassVar[TargetKind] = TargetKind.CONDITIONAL


@dataclass(frozen=True, eq=False)
class InvalidTarget:
    value: Any
    kind: ClassVar[TargetKind] = TargetKind.INVALID


Target = Union[StringTarget, NullTarget, ArrayTarget, ConditionalTarget, InvalidTarget]

NULL_TARGET = NullTarget()


def is_array_index(key: str) -> bool:
    """Whether ``key`` is an ECMA-262 array index ("0" .. "4294967294")."""
    if not key.isdecimal():
        return False
    value = int(key)
    return str(value) == key and value < 0xFFFFFFFF


def parse_target(raw: Any, _active: FrozenSet[int] = frozenset(), _depth: int = 0) -> Target:
    """Convert a raw JSON value into a Target.

    Raises:
        ResolutionCycle: If the value contains itself (only possible for
            structures produced by a package filter, not parsed JSON), or
            nests arrays and condition objects deeper than
            MAX_RESOLUTION_DEPTH
    """
    if isinstance(raw, str):
        return StringTarget(raw)
    if raw is None:
        return NULL_TARGET
    if isinstance(raw, (list, dict)):
        if id(raw) in _active:
            raise ResolutionCycle("<package target>", detail="target structure references itself")
        if _depth >= MAX_RESOLUTION_DEPTH:
            raise ResolutionCycle("<package target>", detail=f"target nesting exceeds {MAX_RESOLUTION_DEPTH}")
        active = _active | {id(raw)}
        if isinstance(raw, list):
            items = []
            for item in raw:
                items.append(parse_target(item, active, _depth + 1))
            return ArrayTarget(tuple(items))
        branches = []
        for key, value in raw.items():
            branches.append((str(key), parse_target(value, active, _depth + 1)))
        return ConditionalTarget(
            branches=tuple(branches),
            has_index_keys=any(is_array_index(str(key)) for key in raw),
        )
    return InvalidTarget(raw)




def is_relative_key(key: str) -> bool:
    return key == "" or key.startswith(".")


@dataclass(frozen=True)
class SubpathMap:
    """Subpath key -> Target mapping, in declaration order.

    Attributes:
        entries: (key, target) pairs
        mixed: Whether the source object mixed "."-prefixed keys with
            condition keys (an invalid package configuration)
    """

    entries: Tuple[Tuple[str, Target], ...]
    mixed: bool = False

    def __contains__(self, key: str) -> bool:
        return any(k == key for k, _ in self.entries)

    def get(self, key: str) -> Optional[Target]:
        for k, target in self.entries:
            if k == key:
                return target
        return None

    def keys(self) -> Iterator[str]:
        return (k for k, _ in self.entries)


def parse_exports(raw: Any) -> Optional[SubpathMap]:
    """Normalize an ``exports`` field.

    A string, array or conditional object is sugar for ``{".": value}``.
    """
    if raw is None:
        return None
    if isinstance(raw, dict):
        keys = [str(key) for key in raw]
        if any(is_relative_key(key) for key in keys):
            return SubpathMap(
                entries=tuple((str(key), parse_target(value, frozenset({id(raw)}))) for key, value in raw.items()),
                mixed=any(not is_relative_key(key) for key in keys),
            )
    return SubpathMap(entries=((".", parse_target(raw)),))


def parse_imports(raw: Any) -> Optional[SubpathMap]:
    """Normalize an ``imports`` field; anything but an object is absent."""
    if not isinstance(raw, dict):
        return None
    return SubpathMap(
        entries=tuple((str(key), parse_target(value, frozenset({id(raw)}))) for key, value in raw.items()),
    )
