#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import re
from dataclasses import dataclass
from typing import Dict, Hashable, List, Optional, Set, Tuple

from gsc_ast import StructType, TypeDecl

_NON_IDENT_RE = re.compile(r"[^0-9A-Za-z_]+")

ReservationKey = Tuple[Hashable, ...]


@dataclass(frozen=True)
class Reservation:
    name: str
    newly_reserved: bool


def decl_key(decl: TypeDecl) -> ReservationKey:
    return decl.location, decl.name, id(decl)


def anonymous_key(desired: str, struct: StructType) -> ReservationKey:
    return f"anonymous:{desired}", id(struct)


def capitalize(text: str) -> str:
    if not text:
        return text
    return text[0].upper() + text[1:]


def _segment_prefix(segment: str) -> str:
    """
    Turn one import path segment into an identifier prefix: 'example.com'
    becomes 'ExampleCom', 'go-yaml' becomes 'GoYaml'.
    """
    return "".join(capitalize(part) for part in _NON_IDENT_RE.split(segment) if part)


def location_prefixes(location: str) -> List[str]:
    """
    Candidate prefixes for a location, most specific first: the last path
    segment, then the second-to-last one.
    """
    segments = [s for s in location.split("/") if s]
    prefixes: List[str] = []
    for segment in reversed(segments[-2:]):
        prefix = _segment_prefix(segment)
        if prefix and (prefix[0].isalpha() or prefix[0] == "_") and prefix not in prefixes:
            prefixes.append(prefix)
    return prefixes


class NameRegistry:
    """
    Output name bookkeeping for one flattening run.

    Every emitted definition owns a reservation key: declarations are keyed
    by (location, name, identity), anonymous structs by their desired name
    and identity. A key maps to exactly one output name and no two keys share
    a name. Declarations also register as claimants of the name they asked
    for so that cross-package collisions can be revisited once traversal is
    complete.
    """

    def __init__(self):
        self._assigned: Dict[ReservationKey, str] = {}
        self._used: Set[str] = set()
        # desired name -> declarations that asked for it, in discovery order
        self._claims: Dict[str, List[TypeDecl]] = {}
        # id(struct) -> reservation key of an anonymous struct
        self._anonymous: Dict[int, ReservationKey] = {}

    # --- reservations ---

    def reserve(self, desired: str, decl: TypeDecl) -> Reservation:
        key = decl_key(decl)
        existing = self._assigned.get(key)
        if existing is not None:
            return Reservation(existing, False)

        self.claim(desired, decl)
        name = self._first_free(self._decl_candidates(desired, decl.location))
        if name is None:
            name = self._numbered(desired)
        self._take(key, name)
        return Reservation(name, True)

    def reserve_anonymous(self, struct: StructType, owner: str, field_hint: Optional[str]) -> Reservation:
        # One name per struct node, whichever field reaches it first.
        known = self._anonymous.get(id(struct))
        if known is not None:
            return Reservation(self._assigned[known], False)

        desired = capitalize(field_hint) if field_hint else f"{capitalize(owner)}Anonymous"
        key = anonymous_key(desired, struct)
        self._anonymous[id(struct)] = key

        candidates = [desired]
        if field_hint:
            candidates.append(f"{capitalize(owner)}Anonymous")
        name = self._first_free(candidates)
        if name is None:
            name = self._numbered("Anonymous", start=1)
        self._take(key, name)
        return Reservation(name, True)

    # --- lookups and renames ---

    def lookup(self, key: ReservationKey) -> Optional[str]:
        return self._assigned.get(key)

    def lookup_decl(self, decl: TypeDecl) -> Optional[str]:
        return self._assigned.get(decl_key(decl))

    def lookup_anonymous(self, struct: StructType) -> Optional[str]:
        key = self._anonymous.get(id(struct))
        return None if key is None else self._assigned.get(key)

    def anonymous_key_of(self, struct: StructType) -> Optional[ReservationKey]:
        return self._anonymous.get(id(struct))

    def is_used(self, name: str) -> bool:
        return name in self._used

    def claim(self, desired: str, decl: TypeDecl) -> None:
        claimants = self._claims.setdefault(desired, [])
        if all(c is not decl for c in claimants):
            claimants.append(decl)

    def claims(self) -> Dict[str, List[TypeDecl]]:
        return {desired: list(claimants) for desired, claimants in self._claims.items()}

    def release(self, name: str) -> None:
        self._used.discard(name)

    def rename(self, key: ReservationKey, name: str) -> None:
        # The previous name stays taken until it is released.
        self._take(key, name)

    def prefixed_name(self, desired: str, location: str) -> str:
        """
        `<LastSegment><Desired>`, or a numbered variant of it when taken.
        """
        prefixes = location_prefixes(location)
        base = f"{prefixes[0]}{desired}" if prefixes else desired
        if base not in self._used:
            return base
        return self._numbered(base)

    # --- internal helpers ---

    @staticmethod
    def _decl_candidates(desired: str, location: str) -> List[str]:
        return [desired] + [f"{prefix}{desired}" for prefix in location_prefixes(location)]

    def _first_free(self, candidates: List[str]) -> Optional[str]:
        for candidate in candidates:
            if candidate and candidate not in self._used:
                return candidate
        return None

    def _numbered(self, base: str, start: int = 2) -> str:
        n = start
        while f"{base}{n}" in self._used:
            n += 1
        return f"{base}{n}"

    def _take(self, key: ReservationKey, name: str) -> None:
        self._assigned[key] = name
        self._used.add(name)
