"""Starting-lineup slot resolution and the credited-position rule."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .positions import CANONICAL_POSITIONS, UNKNOWN_POSITION, normalize


class SlotKind(str, Enum):
    """Eligibility kind of a lineup slot."""

    STRICT = "strict"
    OFFENSE_FLEX = "offense_flex"
    SUPER_FLEX = "super_flex"
    DEFENSE_FLEX = "defense_flex"
    DUAL_DESIGNATION = "dual_designation"


OFFENSE_FLEX_POSITIONS: FrozenSet[str] = frozenset({"RB", "WR", "TE"})
SUPER_FLEX_POSITIONS: FrozenSet[str] = frozenset({"QB", "RB", "WR", "TE"})
DEFENSE_FLEX_POSITIONS: FrozenSet[str] = frozenset({"DL", "LB", "DB"})

OFFENSE_FLEX_LABELS: FrozenSet[str] = frozenset(
    {"FLEX", "WRRB", "WRRBTE", "WRRB_TE", "RBWR", "RBWRTE", "WRRBTEFLEX", "W/R/T", "RB/WR/TE"}
)
SUPER_FLEX_LABELS: FrozenSet[str] = frozenset(
    {"SUPER_FLEX", "QBRBWRTE", "QBRBWR", "QBSF", "SFLX", "OP", "Q/W/R/T"}
)
DEFENSE_FLEX_LABELS: FrozenSet[str] = frozenset(
    {"IDP", "IDP_FLEX", "IDPFLEX", "DFLEX", "DP", "D", "DEF", "DL_LB_DB"}
)

DUAL_DESIGNATION_LABELS = {
    "W/R": frozenset({"WR", "RB"}),
    "W/T": frozenset({"WR", "TE"}),
    "WRTE": frozenset({"WR", "TE"}),
    "REC_FLEX": frozenset({"WR", "TE"}),
}

NON_STARTING_LABELS: FrozenSet[str] = frozenset(
    {"BN", "BENCH", "TAXI", "IR", "RESERVE", "RESERVED", "PUP", "OUT"}
)

_LABEL_SEPARATORS = re.compile(r"[_/+]")


@dataclass(frozen=True)
class Slot:
    """One resolved starting-lineup slot."""

    label: str
    kind: SlotKind
    eligible: FrozenSet[str]
    recognized: bool = True

    @property
    def is_strict(self) -> bool:
        return self.kind is SlotKind.STRICT

    @property
    def position(self) -> Optional[str]:
        """Single eligible position for strict slots, otherwise None."""
        if not self.is_strict:
            return None
        return next(iter(self.eligible))

    def accepts(self, positions: Iterable[str]) -> bool:
        return any(position in self.eligible for position in positions)


def resolve_slot(label: Optional[str]) -> Slot:
    """Classify a raw slot label. Never raises; unknown labels become strict slots."""
    raw = "" if label is None else str(label)
    token = raw.strip().upper()

    if token in CANONICAL_POSITIONS:
        return Slot(raw, SlotKind.STRICT, frozenset({token}))
    if token in OFFENSE_FLEX_LABELS:
        return Slot(raw, SlotKind.OFFENSE_FLEX, OFFENSE_FLEX_POSITIONS)
    if token in SUPER_FLEX_LABELS:
        return Slot(raw, SlotKind.SUPER_FLEX, SUPER_FLEX_POSITIONS)
    if token in DEFENSE_FLEX_LABELS or "IDP" in token:
        return Slot(raw, SlotKind.DEFENSE_FLEX, DEFENSE_FLEX_POSITIONS)

    if token in DUAL_DESIGNATION_LABELS:
        return Slot(raw, SlotKind.DUAL_DESIGNATION, DUAL_DESIGNATION_LABELS[token])

    combination = _dual_designation(token)
    if combination == OFFENSE_FLEX_POSITIONS:
        return Slot(raw, SlotKind.OFFENSE_FLEX, OFFENSE_FLEX_POSITIONS)
    if combination == DEFENSE_FLEX_POSITIONS:
        return Slot(raw, SlotKind.DEFENSE_FLEX, DEFENSE_FLEX_POSITIONS)
    if combination:
        return Slot(raw, SlotKind.DUAL_DESIGNATION, combination)

    if len(token) > 1 and all(ch in "DLB" for ch in token):
        return Slot(raw, SlotKind.DEFENSE_FLEX, DEFENSE_FLEX_POSITIONS)

    # Single-position aliases such as CB or OLB.
    aliased = normalize(token)
    if aliased != UNKNOWN_POSITION:
        return Slot(raw, SlotKind.STRICT, frozenset({aliased}))

    return Slot(raw, SlotKind.STRICT, frozenset({token}), recognized=False)


def parse_lineup(labels: Iterable[Optional[str]]) -> List[Slot]:
    """Resolve a league's ordered roster positions, skipping bench/reserve tokens."""
    slots: List[Slot] = []
    for label in labels:
        if label is None or str(label).strip().upper() in NON_STARTING_LABELS:
            continue
        slots.append(resolve_slot(label))
    return slots


def credited_position(slot: Slot, candidate_positions: Sequence[str], base_position: str) -> str:
    """Return the canonical position a started player's points are attributed to.

    Strict slots credit the slot itself, even when the player's own position
    differs. Every other kind credits the player's first eligible position
    that the slot accepts, falling back to the base position.
    """
    if slot.is_strict:
        return slot.position or base_position
    for position in candidate_positions:
        if position in slot.eligible:
            return position
    return base_position


def flex_last(slots: Sequence[Slot]) -> List[Slot]:
    """Stable reorder placing every strict slot before every flex-kind slot."""
    return [slot for slot in slots if slot.is_strict] + [slot for slot in slots if not slot.is_strict]


def _dual_designation(token: str) -> Optional[FrozenSet[str]]:
    parts = [part for part in _LABEL_SEPARATORS.split(token) if part]
    if not 2 <= len(parts) <= 3:
        return None
    positions = [normalize(part) for part in parts]
    if UNKNOWN_POSITION in positions or len(set(positions)) != len(positions):
        return None
    return frozenset(positions)
