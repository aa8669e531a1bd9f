"""Canonical fantasy position tokens and raw-position normalization."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

OFFENSIVE_POSITIONS: Tuple[str, ...] = ("QB", "RB", "WR", "TE", "K")
DEFENSIVE_POSITIONS: Tuple[str, ...] = ("DL", "LB", "DB")
CANONICAL_POSITIONS: Tuple[str, ...] = OFFENSIVE_POSITIONS + DEFENSIVE_POSITIONS

UNKNOWN_POSITION = "UNK"

_ALIASES: Dict[str, str] = {
    # Defensive line
    "DE": "DL",
    "DT": "DL",
    "NT": "DL",
    "EDGE": "DL",
    "LE": "DL",
    "RE": "DL",
    # Linebackers
    "OLB": "LB",
    "MLB": "LB",
    "ILB": "LB",
    "SLB": "LB",
    "WLB": "LB",
    # Defensive backs
    "CB": "DB",
    "S": "DB",
    "FS": "DB",
    "SS": "DB",
    "NB": "DB",
    "DBS": "DB",
    # Offensive spellings used by some platforms
    "PK": "K",
    "HB": "RB",
    "FB": "RB",
}


def normalize(raw: Optional[str]) -> str:
    """Return the canonical position for a raw, vendor-specific token.

    Matching is case-insensitive. Team-defense and IDP-slot tokens such as
    ``DEF`` or ``DP`` are not player positions and map to ``UNK``.
    """
    if raw is None:
        return UNKNOWN_POSITION
    token = str(raw).strip().upper()
    if token in CANONICAL_POSITIONS:
        return token
    return _ALIASES.get(token, UNKNOWN_POSITION)


def is_canonical(position: str) -> bool:
    return position in CANONICAL_POSITIONS


def is_offensive(position: str) -> bool:
    return position in OFFENSIVE_POSITIONS


def is_defensive(position: str) -> bool:
    return position in DEFENSIVE_POSITIONS


def eligible_positions(primary: Optional[str], alternates: Iterable[Optional[str]] = ()) -> List[str]:
    """Normalize a primary position plus alternates into an ordered, deduplicated list.

    The primary position comes first; unknown tokens are dropped.
    """
    ordered: List[str] = []
    for raw in [primary, *alternates]:
        position = normalize(raw)
        if position == UNKNOWN_POSITION or position in ordered:
            continue
        ordered.append(position)
    return ordered


def ordered_position_keys(keys: Iterable[str]) -> List[str]:
    """Canonical positions in fixed order, followed by any other keys sorted."""
    present = set(keys)
    ordered = [position for position in CANONICAL_POSITIONS if position in present]
    ordered.extend(sorted(present.difference(CANONICAL_POSITIONS)))
    return ordered
