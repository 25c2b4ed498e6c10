from __future__ import annotations
from typing import List, Optional, Sequence
import re

from ..domain.models import Player

# quick normalization
def _norm(s: str) -> str:
    s = s.lower().strip()
    s = re.sub(r"[.\-']", "", s)
    return re.sub(r"\s+", " ", s).strip()

def _unique(cands: List[Player]) -> Optional[Player]:
    return cands[0] if len(cands) == 1 else None

def resolve_player(name: str, players: Sequence[Player]) -> Optional[Player]:
    """
    Match a scorecard name to a squad player. Strategies, in order:
      exact (normalized) -> last name -> substring -> initial + last name -> first name
    Every strategy after the exact match only counts when it is unambiguous.
    """
    target = _norm(name or "")
    if not target:
        return None
    normed = [(p, _norm(p.name)) for p in players]

    # 1) exact
    for p, n in normed:
        if n == target:
            return p

    parts = target.split(" ")

    # 2) last name
    hit = _unique([p for p, n in normed if n.split(" ")[-1] == parts[-1]])
    if hit:
        return hit

    # 3) substring either way
    hit = _unique([p for p, n in normed if target in n or n in target])
    if hit:
        return hit

    # 4) "K Perera" -> "Kusal Perera"
    if len(parts) >= 2:
        initial, rest = parts[0][0], " ".join(parts[1:])
        hit = _unique([
            p for p, n in normed
            if len(n.split(" ")) >= 2 and n[0] == initial and n.endswith(rest)
        ])
        if hit:
            return hit

    # 5) first name; single-name players
    if len(parts[0]) > 2:
        hit = _unique([p for p, n in normed if n.split(" ")[0] == parts[0]])
        if hit:
            return hit

    return None

def suggest_players(name: str, players: Sequence[Player], limit: int = 5) -> List[str]:
    """Names sharing a meaningful word with ``name``; empty when too many hits."""
    words = [w for w in _norm(name or "").split(" ") if len(w) > 2]
    close = [p.name for p in players if any(w in _norm(p.name) for w in words)]
    return close if 0 < len(close) <= limit else []
