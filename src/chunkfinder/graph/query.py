from __future__ import annotations

from enum import Enum
from typing import Iterable

from ..errors import MalformedInput
from .index import FeatureIndex


class Mode(str, Enum):
    ALL = "ALL"
    ANY = "ANY"


def parse_mode(mode: Mode | str) -> Mode:
    if isinstance(mode, Mode):
        return mode
    try:
        return Mode(str(mode).strip().upper())
    except ValueError as e:
        raise MalformedInput(f"mode must be ALL or ANY, got {mode!r}") from e


def compute_chunks(index: FeatureIndex, selected: Iterable[str], mode: Mode | str) -> list[str]:
    """Chunks connected to all (``ALL``) or any (``ANY``) of the selected features.

    Unknown feature ids contribute an empty set. The result is sorted.
    """
    mode = parse_mode(mode)
    sets = [index.chunks_for(fid) for fid in selected]
    if not sets:
        return []

    if mode is Mode.ANY:
        out: set[str] = set()
        for s in sets:
            out |= s
        return sorted(out)

    # Smallest first keeps every intersection bounded by the smallest set.
    sets.sort(key=len)
    acc = set(sets[0])
    for s in sets[1:]:
        if not acc:
            break
        acc &= s
    return sorted(acc)


def filter_features(feature_ids: list[str], query: str | None) -> list[str]:
    q = (query or "").strip().lower()
    if not q:
        return list(feature_ids)
    return [fid for fid in feature_ids if q in fid.lower()]
