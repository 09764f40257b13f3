from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..errors import ChunkFinderError
from .model import Link, Node, group_lookup, groups_in_order, ids_by_group


log = logging.getLogger(__name__)

FILE_PREFIX = "file_name_"
CHUNK_PREFIX = "chunk_id_"

# Media files show up as ids of the file layer (videos, recordings, images).
_MEDIA_RE = re.compile(
    r"\.(?:mp4|m4v|mov|avi|mkv|webm|wmv|flv|mpe?g|mp3|wav|flac|aac|ogg|oga|m4a|opus"
    r"|jpe?g|png|gif|bmp|tiff?|webp|heic)$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RoleAssignment:
    file_group: int
    chunk_group: int
    # Which rule decided: "hint", "naming", "structure" or "degenerate".
    source: str


def is_file_like(node_id: str, *, prefix: str = FILE_PREFIX) -> bool:
    return node_id.startswith(prefix) or _MEDIA_RE.search(node_id) is not None


def is_chunk_like(node_id: str, *, prefix: str = CHUNK_PREFIX) -> bool:
    return node_id.startswith(prefix)


def group_neighbors(nodes: Sequence[Node], links: Iterable[Link]) -> dict[int, set[int]]:
    """Undirected group adjacency from links between different groups.

    Links with an endpoint missing from ``nodes`` and links inside one group
    are ignored.
    """
    group_of = group_lookup(nodes)
    out: dict[int, set[int]] = {}
    for l in links:
        gs = group_of.get(l.source)
        gt = group_of.get(l.target)
        if gs is None or gt is None or gs == gt:
            continue
        out.setdefault(gs, set()).add(gt)
        out.setdefault(gt, set()).add(gs)
    return out


def _first_matching(groups: list[int], members: dict[int, list[str]], pred, *, exclude: int | None) -> int | None:
    for g in groups:
        if g == exclude:
            continue
        if any(pred(i) for i in members[g]):
            return g
    return None


def _pick_by_degree(groups: list[int], neighbors: dict[int, set[int]], *, exclude: int | None, highest: bool) -> int:
    candidates = [g for g in groups if g != exclude]
    if not candidates:
        raise ChunkFinderError("no group left to assign a role to")
    # max()/min() keep the first-encountered group on ties.
    pick = max if highest else min
    return pick(candidates, key=lambda g: len(neighbors.get(g, ())))


def detect_roles(
    nodes: Sequence[Node],
    links: Sequence[Link],
    hint_file_group: int | None = None,
    hint_chunk_group: int | None = None,
    *,
    file_prefix: str = FILE_PREFIX,
    chunk_prefix: str = CHUNK_PREFIX,
) -> RoleAssignment:
    """Decide which group holds files and which holds chunks.

    Rules, in order:

    1. Both hints given: returned as-is. A single hint pins that role and the
       other one is resolved below among the remaining groups.
    2. Naming: the first group (in first-seen order) with a file-like id is
       the file group; the first *other* group with a chunk-like id is the
       chunk group. A group matching both patterns is therefore a file group.
    3. Structure: whichever role is still open is filled from the group
       adjacency graph. The chunk group is the most connected group, the file
       group the least connected of the rest. Ties go to the first-seen group.

    A graph with a single group maps both roles onto it; an empty graph maps
    both onto group 0.
    """
    if hint_file_group is not None and hint_chunk_group is not None:
        return RoleAssignment(file_group=hint_file_group, chunk_group=hint_chunk_group, source="hint")

    groups = groups_in_order(nodes)
    if len(groups) < 2:
        g = groups[0] if groups else 0
        log.warning("Graph has %d group(s); file and chunk roles both map to group %s", len(groups), g)
        if hint_file_group is not None or hint_chunk_group is not None:
            log.warning(
                "Ignoring group hint (file=%s, chunk=%s) on a graph with fewer than two groups",
                hint_file_group,
                hint_chunk_group,
            )
        return RoleAssignment(file_group=g, chunk_group=g, source="degenerate")

    file_group = hint_file_group
    chunk_group = hint_chunk_group
    source = "hint"

    members = ids_by_group(nodes)
    if file_group is None:
        file_group = _first_matching(
            groups, members, lambda i: is_file_like(i, prefix=file_prefix), exclude=chunk_group
        )
        if file_group is not None:
            source = "naming"
    if chunk_group is None:
        chunk_group = _first_matching(
            groups, members, lambda i: is_chunk_like(i, prefix=chunk_prefix), exclude=file_group
        )
        if chunk_group is not None:
            source = "naming"

    if file_group is not None and chunk_group is not None:
        log.debug("Roles from %s: file=%s chunk=%s", source, file_group, chunk_group)
        return RoleAssignment(file_group=file_group, chunk_group=chunk_group, source=source)

    neighbors = group_neighbors(nodes, links)
    if chunk_group is None:
        chunk_group = _pick_by_degree(groups, neighbors, exclude=file_group, highest=True)
    if file_group is None:
        file_group = _pick_by_degree(groups, neighbors, exclude=chunk_group, highest=False)

    log.debug("Roles from structure: file=%s chunk=%s", file_group, chunk_group)
    return RoleAssignment(file_group=file_group, chunk_group=chunk_group, source="structure")
