from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable

from .model import Graph


log = logging.getLogger(__name__)

FILE = "file"
CHUNK = "chunk"
FEATURE = "feature"


@dataclass(frozen=True)
class FeatureIndex:
    feature_to_chunks: dict[str, frozenset[str]]
    feature_ids: list[str]  # node input order
    chunk_ids: list[str]  # node input order
    dangling_links: int = 0
    # File nodes stood in for features because the graph had none.
    files_as_features: bool = False
    stats: dict[str, int] = field(default_factory=dict)

    def chunks_for(self, feature_id: str) -> frozenset[str]:
        return self.feature_to_chunks.get(feature_id, frozenset())


def role_lookup(graph: Graph, file_group: int, chunk_group: int) -> Callable[[str], str | None]:
    """Return ``role_of(node_id)``; ``None`` for ids missing from the graph."""
    group_of = graph.group_of()

    def role_of(node_id: str) -> str | None:
        g = group_of.get(node_id)
        if g is None:
            return None
        if g == chunk_group:
            return CHUNK
        if g == file_group:
            return FILE
        return FEATURE

    return role_of


def build_index(
    graph: Graph,
    file_group: int,
    chunk_group: int,
    *,
    progress: Callable[[int, str], None] | None = None,
) -> FeatureIndex:
    """Map every feature node to the chunks it reaches.

    A chunk is reachable from a feature through a direct link, or through a
    file node linked to both. Links are undirected.
    """
    role_of = role_lookup(graph, file_group, chunk_group)

    feature_ids: list[str] = []
    chunk_ids: list[str] = []
    file_ids: list[str] = []
    for n in graph.nodes:
        r = role_of(n.id)
        if r == CHUNK:
            chunk_ids.append(n.id)
        elif r == FILE:
            file_ids.append(n.id)
        else:
            feature_ids.append(n.id)

    # No feature layer: query the file layer directly.
    query_role = FEATURE
    files_as_features = not feature_ids and bool(file_ids)
    if files_as_features:
        log.info("No feature nodes; using %d file node(s) as features", len(file_ids))
        query_role = FILE
        feature_ids = file_ids

    direct: dict[str, set[str]] = defaultdict(set)
    feature_files: dict[str, set[str]] = defaultdict(set)
    file_chunks: dict[str, set[str]] = defaultdict(set)
    dangling = 0

    total = len(graph.links)
    step = max(1, total // 10)
    for i, l in enumerate(graph.links, start=1):
        rs = role_of(l.source)
        rt = role_of(l.target)
        if rs is None or rt is None:
            dangling += 1
            continue

        if rs == query_role and rt == CHUNK:
            direct[l.source].add(l.target)
        elif rt == query_role and rs == CHUNK:
            direct[l.target].add(l.source)
        elif rs == FEATURE and rt == FILE:
            feature_files[l.source].add(l.target)
        elif rt == FEATURE and rs == FILE:
            feature_files[l.target].add(l.source)

        if rs == FILE and rt == CHUNK:
            file_chunks[l.source].add(l.target)
        elif rt == FILE and rs == CHUNK:
            file_chunks[l.target].add(l.source)

        if progress is not None and i % step == 0:
            progress(int(10 + 80 * i / total), f"Scanned {i}/{total} links")

    if dangling:
        log.debug("Skipped %d link(s) with an endpoint missing from nodes", dangling)

    reach: dict[str, set[str]] = defaultdict(set)
    for fid, chunks in direct.items():
        reach[fid] |= chunks
    two_hop = 0
    for fid, files in feature_files.items():
        for file_id in files:
            chunks = file_chunks.get(file_id)
            if chunks:
                before = len(reach[fid])
                reach[fid] |= chunks
                two_hop += len(reach[fid]) - before

    feature_to_chunks = {fid: frozenset(chunks) for fid, chunks in reach.items() if chunks}

    return FeatureIndex(
        feature_to_chunks=feature_to_chunks,
        feature_ids=feature_ids,
        chunk_ids=chunk_ids,
        dangling_links=dangling,
        files_as_features=files_as_features,
        stats={
            "features": len(feature_ids),
            "chunks": len(chunk_ids),
            "files": 0 if files_as_features else len(file_ids),
            "links": total,
            "dangling_links": dangling,
            "direct_pairs": sum(len(c) for c in direct.values()),
            "two_hop_pairs": two_hop,
        },
    )
