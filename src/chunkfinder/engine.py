from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .errors import NotLoaded
from .graph.index import FeatureIndex, build_index
from .graph.model import Graph, parse_graph
from .graph.query import Mode, compute_chunks
from .graph.roles import CHUNK_PREFIX, FILE_PREFIX, RoleAssignment, detect_roles


log = logging.getLogger(__name__)

ProgressFn = Callable[[int, str], None]


@dataclass(frozen=True)
class EngineState:
    graph: Graph
    roles: RoleAssignment
    index: FeatureIndex

    @property
    def feature_ids(self) -> list[str]:
        return self.index.feature_ids

    @property
    def chunk_count(self) -> int:
        return len(self.index.chunk_ids)


def load(
    text: str,
    *,
    file_group_hint: int | None = None,
    chunk_group_hint: int | None = None,
    file_prefix: str = FILE_PREFIX,
    chunk_prefix: str = CHUNK_PREFIX,
    progress: ProgressFn | None = None,
) -> EngineState:
    """Parse graph JSON, detect roles and build the feature index."""

    def report(pct: int, msg: str) -> None:
        if progress is not None:
            progress(pct, msg)

    report(0, "Parsing graph")
    graph = parse_graph(text)

    report(5, "Detecting file/chunk groups")
    roles = detect_roles(
        graph.nodes,
        graph.links,
        file_group_hint,
        chunk_group_hint,
        file_prefix=file_prefix,
        chunk_prefix=chunk_prefix,
    )

    report(10, "Indexing features")
    index = build_index(graph, roles.file_group, roles.chunk_group, progress=progress)
    report(100, "Ready")

    log.info(
        "Loaded %d nodes, %d links: file=%s chunk=%s (%s), %d features, %d chunks",
        len(graph.nodes),
        len(graph.links),
        roles.file_group,
        roles.chunk_group,
        roles.source,
        len(index.feature_ids),
        len(index.chunk_ids),
    )
    return EngineState(graph=graph, roles=roles, index=index)


def query(state: EngineState, selected: Iterable[str], mode: Mode | str) -> list[str]:
    return compute_chunks(state.index, selected, mode)


class Engine:
    """Holds the current :class:`EngineState`; each load replaces it whole."""

    def __init__(self, *, file_prefix: str = FILE_PREFIX, chunk_prefix: str = CHUNK_PREFIX):
        self.file_prefix = file_prefix
        self.chunk_prefix = chunk_prefix
        self._state: EngineState | None = None

    @property
    def state(self) -> EngineState:
        if self._state is None:
            raise NotLoaded("No graph loaded yet; load a graph first.")
        return self._state

    @property
    def loaded(self) -> bool:
        return self._state is not None

    def load(
        self,
        text: str,
        *,
        file_group_hint: int | None = None,
        chunk_group_hint: int | None = None,
        progress: ProgressFn | None = None,
    ) -> EngineState:
        try:
            state = load(
                text,
                file_group_hint=file_group_hint,
                chunk_group_hint=chunk_group_hint,
                file_prefix=self.file_prefix,
                chunk_prefix=self.chunk_prefix,
                progress=progress,
            )
        except Exception:
            # A started load retires the previous graph even when it fails.
            self._state = None
            raise
        self._state = state
        return state

    def query(self, selected: Iterable[str], mode: Mode | str) -> list[str]:
        return query(self.state, selected, mode)
