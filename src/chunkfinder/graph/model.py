from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..errors import MalformedInput


@dataclass(frozen=True)
class Node:
    id: str
    group: int


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    value: float | None = None


@dataclass(frozen=True)
class Graph:
    nodes: tuple[Node, ...]
    links: tuple[Link, ...]

    def group_of(self) -> dict[str, int]:
        return group_lookup(self.nodes)


def group_lookup(nodes) -> dict[str, int]:
    return {n.id: n.group for n in nodes}


def groups_in_order(nodes) -> list[int]:
    """Distinct groups in the order they are first seen among ``nodes``."""
    seen: dict[int, None] = {}
    for n in nodes:
        seen.setdefault(n.group, None)
    return list(seen)


def ids_by_group(nodes) -> dict[int, list[str]]:
    out: dict[int, list[str]] = {}
    for n in nodes:
        out.setdefault(n.group, []).append(n.id)
    return out


def _node_id(raw: Any, where: str) -> str:
    # Numeric ids are accepted and compared by their string form.
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise MalformedInput(f"{where}: expected a string id, got {type(raw).__name__}")
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def graph_from_dict(data: Any) -> Graph:
    if not isinstance(data, dict):
        raise MalformedInput("graph must be a JSON object with 'nodes' and 'links'")

    raw_nodes = data.get("nodes")
    raw_links = data.get("links", [])
    if raw_links is None:
        raw_links = []
    if not isinstance(raw_nodes, list):
        raise MalformedInput("graph 'nodes' must be a list")
    if not isinstance(raw_links, list):
        raise MalformedInput("graph 'links' must be a list")

    nodes: list[Node] = []
    for i, n in enumerate(raw_nodes):
        if not isinstance(n, dict) or "id" not in n or "group" not in n:
            raise MalformedInput(f"nodes[{i}]: expected an object with 'id' and 'group'")
        group = n["group"]
        if isinstance(group, bool) or not isinstance(group, int):
            raise MalformedInput(f"nodes[{i}]: 'group' must be an integer")
        nodes.append(Node(id=_node_id(n["id"], f"nodes[{i}].id"), group=group))

    links: list[Link] = []
    for i, l in enumerate(raw_links):
        if not isinstance(l, dict) or "source" not in l or "target" not in l:
            raise MalformedInput(f"links[{i}]: expected an object with 'source' and 'target'")
        value = l.get("value")
        if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise MalformedInput(f"links[{i}]: 'value' must be a number")
        links.append(
            Link(
                source=_node_id(l["source"], f"links[{i}].source"),
                target=_node_id(l["target"], f"links[{i}].target"),
                value=(float(value) if value is not None else None),
            )
        )

    return Graph(nodes=tuple(nodes), links=tuple(links))


def parse_graph(text: str) -> Graph:
    """Parse graph JSON text (``{"nodes": [...], "links": [...]}``)."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise MalformedInput(f"Invalid graph JSON: {e}") from e
    return graph_from_dict(data)
