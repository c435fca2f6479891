from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

from entity_graph.models import EntityRecord, GraphSnapshot, RelationshipRecord

logger = logging.getLogger("graph-algorithms.adjacency")


@dataclass(slots=True)
class BuildStats:
    nodes_accepted: int = 0
    duplicate_nodes: int = 0
    edges_accepted: int = 0
    dropped_unknown_endpoint: int = 0
    dropped_bad_weight: int = 0
    self_loops: int = 0

    @property
    def dropped_edges(self) -> int:
        return self.dropped_unknown_endpoint + self.dropped_bad_weight


@dataclass(slots=True)
class UndirectedGraph:
    """Symmetric neighbour maps used for modularity.

    Self-loop weight lives in ``self_loops`` only; it never appears in
    ``neighbors``, ``degrees`` or ``total_weight``.
    """

    neighbors: list[dict[int, float]]
    self_loops: list[float]
    degrees: list[float]
    total_weight: float = 0.0


@dataclass(slots=True)
class DirectedGraph:
    out_neighbors: list[dict[int, float]]
    in_neighbors: list[dict[int, float]]
    out_weight: list[float]
    self_loops: list[float]


@dataclass(slots=True)
class AdjacencySnapshot:
    node_ids: list[str]
    index: dict[str, int]
    entities: list[EntityRecord]
    undirected: UndirectedGraph
    directed: DirectedGraph
    edge_count: int = 0
    weighted: bool = False
    stats: BuildStats = field(default_factory=BuildStats)

    @property
    def node_count(self) -> int:
        return len(self.node_ids)

    def entity(self, node_id: str) -> EntityRecord | None:
        idx = self.index.get(node_id)
        return None if idx is None else self.entities[idx]

    def neighbor_maps(self) -> dict[str, dict[str, float]]:
        ids = self.node_ids
        return {
            ids[i]: {ids[j]: w for j, w in nbrs.items()}
            for i, nbrs in enumerate(self.undirected.neighbors)
        }

    def degree_map(self) -> dict[str, float]:
        return dict(zip(self.node_ids, self.undirected.degrees))


def _add(target: dict[int, float], key: int, weight: float) -> None:
    target[key] = target.get(key, 0.0) + weight


def build_adjacency(
    nodes: Iterable[EntityRecord],
    edges: Iterable[RelationshipRecord],
) -> AdjacencySnapshot:
    """Turn raw node/edge lists into indexed undirected and directed adjacency.

    Node indices follow first-observed order and drive every later
    iteration. Edges with an unknown endpoint or a negative/non-finite
    weight are dropped and counted; parallel edges are summed.
    """
    stats = BuildStats()
    node_ids: list[str] = []
    index: dict[str, int] = {}
    entities: list[EntityRecord] = []

    for node in nodes:
        if node.id in index:
            stats.duplicate_nodes += 1
            continue
        index[node.id] = len(node_ids)
        node_ids.append(node.id)
        entities.append(node)
    stats.nodes_accepted = len(node_ids)

    n = len(node_ids)
    undirected = UndirectedGraph(
        neighbors=[{} for _ in range(n)],
        self_loops=[0.0] * n,
        degrees=[0.0] * n,
    )
    directed = DirectedGraph(
        out_neighbors=[{} for _ in range(n)],
        in_neighbors=[{} for _ in range(n)],
        out_weight=[0.0] * n,
        self_loops=undirected.self_loops,
    )
    weighted = False

    for edge in edges:
        u = index.get(edge.source)
        v = index.get(edge.target)
        if u is None or v is None:
            stats.dropped_unknown_endpoint += 1
            logger.debug("dropping edge with unknown endpoint source=%s target=%s", edge.source, edge.target)
            continue

        weight = edge.effective_weight
        if not math.isfinite(weight) or weight < 0:
            stats.dropped_bad_weight += 1
            logger.debug("dropping edge with invalid weight source=%s target=%s weight=%s", edge.source, edge.target, weight)
            continue

        stats.edges_accepted += 1
        if edge.weight is not None and weight != 1.0:
            weighted = True

        if u == v:
            stats.self_loops += 1
            undirected.self_loops[u] += weight
            continue

        _add(undirected.neighbors[u], v, weight)
        _add(undirected.neighbors[v], u, weight)
        undirected.degrees[u] += weight
        undirected.degrees[v] += weight
        undirected.total_weight += weight

        _add(directed.out_neighbors[u], v, weight)
        _add(directed.in_neighbors[v], u, weight)
        directed.out_weight[u] += weight
        if not edge.directed:
            _add(directed.out_neighbors[v], u, weight)
            _add(directed.in_neighbors[u], v, weight)
            directed.out_weight[v] += weight

    if stats.dropped_edges:
        logger.info(
            "adjacency built nodes=%s edges=%s dropped_unknown=%s dropped_bad_weight=%s",
            n,
            stats.edges_accepted,
            stats.dropped_unknown_endpoint,
            stats.dropped_bad_weight,
        )

    return AdjacencySnapshot(
        node_ids=node_ids,
        index=index,
        entities=entities,
        undirected=undirected,
        directed=directed,
        edge_count=stats.edges_accepted,
        weighted=weighted,
        stats=stats,
    )


def build_from_snapshot(snapshot: GraphSnapshot) -> AdjacencySnapshot:
    return build_adjacency(snapshot.nodes, snapshot.edges)
