from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Mapping

from .adjacency import AdjacencySnapshot, UndirectedGraph
from .config import LouvainConfig
from .models import Community, CommunityMember, CommunityMetadata, CommunityResult

logger = logging.getLogger("graph-algorithms.louvain")


@dataclass(slots=True)
class _Level:
    """One aggregation level stored as a flat arena indexed 0..size-1."""

    neighbors: list[dict[int, float]]
    self_loops: list[float]
    degrees: list[float]

    @property
    def size(self) -> int:
        return len(self.neighbors)

    def has_edges(self) -> bool:
        return any(self.neighbors)


def base_level(graph: UndirectedGraph) -> _Level:
    # Level-0 self-loops stay out of modularity entirely.
    return _Level(
        neighbors=graph.neighbors,
        self_loops=[0.0] * len(graph.neighbors),
        degrees=graph.degrees,
    )


def local_moving(
    level: _Level,
    labels: list[int],
    movable: Iterable[int],
    total_weight: float,
    config: LouvainConfig,
) -> tuple[int, bool]:
    """Greedy modularity moves over ``movable`` nodes, mutating ``labels``.

    Nodes outside ``movable`` keep their label but still count toward
    community totals, so they remain valid move targets. Returns the number
    of sweeps run and whether any node moved.
    """
    if total_weight <= 0:
        return 0, False

    order = list(movable)
    two_m = 2.0 * total_weight
    gamma = config.resolution
    sigma_tot: dict[int, float] = {}
    for i, label in enumerate(labels):
        sigma_tot[label] = sigma_tot.get(label, 0.0) + level.degrees[i]

    sweeps = 0
    moved_any = False
    while sweeps < config.max_iterations:
        sweeps += 1
        moved = False
        for i in order:
            current = labels[i]
            k_i = level.degrees[i]
            links: dict[int, float] = {}
            for j, w in level.neighbors[i].items():
                links[labels[j]] = links.get(labels[j], 0.0) + w
            if not links:
                continue

            sigma_tot[current] -= k_i
            stay = links.get(current, 0.0) - gamma * k_i * sigma_tot[current] / two_m
            best, best_gain = current, 0.0
            for candidate in sorted(links):
                if candidate == current:
                    continue
                move = links[candidate] - gamma * k_i * sigma_tot.get(candidate, 0.0) / two_m
                gain = (move - stay) / total_weight
                if gain > config.min_modularity_gain and gain > best_gain:
                    best, best_gain = candidate, gain
            sigma_tot[best] = sigma_tot.get(best, 0.0) + k_i
            if best != current:
                labels[i] = best
                moved = True
        if not moved:
            break
        moved_any = True
    return sweeps, moved_any


def _aggregate(level: _Level, dense: list[int], size: int) -> _Level:
    neighbors: list[dict[int, float]] = [{} for _ in range(size)]
    self_loops = [0.0] * size
    degrees = [0.0] * size
    for i in range(level.size):
        ci = dense[i]
        degrees[ci] += level.degrees[i]
        self_loops[ci] += level.self_loops[i]
        for j, w in level.neighbors[i].items():
            cj = dense[j]
            if ci == cj:
                if i < j:
                    self_loops[ci] += w
            else:
                neighbors[ci][cj] = neighbors[ci].get(cj, 0.0) + w
    return _Level(neighbors=neighbors, self_loops=self_loops, degrees=degrees)


def renumber(labels: Iterable[int]) -> list[int]:
    remap: dict[int, int] = {}
    return [remap.setdefault(label, len(remap)) for label in labels]


def modularity_of(labels: list[int], graph: UndirectedGraph, resolution: float = 1.0) -> float:
    if graph.total_weight <= 0:
        return 0.0
    two_m = 2.0 * graph.total_weight
    internal: dict[int, float] = {}
    totals: dict[int, float] = {}
    for i, label in enumerate(labels):
        totals[label] = totals.get(label, 0.0) + graph.degrees[i]
        for j, w in graph.neighbors[i].items():
            if labels[j] == label:
                internal[label] = internal.get(label, 0.0) + w
    return sum(
        internal.get(label, 0.0) / two_m - resolution * (total / two_m) ** 2
        for label, total in totals.items()
    )


def calculate_modularity(
    communities: Mapping[str, int],
    adjacency: Mapping[str, Mapping[str, float]],
    degrees: Mapping[str, float],
    total_weight: float,
    resolution: float = 1.0,
) -> float:
    """Q = sum_c [in_c/2m - resolution * (tot_c/2m)^2].

    ``adjacency`` is symmetric, so ``in_c`` counts every intra-community
    edge from both ends. Returns exactly 0.0 when ``total_weight`` is 0.
    """
    if total_weight <= 0:
        return 0.0
    two_m = 2.0 * total_weight
    internal: dict[int, float] = {}
    totals: dict[int, float] = {}
    for node, label in communities.items():
        totals[label] = totals.get(label, 0.0) + degrees.get(node, 0.0)
        for neighbor, w in adjacency.get(node, {}).items():
            if neighbor != node and communities.get(neighbor) == label:
                internal[label] = internal.get(label, 0.0) + w
    return sum(
        internal.get(label, 0.0) / two_m - resolution * (total / two_m) ** 2
        for label, total in totals.items()
    )


def build_community_list(communities: Mapping[str, int], adjacency: AdjacencySnapshot) -> list[Community]:
    grouped: dict[int, Community] = {}
    for node_id, label in communities.items():
        community = grouped.get(label)
        if community is None:
            community = grouped[label] = Community(id=label)
        entity = adjacency.entity(node_id)
        name = entity.label if entity else node_id
        node_type = (entity.type if entity else None) or "Unknown"
        community.members.append(CommunityMember(id=node_id, name=name, type=node_type))
        community.type_counts[node_type] = community.type_counts.get(node_type, 0) + 1

    for community in grouped.values():
        best_count = 0
        for node_type, count in community.type_counts.items():
            if count > best_count:
                community.dominant_type, best_count = node_type, count

    return sorted(grouped.values(), key=lambda c: (-c.size, c.id))


def detect_communities(adjacency: AdjacencySnapshot, config: LouvainConfig | None = None) -> CommunityResult:
    config = config or LouvainConfig()
    started = time.perf_counter()
    graph = adjacency.undirected
    n = adjacency.node_count

    # assignment[i] is the level node that original node i currently belongs to.
    assignment = list(range(n))
    level = base_level(graph)
    total_sweeps = 0
    levels = 0
    while level.size:
        labels = list(range(level.size))
        sweeps, moved = local_moving(level, labels, range(level.size), graph.total_weight, config)
        total_sweeps += sweeps
        if not moved:
            break
        dense = renumber(labels)
        assignment = [dense[a] for a in assignment]
        levels += 1
        level = _aggregate(level, dense, max(dense) + 1)
        if not level.has_edges():
            break

    final = renumber(assignment)
    communities = dict(zip(adjacency.node_ids, final))
    modularity = modularity_of(final, graph, config.resolution)
    community_list = build_community_list(communities, adjacency)
    elapsed_ms = (time.perf_counter() - started) * 1000.0

    logger.info(
        "louvain done nodes=%s communities=%s modularity=%.4f sweeps=%s levels=%s ms=%.1f",
        n,
        len(community_list),
        modularity,
        total_sweeps,
        levels,
        elapsed_ms,
    )
    return CommunityResult(
        communities=communities,
        community_list=community_list,
        modularity=modularity,
        metadata=CommunityMetadata(
            node_count=n,
            edge_count=adjacency.edge_count,
            community_count=len(community_list),
            iterations=total_sweeps,
            hierarchy_levels=levels,
            resolution=config.resolution,
            execution_time_ms=elapsed_ms,
        ),
    )
