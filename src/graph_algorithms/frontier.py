from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Iterable, Mapping

from entity_graph.models import RelationshipRecord

from .adjacency import AdjacencySnapshot
from .config import IncrementalConfig, LouvainConfig
from .louvain import base_level, build_community_list, detect_communities, local_moving, modularity_of
from .models import CommunityMetadata, CommunityResult

logger = logging.getLogger("graph-algorithms.frontier")

EdgeLike = RelationshipRecord | Mapping[str, Any] | tuple[str, str]

FALLBACK_NO_PREVIOUS = "no_previous_result"
FALLBACK_SMALL_GRAPH = "small_graph"
FALLBACK_CHANGE_RATIO = "change_ratio"


def previous_communities(previous: CommunityResult | Mapping[str, Any] | None) -> dict[str, int]:
    """Copy the id -> label mapping out of a previous result without touching it."""
    if previous is None:
        return {}
    if isinstance(previous, CommunityResult):
        return dict(previous.communities)
    return dict(previous.get("communities") or {})


def edge_endpoints(edge: EdgeLike) -> tuple[str, str]:
    if isinstance(edge, RelationshipRecord):
        return edge.source, edge.target
    if isinstance(edge, Mapping):
        return str(edge["source"]), str(edge["target"])
    source, target = edge
    return source, target


def identify_changed_communities(
    previous: CommunityResult | Mapping[str, Any] | Mapping[str, int] | None,
    current: CommunityResult | Mapping[str, int],
    affected_node_ids: Iterable[str],
) -> list[int]:
    """Union of previous and current labels of every affected node, sorted."""
    if isinstance(previous, CommunityResult) or (isinstance(previous, Mapping) and "communities" in previous):
        before = previous_communities(previous)
    else:
        before = dict(previous or {})
    after = current.communities if isinstance(current, CommunityResult) else current

    changed: set[int] = set()
    for node_id in affected_node_ids:
        if node_id in before:
            changed.add(before[node_id])
        if node_id in after:
            changed.add(after[node_id])
    return sorted(changed)


def _fallback(
    adjacency: AdjacencySnapshot,
    before: dict[str, int],
    config: LouvainConfig,
    reason: str,
    change_ratio: float,
) -> CommunityResult:
    logger.info("incremental louvain falling back to full detection reason=%s change_ratio=%.3f", reason, change_ratio)
    result = detect_communities(adjacency, config)
    metadata = replace(
        result.metadata,
        fell_back_to_full=True,
        fallback_reason=reason,
        change_ratio=change_ratio,
        frontier_size=adjacency.node_count,
        affected_node_count=adjacency.node_count,
    )
    changed = identify_changed_communities(before, result.communities, adjacency.node_ids)
    return replace(result, metadata=metadata, changed_communities=changed)


def detect_communities_incremental(
    adjacency: AdjacencySnapshot,
    previous_result: CommunityResult | Mapping[str, Any] | None,
    new_node_ids: Iterable[str] = (),
    new_edges: Iterable[EdgeLike] = (),
    modified_node_ids: Iterable[str] = (),
    removed_edges: Iterable[EdgeLike] = (),
    config: LouvainConfig | None = None,
    incremental: IncrementalConfig | None = None,
) -> CommunityResult:
    """Re-optimise only the region of the graph touched by a change set.

    Untouched nodes keep their previous labels and are never moved. Labels
    are not renumbered, so ids of communities outside the frontier stay
    stable between runs.

    `changed_communities` is computed over the whole frontier rather than
    only the directly affected nodes. Any frontier node may move, so the
    result is a superset that is still safe for cache invalidation.
    """
    config = config or LouvainConfig()
    incremental = incremental or IncrementalConfig()
    started = time.perf_counter()

    before = previous_communities(previous_result)
    new_ids = list(dict.fromkeys(new_node_ids))
    modified_ids = list(dict.fromkeys(modified_node_ids))
    added = [edge_endpoints(edge) for edge in new_edges]
    removed = [edge_endpoints(edge) for edge in removed_edges]
    endpoints = list(dict.fromkeys(node for pair in added for node in pair))

    n = adjacency.node_count
    change_ratio = (len(new_ids) + len(modified_ids) + len(endpoints)) / n if n else 1.0

    if not before:
        return _fallback(adjacency, before, config, FALLBACK_NO_PREVIOUS, change_ratio)
    if n < incremental.small_graph_floor:
        return _fallback(adjacency, before, config, FALLBACK_SMALL_GRAPH, change_ratio)
    if change_ratio > incremental.max_change_ratio:
        return _fallback(adjacency, before, config, FALLBACK_CHANGE_RATIO, change_ratio)

    index = adjacency.index
    affected: dict[int, None] = {}
    seeds = new_ids + modified_ids + endpoints + [node for pair in removed for node in pair]
    for node_id in seeds:
        if node_id in index:
            affected[index[node_id]] = None
    for i, node_id in enumerate(adjacency.node_ids):
        if node_id not in before:
            affected[i] = None

    frontier = dict(affected)
    if incremental.include_neighbors:
        for i in affected:
            for j in adjacency.undirected.neighbors[i]:
                frontier[j] = None
    movable = sorted(frontier)

    fresh = set(new_ids)
    next_label = max(before.values(), default=-1) + 1
    labels: list[int] = []
    for node_id in adjacency.node_ids:
        if node_id in before and node_id not in fresh:
            labels.append(before[node_id])
        else:
            labels.append(next_label)
            next_label += 1

    graph = adjacency.undirected
    sweeps, _ = local_moving(base_level(graph), labels, movable, graph.total_weight, config)

    communities = dict(zip(adjacency.node_ids, labels))
    modularity = modularity_of(labels, graph, config.resolution)
    community_list = build_community_list(communities, adjacency)
    changed = identify_changed_communities(before, communities, (adjacency.node_ids[i] for i in movable))
    elapsed_ms = (time.perf_counter() - started) * 1000.0

    logger.info(
        "incremental louvain done nodes=%s frontier=%s affected=%s changed_communities=%s modularity=%.4f ms=%.1f",
        n,
        len(movable),
        len(affected),
        len(changed),
        modularity,
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
            iterations=sweeps,
            resolution=config.resolution,
            execution_time_ms=elapsed_ms,
            incremental=True,
            frontier_size=len(movable),
            affected_node_count=len(affected),
            change_ratio=change_ratio,
        ),
        changed_communities=changed,
    )
