from __future__ import annotations

import heapq
import logging
import math
import random
import time
from collections import deque
from dataclasses import replace

from .adjacency import AdjacencySnapshot
from .config import BetweennessConfig
from .models import BetweennessMetadata, RankedEntity, RankingResult
from .pagerank import rank_entities

logger = logging.getLogger("graph-algorithms.betweenness")


def _bfs_paths(
    neighbors: list[dict[int, float]], source: int
) -> tuple[list[int], list[list[int]], list[float]]:
    n = len(neighbors)
    order: list[int] = []
    preds: list[list[int]] = [[] for _ in range(n)]
    sigma = [0.0] * n
    dist = [-1] * n
    sigma[source] = 1.0
    dist[source] = 0
    queue = deque([source])
    while queue:
        v = queue.popleft()
        order.append(v)
        for w in neighbors[v]:
            if dist[w] < 0:
                dist[w] = dist[v] + 1
                queue.append(w)
            if dist[w] == dist[v] + 1:
                sigma[w] += sigma[v]
                preds[w].append(v)
    return order, preds, sigma


def _dijkstra_paths(
    neighbors: list[dict[int, float]], source: int
) -> tuple[list[int], list[list[int]], list[float]]:
    n = len(neighbors)
    order: list[int] = []
    preds: list[list[int]] = [[] for _ in range(n)]
    sigma = [0.0] * n
    dist = [math.inf] * n
    settled = [False] * n
    sigma[source] = 1.0
    dist[source] = 0.0
    heap = [(0.0, source)]
    while heap:
        d, v = heapq.heappop(heap)
        if settled[v] or d > dist[v]:
            continue
        # sigma[v] is final once v is popped: traversed weights are all > 0.
        settled[v] = True
        order.append(v)
        for w, weight in neighbors[v].items():
            if weight <= 0.0:
                continue
            candidate = d + weight
            if candidate < dist[w]:
                dist[w] = candidate
                sigma[w] = sigma[v]
                preds[w] = [v]
                heapq.heappush(heap, (candidate, w))
            elif candidate == dist[w] and not settled[w]:
                sigma[w] += sigma[v]
                preds[w].append(v)
    return order, preds, sigma


def _select_sources(n: int, config: BetweennessConfig) -> list[int]:
    if config.sample_size is None or config.sample_size >= n:
        return list(range(n))
    rng = random.Random(config.seed)
    return sorted(rng.sample(range(n), config.sample_size))


def brandes(
    neighbors: list[dict[int, float]],
    sources: list[int],
    weighted: bool,
) -> list[float]:
    """Raw dependency sums from each source; no halving or normalisation."""
    n = len(neighbors)
    scores = [0.0] * n
    shortest_paths = _dijkstra_paths if weighted else _bfs_paths
    for source in sources:
        order, preds, sigma = shortest_paths(neighbors, source)
        delta = [0.0] * n
        for w in reversed(order):
            coeff = (1.0 + delta[w]) / sigma[w]
            for v in preds[w]:
                delta[v] += sigma[v] * coeff
            if w != source:
                scores[w] += delta[w]
    return scores


def calculate_betweenness(adjacency: AdjacencySnapshot, config: BetweennessConfig | None = None) -> RankingResult:
    config = config or BetweennessConfig()
    started = time.perf_counter()
    n = adjacency.node_count
    weighted = adjacency.weighted if config.weighted is None else config.weighted
    neighbors = adjacency.directed.out_neighbors if config.directed else adjacency.undirected.neighbors

    sources = _select_sources(n, config)
    scores = brandes(neighbors, sources, weighted)

    scale = 1.0
    if sources and len(sources) < n:
        scale *= n / len(sources)
    if not config.directed:
        # each unordered pair was walked from both ends
        scale *= 0.5
    if config.normalized and n >= 3:
        pairs = (n - 1) * (n - 2)
        scale *= (1.0 if config.directed else 2.0) / pairs
    if scale != 1.0:
        scores = [s * scale for s in scores]

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info(
        "betweenness done nodes=%s sources=%s directed=%s weighted=%s ms=%.1f",
        n,
        len(sources),
        config.directed,
        weighted,
        elapsed_ms,
    )
    return RankingResult(
        scores=dict(zip(adjacency.node_ids, scores)),
        ranked_entities=rank_entities(adjacency, scores),
        metadata=BetweennessMetadata(
            normalized=config.normalized,
            directed=config.directed,
            weighted=weighted,
            sample_size=config.sample_size,
            node_count=n,
            edge_count=adjacency.edge_count,
            sources_processed=len(sources),
            execution_time_ms=elapsed_ms,
        ),
    )


def identify_bridge_entities(
    adjacency: AdjacencySnapshot,
    threshold: float = 0.1,
    config: BetweennessConfig | None = None,
) -> list[RankedEntity]:
    """Entities whose normalised betweenness is strictly above ``threshold``."""
    config = replace(config or BetweennessConfig(), normalized=True)
    result = calculate_betweenness(adjacency, config)
    return [entity for entity in result.ranked_entities if entity.score > threshold]
