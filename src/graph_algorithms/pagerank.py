from __future__ import annotations

import logging
import time

from .adjacency import AdjacencySnapshot
from .config import PageRankConfig
from .models import ConvergenceState, PageRankMetadata, RankedEntity, RankingResult

logger = logging.getLogger("graph-algorithms.pagerank")


def rank_entities(adjacency: AdjacencySnapshot, scores: list[float]) -> list[RankedEntity]:
    ids = adjacency.node_ids
    order = sorted(range(len(ids)), key=lambda i: (-scores[i], ids[i]))
    ranked = []
    for i in order:
        entity = adjacency.entities[i]
        ranked.append(RankedEntity(id=ids[i], name=entity.label, type=entity.type or "Unknown", score=scores[i]))
    return ranked


def power_iteration(adjacency: AdjacencySnapshot, config: PageRankConfig) -> tuple[list[float], ConvergenceState]:
    """Damped power iteration over the weighted transition matrix.

    Mass held by dangling nodes (no outgoing weight but at least one
    incident edge) is spread evenly over every non-isolated node. Isolated
    nodes neither give nor receive mass, so they settle at (1 - d) / N.
    """
    n = adjacency.node_count
    if config.directed:
        in_neighbors = adjacency.directed.in_neighbors
        out_neighbors = adjacency.directed.out_neighbors
        out_weight = adjacency.directed.out_weight
    else:
        in_neighbors = out_neighbors = adjacency.undirected.neighbors
        out_weight = adjacency.undirected.degrees

    d = config.damping_factor
    teleport = (1.0 - d) / n
    connected = [i for i in range(n) if out_neighbors[i] or in_neighbors[i]]
    dangling = [i for i in connected if out_weight[i] <= 0]

    rank = [config.default_score / n] * n
    state = ConvergenceState(converged=False)
    for _ in range(config.max_iterations):
        share = d * sum(rank[i] for i in dangling) / len(connected) if connected else 0.0
        nxt = [teleport] * n
        for v in connected:
            inflow = 0.0
            for u, w in in_neighbors[v].items():
                if out_weight[u] > 0:
                    inflow += rank[u] * w / out_weight[u]
            nxt[v] += d * inflow + share

        delta = sum(abs(nxt[i] - rank[i]) for i in range(n))
        rank = nxt
        state.iterations += 1
        state.final_delta = delta
        if delta < config.convergence_threshold:
            state.converged = True
            break
    return rank, state


def calculate_pagerank(adjacency: AdjacencySnapshot, config: PageRankConfig | None = None) -> RankingResult:
    config = config or PageRankConfig()
    started = time.perf_counter()
    n = adjacency.node_count

    if n == 0:
        return RankingResult(
            scores={},
            ranked_entities=[],
            metadata=PageRankMetadata(
                damping_factor=config.damping_factor,
                iterations=0,
                converged=True,
                node_count=0,
                edge_count=adjacency.edge_count,
            ),
        )

    rank, state = power_iteration(adjacency, config)
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    if not state.converged:
        logger.warning(
            "pagerank did not converge iterations=%s final_delta=%.3e threshold=%.3e",
            state.iterations,
            state.final_delta,
            config.convergence_threshold,
        )
    else:
        logger.info("pagerank converged nodes=%s iterations=%s ms=%.1f", n, state.iterations, elapsed_ms)

    return RankingResult(
        scores=dict(zip(adjacency.node_ids, rank)),
        ranked_entities=rank_entities(adjacency, rank),
        metadata=PageRankMetadata(
            damping_factor=config.damping_factor,
            iterations=state.iterations,
            converged=state.converged,
            node_count=n,
            edge_count=adjacency.edge_count,
            final_delta=state.final_delta,
            execution_time_ms=elapsed_ms,
        ),
    )
