from __future__ import annotations

import logging
import time

from .adjacency import AdjacencySnapshot
from .config import ImportanceConfig
from .models import ImportanceEntity, ImportanceMetadata, ImportanceResult, RankingResult

logger = logging.getLogger("graph-algorithms.importance")


def min_max_normalize(values: list[float]) -> list[float]:
    """Scale into [0, 1]; a constant series maps to 0.5 everywhere."""
    if not values:
        return []
    low, high = min(values), max(values)
    if high == low:
        return [0.5] * len(values)
    span = high - low
    return [(value - low) / span for value in values]


def calculate_importance(
    adjacency: AdjacencySnapshot,
    pagerank: RankingResult,
    betweenness: RankingResult,
    config: ImportanceConfig | None = None,
) -> ImportanceResult:
    config = config or ImportanceConfig()
    started = time.perf_counter()
    ids = adjacency.node_ids

    pr = min_max_normalize([pagerank.scores.get(node_id, 0.0) for node_id in ids])
    bc = min_max_normalize([betweenness.scores.get(node_id, 0.0) for node_id in ids])
    # a missing or zero mention count still means the entity was seen once
    counts = [entity.mention_count or 1 for entity in adjacency.entities]
    mentions = min_max_normalize([float(count) for count in counts])

    composite = [
        config.pagerank_weight * pr[i] + config.betweenness_weight * bc[i] + config.mention_weight * mentions[i]
        for i in range(len(ids))
    ]
    top = max(composite, default=0.0)
    if config.normalize_output and top > 0.0:
        composite = [score / top for score in composite]

    entities: list[ImportanceEntity] = []
    for i, node_id in enumerate(ids):
        entity = adjacency.entities[i]
        entities.append(
            ImportanceEntity(
                id=node_id,
                name=entity.label,
                type=entity.type or "Unknown",
                score=composite[i],
                pagerank=pr[i],
                betweenness=bc[i],
                mentions=mentions[i],
                mention_count=counts[i],
            )
        )

    ranked = sorted(entities, key=lambda e: (-e.score, e.id))
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info("importance done nodes=%s ms=%.1f", len(ids), elapsed_ms)
    return ImportanceResult(
        scores={entity.id: entity.score for entity in entities},
        ranked_entities=ranked,
        metadata=ImportanceMetadata(
            pagerank_weight=config.pagerank_weight,
            betweenness_weight=config.betweenness_weight,
            mention_weight=config.mention_weight,
            node_count=len(ids),
            normalized_output=config.normalize_output,
            execution_time_ms=elapsed_ms,
        ),
    )
