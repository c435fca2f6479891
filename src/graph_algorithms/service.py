from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Mapping

from entity_graph.provider import GraphSnapshotProvider, HttpGraphProvider
from entity_graph.wire_models import (
    EdgeChangesValue,
    EntityChangesValue,
    EntityGraphValue,
    GraphChangeSummaryValue,
    SubgraphValue,
)

from .config import (
    BetweennessConfig,
    ImportanceConfig,
    IncrementalConfig,
    LouvainConfig,
    PageRankConfig,
    load_betweenness_config,
    load_importance_config,
    load_incremental_config,
    load_louvain_config,
    load_pagerank_config,
    load_runtime_config,
)
from .engine import GraphAlgorithmsEngine
from .frontier import EdgeLike
from .metrics import (
    ALGORITHM_FAILURES,
    ALGORITHM_LATENCY_SECONDS,
    ALGORITHM_RUNS,
    DROPPED_EDGES,
    INCREMENTAL_FALLBACKS,
    PAGERANK_NON_CONVERGENCE,
)
from .models import (
    Community,
    CommunityResult,
    EntityCommunity,
    EntityRank,
    ImportanceEntity,
    ImportanceResult,
    RankedEntity,
    RankingResult,
)
from .publisher import AnalyticsPublisher
from . import views
from .wire_models import AnalyticsSummaryValue


class GraphAlgorithmsService:
    """Async entry points: fetch a snapshot, run the engine, record metrics.

    Provider failures are logged and re-raised unchanged; callers get either
    a complete result or the upstream error.
    """

    def __init__(
        self,
        provider: GraphSnapshotProvider,
        *,
        louvain_config: LouvainConfig | None = None,
        incremental_config: IncrementalConfig | None = None,
        pagerank_config: PageRankConfig | None = None,
        betweenness_config: BetweennessConfig | None = None,
        importance_config: ImportanceConfig | None = None,
        snapshot_limit: int | None = None,
        publisher: AnalyticsPublisher | None = None,
    ) -> None:
        self.provider = provider
        self.louvain_config = louvain_config or LouvainConfig()
        self.incremental_config = incremental_config or IncrementalConfig()
        self.pagerank_config = pagerank_config or PageRankConfig()
        self.betweenness_config = betweenness_config or BetweennessConfig()
        self.importance_config = importance_config or ImportanceConfig()
        self.snapshot_limit = snapshot_limit
        self.publisher = publisher
        self.logger = logging.getLogger("graph-algorithms")

    @classmethod
    def from_env(cls) -> "GraphAlgorithmsService":
        runtime_cfg = load_runtime_config()
        provider = HttpGraphProvider(
            runtime_cfg.query_layer_url,
            timeout_seconds=runtime_cfg.request_timeout_seconds,
        )
        publisher = AnalyticsPublisher.from_config(runtime_cfg) if runtime_cfg.publish_enabled else None
        return cls(
            provider,
            louvain_config=load_louvain_config(),
            incremental_config=load_incremental_config(),
            pagerank_config=load_pagerank_config(),
            betweenness_config=load_betweenness_config(),
            importance_config=load_importance_config(),
            snapshot_limit=runtime_cfg.snapshot_limit,
            publisher=publisher,
        )

    @contextmanager
    def _timed(self, algorithm: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        except Exception:
            ALGORITHM_FAILURES.labels(algorithm).inc()
            self.logger.exception("graph algorithm failed algorithm=%s", algorithm)
            raise
        ALGORITHM_RUNS.labels(algorithm).inc()
        ALGORITHM_LATENCY_SECONDS.labels(algorithm).observe(time.perf_counter() - started)

    def _engine_for(self, value: EntityGraphValue | SubgraphValue) -> GraphAlgorithmsEngine:
        engine = GraphAlgorithmsEngine(value.to_domain())
        stats = engine.adjacency.stats
        if stats.dropped_unknown_endpoint:
            DROPPED_EDGES.labels("unknown_endpoint").inc(stats.dropped_unknown_endpoint)
        if stats.dropped_bad_weight:
            DROPPED_EDGES.labels("bad_weight").inc(stats.dropped_bad_weight)
        return engine

    async def load_snapshot(self) -> GraphAlgorithmsEngine:
        payload = await self.provider.get_all_entities(self.snapshot_limit)
        engine = self._engine_for(EntityGraphValue.model_validate(payload))
        self.logger.info(
            "snapshot loaded nodes=%s edges=%s dropped=%s",
            engine.adjacency.node_count,
            engine.adjacency.edge_count,
            engine.adjacency.stats.dropped_edges,
        )
        return engine

    async def detect_communities(self, config: LouvainConfig | None = None) -> CommunityResult:
        with self._timed("louvain"):
            engine = await self.load_snapshot()
            return engine.detect_communities(config or self.louvain_config)

    async def detect_subgraph_communities(
        self, node_ids: Iterable[str], config: LouvainConfig | None = None
    ) -> CommunityResult:
        with self._timed("louvain_subgraph"):
            payload = await self.provider.get_subgraph(list(node_ids))
            engine = self._engine_for(SubgraphValue.model_validate(payload))
            return engine.detect_communities(config or self.louvain_config)

    async def detect_communities_incremental(
        self,
        previous_result: CommunityResult | Mapping[str, Any] | None,
        new_node_ids: Iterable[str] = (),
        new_edges: Iterable[EdgeLike] = (),
        modified_node_ids: Iterable[str] = (),
        removed_edges: Iterable[EdgeLike] = (),
        config: LouvainConfig | None = None,
    ) -> CommunityResult:
        with self._timed("louvain_incremental"):
            engine = await self.load_snapshot()
            result = engine.detect_communities_incremental(
                previous_result,
                new_node_ids=new_node_ids,
                new_edges=new_edges,
                modified_node_ids=modified_node_ids,
                removed_edges=removed_edges,
                config=config or self.louvain_config,
                incremental=self.incremental_config,
            )
        if result.metadata.fell_back_to_full:
            INCREMENTAL_FALLBACKS.labels(result.metadata.fallback_reason or "unknown").inc()
        if self.publisher is not None:
            self.publisher.publish_invalidation(uuid.uuid4().hex, result)
        return result

    async def detect_communities_smart(
        self,
        since: datetime | None = None,
        previous_result: CommunityResult | None = None,
        config: LouvainConfig | None = None,
    ) -> CommunityResult:
        """Pick cached, incremental or full detection from the upstream change summary."""
        if since is None or previous_result is None:
            return await self.detect_communities(config)

        try:
            summary_payload = await self.provider.get_graph_change_summary(since)
        except Exception:
            self.logger.exception("change summary fetch failed since=%s", since)
            raise
        summary = GraphChangeSummaryValue.model_validate(summary_payload).to_domain()

        if not summary.has_changes:
            self.logger.info("no graph changes since=%s, reusing previous communities", since)
            return replace(previous_result, metadata=replace(previous_result.metadata, from_cache=True))

        if not summary.recommend_incremental:
            self.logger.info("change ratio too high for incremental ratio=%.3f", summary.change_ratio)
            return await self.detect_communities(config)

        try:
            entity_payload, edge_payload = await asyncio.gather(
                self.provider.get_entities_modified_since(since),
                self.provider.get_edges_created_since(since),
            )
        except Exception:
            self.logger.exception("change set fetch failed since=%s", since)
            raise
        changes = EntityChangesValue.model_validate(entity_payload).to_domain()
        new_edges = EdgeChangesValue.model_validate(edge_payload).to_domain()
        return await self.detect_communities_incremental(
            previous_result,
            new_node_ids=[entity.id for entity in changes.new_entities],
            new_edges=new_edges,
            modified_node_ids=[entity.id for entity in changes.modified_entities],
            config=config,
        )

    async def calculate_pagerank(self, config: PageRankConfig | None = None) -> RankingResult:
        with self._timed("pagerank"):
            engine = await self.load_snapshot()
            result = engine.calculate_pagerank(config or self.pagerank_config)
        if not result.metadata.converged:
            PAGERANK_NON_CONVERGENCE.inc()
        return result

    async def calculate_betweenness(self, config: BetweennessConfig | None = None) -> RankingResult:
        with self._timed("betweenness"):
            engine = await self.load_snapshot()
            return engine.calculate_betweenness(config or self.betweenness_config)

    async def calculate_importance(self, config: ImportanceConfig | None = None) -> ImportanceResult:
        with self._timed("importance"):
            engine = await self.load_snapshot()
            return engine.calculate_importance(
                config or self.importance_config,
                pagerank_config=self.pagerank_config,
                betweenness_config=replace(self.betweenness_config, normalized=True),
            )

    async def get_top_communities(self, limit: int = 10) -> list[Community]:
        engine = await self.load_snapshot()
        return engine.get_top_communities(limit, self.louvain_config)

    async def get_entity_community(self, entity_id: str) -> EntityCommunity | None:
        engine = await self.load_snapshot()
        return engine.get_entity_community(entity_id, self.louvain_config)

    async def get_top_entities_by_pagerank(self, limit: int = 10) -> list[RankedEntity]:
        engine = await self.load_snapshot()
        return engine.get_top_entities_by_pagerank(limit, self.pagerank_config)

    async def get_entity_pagerank(self, entity_id: str) -> EntityRank | None:
        engine = await self.load_snapshot()
        return engine.get_entity_pagerank(entity_id, self.pagerank_config)

    async def get_top_entities_by_betweenness(self, limit: int = 10) -> list[RankedEntity]:
        engine = await self.load_snapshot()
        return engine.get_top_entities_by_betweenness(limit, self.betweenness_config)

    async def get_entity_betweenness(self, entity_id: str) -> EntityRank | None:
        engine = await self.load_snapshot()
        return engine.get_entity_betweenness(entity_id, self.betweenness_config)

    async def get_top_entities_by_importance(self, limit: int = 10) -> list[ImportanceEntity]:
        result = await self.calculate_importance()
        return views.top_entities(result, limit)

    async def get_entity_importance(self, entity_id: str) -> EntityRank | None:
        result = await self.calculate_importance()
        return views.entity_rank(result, entity_id)

    async def identify_bridge_entities(
        self, threshold: float = 0.1, config: BetweennessConfig | None = None
    ) -> list[RankedEntity]:
        with self._timed("bridges"):
            engine = await self.load_snapshot()
            return engine.identify_bridge_entities(threshold, config or self.betweenness_config)

    async def run_snapshot_analysis(self, top_n: int = 10, bridge_threshold: float = 0.1) -> AnalyticsSummaryValue:
        """Full pass over one snapshot; publishes the summary when a publisher is set."""
        with self._timed("snapshot_analysis"):
            engine = await self.load_snapshot()
            communities = engine.detect_communities(self.louvain_config)
            pagerank = engine.calculate_pagerank(self.pagerank_config)
            bridges = engine.identify_bridge_entities(bridge_threshold, self.betweenness_config)

        snapshot_id = uuid.uuid4().hex
        if self.publisher is not None:
            return self.publisher.publish_summary(snapshot_id, communities, pagerank, bridges, top_n=top_n)
        return AnalyticsSummaryValue.from_results(
            snapshot_id,
            datetime.now(tz=timezone.utc),
            communities,
            pagerank,
            bridges,
            top_n=top_n,
        )

    def close(self) -> None:
        if self.publisher is not None:
            self.publisher.close()
