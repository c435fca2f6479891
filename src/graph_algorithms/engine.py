from __future__ import annotations

from typing import Any, Iterable, Mapping

from entity_graph.models import GraphSnapshot

from .adjacency import AdjacencySnapshot, build_from_snapshot
from .betweenness import calculate_betweenness, identify_bridge_entities
from .config import BetweennessConfig, ImportanceConfig, IncrementalConfig, LouvainConfig, PageRankConfig
from .frontier import EdgeLike, detect_communities_incremental
from .importance import calculate_importance
from .louvain import detect_communities
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
from .pagerank import calculate_pagerank
from . import views


class GraphAlgorithmsEngine:
    """Runs the analytics over one snapshot.

    The adjacency is built once at construction and is read-only from then
    on. Full-graph results are memoised per configuration value, so the
    derived views do not recompute on every lookup. Memoised results are
    shared between callers and must be treated as read-only; use
    `dataclasses.replace` to derive a modified copy.
    """

    def __init__(self, snapshot: GraphSnapshot | AdjacencySnapshot) -> None:
        self.adjacency = snapshot if isinstance(snapshot, AdjacencySnapshot) else build_from_snapshot(snapshot)
        self._communities: dict[LouvainConfig, CommunityResult] = {}
        self._pagerank: dict[PageRankConfig, RankingResult] = {}
        self._betweenness: dict[BetweennessConfig, RankingResult] = {}

    @property
    def node_count(self) -> int:
        return self.adjacency.node_count

    def detect_communities(self, config: LouvainConfig | None = None) -> CommunityResult:
        config = config or LouvainConfig()
        if config not in self._communities:
            self._communities[config] = detect_communities(self.adjacency, config)
        return self._communities[config]

    def detect_communities_incremental(
        self,
        previous_result: CommunityResult | Mapping[str, Any] | None,
        new_node_ids: Iterable[str] = (),
        new_edges: Iterable[EdgeLike] = (),
        modified_node_ids: Iterable[str] = (),
        removed_edges: Iterable[EdgeLike] = (),
        config: LouvainConfig | None = None,
        incremental: IncrementalConfig | None = None,
    ) -> CommunityResult:
        return detect_communities_incremental(
            self.adjacency,
            previous_result,
            new_node_ids=new_node_ids,
            new_edges=new_edges,
            modified_node_ids=modified_node_ids,
            removed_edges=removed_edges,
            config=config,
            incremental=incremental,
        )

    def calculate_pagerank(self, config: PageRankConfig | None = None) -> RankingResult:
        config = config or PageRankConfig()
        if config not in self._pagerank:
            self._pagerank[config] = calculate_pagerank(self.adjacency, config)
        return self._pagerank[config]

    def calculate_betweenness(self, config: BetweennessConfig | None = None) -> RankingResult:
        config = config or BetweennessConfig()
        if config not in self._betweenness:
            self._betweenness[config] = calculate_betweenness(self.adjacency, config)
        return self._betweenness[config]

    def identify_bridge_entities(
        self, threshold: float = 0.1, config: BetweennessConfig | None = None
    ) -> list[RankedEntity]:
        return identify_bridge_entities(self.adjacency, threshold, config)

    def calculate_importance(
        self,
        config: ImportanceConfig | None = None,
        pagerank_config: PageRankConfig | None = None,
        betweenness_config: BetweennessConfig | None = None,
    ) -> ImportanceResult:
        return calculate_importance(
            self.adjacency,
            self.calculate_pagerank(pagerank_config),
            self.calculate_betweenness(betweenness_config),
            config,
        )

    def get_top_communities(self, limit: int = 10, config: LouvainConfig | None = None) -> list[Community]:
        return views.top_communities(self.detect_communities(config), limit)

    def get_entity_community(self, entity_id: str, config: LouvainConfig | None = None) -> EntityCommunity | None:
        return views.entity_community(self.detect_communities(config), entity_id)

    def get_top_entities_by_pagerank(self, limit: int = 10, config: PageRankConfig | None = None) -> list[RankedEntity]:
        return views.top_entities(self.calculate_pagerank(config), limit)

    def get_entity_pagerank(self, entity_id: str, config: PageRankConfig | None = None) -> EntityRank | None:
        return views.entity_rank(self.calculate_pagerank(config), entity_id)

    def get_top_entities_by_betweenness(
        self, limit: int = 10, config: BetweennessConfig | None = None
    ) -> list[RankedEntity]:
        return views.top_entities(self.calculate_betweenness(config), limit)

    def get_entity_betweenness(self, entity_id: str, config: BetweennessConfig | None = None) -> EntityRank | None:
        return views.entity_rank(self.calculate_betweenness(config), entity_id)


    def get_top_entities_by_importance(
        self,
        limit: int = 10,
        config: ImportanceConfig | None = None,
        pagerank_config: PageRankConfig | None = None,
        betweenness_config: BetweennessConfig | None = None,
    ) -> list[ImportanceEntity]:
        return views.top_entities(self.calculate_importance(config, pagerank_config, betweenness_config), limit)

    def get_entity_importance(
        self,
        entity_id: str,
        config: ImportanceConfig | None = None,
        pagerank_config: PageRankConfig | None = None,
        betweenness_config: BetweennessConfig | None = None,
    ) -> EntityRank | None:
        return views.entity_rank(self.calculate_importance(config, pagerank_config, betweenness_config), entity_id)
