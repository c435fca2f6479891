from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CommunityMember:
    id: str
    name: str
    type: str


@dataclass(slots=True)
class Community:
    id: int
    members: list[CommunityMember] = field(default_factory=list)
    type_counts: dict[str, int] = field(default_factory=dict)
    dominant_type: str = "Unknown"

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(slots=True)
class CommunityMetadata:
    node_count: int
    edge_count: int
    community_count: int
    iterations: int
    hierarchy_levels: int = 0
    resolution: float = 1.0
    execution_time_ms: float = 0.0
    incremental: bool = False
    frontier_size: int | None = None
    affected_node_count: int | None = None
    fell_back_to_full: bool = False
    fallback_reason: str | None = None
    change_ratio: float | None = None
    from_cache: bool = False


@dataclass(slots=True)
class CommunityResult:
    communities: dict[str, int]
    community_list: list[Community]
    modularity: float
    metadata: CommunityMetadata
    changed_communities: list[int] = field(default_factory=list)


@dataclass(slots=True)
class RankedEntity:
    id: str
    name: str
    type: str
    score: float


@dataclass(slots=True)
class ConvergenceState:
    iterations: int = 0
    final_delta: float = 0.0
    converged: bool = True


@dataclass(slots=True)
class PageRankMetadata:
    damping_factor: float
    iterations: int
    converged: bool
    node_count: int
    edge_count: int
    final_delta: float = 0.0
    execution_time_ms: float = 0.0


@dataclass(slots=True)
class BetweennessMetadata:
    normalized: bool
    directed: bool
    weighted: bool
    sample_size: int | None
    node_count: int
    edge_count: int
    sources_processed: int = 0
    execution_time_ms: float = 0.0


@dataclass(slots=True)
class RankingResult:
    scores: dict[str, float]
    ranked_entities: list[RankedEntity]
    metadata: PageRankMetadata | BetweennessMetadata


@dataclass(slots=True)
class ImportanceEntity:
    id: str
    name: str
    type: str
    score: float
    pagerank: float
    betweenness: float
    mentions: float
    mention_count: int = 1


@dataclass(slots=True)
class ImportanceMetadata:
    pagerank_weight: float
    betweenness_weight: float
    mention_weight: float
    node_count: int
    normalized_output: bool = False
    execution_time_ms: float = 0.0


@dataclass(slots=True)
class ImportanceResult:
    scores: dict[str, float]
    ranked_entities: list[ImportanceEntity]
    metadata: ImportanceMetadata


@dataclass(slots=True)
class EntityCommunity:
    entity_id: str
    community_id: int
    community: Community | None
    total_communities: int
    modularity: float


@dataclass(slots=True)
class EntityRank:
    id: str
    name: str
    type: str
    score: float
    rank: int
    percentile: float
