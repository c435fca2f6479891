from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from . import models


def datetime_to_epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


class WireModel(BaseModel):
    """Outbound payloads. Built by field name, dumped with camelCase aliases."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")


class CommunityMemberValue(WireModel):
    id: str
    name: str
    type: str


class CommunityValue(WireModel):
    id: int
    members: list[CommunityMemberValue]
    size: int
    type_counts: dict[str, int] = Field(alias="typeCounts")
    dominant_type: str = Field(alias="dominantType")

    @classmethod
    def from_domain(cls, community: models.Community) -> "CommunityValue":
        return cls(
            id=community.id,
            members=[CommunityMemberValue(id=m.id, name=m.name, type=m.type) for m in community.members],
            size=community.size,
            type_counts=dict(community.type_counts),
            dominant_type=community.dominant_type,
        )


class CommunityMetadataValue(WireModel):
    node_count: int = Field(alias="nodeCount")
    edge_count: int = Field(alias="edgeCount")
    community_count: int = Field(alias="communityCount")
    iterations: int
    hierarchy_levels: int = Field(alias="hierarchyLevels")
    resolution: float
    execution_time_ms: float = Field(alias="executionTimeMs")
    incremental: bool
    frontier_size: int | None = Field(default=None, alias="frontierSize")
    affected_node_count: int | None = Field(default=None, alias="affectedNodeCount")
    fell_back_to_full: bool = Field(default=False, alias="fellBackToFull")
    fallback_reason: str | None = Field(default=None, alias="fallbackReason")
    change_ratio: float | None = Field(default=None, alias="changeRatio")
    from_cache: bool = Field(default=False, alias="fromCache")

    @classmethod
    def from_domain(cls, meta: models.CommunityMetadata) -> "CommunityMetadataValue":
        return cls(
            node_count=meta.node_count,
            edge_count=meta.edge_count,
            community_count=meta.community_count,
            iterations=meta.iterations,
            hierarchy_levels=meta.hierarchy_levels,
            resolution=meta.resolution,
            execution_time_ms=meta.execution_time_ms,
            incremental=meta.incremental,
            frontier_size=meta.frontier_size,
            affected_node_count=meta.affected_node_count,
            fell_back_to_full=meta.fell_back_to_full,
            fallback_reason=meta.fallback_reason,
            change_ratio=meta.change_ratio,
            from_cache=meta.from_cache,
        )


class CommunityResultValue(WireModel):
    communities: dict[str, int]
    community_list: list[CommunityValue] = Field(alias="communityList")
    modularity: float
    metadata: CommunityMetadataValue
    changed_communities: list[int] = Field(default_factory=list, alias="changedCommunities")

    @classmethod
    def from_domain(cls, result: models.CommunityResult) -> "CommunityResultValue":
        return cls(
            communities=dict(result.communities),
            community_list=[CommunityValue.from_domain(c) for c in result.community_list],
            modularity=result.modularity,
            metadata=CommunityMetadataValue.from_domain(result.metadata),
            changed_communities=list(result.changed_communities),
        )


class RankedEntityValue(WireModel):
    id: str
    name: str
    type: str
    score: float


class PageRankMetadataValue(WireModel):
    damping_factor: float = Field(alias="dampingFactor")
    iterations: int
    converged: bool
    node_count: int = Field(alias="nodeCount")
    edge_count: int = Field(alias="edgeCount")
    final_delta: float = Field(alias="finalDelta")
    execution_time_ms: float = Field(alias="executionTimeMs")


class BetweennessMetadataValue(WireModel):
    normalized: bool
    directed: bool
    weighted: bool
    sample_size: int | None = Field(alias="sampleSize")
    node_count: int = Field(alias="nodeCount")
    edge_count: int = Field(alias="edgeCount")
    sources_processed: int = Field(alias="sourcesProcessed")
    execution_time_ms: float = Field(alias="executionTimeMs")


class RankingResultValue(WireModel):
    scores: dict[str, float]
    ranked_entities: list[RankedEntityValue] = Field(alias="rankedEntities")
    metadata: PageRankMetadataValue | BetweennessMetadataValue

    @classmethod
    def from_domain(cls, result: models.RankingResult) -> "RankingResultValue":
        meta = result.metadata
        if isinstance(meta, models.PageRankMetadata):
            metadata = PageRankMetadataValue(
                damping_factor=meta.damping_factor,
                iterations=meta.iterations,
                converged=meta.converged,
                node_count=meta.node_count,
                edge_count=meta.edge_count,
                final_delta=meta.final_delta,
                execution_time_ms=meta.execution_time_ms,
            )
        else:
            metadata = BetweennessMetadataValue(
                normalized=meta.normalized,
                directed=meta.directed,
                weighted=meta.weighted,
                sample_size=meta.sample_size,
                node_count=meta.node_count,
                edge_count=meta.edge_count,
                sources_processed=meta.sources_processed,
                execution_time_ms=meta.execution_time_ms,
            )
        return cls(
            scores=dict(result.scores),
            ranked_entities=[RankedEntityValue(id=e.id, name=e.name, type=e.type, score=e.score) for e in result.ranked_entities],
            metadata=metadata,
        )


class EntityRankValue(WireModel):
    id: str
    name: str
    type: str
    score: float
    rank: int
    percentile: float

    @classmethod
    def from_domain(cls, entity: models.EntityRank) -> "EntityRankValue":
        return cls(
            id=entity.id,
            name=entity.name,
            type=entity.type,
            score=entity.score,
            rank=entity.rank,
            percentile=entity.percentile,
        )


class ImportanceEntityValue(WireModel):
    id: str
    name: str
    type: str
    score: float
    pagerank: float
    betweenness: float
    mentions: float
    mention_count: int = Field(alias="mentionCount")


class ImportanceResultValue(WireModel):
    scores: dict[str, float]
    ranked_entities: list[ImportanceEntityValue] = Field(alias="rankedEntities")
    weights: dict[str, float]
    node_count: int = Field(alias="nodeCount")
    normalized_output: bool = Field(alias="normalizedOutput")

    @classmethod
    def from_domain(cls, result: models.ImportanceResult) -> "ImportanceResultValue":
        meta = result.metadata
        return cls(
            scores=dict(result.scores),
            ranked_entities=[
                ImportanceEntityValue(
                    id=e.id,
                    name=e.name,
                    type=e.type,
                    score=e.score,
                    pagerank=e.pagerank,
                    betweenness=e.betweenness,
                    mentions=e.mentions,
                    mention_count=e.mention_count,
                )
                for e in result.ranked_entities
            ],
            weights={
                "pagerank": meta.pagerank_weight,
                "betweenness": meta.betweenness_weight,
                "mentions": meta.mention_weight,
            },
            node_count=meta.node_count,
            normalized_output=meta.normalized_output,
        )


class SummaryEntityValue(WireModel):
    id: str
    name: str
    score: float
    community: int | None = None


class AnalyticsSummaryValue(WireModel):
    snapshot_id: str = Field(alias="snapshotId")
    timestamp: int = Field(description="timestamp-millis")
    node_count: int = Field(alias="nodeCount")
    edge_count: int = Field(alias="edgeCount")
    community_count: int = Field(alias="communityCount")
    modularity: float
    top_pagerank: list[SummaryEntityValue] = Field(alias="topPagerank")
    top_bridge_entities: list[SummaryEntityValue] = Field(alias="topBridgeEntities")

    @classmethod
    def from_results(
        cls,
        snapshot_id: str,
        generated_at: datetime,
        communities: models.CommunityResult,
        pagerank: models.RankingResult,
        bridges: list[models.RankedEntity],
        top_n: int = 10,
    ) -> "AnalyticsSummaryValue":
        def entry(entity: models.RankedEntity) -> SummaryEntityValue:
            return SummaryEntityValue(
                id=entity.id,
                name=entity.name,
                score=entity.score,
                community=communities.communities.get(entity.id),
            )

        return cls(
            snapshot_id=snapshot_id,
            timestamp=datetime_to_epoch_millis(generated_at),
            node_count=communities.metadata.node_count,
            edge_count=communities.metadata.edge_count,
            community_count=communities.metadata.community_count,
            modularity=communities.modularity,
            top_pagerank=[entry(e) for e in pagerank.ranked_entities[:top_n]],
            top_bridge_entities=[entry(e) for e in bridges[:top_n]],
        )


class CommunityInvalidationValue(WireModel):
    snapshot_id: str = Field(alias="snapshotId")
    timestamp: int = Field(description="timestamp-millis")
    changed_communities: list[int] = Field(alias="changedCommunities")
    incremental: bool
    modularity: float

    @classmethod
    def from_result(
        cls, snapshot_id: str, generated_at: datetime, result: models.CommunityResult
    ) -> "CommunityInvalidationValue":
        return cls(
            snapshot_id=snapshot_id,
            timestamp=datetime_to_epoch_millis(generated_at),
            changed_communities=list(result.changed_communities),
            incremental=result.metadata.incremental,
            modularity=result.modularity,
        )
