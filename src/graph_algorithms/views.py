from __future__ import annotations

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


def top_communities(result: CommunityResult, limit: int = 10) -> list[Community]:
    return result.community_list[: max(0, limit)]


def entity_community(result: CommunityResult, entity_id: str) -> EntityCommunity | None:
    label = result.communities.get(entity_id)
    if label is None:
        return None
    community = next((c for c in result.community_list if c.id == label), None)
    return EntityCommunity(
        entity_id=entity_id,
        community_id=label,
        community=community,
        total_communities=len(result.community_list),
        modularity=result.modularity,
    )


def top_entities(
    result: RankingResult | ImportanceResult, limit: int = 10
) -> list[RankedEntity] | list[ImportanceEntity]:
    return result.ranked_entities[: max(0, limit)]


def entity_rank(result: RankingResult | ImportanceResult, entity_id: str) -> EntityRank | None:
    """Rank is 1-based; percentile is the share of entities ranked below."""
    ranked = result.ranked_entities
    for position, entity in enumerate(ranked, start=1):
        if entity.id == entity_id:
            return EntityRank(
                id=entity.id,
                name=entity.name,
                type=entity.type,
                score=entity.score,
                rank=position,
                percentile=(len(ranked) - position) / len(ranked) * 100.0,
            )
    return None
