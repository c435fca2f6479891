from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from . import models


class UpstreamModel(BaseModel):
    """Payloads produced by the graph/query layer.

    Vertices carry arbitrary extra properties, so unknown keys are ignored
    rather than rejected.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EntityValue(UpstreamModel):
    id: str
    name: str | None = None
    label: str | None = None
    type: str | None = None
    weight: float = 1.0
    mention_count: int = Field(default=0, alias="mentionCount")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    def to_domain(self) -> models.EntityRecord:
        return models.EntityRecord(
            id=self.id,
            name=self.name or self.label or self.id,
            type=self.type or "Unknown",
            weight=self.weight,
            mention_count=self.mention_count,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class RelationshipValue(UpstreamModel):
    source: str
    target: str
    weight: float | None = None
    directed: bool = True
    type: str | None = None
    label: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_domain(self) -> models.RelationshipRecord:
        return models.RelationshipRecord(
            source=self.source,
            target=self.target,
            weight=self.weight,
            directed=self.directed,
            type=self.type or self.label or "RELATED_TO",
            created_at=self.created_at,
        )


class SubgraphRelationshipValue(UpstreamModel):
    from_: str = Field(alias="from")
    to: str
    type: str | None = None
    weight: float | None = None


class EntityGraphValue(UpstreamModel):
    nodes: list[EntityValue] = Field(default_factory=list)
    edges: list[RelationshipValue] = Field(default_factory=list)

    def to_domain(self) -> models.GraphSnapshot:
        return models.GraphSnapshot(
            nodes=[item.to_domain() for item in self.nodes],
            edges=[item.to_domain() for item in self.edges],
        )


class SubgraphValue(UpstreamModel):
    entities: list[EntityValue] = Field(default_factory=list)
    relationships: list[SubgraphRelationshipValue] = Field(default_factory=list)

    def to_domain(self) -> models.GraphSnapshot:
        """Build a snapshot, remapping relationship endpoints from names to ids.

        The first entity seen with a given name owns it. Endpoints that are
        already entity ids are kept; anything else is passed through so the
        adjacency builder drops and counts it.
        """
        nodes = [item.to_domain() for item in self.entities]
        name_to_id: dict[str, str] = {}
        for node in nodes:
            name_to_id.setdefault(node.name, node.id)

        edges = [
            models.RelationshipRecord(
                source=name_to_id.get(rel.from_, rel.from_),
                target=name_to_id.get(rel.to, rel.to),
                weight=rel.weight,
                type=rel.type or "RELATED_TO",
            )
            for rel in self.relationships
        ]
        return models.GraphSnapshot(nodes=nodes, edges=edges)


class EntityChangesValue(UpstreamModel):
    new_entities: list[EntityValue] = Field(default_factory=list, alias="newEntities")
    modified_entities: list[EntityValue] = Field(default_factory=list, alias="modifiedEntities")

    def to_domain(self) -> models.EntityChanges:
        return models.EntityChanges(
            new_entities=[item.to_domain() for item in self.new_entities],
            modified_entities=[item.to_domain() for item in self.modified_entities],
        )


class EdgeChangesValue(UpstreamModel):
    new_edges: list[RelationshipValue] = Field(default_factory=list, alias="newEdges")

    def to_domain(self) -> list[models.RelationshipRecord]:
        return [item.to_domain() for item in self.new_edges]


class GraphChangeSummaryValue(UpstreamModel):
    has_changes: bool = Field(default=True, alias="hasChanges")
    recommend_incremental: bool = Field(default=False, alias="recommendIncremental")
    change_ratio: float = Field(default=1.0, alias="changeRatio")
    total_changes: int = Field(default=0, alias="totalChanges")
    new_entity_count: int = Field(default=0, alias="newEntityCount")
    modified_entity_count: int = Field(default=0, alias="modifiedEntityCount")
    new_edge_count: int = Field(default=0, alias="newEdgeCount")

    def to_domain(self) -> models.GraphChangeSummary:
        return models.GraphChangeSummary(
            has_changes=self.has_changes,
            recommend_incremental=self.recommend_incremental,
            change_ratio=self.change_ratio,
            total_changes=self.total_changes,
            new_entity_count=self.new_entity_count,
            modified_entity_count=self.modified_entity_count,
            new_edge_count=self.new_edge_count,
        )
