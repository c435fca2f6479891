from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class EntityRecord:
    id: str
    name: str = ""
    type: str = "Unknown"
    weight: float = 1.0
    mention_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def label(self) -> str:
        return self.name or self.id


@dataclass(slots=True)
class RelationshipRecord:
    source: str
    target: str
    weight: float | None = None
    directed: bool = True
    type: str = "RELATED_TO"
    created_at: datetime | None = None

    @property
    def effective_weight(self) -> float:
        return 1.0 if self.weight is None else float(self.weight)


@dataclass(slots=True)
class GraphSnapshot:
    nodes: list[EntityRecord] = field(default_factory=list)
    edges: list[RelationshipRecord] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


@dataclass(slots=True)
class EntityChanges:
    new_entities: list[EntityRecord] = field(default_factory=list)
    modified_entities: list[EntityRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.new_entities) + len(self.modified_entities)


@dataclass(slots=True)
class GraphChangeSummary:
    has_changes: bool
    recommend_incremental: bool
    change_ratio: float = 1.0
    total_changes: int = 0
    new_entity_count: int = 0
    modified_entity_count: int = 0
    new_edge_count: int = 0
