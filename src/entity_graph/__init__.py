from .models import (
    EntityChanges,
    EntityRecord,
    GraphChangeSummary,
    GraphSnapshot,
    RelationshipRecord,
)
from .provider import GraphSnapshotProvider, HttpGraphProvider, InMemoryGraphProvider
from .wire_models import (
    EdgeChangesValue,
    EntityChangesValue,
    EntityGraphValue,
    EntityValue,
    GraphChangeSummaryValue,
    RelationshipValue,
    SubgraphValue,
)

__all__ = [
    "EdgeChangesValue",
    "EntityChanges",
    "EntityChangesValue",
    "EntityGraphValue",
    "EntityRecord",
    "EntityValue",
    "GraphChangeSummary",
    "GraphChangeSummaryValue",
    "GraphSnapshot",
    "GraphSnapshotProvider",
    "HttpGraphProvider",
    "InMemoryGraphProvider",
    "RelationshipRecord",
    "RelationshipValue",
    "SubgraphValue",
]
