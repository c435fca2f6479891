from __future__ import annotations

import json

from entity_graph.models import EntityRecord, GraphSnapshot, RelationshipRecord
from graph_algorithms.engine import GraphAlgorithmsEngine
from graph_algorithms.publisher import AnalyticsPublisher


class FakeProducer:
    def __init__(self, pending: int = 0) -> None:
        self.messages: list[dict] = []
        self.polls = 0
        self.flushed = False
        self.pending = pending

    def produce(self, topic, key=None, value=None, **_kwargs) -> None:
        self.messages.append({"topic": topic, "key": key, "value": value})

    def poll(self, _timeout) -> int:
        self.polls += 1
        return 0

    def flush(self, _timeout) -> int:
        self.flushed = True
        return self.pending


def make_engine() -> GraphAlgorithmsEngine:
    nodes = [EntityRecord(id=n, name=n) for n in "abcd"]
    edges = [RelationshipRecord("a", "b"), RelationshipRecord("c", "d")]
    return GraphAlgorithmsEngine(GraphSnapshot(nodes=nodes, edges=edges))


def test_summary_is_produced_and_polled() -> None:
    producer = FakeProducer()
    publisher = AnalyticsPublisher(producer, "graph-analytics", "community-invalidations")
    engine = make_engine()

    summary = publisher.publish_summary(
        "snap-7",
        engine.detect_communities(),
        engine.calculate_pagerank(),
        engine.identify_bridge_entities(),
    )

    assert producer.polls == 1
    message = producer.messages[0]
    assert message["topic"] == "graph-analytics"
    assert message["key"] == b"snap-7"
    body = json.loads(message["value"].decode("utf-8"))
    assert body["communityCount"] == 2
    assert body["snapshotId"] == summary.snapshot_id


def test_invalidation_only_sent_when_communities_changed() -> None:
    producer = FakeProducer()
    publisher = AnalyticsPublisher(producer, "graph-analytics", "community-invalidations")
    result = make_engine().detect_communities()

    assert publisher.publish_invalidation("snap-1", result) is None
    assert producer.messages == []

    result.changed_communities = [0, 1]
    event = publisher.publish_invalidation("snap-2", result)

    assert event is not None
    body = json.loads(producer.messages[0]["value"])
    assert producer.messages[0]["topic"] == "community-invalidations"
    assert body["changedCommunities"] == [0, 1]
    assert body["incremental"] is False


def test_close_flushes_producer() -> None:
    producer = FakeProducer(pending=2)
    publisher = AnalyticsPublisher(producer, "graph-analytics", "community-invalidations")

    publisher.close()

    assert producer.flushed is True
