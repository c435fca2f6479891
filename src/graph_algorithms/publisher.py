from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from confluent_kafka import Producer

from .config import RuntimeConfig
from .models import CommunityResult, RankedEntity, RankingResult
from .wire_models import AnalyticsSummaryValue, CommunityInvalidationValue


class ProducerLike(Protocol):
    def produce(self, topic: str, key: bytes | None = None, value: bytes | None = None, **kwargs: Any) -> None: ...

    def poll(self, timeout: float) -> int: ...

    def flush(self, timeout: float) -> int: ...


class AnalyticsPublisher:
    """Publishes analytics summaries and community invalidation events to Kafka."""

    def __init__(self, producer: ProducerLike, analytics_topic: str, invalidation_topic: str) -> None:
        self.producer = producer
        self.analytics_topic = analytics_topic
        self.invalidation_topic = invalidation_topic
        self.logger = logging.getLogger("graph-algorithms.publisher")

    @classmethod
    def from_config(cls, runtime_cfg: RuntimeConfig) -> "AnalyticsPublisher":
        producer = Producer({"bootstrap.servers": runtime_cfg.bootstrap_servers})
        return cls(producer, runtime_cfg.analytics_topic, runtime_cfg.invalidation_topic)

    def _send(self, topic: str, key: str, value: bytes) -> None:
        self.producer.produce(topic=topic, key=key.encode("utf-8"), value=value)
        self.producer.poll(0)

    def publish_summary(
        self,
        snapshot_id: str,
        communities: CommunityResult,
        pagerank: RankingResult,
        bridges: list[RankedEntity],
        top_n: int = 10,
    ) -> AnalyticsSummaryValue:
        summary = AnalyticsSummaryValue.from_results(
            snapshot_id,
            datetime.now(tz=timezone.utc),
            communities,
            pagerank,
            bridges,
            top_n=top_n,
        )
        self._send(self.analytics_topic, snapshot_id, summary.to_json_bytes())
        self.logger.info(
            "published analytics summary snapshot_id=%s communities=%s topic=%s",
            snapshot_id,
            summary.community_count,
            self.analytics_topic,
        )
        return summary

    def publish_invalidation(self, snapshot_id: str, result: CommunityResult) -> CommunityInvalidationValue | None:
        if not result.changed_communities:
            return None
        event = CommunityInvalidationValue.from_result(snapshot_id, datetime.now(tz=timezone.utc), result)
        self._send(self.invalidation_topic, snapshot_id, event.to_json_bytes())
        self.logger.info(
            "published community invalidation snapshot_id=%s changed=%s topic=%s",
            snapshot_id,
            len(event.changed_communities),
            self.invalidation_topic,
        )
        return event

    def close(self) -> None:
        remaining = self.producer.flush(5)
        if remaining:
            self.logger.warning("producer closed with undelivered messages count=%s", remaining)
