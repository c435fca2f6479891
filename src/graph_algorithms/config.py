from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


def _env_optional_bool(name: str) -> bool | None:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return None
    return raw == "true"


@dataclass(frozen=True, slots=True)
class LouvainConfig:
    resolution: float = 1.0
    max_iterations: int = 100
    min_modularity_gain: float = 1e-7

    def __post_init__(self) -> None:
        if self.resolution <= 0:
            raise ValueError(f"resolution must be positive, got {self.resolution}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.min_modularity_gain < 0:
            raise ValueError(f"min_modularity_gain must be >= 0, got {self.min_modularity_gain}")


@dataclass(frozen=True, slots=True)
class IncrementalConfig:
    """Thresholds deciding when a frontier update is trusted over a full rerun."""

    max_change_ratio: float = 0.3
    small_graph_floor: int = 10
    include_neighbors: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.max_change_ratio <= 1.0:
            raise ValueError(f"max_change_ratio must be in [0, 1], got {self.max_change_ratio}")
        if self.small_graph_floor < 0:
            raise ValueError(f"small_graph_floor must be >= 0, got {self.small_graph_floor}")


@dataclass(frozen=True, slots=True)
class PageRankConfig:
    damping_factor: float = 0.85
    max_iterations: int = 100
    convergence_threshold: float = 1e-6
    default_score: float = 1.0
    directed: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.damping_factor < 1.0:
            raise ValueError(f"damping_factor must be in [0, 1), got {self.damping_factor}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.convergence_threshold <= 0:
            raise ValueError(f"convergence_threshold must be positive, got {self.convergence_threshold}")
        if self.default_score <= 0:
            raise ValueError(f"default_score must be positive, got {self.default_score}")


@dataclass(frozen=True, slots=True)
class BetweennessConfig:
    directed: bool = True
    normalized: bool = True
    sample_size: int | None = None
    seed: int = 42
    # None means: weighted when any accepted edge carries a weight other than 1.0.
    weighted: bool | None = None

    def __post_init__(self) -> None:
        if self.sample_size is not None and self.sample_size < 1:
            raise ValueError(f"sample_size must be >= 1 when set, got {self.sample_size}")


@dataclass(frozen=True, slots=True)
class ImportanceConfig:
    pagerank_weight: float = 0.4
    betweenness_weight: float = 0.35
    mention_weight: float = 0.25
    normalize_output: bool = True

    def __post_init__(self) -> None:
        for name in ("pagerank_weight", "betweenness_weight", "mention_weight"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")


@dataclass(slots=True)
class RuntimeConfig:
    query_layer_url: str
    request_timeout_seconds: float
    snapshot_limit: int | None
    bootstrap_servers: str
    analytics_topic: str
    invalidation_topic: str
    publish_enabled: bool


def load_louvain_config() -> LouvainConfig:
    return LouvainConfig(
        resolution=float(os.getenv("ALGO_LOUVAIN_RESOLUTION", "1.0")),
        max_iterations=int(os.getenv("ALGO_LOUVAIN_MAX_ITERATIONS", "100")),
        min_modularity_gain=float(os.getenv("ALGO_LOUVAIN_MIN_GAIN", "1e-7")),
    )


def load_incremental_config() -> IncrementalConfig:
    return IncrementalConfig(
        max_change_ratio=float(os.getenv("ALGO_INCREMENTAL_MAX_CHANGE_RATIO", "0.3")),
        small_graph_floor=int(os.getenv("ALGO_INCREMENTAL_SMALL_GRAPH_FLOOR", "10")),
        include_neighbors=_env_bool("ALGO_INCREMENTAL_INCLUDE_NEIGHBORS", "true"),
    )


def load_pagerank_config() -> PageRankConfig:
    return PageRankConfig(
        damping_factor=float(os.getenv("ALGO_PAGERANK_DAMPING", "0.85")),
        max_iterations=int(os.getenv("ALGO_PAGERANK_ITERATIONS", "100")),
        convergence_threshold=float(os.getenv("ALGO_PAGERANK_THRESHOLD", "1e-6")),
        default_score=float(os.getenv("ALGO_PAGERANK_DEFAULT_SCORE", "1.0")),
        directed=_env_bool("ALGO_PAGERANK_DIRECTED", "true"),
    )


def load_betweenness_config() -> BetweennessConfig:
    return BetweennessConfig(
        directed=_env_bool("ALGO_BETWEENNESS_DIRECTED", "true"),
        normalized=_env_bool("ALGO_BETWEENNESS_NORMALIZED", "true"),
        sample_size=_env_optional_int("ALGO_BETWEENNESS_SAMPLES"),
        seed=int(os.getenv("ALGO_BETWEENNESS_SEED", "42")),
        weighted=_env_optional_bool("ALGO_BETWEENNESS_WEIGHTED"),
    )


def load_importance_config() -> ImportanceConfig:
    return ImportanceConfig(
        pagerank_weight=float(os.getenv("ALGO_IMPORTANCE_PAGERANK_WEIGHT", "0.4")),
        betweenness_weight=float(os.getenv("ALGO_IMPORTANCE_BETWEENNESS_WEIGHT", "0.35")),
        mention_weight=float(os.getenv("ALGO_IMPORTANCE_MENTION_WEIGHT", "0.25")),
        normalize_output=_env_bool("ALGO_IMPORTANCE_NORMALIZE_OUTPUT", "true"),
    )


def load_runtime_config() -> RuntimeConfig:
    return RuntimeConfig(
        query_layer_url=os.getenv("GRAPH_QUERY_URL", "http://localhost:3001/api"),
        request_timeout_seconds=float(os.getenv("GRAPH_QUERY_TIMEOUT_SECONDS", "30")),
        snapshot_limit=_env_optional_int("GRAPH_SNAPSHOT_LIMIT"),
        bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
        analytics_topic=os.getenv("GRAPH_ANALYTICS_TOPIC", "graph-analytics"),
        invalidation_topic=os.getenv("GRAPH_INVALIDATION_TOPIC", "community-invalidations"),
        publish_enabled=_env_bool("GRAPH_PUBLISH_ENABLED", "false"),
    )
