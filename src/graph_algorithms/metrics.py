from __future__ import annotations

from prometheus_client import Counter, Histogram

ALGORITHM_RUNS = Counter(
    "graph_algorithm_runs_total",
    "Number of analytics runs",
    ["algorithm"],
)
ALGORITHM_FAILURES = Counter(
    "graph_algorithm_failures_total",
    "Number of analytics runs that failed before producing a result",
    ["algorithm"],
)
ALGORITHM_LATENCY_SECONDS = Histogram(
    "graph_algorithm_latency_seconds",
    "End-to-end latency of analytics runs including the snapshot fetch",
    ["algorithm"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)
DROPPED_EDGES = Counter(
    "graph_algorithm_dropped_edges_total",
    "Edges skipped while building adjacency",
    ["reason"],
)
INCREMENTAL_FALLBACKS = Counter(
    "graph_algorithm_incremental_fallbacks_total",
    "Incremental community runs that fell back to full detection",
    ["reason"],
)
PAGERANK_NON_CONVERGENCE = Counter(
    "graph_algorithm_pagerank_non_convergence_total",
    "PageRank runs that hit max iterations before converging",
)
