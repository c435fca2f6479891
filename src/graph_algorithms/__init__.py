from .adjacency import AdjacencySnapshot, BuildStats, build_adjacency
from .betweenness import calculate_betweenness, identify_bridge_entities
from .config import BetweennessConfig, ImportanceConfig, IncrementalConfig, LouvainConfig, PageRankConfig
from .engine import GraphAlgorithmsEngine
from .frontier import detect_communities_incremental, identify_changed_communities
from .importance import calculate_importance
from .louvain import calculate_modularity, detect_communities
from .pagerank import calculate_pagerank
from .service import GraphAlgorithmsService

__all__ = [
    "AdjacencySnapshot",
    "BetweennessConfig",
    "BuildStats",
    "GraphAlgorithmsEngine",
    "GraphAlgorithmsService",
    "ImportanceConfig",
    "IncrementalConfig",
    "LouvainConfig",
    "PageRankConfig",
    "build_adjacency",
    "calculate_betweenness",
    "calculate_importance",
    "calculate_modularity",
    "calculate_pagerank",
    "detect_communities",
    "detect_communities_incremental",
    "identify_bridge_entities",
    "identify_changed_communities",
]
