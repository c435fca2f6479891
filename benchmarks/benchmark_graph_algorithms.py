from __future__ import annotations

import random
import time

from entity_graph.models import EntityRecord, GraphSnapshot, RelationshipRecord
from graph_algorithms.config import BetweennessConfig
from graph_algorithms.engine import GraphAlgorithmsEngine


def make_snapshot(node_count: int, articles: int) -> GraphSnapshot:
    names = [f"Entity-{i}" for i in range(node_count)]
    nodes = [
        EntityRecord(id=name, name=name, type=random.choice(["PERSON", "ORG", "PLACE"]), mention_count=random.randint(1, 50))
        for name in names
    ]
    edges: list[RelationshipRecord] = []
    for _ in range(articles):
        picked = random.sample(names, 4)
        edges.extend(
            RelationshipRecord(picked[a], picked[b], weight=1.0, directed=False)
            for a in range(4)
            for b in range(a + 1, 4)
        )
    return GraphSnapshot(nodes=nodes, edges=edges)


def timed(label: str, fn):
    start = time.perf_counter()
    result = fn()
    elapsed = time.perf_counter() - start
    print(f"{label}_sec={elapsed:.4f}")
    return result


def main(node_count: int = 800, articles: int = 3000, samples: int = 64) -> None:
    random.seed(42)
    snapshot = make_snapshot(node_count, articles)

    engine = timed("adjacency", lambda: GraphAlgorithmsEngine(snapshot))
    communities = timed("louvain", engine.detect_communities)
    pagerank = timed("pagerank", engine.calculate_pagerank)
    timed(
        "betweenness_sampled",
        lambda: engine.calculate_betweenness(BetweennessConfig(directed=False, sample_size=samples)),
    )

    changed = random.sample(engine.adjacency.node_ids, max(1, node_count // 100))
    incremental = timed(
        "louvain_incremental",
        lambda: engine.detect_communities_incremental(communities, modified_node_ids=changed),
    )

    print(f"node_count={engine.adjacency.node_count}")
    print(f"edge_count={engine.adjacency.edge_count}")
    print(f"community_count={communities.metadata.community_count}")
    print(f"modularity={communities.modularity:.4f}")
    print(f"pagerank_iterations={pagerank.metadata.iterations}")
    print(f"frontier_size={incremental.metadata.frontier_size}")


if __name__ == "__main__":
    main()
