from __future__ import annotations

import copy

import pytest

from entity_graph.models import EntityRecord, RelationshipRecord
from graph_algorithms.adjacency import build_adjacency
from graph_algorithms.config import IncrementalConfig
from graph_algorithms.frontier import detect_communities_incremental, identify_changed_communities
from graph_algorithms.louvain import detect_communities


def ring_of_cliques(cliques: int = 4, size: int = 5) -> tuple[list[str], list[tuple[str, str]]]:
    node_ids: list[str] = []
    edges: list[tuple[str, str]] = []
    for c in range(cliques):
        members = [f"c{c}_{i}" for i in range(size)]
        node_ids.extend(members)
        edges.extend((x, y) for i, x in enumerate(members) for y in members[i + 1:])
    for c in range(cliques):
        edges.append((f"c{c}_{size - 1}", f"c{(c + 1) % cliques}_0"))
    return node_ids, edges


def build(node_ids: list[str], edges: list[tuple[str, str]]):
    return build_adjacency(
        [EntityRecord(id=n, name=n) for n in node_ids],
        [RelationshipRecord(s, t) for s, t in edges],
    )


def test_ring_of_cliques_baseline() -> None:
    result = detect_communities(build(*ring_of_cliques()))

    assert result.metadata.community_count == 4
    for c in range(4):
        assert len({result.communities[f"c{c}_{i}"] for i in range(5)}) == 1


def test_without_previous_result_matches_full_detection() -> None:
    adjacency = build(*ring_of_cliques())
    full = detect_communities(adjacency)
    incremental = detect_communities_incremental(adjacency, None)

    assert incremental.communities == full.communities
    assert incremental.modularity == pytest.approx(full.modularity)
    assert incremental.metadata.incremental is False
    assert incremental.metadata.fell_back_to_full is True
    assert incremental.metadata.fallback_reason == "no_previous_result"


def test_low_change_ratio_runs_on_frontier_only() -> None:
    node_ids, edges = ring_of_cliques()
    previous = detect_communities(build(node_ids, edges))
    new_edge = ("c0_0", "c0_1")
    current = build(node_ids, edges + [new_edge])

    result = detect_communities_incremental(current, previous, new_edges=[new_edge])

    assert result.metadata.incremental is True
    assert result.metadata.fell_back_to_full is False
    assert result.metadata.change_ratio == pytest.approx(2 / 20)
    assert result.metadata.affected_node_count == 2
    assert result.metadata.frontier_size < current.node_count
    assert result.communities == previous.communities
    assert sum(c.size for c in result.community_list) == current.node_count
    # c3_4 is on the frontier through its ring edge to c0_0
    assert result.changed_communities == sorted({previous.communities["c0_0"], previous.communities["c3_4"]})


def test_frontier_without_neighbours_is_just_the_affected_nodes() -> None:
    node_ids, edges = ring_of_cliques()
    previous = detect_communities(build(node_ids, edges))
    current = build(node_ids, edges)

    result = detect_communities_incremental(
        current,
        previous,
        modified_node_ids=["c2_3"],
        incremental=IncrementalConfig(include_neighbors=False),
    )

    assert result.metadata.frontier_size == 1
    assert result.metadata.affected_node_count == 1


def test_new_node_joins_its_neighbours_and_labels_are_preserved() -> None:
    node_ids, edges = ring_of_cliques()
    previous = detect_communities(build(node_ids, edges))
    snapshot_before = copy.deepcopy(previous.communities)

    new_edges = [("x", "c0_0"), ("x", "c0_1"), ("x", "c0_2")]
    current = build(node_ids + ["x"], edges + new_edges)
    result = detect_communities_incremental(
        current,
        {"communities": previous.communities},
        new_node_ids=["x"],
        new_edges=[RelationshipRecord(s, t) for s, t in new_edges],
    )

    assert previous.communities == snapshot_before
    assert result.metadata.incremental is True
    assert result.communities["x"] == previous.communities["c0_0"]
    for node_id in node_ids:
        assert result.communities[node_id] == previous.communities[node_id]
    assert previous.communities["c0_0"] in result.changed_communities


def test_new_node_without_edges_gets_a_fresh_label() -> None:
    node_ids, edges = ring_of_cliques()
    previous = detect_communities(build(node_ids, edges))
    current = build(node_ids + ["solo"], edges)

    result = detect_communities_incremental(current, previous, new_node_ids=["solo"])

    assert result.communities["solo"] == max(previous.communities.values()) + 1
    assert result.changed_communities == [result.communities["solo"]]


def test_small_graph_falls_back_to_full() -> None:
    adjacency = build(["a", "b", "c", "d"], [("a", "b"), ("c", "d")])
    previous = detect_communities(adjacency)

    result = detect_communities_incremental(adjacency, previous, modified_node_ids=["a"])

    assert result.metadata.fell_back_to_full is True
    assert result.metadata.fallback_reason == "small_graph"
    assert result.communities == previous.communities


def test_high_change_ratio_falls_back_to_full() -> None:
    node_ids, edges = ring_of_cliques()
    adjacency = build(node_ids, edges)
    previous = detect_communities(adjacency)

    result = detect_communities_incremental(adjacency, previous, modified_node_ids=node_ids[:7])

    assert result.metadata.change_ratio == pytest.approx(7 / 20)
    assert result.metadata.fallback_reason == "change_ratio"
    assert result.metadata.incremental is False


def test_thresholds_are_configuration() -> None:
    node_ids, edges = ring_of_cliques()
    adjacency = build(node_ids, edges)
    previous = detect_communities(adjacency)

    result = detect_communities_incremental(
        adjacency,
        previous,
        modified_node_ids=node_ids[:7],
        incremental=IncrementalConfig(max_change_ratio=0.5, small_graph_floor=2),
    )

    assert result.metadata.incremental is True


def test_removed_edges_put_their_endpoints_on_the_frontier() -> None:
    node_ids, edges = ring_of_cliques()
    previous = detect_communities(build(node_ids, edges))
    removed = ("c0_4", "c1_0")
    current = build(node_ids, [e for e in edges if e != removed])

    result = detect_communities_incremental(current, previous, removed_edges=[removed])

    assert result.metadata.incremental is True
    assert result.metadata.affected_node_count == 2
    assert result.metadata.change_ratio == 0.0


def test_identify_changed_communities_is_the_union() -> None:
    previous = {"a": 0, "b": 0, "c": 1, "d": 2}
    current = {"a": 0, "b": 3, "c": 1, "d": 2, "e": 4}

    assert identify_changed_communities(previous, current, ["b", "e"]) == [0, 3, 4]
    assert identify_changed_communities({"communities": previous}, current, ["c"]) == [1]
    assert identify_changed_communities(previous, current, []) == []
    assert identify_changed_communities(None, current, ["missing"]) == []
