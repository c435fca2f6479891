from __future__ import annotations

import pytest

from entity_graph.models import EntityRecord, RelationshipRecord
from graph_algorithms.adjacency import build_adjacency
from graph_algorithms.config import LouvainConfig
from graph_algorithms.louvain import base_level, calculate_modularity, detect_communities, local_moving


def graph(node_ids: list[str], edges: list[tuple[str, str]], types: dict[str, str] | None = None):
    types = types or {}
    return build_adjacency(
        [EntityRecord(id=n, name=n.title(), type=types.get(n, "ORG")) for n in node_ids],
        [RelationshipRecord(s, t) for s, t in edges],
    )


def two_cliques():
    left = ["a", "b", "c", "d"]
    right = ["e", "f", "g", "h"]
    edges = [(x, y) for group in (left, right) for i, x in enumerate(group) for y in group[i + 1:]]
    edges.append(("d", "e"))
    return graph(left + right, edges)


def test_disjoint_pairs_land_in_distinct_communities() -> None:
    result = detect_communities(graph(["a", "b", "c", "d"], [("a", "b"), ("c", "d")]))

    assert result.communities["a"] == result.communities["b"]
    assert result.communities["c"] == result.communities["d"]
    assert result.communities["a"] != result.communities["c"]
    assert result.modularity == pytest.approx(0.5)


def test_every_node_has_exactly_one_label() -> None:
    adjacency = two_cliques()
    result = detect_communities(adjacency)

    assert set(result.communities) == set(adjacency.node_ids)
    assert sum(c.size for c in result.community_list) == adjacency.node_count
    assert result.metadata.node_count == 8
    assert result.metadata.edge_count == 13


def test_two_cliques_split_at_the_bridge() -> None:
    result = detect_communities(two_cliques())

    assert result.metadata.community_count == 2
    assert {result.communities[n] for n in "abcd"} == {0}
    assert {result.communities[n] for n in "efgh"} == {1}
    assert result.modularity == pytest.approx(2 * (12 / 26 - (13 / 26) ** 2))
    assert result.metadata.hierarchy_levels >= 1
    assert result.metadata.iterations >= 1


def test_lone_node_is_a_singleton_contributing_nothing() -> None:
    result = detect_communities(graph(["a", "b", "c", "d", "lonely"], [("a", "b"), ("c", "d")]))

    label = result.communities["lonely"]
    assert [c.size for c in result.community_list if c.id == label] == [1]
    assert result.modularity == pytest.approx(0.5)


def test_self_loops_do_not_change_community_count() -> None:
    plain = detect_communities(graph(["a", "b", "c", "d"], [("a", "b"), ("c", "d")]))
    looped = detect_communities(
        graph(["a", "b", "c", "d"], [("a", "a"), ("a", "b"), ("c", "d"), ("d", "d"), ("d", "d")])
    )

    assert looped.metadata.community_count == plain.metadata.community_count
    assert looped.communities == plain.communities
    assert looped.modularity == pytest.approx(plain.modularity)


def test_empty_graph_and_zero_weight() -> None:
    result = detect_communities(graph([], []))

    assert result.communities == {}
    assert result.community_list == []
    assert result.modularity == 0.0
    assert calculate_modularity({}, {}, {}, 0.0) == 0.0


def test_isolated_nodes_only_stay_apart() -> None:
    result = detect_communities(graph(["x", "y", "z"], []))

    assert result.communities == {"x": 0, "y": 1, "z": 2}
    assert result.modularity == 0.0


def test_detection_is_deterministic() -> None:
    first = detect_communities(two_cliques())
    second = detect_communities(two_cliques())

    assert first.communities == second.communities
    assert first.modularity == second.modularity


def test_public_modularity_matches_detector() -> None:
    adjacency = two_cliques()
    result = detect_communities(adjacency)

    q = calculate_modularity(
        result.communities,
        adjacency.neighbor_maps(),
        adjacency.degree_map(),
        adjacency.undirected.total_weight,
    )
    assert q == pytest.approx(result.modularity)


def test_modularity_on_plain_mappings() -> None:
    communities = {"a": 0, "b": 0, "c": 1, "d": 1}
    adjacency = {"a": {"b": 1.0}, "b": {"a": 1.0}, "c": {"d": 1.0}, "d": {"c": 1.0}}
    degrees = {"a": 1.0, "b": 1.0, "c": 1.0, "d": 1.0}

    assert calculate_modularity(communities, adjacency, degrees, 2.0) == pytest.approx(0.5)
    assert calculate_modularity({n: 0 for n in communities}, adjacency, degrees, 2.0) == pytest.approx(0.0)


def test_higher_resolution_never_merges_more() -> None:
    coarse = detect_communities(two_cliques(), LouvainConfig(resolution=0.1))
    fine = detect_communities(two_cliques(), LouvainConfig(resolution=1.0))

    assert coarse.metadata.community_count <= fine.metadata.community_count
    assert coarse.metadata.resolution == 0.1


def test_community_list_summaries() -> None:
    types = {"a": "PERSON", "b": "ORG", "c": "ORG", "d": "PERSON", "e": "PLACE"}
    result = detect_communities(
        graph(["a", "b", "c", "d", "e"], [("a", "b"), ("b", "c"), ("a", "c"), ("d", "e")], types)
    )

    first, second = result.community_list
    assert first.size == 3
    assert first.type_counts == {"PERSON": 1, "ORG": 2}
    assert first.dominant_type == "ORG"
    assert [m.id for m in first.members] == ["a", "b", "c"]
    assert first.members[0].name == "A"
    # tie between PERSON and PLACE: first seen wins
    assert second.dominant_type == "PERSON"


def test_invalid_config_is_rejected() -> None:
    with pytest.raises(ValueError):
        LouvainConfig(resolution=0)
    with pytest.raises(ValueError):
        LouvainConfig(max_iterations=0)


def tied_path():
    # b lists c before a, so neighbour order alone would pick c's community
    return graph(["a", "b", "c"], [("b", "c"), ("a", "b")])


def test_equal_pull_goes_to_lowest_community_id() -> None:
    adjacency = tied_path()
    labels = [0, 1, 2]

    sweeps, moved = local_moving(
        base_level(adjacency.undirected), labels, [1], adjacency.undirected.total_weight, LouvainConfig()
    )

    assert list(adjacency.undirected.neighbors[1]) == [2, 0]
    assert labels == [0, 0, 2]
    assert moved is True
    assert sweeps == 2


def test_max_iterations_caps_sweeps_per_level() -> None:
    adjacency = tied_path()
    labels = [0, 1, 2]

    sweeps, moved = local_moving(
        base_level(adjacency.undirected),
        labels,
        [1],
        adjacency.undirected.total_weight,
        LouvainConfig(max_iterations=1),
    )

    assert sweeps == 1
    assert moved is True

    result = detect_communities(two_cliques(), LouvainConfig(max_iterations=1))
    assert result.metadata.iterations <= result.metadata.hierarchy_levels + 1


def test_large_min_gain_suppresses_every_move() -> None:
    result = detect_communities(two_cliques(), LouvainConfig(min_modularity_gain=1.0))

    assert result.metadata.community_count == 8
    assert sorted(result.communities.values()) == list(range(8))
    assert result.metadata.hierarchy_levels == 0
    assert result.metadata.iterations == 1
