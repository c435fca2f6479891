from __future__ import annotations

import math

from entity_graph.models import EntityRecord, RelationshipRecord
from graph_algorithms.adjacency import build_adjacency


def nodes(*ids: str) -> list[EntityRecord]:
    return [EntityRecord(id=node_id, name=node_id.upper(), type="ORG") for node_id in ids]


def test_unknown_endpoints_are_dropped_and_counted() -> None:
    adjacency = build_adjacency(
        nodes("a", "b"),
        [RelationshipRecord("a", "b"), RelationshipRecord("a", "ghost"), RelationshipRecord("ghost", "b")],
    )

    assert adjacency.edge_count == 1
    assert adjacency.stats.dropped_unknown_endpoint == 2
    assert adjacency.stats.dropped_edges == 2
    assert adjacency.undirected.neighbors[0] == {1: 1.0}


def test_negative_and_non_finite_weights_are_dropped() -> None:
    adjacency = build_adjacency(
        nodes("a", "b", "c"),
        [
            RelationshipRecord("a", "b", weight=-1.0),
            RelationshipRecord("b", "c", weight=math.nan),
            RelationshipRecord("a", "c", weight=math.inf),
            RelationshipRecord("a", "c", weight=0.0),
        ],
    )

    assert adjacency.stats.dropped_bad_weight == 3
    assert adjacency.edge_count == 1
    assert adjacency.undirected.neighbors[0] == {2: 0.0}


def test_parallel_edges_are_summed_across_directions() -> None:
    adjacency = build_adjacency(
        nodes("a", "b"),
        [
            RelationshipRecord("a", "b", weight=2.0),
            RelationshipRecord("a", "b", weight=1.5),
            RelationshipRecord("b", "a", weight=0.5),
        ],
    )

    assert adjacency.undirected.neighbors[0] == {1: 4.0}
    assert adjacency.undirected.neighbors[1] == {0: 4.0}
    assert adjacency.undirected.total_weight == 4.0
    assert adjacency.directed.out_neighbors[0] == {1: 3.5}
    assert adjacency.directed.out_neighbors[1] == {0: 0.5}


def test_self_loops_are_kept_out_of_neighbours_and_degree() -> None:
    adjacency = build_adjacency(
        nodes("a", "b"),
        [RelationshipRecord("a", "a", weight=5.0), RelationshipRecord("a", "b")],
    )

    assert adjacency.stats.self_loops == 1
    assert adjacency.undirected.self_loops == [5.0, 0.0]
    assert adjacency.undirected.neighbors[0] == {1: 1.0}
    assert adjacency.undirected.degrees == [1.0, 1.0]
    assert adjacency.undirected.total_weight == 1.0
    assert 0 not in adjacency.directed.out_neighbors[0]
    assert adjacency.directed.out_weight[0] == 1.0


def test_undirected_edge_is_added_both_ways_in_directed_view() -> None:
    adjacency = build_adjacency(
        nodes("a", "b"),
        [RelationshipRecord("a", "b", directed=False)],
    )

    assert adjacency.directed.out_neighbors == [{1: 1.0}, {0: 1.0}]
    assert adjacency.directed.in_neighbors == [{1: 1.0}, {0: 1.0}]
    assert adjacency.directed.out_weight == [1.0, 1.0]
    assert adjacency.undirected.total_weight == 1.0


def test_duplicate_nodes_keep_first_record_and_order() -> None:
    adjacency = build_adjacency(
        [EntityRecord(id="b", name="Beta"), EntityRecord(id="a"), EntityRecord(id="b", name="Other")],
        [],
    )

    assert adjacency.node_ids == ["b", "a"]
    assert adjacency.index == {"b": 0, "a": 1}
    assert adjacency.entity("b").name == "Beta"
    assert adjacency.stats.duplicate_nodes == 1


def test_weighted_flag_requires_an_explicit_non_unit_weight() -> None:
    unit = build_adjacency(nodes("a", "b"), [RelationshipRecord("a", "b"), RelationshipRecord("b", "a", weight=1.0)])
    weighted = build_adjacency(nodes("a", "b"), [RelationshipRecord("a", "b", weight=2.0)])

    assert unit.weighted is False
    assert weighted.weighted is True


def test_neighbor_maps_are_keyed_by_entity_id() -> None:
    adjacency = build_adjacency(nodes("a", "b", "c"), [RelationshipRecord("a", "b", weight=2.0)])

    assert adjacency.neighbor_maps() == {"a": {"b": 2.0}, "b": {"a": 2.0}, "c": {}}
    assert adjacency.degree_map() == {"a": 2.0, "b": 2.0, "c": 0.0}
