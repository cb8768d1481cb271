"""
Tests for d-separation.
"""

import pytest

from causal_engine.graph.dag import CausalGraph, Edge, EdgeType
from causal_engine.graph.dseparation import (
    Independence,
    check_d_separation,
    get_implied_independencies,
    is_d_separated,
    is_path_blocked,
)
from causal_engine.graph.paths import find_all_paths


class TestBlockingRules:
    """Tests for chain, fork and collider blocking."""

    def test_chain_blocked_by_middle(self, chain_graph):
        assert not is_d_separated(chain_graph, ["A"], ["C"])
        assert is_d_separated(chain_graph, ["A"], ["C"], ["B"])

    def test_fork_blocked_by_common_cause(self):
        graph = CausalGraph(nodes=["A", "B", "C"], edges=[("B", "A"), ("B", "C")])
        assert not is_d_separated(graph, ["A"], ["C"])
        assert is_d_separated(graph, ["A"], ["C"], ["B"])

    def test_collider_blocks_until_conditioned(self, collider_graph):
        assert is_d_separated(collider_graph, ["A"], ["B"])
        assert not is_d_separated(collider_graph, ["A"], ["B"], ["C"])

    def test_descendant_of_collider_opens_path(self, collider_graph):
        assert not is_d_separated(collider_graph, ["A"], ["B"], ["D"])

    def test_blocking_reason(self, collider_graph, chain_graph):
        [path] = find_all_paths(collider_graph, ["A"], ["B"])
        assert is_path_blocked(collider_graph, path, set()) == (True, "Collider C is not conditioned on")
        assert is_path_blocked(collider_graph, path, {"C"}) == (False, "")

        [path] = find_all_paths(chain_graph, ["A"], ["C"])
        assert is_path_blocked(chain_graph, path, {"B"}) == (True, "Non-collider B is conditioned on")

    def test_bidirected_endpoint_is_collider(self):
        graph = CausalGraph(
            nodes=["A", "B", "C"],
            edges=[Edge("A", "B"), Edge("C", "B", EdgeType.BIDIRECTED)],
        )
        assert is_d_separated(graph, ["A"], ["C"])
        assert not is_d_separated(graph, ["A"], ["C"], ["B"])


class TestCheckDSeparation:
    """Tests for the full d-separation result."""

    def test_confounded_not_separated(self, confounded_graph):
        result = check_d_separation(confounded_graph, ["X"], ["Y"])
        assert not result.separated
        assert len(result.active_paths) == 3
        assert "3 of 3 path(s) remain open" in result.explanation

    def test_confounded_separated_by_full_set(self, confounded_graph):
        result = check_d_separation(confounded_graph, ["X"], ["Y"], ["M", "U", "A"])
        assert result.separated
        assert result.active_paths == []
        assert len(result.blocked_paths) == 3
        assert all(p.is_blocked for p in result.blocked_paths)
        assert all(p.blocking_reason for p in result.blocked_paths)

    def test_path_details_can_be_omitted(self, confounded_graph):
        result = check_d_separation(confounded_graph, ["X"], ["Y"], ["M"], include_path_details=False)
        assert result.blocked_paths == []
        assert len(result.active_paths) == 2

    def test_disconnected_separated(self, disconnected_graph):
        result = check_d_separation(disconnected_graph, ["A1"], ["B2"])
        assert result.separated
        assert result.explanation == "No paths exist between {A1} and {B2}"

    @pytest.mark.parametrize("z", [[], ["U"], ["M"], ["U", "A"], ["M", "U", "A"]])
    def test_symmetric(self, confounded_graph, z):
        forward = check_d_separation(confounded_graph, ["X"], ["Y"], z)
        backward = check_d_separation(confounded_graph, ["Y"], ["X"], z)
        assert forward.separated == backward.separated
        assert len(forward.active_paths) == len(backward.active_paths)

    def test_overlapping_sets_not_separated(self, chain_graph):
        result = check_d_separation(chain_graph, ["A", "B"], ["B", "C"])
        assert not result.separated
        assert "B" in result.explanation

    def test_set_valued_query(self, disconnected_graph):
        assert is_d_separated(disconnected_graph, ["A1", "A2"], ["B1", "B2"])
        assert not is_d_separated(disconnected_graph, ["A1", "B1"], ["B2"])

    def test_unknown_nodes(self, chain_graph):
        assert is_d_separated(chain_graph, ["nope"], ["C"])

    def test_dense_graph_listing_capped(self, dense_graph):
        middle = [f"N{i}" for i in range(1, 9)]
        result = check_d_separation(dense_graph, ["N0"], ["N9"], middle, max_paths=100)

        assert result.separated
        assert not result.paths_complete
        assert len(result.blocked_paths) == 100
        assert result.explanation == f"All 100 listed path(s) are blocked by conditioning on {{{', '.join(middle)}}}"

    def test_dense_graph_open_beyond_listing(self, dense_graph):
        # The first listed paths all run through N1
        result = check_d_separation(dense_graph, ["N0"], ["N9"], ["N1"], max_paths=5)
        assert not result.separated
        assert not result.paths_complete
        assert result.active_paths == []
        assert result.explanation == "An open path remains after conditioning on {N1} beyond the 5 listed path(s)"


class TestImpliedIndependencies:
    """Tests for independence enumeration."""

    def test_chain(self, chain_graph):
        independencies = get_implied_independencies(chain_graph)
        assert independencies == [Independence(x="A", y="C", z=("B",))]
        assert str(independencies[0]) == "A ⊥ C | B"

    def test_collider(self, collider_graph):
        independencies = get_implied_independencies(collider_graph, max_conditioning_size=1)
        assert Independence(x="A", y="B", z=()) in independencies
        assert Independence(x="A", y="B", z=("C",)) not in independencies
        assert Independence(x="A", y="D", z=("C",)) in independencies

    def test_empty_graph(self, empty_graph):
        assert get_implied_independencies(empty_graph) == []
