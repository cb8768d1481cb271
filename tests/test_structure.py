"""
Tests for structural analysis.
"""

import time

import pytest

from causal_engine.graph.structure import (
    VStructure,
    check_backdoor_adjustment,
    compute_markov_blanket,
    find_minimal_separator,
    find_v_structures,
    is_valid_backdoor_adjustment,
)


class TestVStructures:
    """Tests for unshielded collider detection."""

    def test_simple_collider(self, collider_graph):
        assert find_v_structures(collider_graph) == [VStructure(parent1="A", collider="C", parent2="B")]

    def test_confounded_graph(self, confounded_graph):
        found = {(v.parent1, v.collider, v.parent2) for v in find_v_structures(confounded_graph)}
        assert found == {
            ("U", "X", "A"),
            ("M", "Y", "U"),
            ("M", "Y", "A"),
            ("U", "Y", "A"),
        }

    def test_shielded_collider_excluded(self):
        from causal_engine.graph.dag import CausalGraph
        graph = CausalGraph(nodes=["A", "B", "C"], edges=[("A", "C"), ("B", "C"), ("A", "B")])
        assert find_v_structures(graph) == []

    def test_chain_has_none(self, chain_graph):
        assert find_v_structures(chain_graph) == []


class TestMarkovBlanket:
    """Tests for Markov blanket computation."""

    def test_treatment_blanket(self, confounded_graph):
        assert compute_markov_blanket(confounded_graph, "X") == ["A", "M", "U"]

    def test_spouses_included(self, collider_graph):
        assert compute_markov_blanket(collider_graph, "A") == ["B", "C"]

    @pytest.mark.parametrize("node", ["X", "M", "Y", "U", "A"])
    def test_blanket_definition(self, confounded_graph, node):
        blanket = compute_markov_blanket(confounded_graph, node)
        expected = set(confounded_graph.get_parents(node)) | set(confounded_graph.get_children(node))
        for child in confounded_graph.get_children(node):
            expected |= set(confounded_graph.get_parents(child))
        expected.discard(node)

        assert node not in blanket
        assert set(blanket) == expected
        assert blanket == sorted(blanket)

    def test_unknown_node(self, chain_graph):
        assert compute_markov_blanket(chain_graph, "nope") == []


class TestMinimalSeparator:
    """Tests for the bounded separator search."""

    def test_confounded_separator(self, confounded_graph):
        result = find_minimal_separator(confounded_graph, ["X"], ["Y"])
        assert result.found
        assert result.separator == ["A", "M", "U"]
        assert result.exhaustive

    def test_disconnected_needs_nothing(self, disconnected_graph):
        result = find_minimal_separator(disconnected_graph, ["A1"], ["B2"])
        assert result.separator == []
        assert result.subsets_checked == 1

    def test_adjacent_nodes_cannot_be_separated(self, chain_graph):
        result = find_minimal_separator(chain_graph, ["A"], ["B"])
        assert not result.found
        assert result.exhaustive

    def test_chain_separator(self, chain_graph):
        assert find_minimal_separator(chain_graph, ["A"], ["C"]).separator == ["B"]

    def test_collider_never_chosen(self, collider_graph):
        assert find_minimal_separator(collider_graph, ["A"], ["B"]).separator == []

    def test_size_cap_marks_partial(self, confounded_graph):
        result = find_minimal_separator(confounded_graph, ["X"], ["Y"], max_size=1)
        assert not result.found
        assert not result.exhaustive

    def test_candidate_cap_marks_partial(self, confounded_graph):
        result = find_minimal_separator(confounded_graph, ["X"], ["Y"], max_candidates=2)
        assert result.candidates == ["A", "M"]
        assert not result.found
        assert not result.exhaustive

    def test_dense_graph_finishes(self, dense_graph):
        start = time.perf_counter()
        result = find_minimal_separator(dense_graph, ["N0"], ["N9"], max_size=8)
        elapsed = time.perf_counter() - start

        assert result.separator == [f"N{i}" for i in range(1, 9)]
        assert result.exhaustive
        assert result.subsets_checked == 256
        assert elapsed < 2.0

    def test_dense_graph_size_cap(self, dense_graph):
        result = find_minimal_separator(dense_graph, ["N0"], ["N9"], max_size=5)
        assert not result.found
        assert not result.exhaustive


class TestBackdoorAdjustment:
    """Tests for backdoor criterion validation."""

    def test_valid_set(self, confounded_graph):
        result = check_backdoor_adjustment(confounded_graph, "X", "Y", ["U", "A"])
        assert result.valid
        assert result.adjustment_set == ["A", "U"]
        assert result.blocked_paths == result.total_paths == 2

    def test_partial_set(self, confounded_graph):
        result = check_backdoor_adjustment(confounded_graph, "X", "Y", ["A"])
        assert not result.valid
        assert result.blocked_paths == 1
        assert result.total_paths == 2

    def test_mediator_rejected(self, confounded_graph):
        assert not is_valid_backdoor_adjustment(confounded_graph, "X", "Y", ["M"])
        result = check_backdoor_adjustment(confounded_graph, "X", "Y", ["M", "U", "A"])
        assert not result.valid
        assert "descendants of X" in result.issues[0]

    def test_treatment_in_set_rejected(self, confounded_graph):
        assert not is_valid_backdoor_adjustment(confounded_graph, "X", "Y", ["X", "U", "A"])

    def test_no_confounding(self, chain_graph):
        assert is_valid_backdoor_adjustment(chain_graph, "A", "C", [])

    def test_dense_graph_path_listing_capped(self, dense_graph):
        start = time.perf_counter()
        result = check_backdoor_adjustment(dense_graph, "N1", "N9", ["N0"])
        elapsed = time.perf_counter() - start

        assert result.valid
        assert not result.paths_complete
        assert result.blocked_paths == result.total_paths
        assert elapsed < 2.0
