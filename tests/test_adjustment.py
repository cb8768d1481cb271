"""
Tests for backdoor set enumeration and adjustment formulas.
"""

import pytest

from causal_engine.graph.adjustment import (
    find_all_backdoor_sets,
    find_backdoor_adjustment_set,
    generate_backdoor_formula,
    generate_frontdoor_formula,
    generate_iv_formula,
)
from causal_engine.graph.dag import CausalGraph
from causal_engine.graph.structure import is_valid_backdoor_adjustment


class TestBackdoorEnumeration:
    """Tests for find_all_backdoor_sets."""

    def test_confounded_sets(self, confounded_graph):
        result = find_all_backdoor_sets(confounded_graph, "X", "Y")
        assert list(result) == [["A", "U"]]
        assert result.exhaustive
        assert result.minimal == ["A", "U"]
        assert not any("M" in s for s in result)

    def test_every_set_is_valid(self):
        graph = CausalGraph.from_edge_list([
            ("W", "U"), ("U", "X"), ("U", "Y"), ("X", "Y"), ("V", "Y"),
        ])
        result = find_all_backdoor_sets(graph, "X", "Y")
        assert len(result) > 0
        descendants = graph.get_descendants("X")
        for adjustment in result:
            assert is_valid_backdoor_adjustment(graph, "X", "Y", adjustment)
            assert not set(adjustment) & descendants
        assert ["U"] in list(result)
        assert [] not in list(result)

    def test_smallest_first(self):
        graph = CausalGraph.from_edge_list([
            ("W", "U"), ("U", "X"), ("U", "Y"), ("X", "Y"), ("V", "Y"),
        ])
        sizes = [len(s) for s in find_all_backdoor_sets(graph, "X", "Y")]
        assert sizes == sorted(sizes)

    def test_unconfounded_empty_set(self, chain_graph):
        result = find_all_backdoor_sets(chain_graph, "A", "C")
        assert result[0] == []

    def test_latent_confounder_not_adjustable(self, latent_instrument_graph):
        result = find_all_backdoor_sets(latent_instrument_graph, "X", "Y")
        assert len(result) == 0
        assert "U" not in result.candidates

    def test_candidate_cap_uses_parent_fallback(self, confounded_graph):
        result = find_all_backdoor_sets(confounded_graph, "X", "Y", max_candidates=1)
        assert result.heuristic
        assert not result.exhaustive
        assert result.candidates == ["A"]

    def test_size_cap(self, confounded_graph):
        result = find_all_backdoor_sets(confounded_graph, "X", "Y", max_size=1)
        assert len(result) == 0
        assert not result.exhaustive

    def test_unknown_nodes(self, confounded_graph):
        result = find_all_backdoor_sets(confounded_graph, "X", "nope")
        assert len(result) == 0
        assert result.exhaustive


class TestMinimalBackdoorSet:
    """Tests for find_backdoor_adjustment_set."""

    def test_confounded(self, confounded_graph):
        assert find_backdoor_adjustment_set(confounded_graph, "X", "Y") == ["A", "U"]

    def test_bidirected_confounding(self, bidirected_graph):
        assert find_backdoor_adjustment_set(bidirected_graph, "X", "Y") is None

    def test_same_variable(self, chain_graph):
        assert find_backdoor_adjustment_set(chain_graph, "A", "A") is None


class TestFormulas:
    """Tests for estimand rendering."""

    def test_backdoor_formula(self, confounded_graph):
        formula = generate_backdoor_formula("X", "Y", ["U", "A"], graph=confounded_graph)
        assert formula.type == "backdoor"
        assert formula.adjustment_set == ["A", "U"]
        assert formula.is_valid
        assert formula.plain_text == "P(Y|do(X)) = Σ_{A,U} P(Y|X,A,U) P(A,U)"
        assert formula.latex == "P(Y \\mid do(X)) = \\sum_{A, U} P(Y \\mid X, A, U) P(A, U)"

    def test_backdoor_formula_flags_invalid_set(self, confounded_graph):
        assert not generate_backdoor_formula("X", "Y", ["M"], graph=confounded_graph).is_valid

    def test_empty_adjustment(self):
        formula = generate_backdoor_formula("X", "Y", [])
        assert formula.plain_text == "P(Y|do(X)) = P(Y|X)"

    def test_frontdoor_formula(self):
        formula = generate_frontdoor_formula("X", "Y", ["M"])
        assert formula.type == "frontdoor"
        assert formula.plain_text == "P(Y|do(X)) = Σ_{M} P(M|X) Σ_{X'} P(Y|M,X') P(X')"

    def test_iv_formula(self):
        formula = generate_iv_formula("X", "Y", "Z")
        assert formula.adjustment_set == ["Z"]
        assert formula.plain_text == "β_X→Y = Cov(Y,Z) / Cov(X,Z)"
        assert formula.to_dict()['type'] == "instrumental"

    @pytest.mark.parametrize("generator, args", [
        (generate_backdoor_formula, ("X", "Y", ["A"])),
        (generate_frontdoor_formula, ("X", "Y", "M")),
        (generate_iv_formula, ("X", "Y", "Z")),
    ])
    def test_latex_mentions_do(self, generator, args):
        formula = generator(*args)
        assert "X" in formula.latex and "Y" in formula.latex
