"""
Pytest configuration and fixtures for the Causal Engine test suite.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from causal_engine.graph.dag import CausalGraph, Edge, EdgeType, Node, NodeType


# ============================================================================
# Graph Fixtures
# ============================================================================

@pytest.fixture
def confounded_graph():
    """X -> M -> Y with observed confounders U and A of X and Y."""
    return CausalGraph(
        nodes=["X", "M", "Y", "U", "A"],
        edges=[
            ("X", "M"),
            ("M", "Y"),
            ("U", "X"),
            ("U", "Y"),
            ("A", "X"),
            ("A", "Y"),
        ],
        graph_id="confounded",
    )


@pytest.fixture
def instrument_graph():
    """Z -> X -> Y with U confounding X and Y."""
    return CausalGraph(
        nodes=["Z", "X", "Y", "U"],
        edges=[("Z", "X"), ("U", "X"), ("U", "Y"), ("X", "Y")],
        graph_id="instrument",
    )


@pytest.fixture
def latent_instrument_graph():
    """Same structure as instrument_graph with U unobserved."""
    return CausalGraph(
        nodes=["Z", "X", "Y", Node(id="U", node_type=NodeType.LATENT)],
        edges=[("Z", "X"), ("U", "X"), ("U", "Y"), ("X", "Y")],
        graph_id="latent_instrument",
    )


@pytest.fixture
def frontdoor_graph():
    """Smoking-tar-cancer: X -> M -> Y, latent U -> X and U -> Y."""
    return CausalGraph(
        nodes=["X", "M", "Y", Node(id="U", name="genotype", node_type="latent")],
        edges=[("X", "M"), ("M", "Y"), ("U", "X"), ("U", "Y")],
        graph_id="frontdoor",
    )


@pytest.fixture
def hub_graph():
    """influencer -> f1..f3 -> hub -> e1, e2."""
    edges = []
    for f in ("f1", "f2", "f3"):
        edges.append(("influencer", f))
        edges.append((f, "hub"))
    edges.append(("hub", "e1"))
    edges.append(("hub", "e2"))
    return CausalGraph.from_edge_list(edges, graph_id="hub")


@pytest.fixture
def disconnected_graph():
    """Two unrelated chains A1 -> A2 and B1 -> B2."""
    return CausalGraph(
        nodes=["A1", "A2", "B1", "B2"],
        edges=[("A1", "A2"), ("B1", "B2")],
        graph_id="disconnected",
    )


@pytest.fixture
def collider_graph():
    """A -> C <- B with C -> D."""
    return CausalGraph(
        nodes=["A", "B", "C", "D"],
        edges=[("A", "C"), ("B", "C"), ("C", "D")],
        graph_id="collider",
    )


@pytest.fixture
def chain_graph():
    """A -> B -> C."""
    return CausalGraph(nodes=["A", "B", "C"], edges=[("A", "B"), ("B", "C")], graph_id="chain")


@pytest.fixture
def bidirected_graph():
    """X -> Y with X <-> Y standing in for a latent confounder."""
    return CausalGraph(
        nodes=["X", "Y"],
        edges=[Edge("X", "Y"), Edge("X", "Y", EdgeType.BIDIRECTED)],
        graph_id="bidirected",
    )


@pytest.fixture
def empty_graph():
    return CausalGraph(graph_id="empty")


@pytest.fixture
def dense_graph():
    """Complete DAG on N0..N9 in index order, without the edge N0 -> N9."""
    names = [f"N{i}" for i in range(10)]
    edges = [
        (names[i], names[j])
        for i in range(10)
        for j in range(i + 1, 10)
        if (i, j) != (0, 9)
    ]
    return CausalGraph(nodes=names, edges=edges, graph_id="dense")
