"""
Tests for path enumeration.
"""

from causal_engine.graph.dag import CausalGraph
from causal_engine.graph.paths import (
    NodeRole,
    find_all_paths,
    find_backdoor_paths,
    find_directed_paths,
    has_directed_path,
    search_paths,
)


def _node_tuples(paths):
    return {tuple(p.nodes) for p in paths}


class TestFindAllPaths:
    """Tests for undirected simple path enumeration."""

    def test_confounded_paths(self, confounded_graph):
        paths = find_all_paths(confounded_graph, ["X"], ["Y"])
        assert _node_tuples(paths) == {("X", "M", "Y"), ("X", "U", "Y"), ("X", "A", "Y")}

    def test_roles(self, confounded_graph, collider_graph):
        by_nodes = {tuple(p.nodes): p for p in find_all_paths(confounded_graph, ["X"], ["Y"])}
        assert by_nodes[("X", "M", "Y")].roles == [NodeRole.CHAIN]
        assert by_nodes[("X", "U", "Y")].roles == [NodeRole.FORK]

        [path] = find_all_paths(collider_graph, ["A"], ["B"])
        assert path.roles == [NodeRole.COLLIDER]
        assert path.colliders == ["C"]

    def test_reverse_enumeration_mirrors(self, confounded_graph):
        forward = _node_tuples(find_all_paths(confounded_graph, ["X"], ["Y"]))
        backward = _node_tuples(find_all_paths(confounded_graph, ["Y"], ["X"]))
        assert {tuple(reversed(p)) for p in backward} == forward

    def test_path_stops_at_first_target(self):
        graph = CausalGraph(nodes=["A", "B", "C"], edges=[("A", "B"), ("B", "C")])
        paths = find_all_paths(graph, ["A"], ["B", "C"])
        assert _node_tuples(paths) == {("A", "B")}

    def test_max_length(self, confounded_graph):
        assert find_all_paths(confounded_graph, ["X"], ["Y"], max_length=1) == []
        assert len(find_all_paths(confounded_graph, ["X"], ["Y"], max_length=2)) == 3

    def test_path_cap(self, dense_graph):
        search = search_paths(dense_graph, ["N0"], ["N9"], max_paths=50)
        assert len(search.paths) == 50
        assert not search.complete
        assert search.paths[0].nodes == [f"N{i}" for i in range(10)]

    def test_small_graph_complete(self, confounded_graph):
        search = search_paths(confounded_graph, ["X"], ["Y"], max_paths=3)
        assert len(search.paths) == 3
        assert search.complete

    def test_no_paths_between_components(self, disconnected_graph):
        assert find_all_paths(disconnected_graph, ["A1"], ["B2"]) == []

    def test_unknown_nodes_ignored(self, chain_graph):
        assert find_all_paths(chain_graph, ["nope"], ["C"]) == []

    def test_bidirected_step(self, bidirected_graph):
        paths = find_all_paths(bidirected_graph, ["X"], ["Y"])
        assert len(paths) == 2
        rendered = sorted(str(p) for p in paths)
        assert rendered == ["X --> Y", "X <-> Y"]

    def test_path_to_dict(self, chain_graph):
        [path] = find_all_paths(chain_graph, ["C"], ["A"])
        data = path.to_dict()
        assert data['nodes'] == ["C", "B", "A"]
        assert [e['direction'] for e in data['edges']] == ["backward", "backward"]
        assert data['roles'] == ["chain"]


class TestBackdoorPaths:
    """Tests for paths entering the treatment."""

    def test_backdoor_paths(self, confounded_graph):
        paths = find_backdoor_paths(confounded_graph, "X", "Y")
        assert _node_tuples(paths) == {("X", "U", "Y"), ("X", "A", "Y")}
        assert all(p.starts_with_arrow_into_source() for p in paths)

    def test_bidirected_edge_is_backdoor(self, bidirected_graph):
        paths = find_backdoor_paths(bidirected_graph, "X", "Y")
        assert [str(p) for p in paths] == ["X <-> Y"]

    def test_no_backdoor_in_chain(self, chain_graph):
        assert find_backdoor_paths(chain_graph, "A", "C") == []


class TestDirectedPaths:
    """Tests for directed path queries."""

    def test_find_directed_paths(self, confounded_graph):
        assert find_directed_paths(confounded_graph, "U", "Y") == [["U", "X", "M", "Y"], ["U", "Y"]]
        assert find_directed_paths(confounded_graph, "Y", "U") == []

    def test_has_directed_path_avoiding(self, confounded_graph):
        assert has_directed_path(confounded_graph, "X", "Y")
        assert not has_directed_path(confounded_graph, "X", "Y", avoiding=["M"])
        assert has_directed_path(confounded_graph, "U", "Y", avoiding=["M"])
