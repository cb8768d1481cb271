"""
Path Finder - simple path enumeration with collider annotations.

Causal Engine - Pearl-style graph reasoning
Path Finder
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from enum import Enum
import logging

from ..config import get_config
from .dag import CausalGraph, Edge, EdgeType

logger = logging.getLogger(__name__)


class NodeRole(Enum):
    """Role of an interior node on a path."""
    COLLIDER = "collider"   # A -> B <- C
    CHAIN = "chain"         # A -> B -> C
    FORK = "fork"           # A <- B -> C


@dataclass(frozen=True)
class PathEdge:
    """An edge as traversed along a path."""
    source: str
    target: str
    edge_type: EdgeType
    forward: bool           # traversed source -> target
    into_next: bool         # arrowhead at the node reached by this step
    into_previous: bool     # arrowhead at the node this step left

    @property
    def direction(self) -> str:
        return "forward" if self.forward else "backward"


@dataclass
class Path:
    """
    A simple path through the graph.

    roles[i] describes nodes[i + 1]; endpoints carry no role.
    """
    nodes: List[str]
    edges: List[PathEdge]
    roles: List[NodeRole] = field(default_factory=list)
    is_blocked: Optional[bool] = None
    blocking_reason: str = ""

    @property
    def length(self) -> int:
        return len(self.edges)

    @property
    def interior(self) -> List[str]:
        return self.nodes[1:-1]

    @property
    def colliders(self) -> List[str]:
        return [node for node, role in zip(self.interior, self.roles) if role == NodeRole.COLLIDER]

    @property
    def non_colliders(self) -> List[str]:
        return [node for node, role in zip(self.interior, self.roles) if role != NodeRole.COLLIDER]

    def starts_with_arrow_into_source(self) -> bool:
        return bool(self.edges) and self.edges[0].into_previous

    def is_directed(self) -> bool:
        """Every step follows a directed edge forward."""
        return all(e.edge_type == EdgeType.DIRECTED and e.forward for e in self.edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': list(self.nodes),
            'edges': [
                {
                    'from': e.source,
                    'to': e.target,
                    'type': e.edge_type.value,
                    'direction': e.direction,
                }
                for e in self.edges
            ],
            'roles': [r.value for r in self.roles],
            'length': self.length,
            'is_blocked': self.is_blocked,
            'blocking_reason': self.blocking_reason,
        }

    def __str__(self) -> str:
        if not self.nodes:
            return "<empty path>"
        parts = [self.nodes[0]]
        for edge, node in zip(self.edges, self.nodes[1:]):
            left = "<" if edge.into_previous else "-"
            right = ">" if edge.into_next else "-"
            parts.append(f"{left}-{right}")
            parts.append(node)
        return " ".join(parts)


Incidence = List[List[Tuple[int, Edge, bool]]]


def build_incidence(graph: CausalGraph) -> Incidence:
    """Per-node (neighbor, edge, forward) triples in edge declaration order."""
    incidence: Incidence = [[] for _ in range(len(graph))]
    for edge in graph.edges:
        s = graph.index_of(edge.source)
        t = graph.index_of(edge.target)
        if s == t:
            continue
        incidence[s].append((t, edge, True))
        incidence[t].append((s, edge, False))
    return incidence


def _make_path(graph: CausalGraph, node_indices: List[int], steps: List[Tuple[Edge, bool]]) -> Path:
    nodes = graph.ids_of(node_indices)
    edges = []
    for (edge, forward), here, there in zip(steps, nodes, nodes[1:]):
        edges.append(PathEdge(
            source=edge.source,
            target=edge.target,
            edge_type=edge.edge_type,
            forward=forward,
            into_next=edge.has_arrowhead_at(there),
            into_previous=edge.has_arrowhead_at(here),
        ))

    roles = []
    for before, after in zip(edges, edges[1:]):
        into_from_before = before.into_next
        into_from_after = after.into_previous
        if into_from_before and into_from_after:
            roles.append(NodeRole.COLLIDER)
        elif not into_from_before and not into_from_after:
            roles.append(NodeRole.FORK)
        else:
            roles.append(NodeRole.CHAIN)

    return Path(nodes=nodes, edges=edges, roles=roles)


def resolve_max_length(graph: CausalGraph, max_length: Optional[int] = None) -> int:
    """Explicit bound, else configured bound, else the node count."""
    if max_length is not None:
        return max_length
    configured = get_config().MAX_PATH_LENGTH
    return configured if configured > 0 else len(graph)


def resolve_max_paths(max_paths: Optional[int] = None) -> int:
    """Explicit cap, else configured cap; 0 means unbounded."""
    if max_paths is not None:
        return max_paths
    return get_config().MAX_PATHS


class _PathBudgetExhausted(Exception):
    pass


@dataclass
class PathSearch:
    """Paths found by one enumeration and whether the enumeration finished."""
    paths: List[Path]
    complete: bool = True


def search_paths(graph: CausalGraph,
                 sources: Iterable[str],
                 targets: Iterable[str],
                 max_length: Optional[int] = None,
                 into_source_only: bool = False,
                 max_paths: Optional[int] = None) -> PathSearch:
    """
    Enumerate simple undirected paths from any source to any target.

    A path ends at the first target it reaches, and no interior node
    belongs to the source or target sets, so the enumeration from Y to X
    yields exactly the reversed paths.

    The number of simple paths grows exponentially with graph density.
    Enumeration stops after max_paths paths, or after a proportional
    number of search steps, and the result is then marked incomplete.

    Args:
        graph: Causal graph
        sources: Start node ids (unknown ids are ignored)
        targets: End node ids (unknown ids are ignored)
        max_length: Maximum number of edges per path; defaults to the
            node count, which admits every simple path
        into_source_only: Keep only paths whose first edge points into
            the source (backdoor paths)
        max_paths: Path cap (default from config, 0 for no cap)

    Returns:
        PathSearch with paths in source order, then edge declaration order
    """
    sources, targets = list(sources), list(targets)
    source_indices = graph.indices_of(sources)
    target_set = set(graph.indices_of(targets))
    endpoints = set(source_indices) | target_set
    limit = resolve_max_length(graph, max_length)
    path_cap = resolve_max_paths(max_paths)
    step_budget = path_cap * max(len(graph), 1) * 10 if path_cap > 0 else 0
    incidence = build_incidence(graph)
    paths: List[Path] = []
    steps_taken = 0

    if limit < 1:
        return PathSearch(paths=paths)

    def dfs(current: int, visited: Set[int], path_nodes: List[int], steps: List[Tuple[Edge, bool]]):
        nonlocal steps_taken
        for neighbor, edge, forward in incidence[current]:
            if neighbor in visited:
                continue
            if into_source_only and not steps and not edge.has_arrowhead_at(graph.node_id(current)):
                continue

            steps_taken += 1
            if step_budget and steps_taken > step_budget:
                raise _PathBudgetExhausted()

            if neighbor in target_set:
                if path_cap and len(paths) >= path_cap:
                    raise _PathBudgetExhausted()
                paths.append(_make_path(graph, path_nodes + [neighbor], steps + [(edge, forward)]))
                continue
            if neighbor in endpoints or len(steps) + 1 >= limit:
                continue

            visited.add(neighbor)
            path_nodes.append(neighbor)
            steps.append((edge, forward))

            dfs(neighbor, visited, path_nodes, steps)

            steps.pop()
            path_nodes.pop()
            visited.remove(neighbor)

    complete = True
    try:
        for source in source_indices:
            dfs(source, {source}, [source], [])
    except _PathBudgetExhausted:
        complete = False
        logger.warning(f"Path enumeration between {sources} and {targets} stopped after "
                       f"{len(paths)} path(s) and {steps_taken} step(s)")

    logger.debug(f"Found {len(paths)} path(s) between {sources} and {targets}")
    return PathSearch(paths=paths, complete=complete)


def find_all_paths(graph: CausalGraph,
                   sources: Iterable[str],
                   targets: Iterable[str],
                   max_length: Optional[int] = None,
                   into_source_only: bool = False,
                   max_paths: Optional[int] = None) -> List[Path]:
    """
    Find all simple undirected paths from any source to any target.

    See search_paths; this returns the path list alone.
    """
    return search_paths(graph, sources, targets, max_length, into_source_only, max_paths).paths


def find_backdoor_paths(graph: CausalGraph,
                        treatment: str,
                        outcome: str,
                        max_length: Optional[int] = None,
                        max_paths: Optional[int] = None) -> List[Path]:
    """Find all paths from treatment to outcome that start with an arrow into treatment."""
    return find_all_paths(graph, [treatment], [outcome], max_length,
                          into_source_only=True, max_paths=max_paths)


def find_directed_paths(graph: CausalGraph, source: str, target: str) -> List[List[str]]:
    """Find all directed paths from source to target."""
    start = graph.index_of(source)
    end = graph.index_of(target)
    if start is None or end is None or start == end:
        return []

    paths: List[List[int]] = []

    def dfs(current: int, path: List[int]):
        if current == end:
            paths.append(path.copy())
            return

        for child in graph.child_indices(current):
            if child not in path:  # Avoid cycles
                path.append(child)
                dfs(child, path)
                path.pop()

    dfs(start, [start])
    return [graph.ids_of(p) for p in paths]


def has_directed_path(graph: CausalGraph,
                      source: str,
                      target: str,
                      avoiding: Iterable[str] = ()) -> bool:
    """Whether a directed path source -> ... -> target avoids every node in avoiding."""
    start = graph.index_of(source)
    end = graph.index_of(target)
    if start is None or end is None:
        return False

    blocked = set(graph.indices_of(avoiding))
    visited = {start}
    stack = [start]

    while stack:
        current = stack.pop()
        for child in graph.child_indices(current):
            if child == end:
                return True
            if child not in visited and child not in blocked:
                visited.add(child)
                stack.append(child)

    return False
