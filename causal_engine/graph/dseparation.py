"""
D-Separation - path-blocking conditional independence.

Causal Engine - Pearl-style graph reasoning
D-Separation Engine
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from ..config import get_config
from .dag import CausalGraph
from .paths import Incidence, NodeRole, Path, build_incidence, search_paths

logger = logging.getLogger(__name__)


@dataclass
class DSeparationResult:
    """Result of a d-separation query."""
    separated: bool
    active_paths: List[Path]
    blocked_paths: List[Path] = field(default_factory=list)
    conditioning_set: List[str] = field(default_factory=list)
    explanation: str = ""
    paths_complete: bool = True


@dataclass(frozen=True)
class Independence:
    """A conditional independence x ⊥ y | z implied by the graph."""
    x: str
    y: str
    z: Tuple[str, ...]

    def __str__(self) -> str:
        if not self.z:
            return f"{self.x} ⊥ {self.y}"
        return f"{self.x} ⊥ {self.y} | {', '.join(self.z)}"


class DescendantCache:
    """Memoizes descendant sets for collider checks within one call."""

    def __init__(self, graph: CausalGraph):
        self.graph = graph
        self._cache: Dict[str, Set[str]] = {}

    def __call__(self, node: str) -> Set[str]:
        if node not in self._cache:
            self._cache[node] = self.graph.get_descendants(node)
        return self._cache[node]


def is_path_blocked(graph: CausalGraph,
                    path: Path,
                    conditioning: Iterable[str],
                    descendants: Optional[DescendantCache] = None) -> Tuple[bool, str]:
    """
    Check if a path is blocked by a conditioning set.

    - Chain (A -> B -> C) or fork (A <- B -> C): blocked if B is conditioned
    - Collider (A -> B <- C): blocked unless B or a descendant of B is conditioned

    Returns:
        (blocked, reason)
    """
    z = set(conditioning)
    descendants = descendants or DescendantCache(graph)

    for node, role in zip(path.interior, path.roles):
        if role == NodeRole.COLLIDER:
            if node not in z and not (descendants(node) & z):
                return True, f"Collider {node} is not conditioned on"
        elif node in z:
            return True, f"Non-collider {node} is conditioned on"

    return False, ""


def _collider_openers(graph: CausalGraph, conditioning: Set[int]) -> Set[int]:
    """Conditioned nodes and their ancestors: the colliders they open."""
    openers = set(conditioning)
    for index in conditioning:
        openers |= graph.ancestor_indices(index)
    return openers


def has_open_path(graph: CausalGraph,
                  x: Iterable[str],
                  y: Iterable[str],
                  z: Iterable[str] = (),
                  backdoor_only: bool = False,
                  incidence: Optional[Incidence] = None) -> bool:
    """
    Check if any path between X and Y is open given Z.

    Bayes-ball style reachability over (node, entered through an arrowhead)
    states, so the cost is linear in the graph size instead of in the
    number of paths. A collider passes when it is conditioned on or has a
    conditioned descendant; any other node passes when it is not
    conditioned on.

    Args:
        graph: Causal graph (assumed acyclic)
        x: Source node set
        y: Target node set
        z: Conditioning set
        backdoor_only: Only consider paths that leave X through an edge
            with an arrowhead at X
        incidence: Prebuilt incidence lists, reused across calls

    Returns:
        True when X and Y are d-connected given Z
    """
    sources = set(graph.indices_of(x))
    targets = set(graph.indices_of(y))
    if not sources or not targets:
        return False
    if sources & targets:
        return True

    conditioned = set(graph.indices_of(z))
    openers = _collider_openers(graph, conditioned)
    if incidence is None:
        incidence = build_incidence(graph)

    stack: List[Tuple[int, bool]] = []
    for source in sources:
        source_id = graph.node_id(source)
        for neighbor, edge, _ in incidence[source]:
            if backdoor_only and not edge.has_arrowhead_at(source_id):
                continue
            stack.append((neighbor, edge.has_arrowhead_at(graph.node_id(neighbor))))

    seen: Set[Tuple[int, bool]] = set()
    while stack:
        state = stack.pop()
        if state in seen:
            continue
        seen.add(state)

        node, entered_through_arrowhead = state
        if node in targets:
            return True
        if node in sources:
            continue

        node_id = graph.node_id(node)
        for neighbor, edge, _ in incidence[node]:
            if entered_through_arrowhead and edge.has_arrowhead_at(node_id):
                if node not in openers:
                    continue
            elif node in conditioned:
                continue
            stack.append((neighbor, edge.has_arrowhead_at(graph.node_id(neighbor))))

    return False


def check_d_separation(graph: CausalGraph,
                       x: Iterable[str],
                       y: Iterable[str],
                       z: Iterable[str] = (),
                       max_length: Optional[int] = None,
                       include_path_details: bool = True,
                       max_paths: Optional[int] = None) -> DSeparationResult:
    """
    Check if X and Y are d-separated given Z.

    The verdict comes from has_open_path and does not depend on the path
    listing. Paths are enumerated for the report only, bounded by
    max_length and max_paths; paths_complete is False when that listing
    stopped early.

    Args:
        graph: Causal graph (assumed acyclic)
        x: First node set
        y: Second node set
        z: Conditioning set
        max_length: Path length bound for the listing, defaults to the node count
        include_path_details: Also report the blocked paths
        max_paths: Path cap for the listing (default from config)

    Returns:
        DSeparationResult; active_paths lists the open paths found
    """
    x, y, z = list(x), list(y), list(z)
    conditioning = set(z)

    overlap = sorted((set(x) & set(y)) & set(graph.node_ids))
    if overlap:
        return DSeparationResult(
            separated=False,
            active_paths=[],
            conditioning_set=z,
            explanation=f"X and Y share node(s) {{{', '.join(overlap)}}}",
        )

    separated = not has_open_path(graph, x, y, z)

    descendants = DescendantCache(graph)
    active: List[Path] = []
    blocked: List[Path] = []

    search = search_paths(graph, x, y, max_length, max_paths=max_paths)
    all_paths = search.paths
    for path in all_paths:
        is_blocked, reason = is_path_blocked(graph, path, conditioning, descendants)
        path.is_blocked = is_blocked
        path.blocking_reason = reason
        (blocked if is_blocked else active).append(path)

    listed = "" if search.complete else " listed"
    if separated and not all_paths and search.complete:
        explanation = f"No paths exist between {{{', '.join(x)}}} and {{{', '.join(y)}}}"
    elif separated:
        explanation = f"All {len(all_paths)}{listed} path(s) are blocked by conditioning on {{{', '.join(z)}}}"
    elif active:
        explanation = (
            f"{len(active)} of {len(all_paths)}{listed} path(s) remain open "
            f"after conditioning on {{{', '.join(z)}}}"
        )
    else:
        explanation = (
            f"An open path remains after conditioning on {{{', '.join(z)}}} "
            f"beyond the {len(all_paths)} listed path(s)"
        )

    return DSeparationResult(
        separated=separated,
        active_paths=active,
        blocked_paths=blocked if include_path_details else [],
        conditioning_set=z,
        explanation=explanation,
        paths_complete=search.complete,
    )


def is_d_separated(graph: CausalGraph,
                   x: Iterable[str],
                   y: Iterable[str],
                   z: Iterable[str] = ()) -> bool:
    """Boolean form of check_d_separation, without listing paths."""
    return not has_open_path(graph, x, y, z)


def get_implied_independencies(graph: CausalGraph,
                               max_conditioning_size: Optional[int] = None) -> List[Independence]:
    """
    Enumerate conditional independencies implied by the graph.

    Bounded search: single-node x and y over sorted ids, conditioning sets
    drawn from the remaining nodes up to max_conditioning_size (default
    from config).
    """
    if max_conditioning_size is None:
        max_conditioning_size = get_config().MAX_CONDITIONING_SIZE

    node_ids = sorted(graph.node_ids)
    incidence = build_incidence(graph)
    independencies: List[Independence] = []

    for i, x in enumerate(node_ids):
        for y in node_ids[i + 1:]:
            others = [n for n in node_ids if n != x and n != y]

            for size in range(min(max_conditioning_size, len(others)) + 1):
                for z in combinations(others, size):
                    if not has_open_path(graph, [x], [y], z, incidence=incidence):
                        independencies.append(Independence(x=x, y=y, z=z))

    logger.debug(f"Graph {graph.id} implies {len(independencies)} independencies "
                 f"(conditioning size <= {max_conditioning_size})")
    return independencies
