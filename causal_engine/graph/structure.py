"""
Structural Analysis - v-structures, Markov blankets, separators.

Causal Engine - Pearl-style graph reasoning
Structural Analyzer
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Iterable, List, Optional, Set
import logging

from ..config import get_config
from .dag import CausalGraph
from .dseparation import DescendantCache, has_open_path, is_path_blocked
from .paths import build_incidence, search_paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VStructure:
    """Unshielded collider parent1 -> collider <- parent2."""
    parent1: str
    collider: str
    parent2: str
    activated_when_conditioned: bool = True


@dataclass
class SeparatorResult:
    """Outcome of a minimal separator search."""
    separator: Optional[List[str]]
    exhaustive: bool
    candidates: List[str] = field(default_factory=list)
    subsets_checked: int = 0

    @property
    def found(self) -> bool:
        return self.separator is not None


@dataclass
class AdjustmentResult:
    """Result of checking an adjustment set against the backdoor criterion."""
    valid: bool
    adjustment_set: List[str]
    criterion: str
    blocked_paths: int
    total_paths: int
    issues: List[str] = field(default_factory=list)
    paths_complete: bool = True


def find_v_structures(graph: CausalGraph) -> List[VStructure]:
    """Find all v-structures (unshielded colliders) in the graph."""
    v_structures = []

    for collider in graph.node_ids:
        parents = graph.get_parents(collider)

        for i in range(len(parents)):
            for j in range(i + 1, len(parents)):
                if not graph.is_adjacent(parents[i], parents[j]):
                    v_structures.append(VStructure(
                        parent1=parents[i],
                        collider=collider,
                        parent2=parents[j],
                    ))

    return v_structures


def compute_markov_blanket(graph: CausalGraph, node: str) -> List[str]:
    """Parents, children and parents of children of node, sorted, node excluded."""
    blanket: Set[str] = set(graph.get_parents(node)) | set(graph.get_children(node))
    for child in graph.get_children(node):
        blanket.update(graph.get_parents(child))
    blanket.discard(node)
    return sorted(blanket)


def find_minimal_separator(graph: CausalGraph,
                           x: Iterable[str],
                           y: Iterable[str],
                           max_size: Optional[int] = None,
                           max_candidates: Optional[int] = None) -> SeparatorResult:
    """
    Find the smallest set that d-separates X from Y.

    Candidates are the ancestors of X and Y outside X and Y. Subsets are
    tried in increasing size, in combination order over sorted ids, so the
    result is reproducible. When the pool exceeds max_candidates, parents of
    X and Y are kept first; a truncated pool or a size cap below the pool
    size marks the result as not exhaustive.

    Returns:
        SeparatorResult; separator is None when no subset within the caps works
    """
    settings = get_config()
    if max_size is None:
        max_size = settings.MAX_SEPARATOR_SIZE
    if max_candidates is None:
        max_candidates = settings.MAX_SEPARATOR_CANDIDATES

    x, y = list(x), list(y)
    endpoints = set(x) | set(y)

    if set(x) & set(y) & set(graph.node_ids):
        return SeparatorResult(separator=None, exhaustive=True)

    pool: Set[str] = set()
    parents: Set[str] = set()
    for node in endpoints:
        pool |= graph.get_ancestors(node)
        parents.update(graph.get_parents(node))
    pool -= endpoints

    truncated = len(pool) > max_candidates
    if truncated:
        preferred = sorted(pool & parents) + sorted(pool - parents)
        pool = set(preferred[:max_candidates])
        logger.warning(f"Separator candidate pool for {x} / {y} truncated to {max_candidates} nodes")
    candidates = sorted(pool)

    incidence = build_incidence(graph)
    checked = 0

    for size in range(min(max_size, len(candidates)) + 1):
        for subset in combinations(candidates, size):
            checked += 1
            if not has_open_path(graph, x, y, subset, incidence=incidence):
                return SeparatorResult(
                    separator=list(subset),
                    exhaustive=not truncated,
                    candidates=candidates,
                    subsets_checked=checked,
                )

    exhaustive = not truncated and max_size >= len(candidates)
    if not exhaustive:
        logger.warning(f"Separator search for {x} / {y} stopped at size {max_size} without a result")

    return SeparatorResult(
        separator=None,
        exhaustive=exhaustive,
        candidates=candidates,
        subsets_checked=checked,
    )


def check_backdoor_adjustment(graph: CausalGraph,
                              treatment: str,
                              outcome: str,
                              adjustment: Iterable[str]) -> AdjustmentResult:
    """
    Check if adjustment set satisfies backdoor criterion.

    A set Z satisfies the backdoor criterion relative to (X, Y) if:
    1. Z does not contain any descendant of X
    2. Z blocks every path between X and Y that contains an arrow into X

    Args:
        graph: Causal graph
        treatment: Treatment variable
        outcome: Outcome variable
        adjustment: Proposed adjustment set

    Returns:
        Validation result
    """
    adjustment_set = sorted(set(adjustment))
    z = set(adjustment_set)

    if treatment in z or outcome in z:
        return AdjustmentResult(
            valid=False,
            adjustment_set=adjustment_set,
            criterion="backdoor",
            blocked_paths=0,
            total_paths=0,
            issues=["Adjustment set contains the treatment or the outcome"],
        )

    # Condition 1: No descendants of treatment
    violations = z & graph.get_descendants(treatment)
    if violations:
        return AdjustmentResult(
            valid=False,
            adjustment_set=adjustment_set,
            criterion="backdoor",
            blocked_paths=0,
            total_paths=0,
            issues=[f"Adjustment set contains descendants of {treatment}: {sorted(violations)}"],
        )

    # Condition 2: Blocks all backdoor paths
    open_backdoor = has_open_path(graph, [treatment], [outcome], z, backdoor_only=True)

    # Path counts are reported from a capped listing
    search = search_paths(graph, [treatment], [outcome], into_source_only=True)
    backdoor_paths = search.paths
    descendants = DescendantCache(graph)
    blocked = sum(1 for p in backdoor_paths if is_path_blocked(graph, p, z, descendants)[0])

    issues = []
    if open_backdoor:
        issues.append(f"Unblocked backdoor paths remain: {len(backdoor_paths) - blocked}")

    return AdjustmentResult(
        valid=not open_backdoor,
        adjustment_set=adjustment_set,
        criterion="backdoor",
        blocked_paths=blocked,
        total_paths=len(backdoor_paths),
        issues=issues,
        paths_complete=search.complete,
    )


def is_valid_backdoor_adjustment(graph: CausalGraph,
                                 treatment: str,
                                 outcome: str,
                                 adjustment: Iterable[str]) -> bool:
    """Check if a set is a valid backdoor adjustment set."""
    return check_backdoor_adjustment(graph, treatment, outcome, adjustment).valid
