"""
Adjustment Sets - backdoor enumeration and adjustment formulas.

Causal Engine - Pearl-style graph reasoning
Identifiability Engine
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
import logging

from ..config import get_config
from .dag import CausalGraph
from .dseparation import has_open_path
from .paths import build_incidence
from .structure import is_valid_backdoor_adjustment

logger = logging.getLogger(__name__)


@dataclass
class AdjustmentFormula:
    """Estimand for P(outcome | do(treatment))."""
    type: str
    adjustment_set: List[str]
    is_valid: bool
    latex: str
    plain_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'adjustment_set': list(self.adjustment_set),
            'is_valid': self.is_valid,
            'latex': self.latex,
            'plain_text': self.plain_text,
        }


@dataclass
class BackdoorSearchResult:
    """
    Valid backdoor adjustment sets, smallest first.

    Iterating the result yields the sets. exhaustive is False when the
    candidate pool was replaced by the parent-based fallback or when
    max_size was smaller than the pool.
    """
    sets: List[List[str]]
    exhaustive: bool
    candidates: List[str] = field(default_factory=list)
    heuristic: bool = False

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self.sets)

    def __len__(self) -> int:
        return len(self.sets)

    def __getitem__(self, index: int) -> List[str]:
        return self.sets[index]

    @property
    def minimal(self) -> Optional[List[str]]:
        return self.sets[0] if self.sets else None


def adjustment_candidates(graph: CausalGraph, treatment: str, outcome: str) -> List[str]:
    """Observed non-descendants of treatment, excluding treatment and outcome, sorted."""
    treatment_descendants = graph.get_descendants(treatment)
    return sorted(
        node.id for node in graph.nodes
        if node.id not in (treatment, outcome)
        and node.id not in treatment_descendants
        and node.observed
    )


def _bounded_pool(graph: CausalGraph,
                  treatment: str,
                  outcome: str,
                  max_candidates: int) -> Tuple[List[str], bool]:
    pool = adjustment_candidates(graph, treatment, outcome)
    if len(pool) <= max_candidates:
        return pool, False

    allowed = set(pool)
    parents = set(graph.get_parents(treatment)) | set(graph.get_parents(outcome))
    fallback = sorted(parents & allowed)[:max_candidates]
    logger.warning(
        f"Backdoor candidate pool for {treatment} -> {outcome} has {len(pool)} nodes; "
        f"falling back to {len(fallback)} parent(s)"
    )
    return fallback, True


def _iter_backdoor_sets(graph: CausalGraph,
                        treatment: str,
                        outcome: str,
                        pool: List[str],
                        max_size: int) -> Iterator[List[str]]:
    incidence = build_incidence(graph)

    for size in range(min(max_size, len(pool)) + 1):
        for subset in combinations(pool, size):
            if not has_open_path(graph, [treatment], [outcome], subset,
                                 backdoor_only=True, incidence=incidence):
                yield list(subset)


def find_all_backdoor_sets(graph: CausalGraph,
                           treatment: str,
                           outcome: str,
                           max_size: Optional[int] = None,
                           max_candidates: Optional[int] = None) -> BackdoorSearchResult:
    """
    Find all valid backdoor adjustment sets up to max_size.

    Args:
        graph: Causal graph (assumed acyclic)
        treatment: Treatment variable
        outcome: Outcome variable
        max_size: Largest set size tried (default from config)
        max_candidates: Pool size above which the parent-based fallback
            pool is used (default from config)

    Returns:
        BackdoorSearchResult ordered by size, then sorted-id combination order
    """
    settings = get_config()
    if max_size is None:
        max_size = settings.MAX_BACKDOOR_SET_SIZE
    if max_candidates is None:
        max_candidates = settings.MAX_BACKDOOR_CANDIDATES

    if treatment == outcome or treatment not in graph or outcome not in graph:
        return BackdoorSearchResult(sets=[], exhaustive=True)

    pool, heuristic = _bounded_pool(graph, treatment, outcome, max_candidates)
    valid_sets = list(_iter_backdoor_sets(graph, treatment, outcome, pool, max_size))

    return BackdoorSearchResult(
        sets=valid_sets,
        exhaustive=not heuristic and max_size >= len(pool),
        candidates=pool,
        heuristic=heuristic,
    )


def find_backdoor_adjustment_set(graph: CausalGraph,
                                 treatment: str,
                                 outcome: str,
                                 max_size: Optional[int] = None) -> Optional[List[str]]:
    """Find a smallest valid backdoor adjustment set, or None."""
    settings = get_config()
    if max_size is None:
        max_size = settings.MAX_BACKDOOR_SET_SIZE

    if treatment == outcome or treatment not in graph or outcome not in graph:
        return None

    pool, _ = _bounded_pool(graph, treatment, outcome, settings.MAX_BACKDOOR_CANDIDATES)
    return next(_iter_backdoor_sets(graph, treatment, outcome, pool, max_size), None)


def generate_backdoor_formula(treatment: str,
                              outcome: str,
                              adjustment_set: Iterable[str],
                              graph: Optional[CausalGraph] = None) -> AdjustmentFormula:
    """
    Generate the backdoor adjustment formula.

    The adjustment set is sorted before rendering. When a graph is given,
    is_valid reports the backdoor criterion on it; otherwise the set is
    taken as valid.
    """
    z = sorted(set(adjustment_set))
    z_str = ", ".join(z)

    if not z:
        latex = f"P({outcome} \\mid do({treatment})) = P({outcome} \\mid {treatment})"
        plain_text = f"P({outcome}|do({treatment})) = P({outcome}|{treatment})"
    else:
        latex = (
            f"P({outcome} \\mid do({treatment})) = \\sum_{{{z_str}}} "
            f"P({outcome} \\mid {treatment}, {z_str}) P({z_str})"
        )
        plain_text = (
            f"P({outcome}|do({treatment})) = Σ_{{{','.join(z)}}} "
            f"P({outcome}|{treatment},{','.join(z)}) P({','.join(z)})"
        )

    is_valid = True
    if graph is not None:
        is_valid = is_valid_backdoor_adjustment(graph, treatment, outcome, z)

    return AdjustmentFormula(
        type="backdoor",
        adjustment_set=z,
        is_valid=is_valid,
        latex=latex,
        plain_text=plain_text,
    )


def generate_frontdoor_formula(treatment: str,
                               outcome: str,
                               mediators: Union[str, Iterable[str]]) -> AdjustmentFormula:
    """Generate the frontdoor adjustment formula."""
    if isinstance(mediators, str):
        mediators = [mediators]
    m = sorted(set(mediators))
    m_str = ", ".join(m)
    t = treatment

    latex = (
        f"P({outcome} \\mid do({t})) = \\sum_{{{m_str}}} P({m_str} \\mid {t}) "
        f"\\sum_{{{t}'}} P({outcome} \\mid {m_str}, {t}') P({t}')"
    )
    plain_text = (
        f"P({outcome}|do({t})) = Σ_{{{','.join(m)}}} P({','.join(m)}|{t}) "
        f"Σ_{{{t}'}} P({outcome}|{','.join(m)},{t}') P({t}')"
    )

    return AdjustmentFormula(
        type="frontdoor",
        adjustment_set=m,
        is_valid=True,
        latex=latex,
        plain_text=plain_text,
    )


def generate_iv_formula(treatment: str, outcome: str, instrument: str) -> AdjustmentFormula:
    """Generate the instrumental variable (Wald) estimand."""
    latex = (
        f"\\beta_{{{treatment} \\to {outcome}}} = "
        f"\\frac{{Cov({outcome}, {instrument})}}{{Cov({treatment}, {instrument})}}"
    )
    plain_text = (
        f"β_{treatment}→{outcome} = Cov({outcome},{instrument}) / Cov({treatment},{instrument})"
    )

    return AdjustmentFormula(
        type="instrumental",
        adjustment_set=[instrument],
        is_valid=True,
        latex=latex,
        plain_text=plain_text,
    )
