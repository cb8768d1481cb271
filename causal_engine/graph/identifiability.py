"""
Causal Identifiability - Effect identification algorithms.

Causal Engine - Pearl-style graph reasoning
Identifiability Engine
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Iterable, List, Optional
from enum import Enum
import logging

from ..config import get_config
from .adjustment import (
    AdjustmentFormula,
    find_backdoor_adjustment_set,
    generate_backdoor_formula,
    generate_frontdoor_formula,
    generate_iv_formula,
)
from .dag import CausalGraph, EdgeType
from .dseparation import has_open_path, is_d_separated
from .paths import Incidence, build_incidence, has_directed_path

logger = logging.getLogger(__name__)


class IdentificationMethod(Enum):
    """Method used for identification."""
    BACKDOOR = "backdoor"
    FRONTDOOR = "frontdoor"
    INSTRUMENTAL = "instrumental"
    NOT_IDENTIFIABLE = "not_identifiable"


@dataclass
class FrontdoorResult:
    """Outcome of the frontdoor mediator search."""
    satisfied: bool
    mediators: List[str]
    exhaustive: bool = True


@dataclass
class CausalEffect:
    """Identified causal effect."""
    treatment: str
    outcome: str
    identifiable: bool
    method: IdentificationMethod
    adjustment_set: List[str] = field(default_factory=list)
    formula: Optional[AdjustmentFormula] = None
    reason: str = ""
    assumptions: List[str] = field(default_factory=list)

    @property
    def estimand(self) -> Optional[str]:
        return self.formula.latex if self.formula else None


@dataclass
class RuleResult:
    """Applicability of a do-calculus rule."""
    applicable: bool
    result: Optional[str] = None


# ----------------------------------------------------------------------
# Frontdoor criterion
# ----------------------------------------------------------------------

def mediator_candidates(graph: CausalGraph, treatment: str, outcome: str) -> List[str]:
    """Observed nodes on directed paths from treatment to outcome, sorted."""
    between = graph.get_descendants(treatment) & graph.get_ancestors(outcome)
    between -= {treatment, outcome}
    return sorted(m for m in between if graph.get_node(m).observed)


def _mediator_is_shielded(graph: CausalGraph,
                          treatment: str,
                          outcome: str,
                          mediator: str,
                          incidence: Incidence) -> bool:
    """Frontdoor conditions (b) and (c) for a single mediator."""
    # (b) No unblocked backdoor path from treatment to the mediator
    if has_open_path(graph, [treatment], [mediator], backdoor_only=True, incidence=incidence):
        return False

    # (c) Every backdoor path from the mediator to outcome is blocked by treatment
    return not has_open_path(graph, [mediator], [outcome], [treatment],
                             backdoor_only=True, incidence=incidence)


def is_valid_frontdoor_set(graph: CausalGraph,
                           treatment: str,
                           outcome: str,
                           mediators: Iterable[str]) -> bool:
    """
    Check if mediator set satisfies frontdoor criterion.

    A set M satisfies the frontdoor criterion relative to (X, Y) if:
    1. M intercepts all directed paths from X to Y
    2. There is no unblocked backdoor path from X to M
    3. All backdoor paths from M to Y are blocked by X
    """
    m_set = set(mediators)
    if not m_set or treatment in m_set or outcome in m_set:
        return False
    if not all(m in graph for m in m_set):
        return False

    if not has_directed_path(graph, treatment, outcome):
        return False
    if has_directed_path(graph, treatment, outcome, avoiding=m_set):
        return False

    incidence = build_incidence(graph)
    return all(
        _mediator_is_shielded(graph, treatment, outcome, m, incidence)
        for m in sorted(m_set)
    )


def check_frontdoor_criterion(graph: CausalGraph,
                              treatment: str,
                              outcome: str,
                              max_candidates: Optional[int] = None) -> FrontdoorResult:
    """
    Search for a mediator set satisfying the frontdoor criterion.

    Conditions (b) and (c) are properties of each mediator, so candidates
    failing them are dropped first; subsets of the survivors are then
    tried smallest first for interception of every directed path.
    """
    if max_candidates is None:
        max_candidates = get_config().MAX_FRONTDOOR_CANDIDATES

    if treatment == outcome or treatment not in graph or outcome not in graph:
        return FrontdoorResult(satisfied=False, mediators=[])
    if not has_directed_path(graph, treatment, outcome):
        return FrontdoorResult(satisfied=False, mediators=[])

    incidence = build_incidence(graph)
    shielded = [
        m for m in mediator_candidates(graph, treatment, outcome)
        if _mediator_is_shielded(graph, treatment, outcome, m, incidence)
    ]

    exhaustive = len(shielded) <= max_candidates
    if not exhaustive:
        logger.warning(f"Frontdoor search for {treatment} -> {outcome} limited to "
                       f"{max_candidates} of {len(shielded)} mediators")
        shielded = shielded[:max_candidates]

    for size in range(1, len(shielded) + 1):
        for subset in combinations(shielded, size):
            if not has_directed_path(graph, treatment, outcome, avoiding=subset):
                return FrontdoorResult(satisfied=True, mediators=list(subset), exhaustive=exhaustive)

    return FrontdoorResult(satisfied=False, mediators=[], exhaustive=exhaustive)


# ----------------------------------------------------------------------
# Instrumental variables
# ----------------------------------------------------------------------

def find_all_instrumental_variables(graph: CausalGraph,
                                    treatment: str,
                                    outcome: str) -> List[str]:
    """
    Find every valid instrument, in node declaration order.

    An instrument Z is valid if:
    1. Z -> treatment exists (relevance)
    2. Z -> outcome does not exist (exclusion)
    3. Z is d-separated from outcome once treatment is intervened on
    """
    if treatment == outcome or treatment not in graph or outcome not in graph:
        return []

    mutilated = graph.without_incoming([treatment])
    instruments = []

    for node in graph.nodes:
        if node.id in (treatment, outcome) or not node.observed:
            continue
        if not graph.has_edge(node.id, treatment, EdgeType.DIRECTED):
            continue
        if graph.has_edge(node.id, outcome, EdgeType.DIRECTED):
            continue
        if is_d_separated(mutilated, [node.id], [outcome]):
            instruments.append(node.id)

    return instruments


def find_instrumental_variable(graph: CausalGraph,
                               treatment: str,
                               outcome: str) -> Optional[str]:
    """Find the first valid instrumental variable, or None."""
    instruments = find_all_instrumental_variables(graph, treatment, outcome)
    return instruments[0] if instruments else None


# ----------------------------------------------------------------------
# Do-calculus rules
# ----------------------------------------------------------------------

def _probability(y: Iterable[str], do: Iterable[str] = (), given: Iterable[str] = ()) -> str:
    """Render P(y|do(x),w), leaving out empty parts."""
    do, given = list(do), list(given)
    parts = [f"do({','.join(do)})"] if do else []
    parts.extend(given)
    if not parts:
        return f"P({','.join(y)})"
    return f"P({','.join(y)}|{','.join(parts)})"


def apply_rule1(graph: CausalGraph,
                y: List[str],
                x: List[str],
                z: List[str],
                w: List[str]) -> RuleResult:
    """
    Rule 1 (insertion/deletion of observations).

    P(y|do(x),z,w) = P(y|do(x),w) if (Y ⊥ Z | X, W) in G with arrows into X removed.
    """
    mutilated = graph.without_incoming(x)
    if is_d_separated(mutilated, y, z, list(x) + list(w)):
        return RuleResult(applicable=True, result=_probability(y, x, w))
    return RuleResult(applicable=False)


def apply_rule2(graph: CausalGraph,
                y: List[str],
                x: List[str],
                z: List[str],
                w: List[str]) -> RuleResult:
    """
    Rule 2 (action/observation exchange).

    P(y|do(x),do(z),w) = P(y|do(x),z,w) if (Y ⊥ Z | X, W) in G with arrows
    into X and out of Z removed.
    """
    modified = graph.without_incoming(x).without_outgoing(z)
    if is_d_separated(modified, y, z, list(x) + list(w)):
        return RuleResult(applicable=True, result=_probability(y, x, list(z) + list(w)))
    return RuleResult(applicable=False)


def apply_rule3(graph: CausalGraph,
                y: List[str],
                x: List[str],
                z: List[str],
                w: List[str]) -> RuleResult:
    """
    Rule 3 (insertion/deletion of actions).

    P(y|do(x),do(z),w) = P(y|do(x),w) if (Y ⊥ Z | X, W) in G with arrows
    into X and into Z(W) removed, Z(W) being the Z-nodes that are not
    ancestors of any W-node once arrows into X are removed.
    """
    without_x = graph.without_incoming(x)
    w_ancestors = set()
    for node in w:
        w_ancestors |= without_x.get_ancestors(node)
    z_w = [node for node in z if node not in w_ancestors]

    modified = without_x.without_incoming(z_w)
    if is_d_separated(modified, y, z, list(x) + list(w)):
        return RuleResult(applicable=True, result=_probability(y, x, w))
    return RuleResult(applicable=False)


# ----------------------------------------------------------------------
# Identification cascade
# ----------------------------------------------------------------------

class IdentifiabilityChecker:
    """
    Check if causal effects are identifiable from the graph structure.

    Features:
    - Backdoor criterion
    - Frontdoor criterion
    - Instrumental variable identification
    """

    def __init__(self, graph: CausalGraph):
        """
        Initialize checker.

        Args:
            graph: CausalGraph instance
        """
        self.graph = graph

    def check_identifiability(self,
                              treatment: str,
                              outcome: str) -> CausalEffect:
        """
        Check if causal effect is identifiable.

        Args:
            treatment: Treatment variable
            outcome: Outcome variable

        Returns:
            CausalEffect with identification result
        """
        if treatment not in self.graph or outcome not in self.graph:
            return CausalEffect(
                treatment=treatment,
                outcome=outcome,
                identifiable=False,
                method=IdentificationMethod.NOT_IDENTIFIABLE,
                reason="Treatment or outcome is not a node of the graph",
            )
        if treatment == outcome:
            return CausalEffect(
                treatment=treatment,
                outcome=outcome,
                identifiable=False,
                method=IdentificationMethod.NOT_IDENTIFIABLE,
                reason="Treatment and outcome are the same variable",
            )

        # Try backdoor criterion first
        backdoor_result = self.identify_by_backdoor(treatment, outcome)
        if backdoor_result.identifiable:
            return backdoor_result

        # Try frontdoor criterion
        frontdoor_result = self.identify_by_frontdoor(treatment, outcome)
        if frontdoor_result.identifiable:
            return frontdoor_result

        # Try instrumental variable
        iv_result = self.identify_by_instrument(treatment, outcome)
        if iv_result.identifiable:
            return iv_result

        logger.warning(f"Effect of {treatment} on {outcome} is not identifiable")
        return CausalEffect(
            treatment=treatment,
            outcome=outcome,
            identifiable=False,
            method=IdentificationMethod.NOT_IDENTIFIABLE,
            reason="No valid adjustment set found and frontdoor criterion not satisfied",
            assumptions=["No standard identification strategy found"],
        )

    def identify_by_backdoor(self,
                             treatment: str,
                             outcome: str) -> CausalEffect:
        """
        Check backdoor criterion for identification.

        A set Z satisfies the backdoor criterion if:
        1. No node in Z is a descendant of treatment
        2. Z blocks all backdoor paths from treatment to outcome
        """
        adjustment_set = find_backdoor_adjustment_set(self.graph, treatment, outcome)

        if adjustment_set is not None:
            return CausalEffect(
                treatment=treatment,
                outcome=outcome,
                identifiable=True,
                method=IdentificationMethod.BACKDOOR,
                adjustment_set=adjustment_set,
                formula=generate_backdoor_formula(treatment, outcome, adjustment_set),
                reason="Backdoor criterion satisfied",
                assumptions=[
                    "Positivity: P(T|Z) > 0 for all Z",
                    "Graph includes every common cause of treatment and outcome",
                ],
            )

        return CausalEffect(
            treatment=treatment,
            outcome=outcome,
            identifiable=False,
            method=IdentificationMethod.BACKDOOR,
            reason="Backdoor criterion not satisfied",
        )

    def identify_by_frontdoor(self,
                              treatment: str,
                              outcome: str) -> CausalEffect:
        """
        Check frontdoor criterion for identification.

        A set M satisfies the frontdoor criterion if:
        1. M intercepts all directed paths from treatment to outcome
        2. No unblocked backdoor path from treatment to M
        3. All backdoor paths from M to outcome are blocked by treatment
        """
        result = check_frontdoor_criterion(self.graph, treatment, outcome)

        if result.satisfied:
            return CausalEffect(
                treatment=treatment,
                outcome=outcome,
                identifiable=True,
                method=IdentificationMethod.FRONTDOOR,
                adjustment_set=result.mediators,
                formula=generate_frontdoor_formula(treatment, outcome, result.mediators),
                reason="Frontdoor criterion satisfied",
                assumptions=[
                    "Complete mediation through M",
                    "No unobserved confounders T->M or M->Y",
                ],
            )

        return CausalEffect(
            treatment=treatment,
            outcome=outcome,
            identifiable=False,
            method=IdentificationMethod.FRONTDOOR,
            reason="Frontdoor criterion not satisfied",
        )

    def identify_by_instrument(self,
                               treatment: str,
                               outcome: str) -> CausalEffect:
        """
        Check for instrumental variable identification.

        An instrument Z is valid if:
        1. Z affects treatment (relevance)
        2. Z affects outcome only through treatment (exclusion)
        3. Z is not confounded with outcome
        """
        instrument = find_instrumental_variable(self.graph, treatment, outcome)

        if instrument is not None:
            return CausalEffect(
                treatment=treatment,
                outcome=outcome,
                identifiable=True,
                method=IdentificationMethod.INSTRUMENTAL,
                adjustment_set=[instrument],
                formula=generate_iv_formula(treatment, outcome, instrument),
                reason="Instrumental variable available",
                assumptions=[
                    f"Relevance: {instrument} affects {treatment}",
                    f"Exclusion: {instrument} affects {outcome} only through {treatment}",
                    f"Independence: {instrument} not confounded with {outcome}",
                    "Linear effects for the Wald estimand",
                ],
            )

        return CausalEffect(
            treatment=treatment,
            outcome=outcome,
            identifiable=False,
            method=IdentificationMethod.INSTRUMENTAL,
            reason="No valid instrumental variable found",
        )


def is_identifiable(graph: CausalGraph, treatment: str, outcome: str) -> CausalEffect:
    """Run the backdoor, frontdoor, instrumental cascade for one effect."""
    return IdentifiabilityChecker(graph).check_identifiability(treatment, outcome)
