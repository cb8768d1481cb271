"""
Intervention Engine - do-operator graph surgery.

Causal Engine - Pearl-style graph reasoning
Intervention Engine

Model interventions P(Y | do(X=x)) on the graph structure: mutilate the
graph, marginalize variables and decide which effects are identifiable.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union
from enum import Enum
import logging

from .graph.adjustment import AdjustmentFormula
from .graph.dag import CausalGraph, Edge, EdgeType
from .graph.identifiability import IdentificationMethod, IdentifiabilityChecker
from .graph.structure import is_valid_backdoor_adjustment

logger = logging.getLogger(__name__)


class InterventionType(Enum):
    """Kind of do-operation."""
    ATOMIC = "atomic"            # do(X = x)
    STOCHASTIC = "stochastic"    # X drawn from a chosen distribution
    CONDITIONAL = "conditional"  # X set as a function of other variables


@dataclass(frozen=True)
class Intervention:
    """Setting one variable by intervention."""
    variable: str
    value: Any = None
    type: InterventionType = InterventionType.ATOMIC
    distribution: Optional[Dict[str, Any]] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.type, InterventionType):
            object.__setattr__(self, "type", InterventionType(self.type))

    def __str__(self) -> str:
        if self.value is None:
            return f"do({self.variable})"
        return f"do({self.variable}={self.value})"


InterventionLike = Union[Intervention, str, Dict[str, Any]]


def _as_intervention(item: InterventionLike) -> Intervention:
    if isinstance(item, Intervention):
        return item
    if isinstance(item, str):
        return Intervention(variable=item)
    return Intervention(
        variable=item['variable'],
        value=item.get('value'),
        type=item.get('type', InterventionType.ATOMIC),
        distribution=item.get('distribution'),
    )


@dataclass
class InterventionRequest:
    """Interventions to apply and outcomes to study."""
    interventions: List[Intervention]
    outcomes: List[str]
    covariates: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.interventions = [_as_intervention(i) for i in self.interventions]
        self.outcomes = list(self.outcomes)
        self.covariates = list(self.covariates)


@dataclass
class EffectIdentification:
    """Identification result for one (intervention, outcome) pair."""
    treatment: str
    outcome: str
    identifiable: bool
    method: IdentificationMethod
    adjustment_set: List[str] = field(default_factory=list)
    formula: Optional[AdjustmentFormula] = None
    reason: str = ""


@dataclass
class InterventionResult:
    """Result of intervention analysis."""
    identifiable: bool
    adjustment: Optional[AdjustmentFormula] = None
    effects: List[EffectIdentification] = field(default_factory=list)
    mutilated_graph: Optional[CausalGraph] = None
    non_identifiable_reason: Optional[str] = None
    covariates_valid: Optional[bool] = None

    @property
    def estimand(self) -> Optional[str]:
        return self.adjustment.latex if self.adjustment else None


def create_mutilated_graph(graph: CausalGraph,
                           interventions: Iterable[InterventionLike]) -> CausalGraph:
    """
    Apply the do-operator to the graph.

    Exactly the edges whose target is an intervened variable are removed,
    bidirected ones included; edges declared from intervened variables and
    all other structure are kept. The source graph is not modified.

    Args:
        graph: Causal graph
        interventions: Intervention objects, variable ids or
            {'variable': ..., 'value': ...} dicts

    Returns:
        New graph with id '<id>_mutilated'
    """
    applied = [_as_intervention(i) for i in interventions]
    variables = [i.variable for i in applied]

    metadata = graph.metadata
    metadata['description'] = (
        "Mutilated graph for interventions: " + ", ".join(str(i) for i in applied)
    )

    mutilated = graph.without_edges_into(
        variables,
        graph_id=f"{graph.id}_mutilated",
        metadata=metadata,
    )
    logger.debug(f"Mutilated {graph.id} on {variables}: "
                 f"{len(graph.edges) - len(mutilated.edges)} edge(s) removed")
    return mutilated


def create_marginalized_graph(graph: CausalGraph, variable: str) -> CausalGraph:
    """
    Remove a variable, connecting its parents directly to its children.

    Edges incident to the variable are dropped; each parent -> child edge
    is added only if not already present.
    """
    if variable not in graph:
        return graph

    parents = graph.get_parents(variable)
    children = graph.get_children(variable)

    edges = [e for e in graph.edges if variable not in (e.source, e.target)]
    for parent in parents:
        for child in children:
            if parent == child:
                continue
            if not any(e.source == parent and e.target == child for e in edges):
                edges.append(Edge(parent, child, EdgeType.DIRECTED))

    return CausalGraph(
        nodes=[n for n in graph.nodes if n.id != variable],
        edges=edges,
        graph_id=f"{graph.id}_marginalized_{variable}",
        metadata=graph.metadata,
    )


def _identify_pair(graph: CausalGraph,
                   treatment: str,
                   outcome: str,
                   co_interventions: List[str]) -> EffectIdentification:
    # Other interventions are fixed, so their incoming edges play no role
    target_graph = graph.without_incoming(co_interventions) if co_interventions else graph
    effect = IdentifiabilityChecker(target_graph).check_identifiability(treatment, outcome)

    return EffectIdentification(
        treatment=treatment,
        outcome=outcome,
        identifiable=effect.identifiable,
        method=effect.method,
        adjustment_set=effect.adjustment_set,
        formula=effect.formula,
        reason=effect.reason,
    )


def analyze_intervention(graph: CausalGraph, request: InterventionRequest) -> InterventionResult:
    """
    Decide whether the requested interventional effects are identifiable.

    Each (intervention, outcome) pair is identified on the graph mutilated
    by the other interventions in the request, trying backdoor, frontdoor
    and instrumental variable identification in turn. The result is
    identifiable only when every pair is; adjustment holds the formula of
    the first pair.
    """
    if not request.interventions or not request.outcomes:
        return InterventionResult(
            identifiable=False,
            non_identifiable_reason="Missing treatment or outcome variable",
        )

    variables = [i.variable for i in request.interventions]
    effects = []

    for variable in variables:
        co_interventions = [v for v in variables if v != variable]
        for outcome in request.outcomes:
            effects.append(_identify_pair(graph, variable, outcome, co_interventions))

    failed = [e for e in effects if not e.identifiable]
    reason = None
    if failed:
        first = failed[0]
        reason = f"Effect of {first.treatment} on {first.outcome}: {first.reason}"
        logger.warning(f"Intervention on {variables} is not identifiable ({len(failed)} of "
                       f"{len(effects)} effects)")

    covariates_valid = None
    if request.covariates:
        covariates_valid = is_valid_backdoor_adjustment(
            graph, variables[0], request.outcomes[0], request.covariates
        )

    return InterventionResult(
        identifiable=not failed,
        adjustment=effects[0].formula,
        effects=effects,
        mutilated_graph=create_mutilated_graph(graph, request.interventions),
        non_identifiable_reason=reason,
        covariates_valid=covariates_valid,
    )


class InterventionEngine:
    """
    Intervention analysis using do-calculus.

    Computes the structure of interventions:
    P(Y | do(X=x)) - the effect of setting X to x on Y

    Features:
    - Graph mutilation and marginalization
    - Identifiability checking
    - Comparison of intervention scenarios
    """

    def __init__(self, graph: CausalGraph):
        self.graph = graph

    def mutilate(self, interventions: Iterable[InterventionLike]) -> CausalGraph:
        return create_mutilated_graph(self.graph, interventions)

    def marginalize(self, variable: str) -> CausalGraph:
        return create_marginalized_graph(self.graph, variable)

    def analyze(self,
                interventions: Iterable[InterventionLike],
                outcomes: Iterable[str],
                covariates: Iterable[str] = ()) -> InterventionResult:
        """
        Analyze interventions on the engine's graph.

        Args:
            interventions: Interventions, variable ids or dicts
            outcomes: Outcome variables
            covariates: Optional adjustment set proposed by the caller

        Returns:
            InterventionResult
        """
        request = InterventionRequest(
            interventions=list(interventions),
            outcomes=list(outcomes),
            covariates=list(covariates),
        )
        return analyze_intervention(self.graph, request)

    def compare_interventions(self,
                              candidates: List[InterventionLike],
                              outcome: str) -> List[InterventionResult]:
        """Analyze single-variable interventions on outcome, identifiable ones first."""
        results = [self.analyze([candidate], [outcome]) for candidate in candidates]
        # Stable sort keeps candidate order within each group
        results.sort(key=lambda r: not r.identifiable)
        return results
