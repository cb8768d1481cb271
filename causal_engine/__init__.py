"""
Causal Engine - Pearl-style reasoning over causal graphs.

d-separation, structural analysis, effect identification,
do-operator graph surgery and centrality measures.
"""

from .exceptions import GraphValidationError
from .config import get_config
from .graph import (
    CausalGraph,
    Node,
    Edge,
    NodeType,
    EdgeType,
    Path,
    find_all_paths,
    find_backdoor_paths,
    DSeparationResult,
    check_d_separation,
    is_d_separated,
    has_open_path,
    get_implied_independencies,
    find_v_structures,
    compute_markov_blanket,
    find_minimal_separator,
    is_valid_backdoor_adjustment,
    AdjustmentFormula,
    find_all_backdoor_sets,
    find_backdoor_adjustment_set,
    generate_backdoor_formula,
    IdentifiabilityChecker,
    CausalEffect,
    check_frontdoor_criterion,
    find_instrumental_variable,
    is_identifiable,
    CentralityMeasure,
    CentralityResult,
    compute_degree_centrality,
    compute_betweenness_centrality,
    compute_closeness_centrality,
    compute_pagerank,
    compute_all_centrality,
    get_most_central_node,
)
from .intervention import (
    Intervention,
    InterventionRequest,
    InterventionResult,
    InterventionEngine,
    create_mutilated_graph,
    create_marginalized_graph,
    analyze_intervention,
)

__version__ = "0.1.0"

__all__ = [
    'GraphValidationError',
    'get_config',
    'CausalGraph',
    'Node',
    'Edge',
    'NodeType',
    'EdgeType',
    'Path',
    'find_all_paths',
    'find_backdoor_paths',
    'DSeparationResult',
    'check_d_separation',
    'is_d_separated',
    'has_open_path',
    'get_implied_independencies',
    'find_v_structures',
    'compute_markov_blanket',
    'find_minimal_separator',
    'is_valid_backdoor_adjustment',
    'AdjustmentFormula',
    'find_all_backdoor_sets',
    'find_backdoor_adjustment_set',
    'generate_backdoor_formula',
    'IdentifiabilityChecker',
    'CausalEffect',
    'check_frontdoor_criterion',
    'find_instrumental_variable',
    'is_identifiable',
    'CentralityMeasure',
    'CentralityResult',
    'compute_degree_centrality',
    'compute_betweenness_centrality',
    'compute_closeness_centrality',
    'compute_pagerank',
    'compute_all_centrality',
    'get_most_central_node',
    'Intervention',
    'InterventionRequest',
    'InterventionResult',
    'InterventionEngine',
    'create_mutilated_graph',
    'create_marginalized_graph',
    'analyze_intervention',
]
