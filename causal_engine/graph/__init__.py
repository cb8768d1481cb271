"""
Causal Graph - graph model and structural algorithms.

Causal Engine - Pearl-style graph reasoning
"""

from .dag import CausalGraph, Node, Edge, NodeType, EdgeType
from .paths import Path, PathEdge, PathSearch, NodeRole, search_paths, find_all_paths, find_backdoor_paths, find_directed_paths, has_directed_path
from .dseparation import (
    DSeparationResult,
    Independence,
    check_d_separation,
    has_open_path,
    is_d_separated,
    is_path_blocked,
    get_implied_independencies,
)
from .structure import (
    VStructure,
    SeparatorResult,
    AdjustmentResult,
    find_v_structures,
    compute_markov_blanket,
    find_minimal_separator,
    check_backdoor_adjustment,
    is_valid_backdoor_adjustment,
)
from .adjustment import (
    AdjustmentFormula,
    BackdoorSearchResult,
    find_all_backdoor_sets,
    find_backdoor_adjustment_set,
    generate_backdoor_formula,
    generate_frontdoor_formula,
    generate_iv_formula,
)
from .identifiability import (
    IdentificationMethod,
    IdentifiabilityChecker,
    CausalEffect,
    FrontdoorResult,
    RuleResult,
    check_frontdoor_criterion,
    is_valid_frontdoor_set,
    find_instrumental_variable,
    find_all_instrumental_variables,
    is_identifiable,
    apply_rule1,
    apply_rule2,
    apply_rule3,
)
from .centrality import (
    CentralityMeasure,
    CentralityResult,
    CentralNode,
    DegreeCentrality,
    compute_degree_centrality,
    compute_betweenness_centrality,
    compute_closeness_centrality,
    compute_pagerank,
    compute_eigenvector_centrality,
    compute_katz_centrality,
    compute_all_centrality,
    get_most_central_node,
)

__all__ = [
    'CausalGraph',
    'Node',
    'Edge',
    'NodeType',
    'EdgeType',
    'Path',
    'PathEdge',
    'PathSearch',
    'NodeRole',
    'search_paths',
    'find_all_paths',
    'find_backdoor_paths',
    'find_directed_paths',
    'has_directed_path',
    'DSeparationResult',
    'Independence',
    'check_d_separation',
    'has_open_path',
    'is_d_separated',
    'is_path_blocked',
    'get_implied_independencies',
    'VStructure',
    'SeparatorResult',
    'AdjustmentResult',
    'find_v_structures',
    'compute_markov_blanket',
    'find_minimal_separator',
    'check_backdoor_adjustment',
    'is_valid_backdoor_adjustment',
    'AdjustmentFormula',
    'BackdoorSearchResult',
    'find_all_backdoor_sets',
    'find_backdoor_adjustment_set',
    'generate_backdoor_formula',
    'generate_frontdoor_formula',
    'generate_iv_formula',
    'IdentificationMethod',
    'IdentifiabilityChecker',
    'CausalEffect',
    'FrontdoorResult',
    'RuleResult',
    'check_frontdoor_criterion',
    'is_valid_frontdoor_set',
    'find_instrumental_variable',
    'find_all_instrumental_variables',
    'is_identifiable',
    'apply_rule1',
    'apply_rule2',
    'apply_rule3',
    'CentralityMeasure',
    'CentralityResult',
    'CentralNode',
    'DegreeCentrality',
    'compute_degree_centrality',
    'compute_betweenness_centrality',
    'compute_closeness_centrality',
    'compute_pagerank',
    'compute_eigenvector_centrality',
    'compute_katz_centrality',
    'compute_all_centrality',
    'get_most_central_node',
]
