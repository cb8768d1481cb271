"""
Centrality - node importance measures over the causal graph.

Causal Engine - Pearl-style graph reasoning
Centrality Engine

Bidirected edges count as a link in both directions. Score dictionaries
are keyed by node id in declaration order.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union
from enum import Enum
import logging
import time

import numpy as np

from ..config import get_config
from .dag import CausalGraph

logger = logging.getLogger(__name__)


class CentralityMeasure(Enum):
    """Supported centrality measures."""
    DEGREE = "degree"
    IN_DEGREE = "in_degree"
    OUT_DEGREE = "out_degree"
    BETWEENNESS = "betweenness"
    CLOSENESS = "closeness"
    PAGERANK = "pagerank"
    EIGENVECTOR = "eigenvector"
    KATZ = "katz"


DEFAULT_MEASURES = [
    CentralityMeasure.DEGREE,
    CentralityMeasure.IN_DEGREE,
    CentralityMeasure.OUT_DEGREE,
    CentralityMeasure.BETWEENNESS,
    CentralityMeasure.CLOSENESS,
    CentralityMeasure.PAGERANK,
    CentralityMeasure.EIGENVECTOR,
]


@dataclass
class DegreeCentrality:
    """Total, in- and out-degree per node."""
    degree: Dict[str, float]
    in_degree: Dict[str, float]
    out_degree: Dict[str, float]


@dataclass(frozen=True)
class CentralNode:
    """A node and its score under one measure."""
    node_id: str
    score: float


@dataclass
class CentralityResult:
    """All requested measures with their top-ranked nodes."""
    measures: Dict[CentralityMeasure, Dict[str, float]]
    top_nodes: Dict[CentralityMeasure, List[CentralNode]] = field(default_factory=dict)
    computation_time_ms: float = 0.0

    def __getitem__(self, measure: Union[CentralityMeasure, str]) -> Dict[str, float]:
        return self.measures[_as_measure(measure)]


def _as_measure(measure: Union[CentralityMeasure, str]) -> CentralityMeasure:
    if isinstance(measure, CentralityMeasure):
        return measure
    try:
        return CentralityMeasure(measure)
    except ValueError:
        raise ValueError(f"Unknown centrality measure: {measure!r}") from None


def _adjacency(graph: CausalGraph, directed: bool = True) -> Tuple[List[List[int]], List[List[int]]]:
    """Outgoing and incoming index lists; bidirected edges are added both ways."""
    n = len(graph)
    outgoing: List[List[int]] = [[] for _ in range(n)]
    incoming: List[List[int]] = [[] for _ in range(n)]

    for i in range(n):
        for j in graph.child_indices(i):
            outgoing[i].append(j)
            incoming[j].append(i)
            if not directed:
                outgoing[j].append(i)
                incoming[i].append(j)
        for j in graph.bidirected_indices(i):
            outgoing[i].append(j)
            incoming[i].append(j)

    return outgoing, incoming


def _to_scores(graph: CausalGraph, values: Iterable[float]) -> Dict[str, float]:
    return {node_id: float(v) for node_id, v in zip(graph.node_ids, values)}


# ----------------------------------------------------------------------
# Degree
# ----------------------------------------------------------------------

def compute_degree_centrality(graph: CausalGraph, normalize: bool = True) -> DegreeCentrality:
    """
    Compute degree centrality (total, in, out).

    Counts are divided by n - 1 when normalize is set and n > 1.
    """
    outgoing, incoming = _adjacency(graph)
    n = len(graph)
    norm = n - 1 if normalize and n > 1 else 1

    out_deg = [len(o) / norm for o in outgoing]
    in_deg = [len(i) / norm for i in incoming]

    return DegreeCentrality(
        degree=_to_scores(graph, (a + b for a, b in zip(out_deg, in_deg))),
        in_degree=_to_scores(graph, in_deg),
        out_degree=_to_scores(graph, out_deg),
    )


# ----------------------------------------------------------------------
# Shortest-path measures
# ----------------------------------------------------------------------

def compute_betweenness_centrality(graph: CausalGraph,
                                   normalize: bool = True,
                                   directed: bool = True) -> Dict[str, float]:
    """
    Compute betweenness centrality with Brandes' algorithm.

    One BFS per source with shortest-path counting, then dependency
    accumulation in reverse BFS order. O(V * E) on unweighted graphs.

    Args:
        graph: Causal graph
        normalize: Scale into [0, 1] by the number of ordered pairs (n-1)(n-2)
        directed: Follow edge direction; otherwise treat every edge as undirected
    """
    outgoing, _ = _adjacency(graph, directed)
    n = len(graph)
    betweenness = [0.0] * n

    for s in range(n):
        stack: List[int] = []
        pred: List[List[int]] = [[] for _ in range(n)]
        sigma = [0] * n
        dist = [-1] * n
        sigma[s] = 1
        dist[s] = 0

        queue = deque([s])
        while queue:
            v = queue.popleft()
            stack.append(v)
            for w in outgoing[v]:
                if dist[w] < 0:
                    dist[w] = dist[v] + 1
                    queue.append(w)
                if dist[w] == dist[v] + 1:
                    sigma[w] += sigma[v]
                    pred[w].append(v)

        delta = [0.0] * n
        while stack:
            w = stack.pop()
            for v in pred[w]:
                delta[v] += sigma[v] / sigma[w] * (1 + delta[w])
            if w != s:
                betweenness[w] += delta[w]

    # Undirected traversal sees every pair from both ends
    if not directed:
        betweenness = [b / 2 for b in betweenness]

    if normalize and n > 2:
        scale = (n - 1) * (n - 2) if directed else (n - 1) * (n - 2) / 2
        betweenness = [b / scale for b in betweenness]

    return _to_scores(graph, betweenness)


def compute_closeness_centrality(graph: CausalGraph,
                                 normalize: bool = False,
                                 directed: bool = True) -> Dict[str, float]:
    """
    Compute closeness centrality over the reachable subset.

    closeness(v) = (reachable - 1) / sum of distances, where reachable counts
    v itself. normalize additionally scales by (reachable - 1) / (n - 1) so
    nodes that reach few others are not ranked as central. A node that
    reaches nothing scores 0.
    """
    outgoing, _ = _adjacency(graph, directed)
    n = len(graph)
    closeness = [0.0] * n

    for source in range(n):
        dist = {source: 0}
        queue = deque([source])
        while queue:
            current = queue.popleft()
            for neighbor in outgoing[current]:
                if neighbor not in dist:
                    dist[neighbor] = dist[current] + 1
                    queue.append(neighbor)

        total = sum(dist.values())
        reached = len(dist) - 1
        if total > 0:
            closeness[source] = reached / total
            if normalize and n > 1:
                closeness[source] *= reached / (n - 1)

    return _to_scores(graph, closeness)


# ----------------------------------------------------------------------
# Spectral measures
# ----------------------------------------------------------------------

def _adjacency_matrix(graph: CausalGraph, directed: bool = True) -> np.ndarray:
    """A[i, j] = number of links i -> j."""
    outgoing, _ = _adjacency(graph, directed)
    n = len(graph)
    matrix = np.zeros((n, n))
    for i, targets in enumerate(outgoing):
        for j in targets:
            matrix[i, j] += 1.0
    return matrix


def compute_pagerank(graph: CausalGraph,
                     damping: Optional[float] = None,
                     max_iterations: Optional[int] = None,
                     tolerance: Optional[float] = None) -> Dict[str, float]:
    """
    Compute PageRank by power iteration.

    Rank held by nodes without outgoing links is spread uniformly over all
    nodes, so scores always sum to 1. Iteration stops once the L1 change
    drops below tolerance or after max_iterations.

    Raises:
        ValueError: damping outside [0, 1]
    """
    settings = get_config()
    damping = settings.PAGERANK_DAMPING if damping is None else damping
    max_iterations = settings.PAGERANK_MAX_ITERATIONS if max_iterations is None else max_iterations
    tolerance = settings.PAGERANK_TOLERANCE if tolerance is None else tolerance

    if not 0.0 <= damping <= 1.0:
        raise ValueError(f"Damping factor must be within [0, 1], got {damping}")

    n = len(graph)
    if n == 0:
        return {}

    matrix = _adjacency_matrix(graph)
    out_degree = matrix.sum(axis=1)
    dangling = out_degree == 0
    # Row-normalized transition matrix; dangling rows stay zero
    transition = np.divide(matrix, out_degree[:, None],
                           out=np.zeros_like(matrix), where=~dangling[:, None])

    rank = np.full(n, 1.0 / n)
    for iteration in range(max_iterations):
        new_rank = (1.0 - damping) / n + damping * (rank @ transition + rank[dangling].sum() / n)
        delta = np.abs(new_rank - rank).sum()
        rank = new_rank
        if delta < tolerance:
            logger.debug(f"PageRank converged after {iteration + 1} iterations")
            break

    return _to_scores(graph, rank)


def compute_eigenvector_centrality(graph: CausalGraph,
                                   max_iterations: Optional[int] = None,
                                   tolerance: Optional[float] = None) -> Dict[str, float]:
    """
    Compute eigenvector centrality on the undirected skeleton.

    Power iteration on (A + I), which has the same leading eigenvector as A
    and does not oscillate on bipartite graphs. Scores have unit L2 norm.
    """
    settings = get_config()
    max_iterations = settings.ITERATIVE_MAX_ITERATIONS if max_iterations is None else max_iterations
    tolerance = settings.PAGERANK_TOLERANCE if tolerance is None else tolerance

    n = len(graph)
    if n == 0:
        return {}

    matrix = _adjacency_matrix(graph, directed=False)
    centrality = np.full(n, 1.0 / np.sqrt(n))

    for _ in range(max_iterations):
        new_centrality = centrality + matrix.T @ centrality
        norm = np.linalg.norm(new_centrality)
        if norm == 0:
            break
        new_centrality /= norm
        delta = np.abs(new_centrality - centrality).max()
        centrality = new_centrality
        if delta < tolerance:
            break

    return _to_scores(graph, centrality)


def compute_katz_centrality(graph: CausalGraph,
                            alpha: Optional[float] = None,
                            beta: Optional[float] = None,
                            max_iterations: Optional[int] = None,
                            tolerance: Optional[float] = None) -> Dict[str, float]:
    """
    Compute Katz centrality, x = alpha * A^T x + beta, scaled so the maximum is 1.

    On an acyclic graph the iteration is exact after as many steps as the
    longest directed path. With bidirected cycles it only converges for
    alpha below the inverse spectral radius.
    """
    settings = get_config()
    alpha = settings.KATZ_ALPHA if alpha is None else alpha
    beta = settings.KATZ_BETA if beta is None else beta
    max_iterations = settings.ITERATIVE_MAX_ITERATIONS if max_iterations is None else max_iterations
    tolerance = settings.PAGERANK_TOLERANCE if tolerance is None else tolerance

    n = len(graph)
    if n == 0:
        return {}

    matrix = _adjacency_matrix(graph)
    centrality = np.zeros(n)
    converged = False

    for _ in range(max_iterations):
        new_centrality = alpha * (matrix.T @ centrality) + beta
        delta = np.abs(new_centrality - centrality).max()
        centrality = new_centrality
        if delta < tolerance:
            converged = True
            break

    if not converged:
        logger.warning(f"Katz centrality did not converge in {max_iterations} iterations (alpha={alpha})")

    peak = centrality.max()
    if peak > 0:
        centrality = centrality / peak

    return _to_scores(graph, centrality)


# ----------------------------------------------------------------------
# Combined analysis
# ----------------------------------------------------------------------

def _compute_measure(graph: CausalGraph,
                     measure: CentralityMeasure,
                     normalize: bool = True) -> Dict[str, float]:
    if measure in (CentralityMeasure.DEGREE, CentralityMeasure.IN_DEGREE, CentralityMeasure.OUT_DEGREE):
        degrees = compute_degree_centrality(graph, normalize)
        if measure == CentralityMeasure.IN_DEGREE:
            return degrees.in_degree
        if measure == CentralityMeasure.OUT_DEGREE:
            return degrees.out_degree
        return degrees.degree
    if measure == CentralityMeasure.BETWEENNESS:
        return compute_betweenness_centrality(graph, normalize)
    if measure == CentralityMeasure.CLOSENESS:
        # Ranked on (reachable - 1) / sum of distances, without reach scaling
        return compute_closeness_centrality(graph)
    if measure == CentralityMeasure.PAGERANK:
        return compute_pagerank(graph)
    if measure == CentralityMeasure.EIGENVECTOR:
        return compute_eigenvector_centrality(graph)
    return compute_katz_centrality(graph)


def rank_nodes(scores: Dict[str, float], top_n: int) -> List[CentralNode]:
    """Highest scores first; ties keep declaration order."""
    ranked = sorted(scores.items(), key=lambda item: -item[1])
    return [CentralNode(node_id=node_id, score=score) for node_id, score in ranked[:top_n]]


def compute_all_centrality(graph: CausalGraph,
                           measures: Optional[Iterable[Union[CentralityMeasure, str]]] = None,
                           normalize: bool = True,
                           top_n: Optional[int] = None) -> CentralityResult:
    """
    Compute several centrality measures at once.

    Args:
        graph: Causal graph
        measures: Measures to compute (default: every measure except Katz)
        normalize: Passed to degree and betweenness; closeness is
            always the unscaled (reachable - 1) / sum of distances
        top_n: Length of each top-node list (default from config)

    Returns:
        CentralityResult with scores, top nodes and elapsed milliseconds
    """
    start = time.perf_counter()
    if top_n is None:
        top_n = get_config().CENTRALITY_TOP_N

    requested = [_as_measure(m) for m in (measures if measures is not None else DEFAULT_MEASURES)]

    scores: Dict[CentralityMeasure, Dict[str, float]] = {}
    for measure in requested:
        if measure not in scores:
            scores[measure] = _compute_measure(graph, measure, normalize)

    top_nodes = {
        measure: rank_nodes(values, top_n)
        for measure, values in scores.items()
        if values
    }

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.debug(f"Computed {len(scores)} centrality measures for {graph.id} in {elapsed_ms:.1f} ms")

    return CentralityResult(
        measures=scores,
        top_nodes=top_nodes,
        computation_time_ms=elapsed_ms,
    )


def get_most_central_node(graph: CausalGraph,
                          measure: Union[CentralityMeasure, str] = CentralityMeasure.PAGERANK) -> Optional[CentralNode]:
    """
    Get the most central node by a specific measure.

    Returns None for an empty graph; ties go to the first node in
    declaration order.

    Raises:
        ValueError: unknown measure name
    """
    scores = _compute_measure(graph, _as_measure(measure))
    if not scores:
        return None

    best_id, best_score = None, float('-inf')
    for node_id, score in scores.items():
        if score > best_score:
            best_id, best_score = node_id, score

    return CentralNode(node_id=best_id, score=best_score)
