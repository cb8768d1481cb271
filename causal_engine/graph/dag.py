"""
Causal Graph - node/edge storage and adjacency queries.

Causal Engine - Pearl-style graph reasoning
Graph Model
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union
from enum import Enum
import logging

from ..exceptions import (
    DUPLICATE_EDGE,
    DUPLICATE_NODE_ID,
    INVALID_EDGE,
    INVALID_EDGE_TARGET,
    INVALID_NODE,
    GraphValidationError,
)

logger = logging.getLogger(__name__)


class NodeType(Enum):
    """Semantic role of a node. Hint only; algorithms never require it."""
    CAUSE = "cause"
    EFFECT = "effect"
    MEDIATOR = "mediator"
    CONFOUNDER = "confounder"
    INSTRUMENT = "instrument"
    OBSERVED = "observed"
    LATENT = "latent"
    INTERVENTION = "intervention"
    OUTCOME = "outcome"


class EdgeType(Enum):
    """Type of causal edge."""
    DIRECTED = "directed"      # X -> Y
    BIDIRECTED = "bidirected"  # X <-> Y (latent confounder)


@dataclass(frozen=True)
class Node:
    """Node in causal graph."""
    id: str
    name: str = ""
    node_type: Optional[NodeType] = None
    description: str = ""
    properties: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise GraphValidationError(INVALID_NODE, f"Node id must be a non-empty string, got {self.id!r}")
        if not self.name:
            object.__setattr__(self, "name", self.id)
        if self.node_type is not None and not isinstance(self.node_type, NodeType):
            try:
                object.__setattr__(self, "node_type", NodeType(self.node_type))
            except ValueError:
                raise GraphValidationError(
                    INVALID_NODE, f"Unknown node type {self.node_type!r} for node {self.id}"
                ) from None

    @property
    def observed(self) -> bool:
        """Latent nodes cannot be conditioned on."""
        return self.node_type != NodeType.LATENT


@dataclass(frozen=True)
class Edge:
    """Edge in causal graph."""
    source: str
    target: str
    edge_type: EdgeType = EdgeType.DIRECTED
    strength: Optional[float] = None
    confidence: Optional[float] = None
    properties: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        for endpoint in (self.source, self.target):
            if not isinstance(endpoint, str) or not endpoint:
                raise GraphValidationError(
                    INVALID_EDGE, f"Edge endpoints must be non-empty strings, got {endpoint!r}"
                )
        if not isinstance(self.edge_type, EdgeType):
            try:
                object.__setattr__(self, "edge_type", EdgeType(self.edge_type))
            except ValueError:
                raise GraphValidationError(
                    INVALID_EDGE,
                    f"Unknown edge type {self.edge_type!r} for {self.source} -> {self.target}"
                ) from None

    @property
    def key(self) -> Tuple[str, str, EdgeType]:
        """Identity of the edge; bidirected edges are unordered."""
        if self.edge_type == EdgeType.BIDIRECTED:
            a, b = sorted((self.source, self.target))
            return (a, b, self.edge_type)
        return (self.source, self.target, self.edge_type)

    def has_arrowhead_at(self, node: str) -> bool:
        """Whether the edge points into node."""
        if self.edge_type == EdgeType.BIDIRECTED:
            return node in (self.source, self.target)
        return node == self.target

    def __str__(self) -> str:
        arrow = "<->" if self.edge_type == EdgeType.BIDIRECTED else "->"
        return f"{self.source} {arrow} {self.target}"


NodeLike = Union[Node, str]
EdgeLike = Union[Edge, Tuple[str, str], Tuple[str, str, str]]


class CausalGraph:
    """
    Immutable causal graph.

    Nodes are stored under dense integer indices (declaration order) with
    an id-to-index map; adjacency lists hold indices. Construction
    rejects duplicate node ids, duplicate edges and edges whose endpoints
    are not declared nodes.

    Graphs may contain cycles. Every traversal carries a visited set and
    terminates, but d-separation and identification results are only
    meaningful for acyclic graphs.
    """

    def __init__(self,
                 nodes: Iterable[NodeLike] = (),
                 edges: Iterable[EdgeLike] = (),
                 graph_id: str = "graph",
                 metadata: Optional[Dict[str, Any]] = None):
        self._id = graph_id
        self._metadata: Dict[str, Any] = dict(metadata or {})
        self._nodes: List[Node] = []
        self._index: Dict[str, int] = {}

        for node in nodes:
            if isinstance(node, str):
                node = Node(id=node)
            if node.id in self._index:
                raise GraphValidationError(DUPLICATE_NODE_ID, f"Duplicate node id: {node.id}")
            self._index[node.id] = len(self._nodes)
            self._nodes.append(node)

        n = len(self._nodes)
        self._edges: List[Edge] = []
        self._children: List[List[int]] = [[] for _ in range(n)]
        self._parents: List[List[int]] = [[] for _ in range(n)]
        self._bidirected: List[List[int]] = [[] for _ in range(n)]
        seen: Set[Tuple[str, str, EdgeType]] = set()

        for edge in edges:
            if not isinstance(edge, Edge):
                edge = Edge(*edge)
            for endpoint in (edge.source, edge.target):
                if endpoint not in self._index:
                    raise GraphValidationError(
                        INVALID_EDGE_TARGET,
                        f"Edge {edge} references undeclared node: {endpoint}"
                    )
            if edge.key in seen:
                raise GraphValidationError(DUPLICATE_EDGE, f"Duplicate edge: {edge}")
            seen.add(edge.key)
            self._edges.append(edge)

            s, t = self._index[edge.source], self._index[edge.target]
            if edge.edge_type == EdgeType.BIDIRECTED:
                self._bidirected[s].append(t)
                if s != t:
                    self._bidirected[t].append(s)
            else:
                self._children[s].append(t)
                self._parents[t].append(s)

    # ------------------------------------------------------------------
    # Value accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def metadata(self) -> Dict[str, Any]:
        return dict(self._metadata)

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self._nodes]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get node by id."""
        index = self._index.get(node_id)
        return self._nodes[index] if index is not None else None

    def has_edge(self,
                 source: str,
                 target: str,
                 edge_type: Optional[EdgeType] = None) -> bool:
        """Check for an edge source -> target (either type unless given)."""
        for edge in self._edges:
            if edge_type is not None and edge.edge_type != edge_type:
                continue
            if edge.source == source and edge.target == target:
                return True
            if (edge.edge_type == EdgeType.BIDIRECTED
                    and edge.source == target and edge.target == source):
                return True
        return False

    def is_adjacent(self, a: str, b: str) -> bool:
        """Any edge between a and b, in either direction."""
        return self.has_edge(a, b) or self.has_edge(b, a)

    # ------------------------------------------------------------------
    # Index-level adjacency (used by the algorithm modules)
    # ------------------------------------------------------------------

    def index_of(self, node_id: str) -> Optional[int]:
        return self._index.get(node_id)

    def node_id(self, index: int) -> str:
        return self._nodes[index].id

    def indices_of(self, node_ids: Iterable[str]) -> List[int]:
        """Indices of the known ids, unknown ids dropped, duplicates removed."""
        result: List[int] = []
        for node_id in node_ids:
            index = self._index.get(node_id)
            if index is not None and index not in result:
                result.append(index)
        return result

    def ids_of(self, indices: Iterable[int]) -> List[str]:
        return [self._nodes[i].id for i in indices]

    def child_indices(self, index: int) -> List[int]:
        return self._children[index]

    def parent_indices(self, index: int) -> List[int]:
        return self._parents[index]

    def bidirected_indices(self, index: int) -> List[int]:
        return self._bidirected[index]

    def neighbor_indices(self, index: int) -> List[int]:
        """Parents, children and bidirected partners in index order."""
        return sorted(set(self._parents[index]) | set(self._children[index]) | set(self._bidirected[index]))

    def descendant_indices(self, index: int) -> Set[int]:
        """Strict descendants along directed edges."""
        return self._reach(index, self._children)

    def ancestor_indices(self, index: int) -> Set[int]:
        """Strict ancestors along directed edges."""
        return self._reach(index, self._parents)

    def _reach(self, start: int, adjacency: List[List[int]]) -> Set[int]:
        reached: Set[int] = set()
        to_visit = list(adjacency[start])

        while to_visit:
            current = to_visit.pop()
            if current not in reached:
                reached.add(current)
                to_visit.extend(adjacency[current])

        return reached

    # ------------------------------------------------------------------
    # Id-level queries
    # ------------------------------------------------------------------

    def get_parents(self, node: str) -> List[str]:
        """Get direct parents of node (directed edges only)."""
        index = self._index.get(node)
        if index is None:
            return []
        return self.ids_of(self._parents[index])

    def get_children(self, node: str) -> List[str]:
        """Get direct children of node (directed edges only)."""
        index = self._index.get(node)
        if index is None:
            return []
        return self.ids_of(self._children[index])

    def get_neighbors(self, node: str) -> List[str]:
        """Get every node sharing an edge with node."""
        index = self._index.get(node)
        if index is None:
            return []
        return self.ids_of(self.neighbor_indices(index))

    def get_ancestors(self, node: str) -> Set[str]:
        """Get all ancestors of node."""
        index = self._index.get(node)
        if index is None:
            return set()
        return set(self.ids_of(self.ancestor_indices(index)))

    def get_descendants(self, node: str) -> Set[str]:
        """Get all descendants of node."""
        index = self._index.get(node)
        if index is None:
            return set()
        return set(self.ids_of(self.descendant_indices(index)))

    def is_ancestor(self, node: str, potential_ancestor: str) -> bool:
        """Check if potential_ancestor is ancestor of node."""
        return potential_ancestor in self.get_ancestors(node)

    def is_descendant(self, node: str, potential_descendant: str) -> bool:
        """Check if potential_descendant is descendant of node."""
        return potential_descendant in self.get_descendants(node)

    def is_acyclic(self) -> bool:
        """Check if the directed part of the graph has no cycles."""
        visited: Set[int] = set()
        rec_stack: Set[int] = set()

        def has_cycle(node: int) -> bool:
            visited.add(node)
            rec_stack.add(node)

            for child in self._children[node]:
                if child not in visited:
                    if has_cycle(child):
                        return True
                elif child in rec_stack:
                    return True

            rec_stack.remove(node)
            return False

        for node in range(len(self._nodes)):
            if node not in visited:
                if has_cycle(node):
                    return False

        return True

    def topological_sort(self) -> List[str]:
        """
        Get topological ordering of nodes.

        On cyclic input the order is still complete but violates at least
        one edge; check is_acyclic() first when that matters.
        """
        visited: Set[int] = set()
        order: List[int] = []

        def dfs(node: int):
            visited.add(node)
            for child in self._children[node]:
                if child not in visited:
                    dfs(child)
            order.append(node)

        for node in range(len(self._nodes)):
            if node not in visited:
                dfs(node)

        return self.ids_of(reversed(order))

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def with_edges(self,
                   edges: Iterable[Edge],
                   graph_id: Optional[str] = None,
                   metadata: Optional[Dict[str, Any]] = None) -> "CausalGraph":
        """New graph with the same nodes and a replaced edge list."""
        return CausalGraph(
            nodes=self._nodes,
            edges=edges,
            graph_id=graph_id if graph_id is not None else self._id,
            metadata=metadata if metadata is not None else self._metadata,
        )

    def without_incoming(self,
                         variables: Iterable[str],
                         graph_id: Optional[str] = None,
                         metadata: Optional[Dict[str, Any]] = None) -> "CausalGraph":
        """
        Remove every edge pointing into one of variables.

        Directed edges into a variable and bidirected edges touching it go;
        edges leaving it stay.
        """
        cut = set(variables)
        kept = [
            e for e in self._edges
            if not any(e.has_arrowhead_at(v) for v in cut)
        ]
        return self.with_edges(kept, graph_id=graph_id, metadata=metadata)

    def without_edges_into(self,
                           variables: Iterable[str],
                           graph_id: Optional[str] = None,
                           metadata: Optional[Dict[str, Any]] = None) -> "CausalGraph":
        """
        Remove every edge declared with one of variables as its target.

        Edges are matched on their declared target whatever their type, so
        a bidirected edge declared from a variable stays.
        """
        cut = set(variables)
        kept = [e for e in self._edges if e.target not in cut]
        return self.with_edges(kept, graph_id=graph_id, metadata=metadata)

    def without_outgoing(self,
                         variables: Iterable[str],
                         graph_id: Optional[str] = None) -> "CausalGraph":
        """Remove every directed edge leaving one of variables."""
        cut = set(variables)
        kept = [
            e for e in self._edges
            if not (e.edge_type == EdgeType.DIRECTED and e.source in cut)
        ]
        return self.with_edges(kept, graph_id=graph_id)

    def to_dict(self) -> Dict[str, Any]:
        """Export graph as dictionary."""
        return {
            'id': self._id,
            'nodes': [
                {
                    'id': n.id,
                    'name': n.name,
                    'type': n.node_type.value if n.node_type else None,
                    'description': n.description,
                    'properties': dict(n.properties),
                }
                for n in self._nodes
            ],
            'edges': [
                {
                    'from': e.source,
                    'to': e.target,
                    'type': e.edge_type.value,
                    'strength': e.strength,
                    'confidence': e.confidence,
                    'properties': dict(e.properties),
                }
                for e in self._edges
            ],
            'metadata': dict(self._metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CausalGraph':
        """
        Import graph from dictionary.

        Accepts node entries as ids or dicts, and edge entries keyed by
        'from'/'to' or 'source'/'target'.
        """
        nodes = []
        for node_data in data.get('nodes', []):
            if isinstance(node_data, str):
                nodes.append(Node(id=node_data))
                continue
            nodes.append(Node(
                id=node_data.get('id') or node_data.get('name'),
                name=node_data.get('name', ''),
                node_type=node_data.get('type', node_data.get('node_type')),
                description=node_data.get('description', ''),
                properties=node_data.get('properties', {}),
            ))

        edges = []
        for edge_data in data.get('edges', []):
            edges.append(Edge(
                source=edge_data.get('from', edge_data.get('source')),
                target=edge_data.get('to', edge_data.get('target')),
                edge_type=edge_data.get('type', edge_data.get('edge_type')) or EdgeType.DIRECTED,
                strength=edge_data.get('strength'),
                confidence=edge_data.get('confidence'),
                properties=edge_data.get('properties', {}),
            ))

        return cls(
            nodes=nodes,
            edges=edges,
            graph_id=data.get('id', 'graph'),
            metadata=data.get('metadata'),
        )

    @classmethod
    def from_edge_list(cls,
                       edges: Iterable[EdgeLike],
                       nodes: Iterable[NodeLike] = (),
                       graph_id: str = "graph") -> 'CausalGraph':
        """
        Build a graph declaring every edge endpoint as a node.

        Explicit nodes come first, then endpoints in order of appearance.
        """
        declared: List[NodeLike] = list(nodes)
        known = {n if isinstance(n, str) else n.id for n in declared}
        edge_list = [e if isinstance(e, Edge) else Edge(*e) for e in edges]

        for edge in edge_list:
            for endpoint in (edge.source, edge.target):
                if endpoint not in known:
                    known.add(endpoint)
                    declared.append(endpoint)

        return cls(nodes=declared, edges=edge_list, graph_id=graph_id)

    def __repr__(self) -> str:
        return f"CausalGraph(id={self._id!r}, nodes={len(self._nodes)}, edges={len(self._edges)})"
