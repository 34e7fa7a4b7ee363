"""
Workflow Graph
Aggregate of step nodes and approval edges for one workflow version.

Every public mutation is atomic: all checks run before any state changes,
so a rejected call leaves the graph exactly as it was. Node removal cascades
to incident edges through a node id -> edge ids index that is maintained on
every edge insert and delete.
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .edge import ApprovalEdge, is_decided
from .enums import Decision, NodeStatus, NodeType, parse_enum
from .errors import (
    DanglingReferenceError,
    DuplicateIdError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from .node import StepNode

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class WorkflowGraph:
    """Directed graph of steps; cycles are allowed."""

    def __init__(self):
        self._nodes: Dict[str, StepNode] = {}
        self._edges: Dict[str, ApprovalEdge] = {}
        self._incident: Dict[str, Set[str]] = {}
        self._load_violations: List[WorkflowError] = []

    # ------------------------------------------------------------------
    # Bulk load
    # ------------------------------------------------------------------

    @classmethod
    def hydrate(
        cls,
        nodes: Iterable[StepNode],
        edges: Iterable[ApprovalEdge],
        violations: Iterable[WorkflowError] = (),
    ) -> "WorkflowGraph":
        """
        Build a graph from persisted data without raising.

        Duplicate ids keep the first occurrence and are recorded; dangling
        edges are kept as-is. Both surface through validate(), together with
        any ``violations`` the caller collected while decoding entities.
        """
        graph = cls()
        graph._load_violations.extend(violations)
        for index, node in enumerate(nodes):
            if node.id in graph._nodes:
                graph._load_violations.append(DuplicateIdError("node", node.id, f"nodes[{index}].id"))
                continue
            graph._nodes[node.id] = node
        for index, edge in enumerate(edges):
            if edge.id in graph._edges:
                graph._load_violations.append(DuplicateIdError("edge", edge.id, f"edges[{index}].id"))
                continue
            graph._insert_edge(edge)
        return graph

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Tuple[StepNode, ...]:
        return tuple(self._nodes.values())

    @property
    def edges(self) -> Tuple[ApprovalEdge, ...]:
        return tuple(self._edges.values())

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def get_node(self, node_id: str) -> StepNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NotFoundError("node", node_id)
        return node

    def get_edge(self, edge_id: str) -> ApprovalEdge:
        edge = self._edges.get(edge_id)
        if edge is None:
            raise NotFoundError("edge", edge_id)
        return edge

    def incident_edges(self, node_id: str) -> List[ApprovalEdge]:
        """Edges touching ``node_id`` in graph insertion order."""
        ids = self._incident.get(node_id, set())
        return [edge for edge_id, edge in self._edges.items() if edge_id in ids]

    def outgoing_edges(self, node_id: str) -> List[ApprovalEdge]:
        return [e for e in self.incident_edges(node_id) if e.source == node_id]

    def incoming_edges(self, node_id: str) -> List[ApprovalEdge]:
        return [e for e in self.incident_edges(node_id) if e.target == node_id]

    def nodes_of_type(self, node_type: NodeType) -> List[StepNode]:
        node_type = NodeType(node_type)
        return [n for n in self._nodes.values() if n.node_type == node_type]

    # ------------------------------------------------------------------
    # Node mutations
    # ------------------------------------------------------------------

    def add_node(self, node: StepNode) -> StepNode:
        if node.id in self._nodes:
            raise DuplicateIdError("node", node.id)
        self._nodes[node.id] = node
        logger.debug("node added id=%s type=%s", node.id, node.node_type.value)
        return node

    def remove_node(self, node_id: str) -> StepNode:
        """Remove a node together with every edge whose source or target is it."""
        node = self.get_node(node_id)
        for edge_id in list(self._incident.get(node_id, ())):
            self._delete_edge(edge_id)
        self._incident.pop(node_id, None)
        del self._nodes[node_id]
        logger.debug("node removed id=%s", node_id)
        return node

    def update_node(
        self,
        node_id: str,
        *,
        label: Any = _UNSET,
        node_type: Any = _UNSET,
        description: Any = _UNSET,
        assigned_to: Any = _UNSET,
        metadata: Any = _UNSET,
    ) -> StepNode:
        """Change the mutable, non-status fields of a node. ``id`` never changes."""
        node = self.get_node(node_id)
        if label is not _UNSET and (label is None or not str(label).strip()):
            raise ValidationError("node label must not be empty")
        if node_type is not _UNSET:
            node_type = parse_enum(NodeType, node_type, "node type")

        if label is not _UNSET:
            node.label = str(label).strip()
        if node_type is not _UNSET:
            node.node_type = node_type
        if description is not _UNSET:
            node.description = description
        if assigned_to is not _UNSET:
            node.assigned_to = assigned_to
        if metadata is not _UNSET:
            node.metadata = metadata
        return node

    def update_node_status(self, node_id: str, new_status: NodeStatus) -> StepNode:
        node = self.get_node(node_id)
        node.set_status(new_status)
        logger.debug("node status id=%s status=%s", node_id, node.status.value)
        return node

    # ------------------------------------------------------------------
    # Edge mutations
    # ------------------------------------------------------------------

    def add_edge(self, edge: ApprovalEdge) -> ApprovalEdge:
        if edge.id in self._edges:
            raise DuplicateIdError("edge", edge.id)
        if edge.source == edge.target:
            raise ValidationError(f"self-loop on node {edge.source} is not allowed")
        for endpoint, node_id in (("source", edge.source), ("target", edge.target)):
            if node_id not in self._nodes:
                raise DanglingReferenceError(edge.id, endpoint, node_id)
        self._insert_edge(edge)
        logger.debug("edge added id=%s %s->%s", edge.id, edge.source, edge.target)
        return edge

    def connect(
        self,
        source: str,
        target: str,
        role: str,
        approval_required: bool = True,
        role_id: Optional[str] = None,
    ) -> ApprovalEdge:
        """Create a fresh edge between two existing nodes and add it."""
        return self.add_edge(ApprovalEdge.create(source, target, role, approval_required, role_id))

    def remove_edge(self, edge_id: str) -> ApprovalEdge:
        edge = self.get_edge(edge_id)
        self._delete_edge(edge_id)
        logger.debug("edge removed id=%s", edge_id)
        return edge

    def update_edge(
        self,
        edge_id: str,
        *,
        role: Any = _UNSET,
        role_id: Any = _UNSET,
        approval_required: Any = _UNSET,
    ) -> ApprovalEdge:
        """Change the gate definition of an edge. Dropping the gate requires a pending edge."""
        edge = self.get_edge(edge_id)
        if role is not _UNSET and (role is None or not str(role).strip()):
            raise ValidationError("edge role must not be empty")
        if approval_required is not _UNSET and approval_required != edge.approval_required:
            if is_decided(edge.status):
                raise InvalidTransitionError(
                    f"edge {edge_id} already {edge.status.value}; its gate cannot change"
                )

        if role is not _UNSET:
            edge.role = str(role).strip()
        if role_id is not _UNSET:
            edge.role_id = role_id
        if approval_required is not _UNSET:
            edge.approval_required = bool(approval_required)
        return edge

    def decide_edge(
        self,
        edge_id: str,
        decision: Decision,
        approver_id: str,
        comments: Optional[str] = None,
    ) -> ApprovalEdge:
        edge = self.get_edge(edge_id)
        edge.decide(decision, approver_id, comments)
        logger.debug("edge decided id=%s status=%s by=%s", edge_id, edge.status.value, approver_id)
        return edge

    def is_traversable(self, edge_id: str) -> bool:
        return self.get_edge(edge_id).is_traversable

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> List[WorkflowError]:
        """Return every structural violation; an empty list means consistent."""
        violations: List[WorkflowError] = list(self._load_violations)

        for index, (key, node) in enumerate(self._nodes.items()):
            if key != node.id:
                violations.append(ValidationError(f"node keyed {key} has id {node.id}", f"nodes[{index}].id"))

        expected: Dict[str, Set[str]] = {}
        for index, (key, edge) in enumerate(self._edges.items()):
            path = f"edges[{index}]"
            if key != edge.id:
                violations.append(ValidationError(f"edge keyed {key} has id {edge.id}", f"{path}.id"))
            if edge.source == edge.target:
                violations.append(ValidationError(f"self-loop on node {edge.source}", path))
            for endpoint, node_id in (("source", edge.source), ("target", edge.target)):
                if node_id not in self._nodes:
                    violations.append(
                        DanglingReferenceError(edge.id, endpoint, node_id, f"{path}.{endpoint}")
                    )
                expected.setdefault(node_id, set()).add(key)

        actual = {node_id: ids for node_id, ids in self._incident.items() if ids}
        if actual != expected:
            violations.append(ValidationError("incident edge index out of sync with edges"))
        return violations

    def is_valid(self) -> bool:
        return not self.validate()

    def snapshot(self) -> "WorkflowGraph":
        """Deep copy detached from further edits."""
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _insert_edge(self, edge: ApprovalEdge) -> None:
        self._edges[edge.id] = edge
        self._incident.setdefault(edge.source, set()).add(edge.id)
        self._incident.setdefault(edge.target, set()).add(edge.id)

    def _delete_edge(self, edge_id: str) -> None:
        edge = self._edges.pop(edge_id)
        for node_id in (edge.source, edge.target):
            ids = self._incident.get(node_id)
            if ids is not None:
                ids.discard(edge_id)
                if not ids:
                    del self._incident[node_id]
