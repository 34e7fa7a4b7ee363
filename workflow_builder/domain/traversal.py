"""
Traversal helpers on top of ``WorkflowGraph.is_traversable``.

Workflows may contain decision loops, so every walk tracks visited nodes.
Nothing here changes node status; progression stays caller-driven.
"""

from collections import deque
from typing import Dict, List

from .edge import ApprovalEdge
from .enums import EdgeStatus, NodeType
from .graph import WorkflowGraph


def reachable(graph: WorkflowGraph, start_id: str, traversable_only: bool = True) -> List[str]:
    """Node ids reachable from ``start_id`` (inclusive), breadth-first."""
    graph.get_node(start_id)
    visited = {start_id}
    order = [start_id]
    queue = deque([start_id])
    while queue:
        current = queue.popleft()
        for edge in graph.outgoing_edges(current):
            if traversable_only and not edge.is_traversable:
                continue
            if edge.target in visited or not graph.has_node(edge.target):
                continue
            visited.add(edge.target)
            order.append(edge.target)
            queue.append(edge.target)
    return order


def unblocked_nodes(graph: WorkflowGraph) -> List[str]:
    """Non-terminal nodes whose incoming edges are all traversable."""
    return [
        node.id
        for node in graph.nodes
        if not node.is_terminal
        and all(edge.is_traversable for edge in graph.incoming_edges(node.id))
    ]


def start_nodes(graph: WorkflowGraph) -> List[str]:
    """Explicit start nodes, or nodes without incoming edges when none is marked."""
    marked = [n.id for n in graph.nodes_of_type(NodeType.start)]
    if marked:
        return marked
    return [n.id for n in graph.nodes if not graph.incoming_edges(n.id)]


def pending_approvals(graph: WorkflowGraph) -> List[ApprovalEdge]:
    """Gated edges still waiting for a decision."""
    return [e for e in graph.edges if e.approval_required and e.status == EdgeStatus.pending]


def pending_by_role(graph: WorkflowGraph) -> Dict[str, List[ApprovalEdge]]:
    grouped: Dict[str, List[ApprovalEdge]] = {}
    for edge in pending_approvals(graph):
        grouped.setdefault(edge.role, []).append(edge)
    return grouped
