"""
Status Projector
Pure mapping from node status to progress. Canvas rendering and headless
consumers (audit export) read the same numbers.
"""

from typing import Any, Dict

from .enums import NodeStatus, parse_enum
from .graph import WorkflowGraph


def progress(status: NodeStatus) -> float:
    match parse_enum(NodeStatus, status, "node status"):
        case NodeStatus.completed:
            return 1.0
        case NodeStatus.in_progress:
            return 0.5
        case NodeStatus.rejected:
            return 0.0
        case NodeStatus.pending:
            return 0.25


def project_graph(graph: WorkflowGraph) -> Dict[str, Any]:
    """Audit projection of a graph; reads only, never mutates."""
    nodes = [
        {
            "id": node.id,
            "label": node.label,
            "status": node.status.value,
            "progress": progress(node.status),
        }
        for node in graph.nodes
    ]
    edges = [{"id": edge.id, "traversable": edge.is_traversable} for edge in graph.edges]
    overall = sum(n["progress"] for n in nodes) / len(nodes) if nodes else 0.0
    return {"nodes": nodes, "edges": edges, "progress": overall}
