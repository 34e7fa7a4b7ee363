# tests/test_graph.py
from dataclasses import FrozenInstanceError

import pytest

from workflow_builder.domain import (
    ApprovalEdge,
    DanglingReferenceError,
    Decision,
    DuplicateIdError,
    EdgeStatus,
    InvalidTransitionError,
    NodeStatus,
    NodeType,
    NotFoundError,
    StepNode,
    ValidationError,
    WorkflowGraph,
)


def _ids(graph):
    return [n.id for n in graph.nodes], [e.id for e in graph.edges]


def test_add_then_remove_node_restores_graph(two_step_graph):
    graph, *_ = two_step_graph
    before = _ids(graph)
    extra = graph.add_node(StepNode.create(NodeType.decision, "Branch"))
    graph.remove_node(extra.id)
    assert _ids(graph) == before
    assert graph.validate() == []


def test_remove_node_cascades_incident_edges():
    graph = WorkflowGraph()
    for node_id in ("A", "B", "C", "D"):
        graph.add_node(StepNode(id=node_id, label=node_id))
    graph.connect("A", "B", "Manager")
    graph.connect("B", "C", "Finance")
    graph.connect("C", "B", "Manager")  # loop back
    keep = graph.connect("C", "D", "Director")

    graph.remove_node("B")

    assert [e.id for e in graph.edges] == [keep.id]
    assert all("B" not in (e.source, e.target) for e in graph.edges)
    assert graph.incident_edges("A") == []
    assert graph.validate() == []


def test_remove_missing_node_raises_not_found(two_step_graph):
    graph, *_ = two_step_graph
    with pytest.raises(NotFoundError):
        graph.remove_node("nope")


def test_add_duplicate_node_leaves_graph_unchanged(two_step_graph):
    graph, a, *_ = two_step_graph
    before = _ids(graph)
    with pytest.raises(DuplicateIdError):
        graph.add_node(StepNode(id=a.id, label="Other"))
    assert _ids(graph) == before
    assert graph.get_node(a.id).label == "Submit"


def test_add_duplicate_edge(two_step_graph):
    graph, a, b, edge = two_step_graph
    with pytest.raises(DuplicateIdError):
        graph.add_edge(ApprovalEdge(id=edge.id, source=b.id, target=a.id, role="X"))
    assert graph.edge_count == 1


@pytest.mark.parametrize("source,target", [("A", "missing"), ("missing", "B")])
def test_add_edge_with_dangling_endpoint(two_step_graph, source, target):
    graph, *_ = two_step_graph
    with pytest.raises(DanglingReferenceError):
        graph.add_edge(ApprovalEdge.create(source, target, "Manager"))
    assert graph.edge_count == 1


def test_self_loop_is_rejected_and_graph_unchanged(two_step_graph):
    graph, *_ = two_step_graph
    counts = (graph.node_count, graph.edge_count)
    with pytest.raises(ValidationError):
        graph.connect("A", "A", "Manager", approval_required=True)
    assert (graph.node_count, graph.edge_count) == counts


def test_remove_edge(two_step_graph):
    graph, a, b, edge = two_step_graph
    graph.remove_edge(edge.id)
    assert graph.edge_count == 0
    assert graph.incident_edges(a.id) == []
    with pytest.raises(NotFoundError):
        graph.remove_edge(edge.id)


def test_manager_approval_scenario(two_step_graph):
    graph, a, b, edge = two_step_graph
    assert a.status == NodeStatus.pending and b.status == NodeStatus.pending
    assert graph.is_traversable(edge.id) is False

    decided = graph.decide_edge(edge.id, Decision.approved, "mgr@co")

    assert decided.status == EdgeStatus.approved
    assert decided.approved_by == "mgr@co"
    assert graph.is_traversable(edge.id) is True
    # no auto-propagation to the target node
    assert graph.get_node(b.id).status == NodeStatus.pending


def test_is_traversable_matrix():
    graph = WorkflowGraph()
    graph.add_node(StepNode(id="A", label="A"))
    graph.add_node(StepNode(id="B", label="B"))
    free = graph.connect("A", "B", "Viewer", approval_required=False)
    pending = graph.connect("A", "B", "Manager")
    approved = graph.connect("A", "B", "Manager")
    rejected = graph.connect("A", "B", "Manager")
    graph.decide_edge(approved.id, Decision.approved, "m")
    graph.decide_edge(rejected.id, Decision.rejected, "m")

    assert graph.is_traversable(free.id) is True
    assert graph.is_traversable(approved.id) is True
    assert graph.is_traversable(pending.id) is False
    assert graph.is_traversable(rejected.id) is False
    with pytest.raises(NotFoundError):
        graph.is_traversable("missing")


def test_completed_node_cannot_move_back(two_step_graph):
    graph, a, *_ = two_step_graph
    graph.update_node_status(a.id, NodeStatus.in_progress)
    graph.update_node_status(a.id, NodeStatus.completed)
    stamped = graph.get_node(a.id).completed_at

    with pytest.raises(InvalidTransitionError):
        graph.update_node_status(a.id, NodeStatus.in_progress)

    node = graph.get_node(a.id)
    assert node.status == NodeStatus.completed
    assert node.completed_at == stamped


def test_update_node_status_unknown_node(two_step_graph):
    graph, *_ = two_step_graph
    with pytest.raises(NotFoundError):
        graph.update_node_status("missing", NodeStatus.in_progress)


def test_update_node_fields(two_step_graph):
    graph, a, *_ = two_step_graph
    payload = {"conditions": [{"field": "amount"}]}
    node = graph.update_node(a.id, label=" Submit request ", assigned_to="alice", metadata=payload)
    assert node.id == "A"
    assert node.label == "Submit request"
    assert node.assigned_to == "alice"
    assert node.metadata is payload


def test_update_node_rejects_bad_input_atomically(two_step_graph):
    graph, a, *_ = two_step_graph
    with pytest.raises(ValidationError):
        graph.update_node(a.id, label="", assigned_to="bob")
    with pytest.raises(ValidationError):
        graph.update_node(a.id, node_type="loop", assigned_to="bob")
    assert graph.get_node(a.id).label == "Submit"
    assert graph.get_node(a.id).assigned_to is None


def test_update_edge_gate(two_step_graph):
    graph, a, b, edge = two_step_graph
    graph.update_edge(edge.id, role="Director", role_id="r-dir", approval_required=False)
    assert edge.role == "Director" and edge.role_id == "r-dir"
    assert graph.is_traversable(edge.id) is True


def test_decided_edge_gate_cannot_be_dropped(two_step_graph):
    graph, a, b, edge = two_step_graph
    graph.decide_edge(edge.id, Decision.rejected, "mgr@co")
    with pytest.raises(InvalidTransitionError):
        graph.update_edge(edge.id, approval_required=False)
    assert edge.approval_required is True


def test_cycles_are_permitted():
    graph = WorkflowGraph()
    graph.add_node(StepNode(id="A", label="Draft"))
    graph.add_node(StepNode(id="B", label="Check", node_type=NodeType.decision))
    graph.connect("A", "B", "Editor")
    graph.connect("B", "A", "Editor")
    assert graph.validate() == []


def test_validate_reports_dangling_target():
    node = StepNode(id="A", label="A")
    edge = ApprovalEdge(id="e1", source="A", target="ghost", role="Manager")
    graph = WorkflowGraph.hydrate([node], [edge])

    violations = graph.validate()

    assert any(isinstance(v, DanglingReferenceError) for v in violations)
    dangling = [v for v in violations if isinstance(v, DanglingReferenceError)][0]
    assert dangling.node_id == "ghost"
    assert dangling.path == "edges[0].target"


def test_validate_collects_every_violation():
    nodes = [StepNode(id="A", label="A"), StepNode(id="A", label="again")]
    edges = [
        ApprovalEdge(id="e1", source="A", target="X", role="R"),
        ApprovalEdge(id="e2", source="Y", target="A", role="R"),
        ApprovalEdge(id="e1", source="A", target="A2", role="R"),
    ]
    violations = WorkflowGraph.hydrate(nodes, edges).validate()

    kinds = [type(v) for v in violations]
    assert kinds.count(DuplicateIdError) == 2
    assert kinds.count(DanglingReferenceError) == 2


def test_validate_consistent_graph_is_empty(two_step_graph):
    graph, *_ = two_step_graph
    assert graph.validate() == []
    assert graph.is_valid()


def test_snapshot_is_detached(two_step_graph):
    graph, a, b, edge = two_step_graph
    copy = graph.snapshot()
    graph.decide_edge(edge.id, Decision.approved, "mgr@co")
    graph.remove_node(b.id)
    assert copy.node_count == 2
    assert copy.get_edge(edge.id).status == EdgeStatus.pending


def test_incoming_and_outgoing(two_step_graph):
    graph, a, b, edge = two_step_graph
    assert graph.outgoing_edges(a.id) == [edge]
    assert graph.incoming_edges(a.id) == []
    assert graph.incoming_edges(b.id) == [edge]


def test_ids_of_held_entities_stay_in_sync_with_keys(two_step_graph):
    graph, a, _, edge = two_step_graph
    with pytest.raises(FrozenInstanceError):
        graph.get_node(a.id).id = "Z"
    with pytest.raises(FrozenInstanceError):
        graph.get_edge(edge.id).id = "other"
    assert graph.get_node("A").id == "A"
    assert graph.validate() == []


def test_snapshot_copies_entities_with_fixed_ids(two_step_graph):
    graph, a, _, _ = two_step_graph
    copy = graph.snapshot()
    assert copy.get_node("A") is not a
    assert copy.get_node("A").id == "A"
    assert copy.validate() == []
