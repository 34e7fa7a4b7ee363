# tests/conftest.py
import os

os.environ.setdefault("WORKFLOW_DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import create_engine  # noqa: E402

from workflow_builder.domain import NodeStatus, NodeType, StepNode, WorkflowGraph  # noqa: E402
from workflow_builder.main import create_app  # noqa: E402
from workflow_builder.repository import WorkflowRepository  # noqa: E402

AUTH = {"Authorization": "Bearer mock-tests"}


@pytest.fixture()
def engine():
    # "sqlite://" + StaticPool keeps ONE in-memory connection alive across TestClient threads
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture()
def repo(engine):
    r = WorkflowRepository(engine)
    r.create_schema()
    return r


@pytest.fixture()
def app(engine):
    return create_app(engine)


@pytest.fixture()
def client(app):
    """Test client for synchronous HTTP requests against the app."""
    return TestClient(app)


@pytest.fixture()
def auth_headers():
    return dict(AUTH)


@pytest.fixture()
def two_step_graph():
    """A (start) -> B (process) with a Manager approval gate."""
    graph = WorkflowGraph()
    a = graph.add_node(StepNode(id="A", label="Submit", node_type=NodeType.start))
    b = graph.add_node(StepNode(id="B", label="Review", node_type=NodeType.process))
    edge = graph.connect(a.id, b.id, "Manager", approval_required=True)
    return graph, a, b, edge


def wire_document(**overrides):
    """Valid document in wire form."""
    doc = {
        "name": "Expense approval",
        "description": "Two-step approval",
        "version": "1.0",
        "createdBy": "author@co",
        "nodes": [
            {"id": "A", "label": "Submit", "nodeType": "start", "status": "pending"},
            {"id": "B", "label": "Manager review", "nodeType": "process", "status": "pending",
             "metadata": {"conditions": [{"field": "amount", "op": ">", "value": 100}], "templateIds": ["t1"]}},
            {"id": "C", "label": "Done", "nodeType": "end", "status": "pending"},
        ],
        "edges": [
            {"id": "e1", "source": "A", "target": "B", "role": "Manager", "approvalRequired": True},
            {"id": "e2", "source": "B", "target": "C", "role": "Finance", "roleId": "r-fin",
             "approvalRequired": False},
        ],
    }
    doc.update(overrides)
    return doc


@pytest.fixture()
def document_payload():
    return wire_document()
