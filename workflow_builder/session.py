"""
Editing Session
Single-user editing surface for one workflow document.

- load(): fetches, deserializes and validates; the graph is not reachable
  until that finished cleanly.
- save(): serializes a snapshot before the request goes out. Edits made
  while the save is in flight stay local and are not part of that payload.
  A failed save leaves the document untouched so the same save can be retried.
  Saves run one at a time, so a second save started before the first create
  returned updates the created document instead of creating another one.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pydantic

from .client import WorkflowClient
from .converters import document_to_payload, load_document
from .domain.document import WorkflowDocument
from .domain.errors import InvalidDocumentError, SessionNotReadyError, ValidationError, WorkflowError
from .domain.graph import WorkflowGraph

logger = logging.getLogger(__name__)


class EditingSession:
    def __init__(self, client: WorkflowClient, document: Optional[WorkflowDocument] = None):
        self._client = client
        self._document = document
        self._loading = False
        self._save_lock = asyncio.Lock()
        self.last_saved: Optional[Dict[str, Any]] = None

    @classmethod
    def new(cls, client: WorkflowClient, name: str, created_by: str, **info) -> "EditingSession":
        """Session over a fresh, unsaved draft"""
        return cls(client, WorkflowDocument.new(name, created_by, **info))

    @property
    def is_ready(self) -> bool:
        return self._document is not None and not self._loading

    @property
    def document(self) -> WorkflowDocument:
        if not self.is_ready:
            raise SessionNotReadyError("no editable workflow loaded")
        return self._document

    @property
    def graph(self) -> WorkflowGraph:
        return self.document.graph

    async def load(self, workflow_id: str) -> WorkflowDocument:
        """
        Fetch a document and make it editable.

        Raises:
            PersistenceError: fetch failed; any previously loaded document stays
            InvalidDocumentError: payload failed validation
        """
        self._loading = True
        try:
            data = await self._client.get_workflow(workflow_id)
            document = _decode(data)
        finally:
            self._loading = False
        self._document = document
        logger.info("workflow loaded id=%s nodes=%d edges=%d",
                    workflow_id, document.graph.node_count, document.graph.edge_count)
        return document

    async def save(self) -> WorkflowDocument:
        """
        Create or update the document on the server.

        Raises:
            InvalidDocumentError: the local graph is inconsistent; nothing is sent
            PersistenceError: request failed; local state is unchanged
        """
        document = self.document
        violations = document.graph.validate()
        if violations:
            raise InvalidDocumentError(violations)

        # Snapshot taken before the first await
        payload = document_to_payload(document)

        async with self._save_lock:
            workflow_id = document.id
            if workflow_id is None:
                saved = await self._client.create_workflow(payload)
            else:
                payload["id"] = workflow_id
                saved = await self._client.update_workflow(workflow_id, payload)

            self.last_saved = saved
            if document.id is None:
                document.id = saved.get("id")
            document.created_at = _parse_field(saved, "createdAt", document.created_at)
            document.updated_at = _parse_field(saved, "updatedAt", document.updated_at)
        logger.info("workflow saved id=%s", document.id)
        return document


def _decode(data: Dict[str, Any]) -> WorkflowDocument:
    try:
        return load_document(data)
    except pydantic.ValidationError as exc:
        violations: List[WorkflowError] = [
            ValidationError(err["msg"], ".".join(str(p) for p in err["loc"]))
            for err in exc.errors()
        ]
        raise InvalidDocumentError(violations) from exc


def _parse_field(saved: Dict[str, Any], key: str, default):
    value = saved.get(key)
    if value is None:
        return default
    return pydantic.TypeAdapter(datetime).validate_python(value)
