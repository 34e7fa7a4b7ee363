from enum import Enum
from typing import Type, TypeVar

from .errors import ValidationError

E = TypeVar("E", bound=Enum)


class NodeType(str, Enum):
    start = "start"
    end = "end"
    decision = "decision"
    process = "process"


class NodeStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    rejected = "rejected"


class EdgeStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Decision(str, Enum):
    approved = "approved"
    rejected = "rejected"


class WorkflowStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


def parse_enum(enum_cls: Type[E], value, kind: str) -> E:
    """``enum_cls(value)`` with unknown values raised as ValidationError."""
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"unknown {kind}: {value}") from exc
