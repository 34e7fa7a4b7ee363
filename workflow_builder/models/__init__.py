from .workflow import WorkflowTable, StepTable, EdgeTable

__all__ = ["WorkflowTable", "StepTable", "EdgeTable"]
