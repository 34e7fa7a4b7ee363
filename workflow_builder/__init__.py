"""Approval workflow builder: graph model, persistence API and editing session."""

__version__ = "1.0.0"
