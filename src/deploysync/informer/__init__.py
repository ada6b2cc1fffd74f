"""Reconciliation of deployment events into the desired state."""

from deploysync.informer.merge import ensure_project, project_from_event
from deploysync.informer.service import Informer

__all__ = ["Informer", "ensure_project", "project_from_event"]
