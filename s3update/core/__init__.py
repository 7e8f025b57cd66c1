"""Core functionality"""
from .object_store import RemoteObjectStore, WorkItem
from .decision import Decision, Outcome, ItemResult, decide
from .work_queue import WorkQueue

__all__ = [
    "RemoteObjectStore", "WorkItem",
    "Decision", "Outcome", "ItemResult", "decide",
    "WorkQueue",
]
