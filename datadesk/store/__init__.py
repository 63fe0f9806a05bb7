"""
Relational store for analysts, analysis questions and assignments.

Re-exports:
    DatabaseManager: Connection and schema lifecycle
    TaskStore: Users, questions and assignments
"""

from .database import DatabaseManager
from .tasks import TaskStore

__all__ = ["DatabaseManager", "TaskStore"]
