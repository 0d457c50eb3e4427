"""Persistence helpers for GibbsStep."""

from gibbstep.persistence.sqlite_store import (
    connect,
    create_project,
    ensure_schema,
    save_problem,
    save_run,
    save_steps,
)

__all__ = [
    "connect",
    "create_project",
    "ensure_schema",
    "save_problem",
    "save_run",
    "save_steps",
]
