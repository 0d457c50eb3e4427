"""SQLite persistence helpers for GibbsStep."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS project (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL UNIQUE,
  created_utc TEXT,
  notes TEXT
);
CREATE TABLE IF NOT EXISTS problem (
  id INTEGER PRIMARY KEY,
  project_id INTEGER REFERENCES project(id),
  species JSON,
  phases JSON,
  stoich JSON,
  moles JSON
);
CREATE TABLE IF NOT EXISTS run (
  id INTEGER PRIMARY KEY,
  problem_id INTEGER REFERENCES problem(id),
  status INTEGER,
  options JSON,
  manifest JSON,
  started TEXT
);
CREATE TABLE IF NOT EXISTS step (
  run_id INTEGER REFERENCES run(id),
  reaction INTEGER,
  species TEXT,
  dg REAL,
  ds REAL,
  dx REAL,
  note TEXT,
  PRIMARY KEY (run_id, reaction)
);
"""


def connect(project_file: str | Path) -> sqlite3.Connection:
    """Open a project file, creating its directory when needed.

    numpy scalars are stored as plain SQLite numbers.
    """
    path = Path(project_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    sqlite3.register_adapter(np.float64, float)
    sqlite3.register_adapter(np.int64, int)
    connection = sqlite3.connect(path)
    connection.execute("PRAGMA foreign_keys = ON;")
    return connection


def ensure_schema(connection: sqlite3.Connection) -> None:
    """Create the tables and stamp the file with SCHEMA_VERSION."""
    (version,) = connection.execute("PRAGMA user_version").fetchone()
    if version > SCHEMA_VERSION:
        raise ValueError(f"Project file has schema version {version}, this build reads up to {SCHEMA_VERSION}.")
    connection.executescript(SCHEMA_SQL)
    connection.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    connection.commit()


def create_project(
    connection: sqlite3.Connection,
    name: str,
    notes: str | None = None,
    created_utc: str | None = None,
) -> int:
    """Return the ID of project ``name``, inserting it on first use.

    Repeated runs against one project file collect their problems under a
    single project row.
    """
    row = connection.execute("SELECT id FROM project WHERE name = ?", (name,)).fetchone()
    if row is not None:
        return int(row[0])
    cursor = connection.execute(
        "INSERT INTO project (name, created_utc, notes) VALUES (?, ?, ?)",
        (name, created_utc or _utc_now(), notes),
    )
    connection.commit()
    return int(cursor.lastrowid)


def save_problem(
    connection: sqlite3.Connection,
    project_id: int,
    species: Sequence[str],
    phases: Sequence[Mapping[str, object]],
    stoich: Sequence[Sequence[float]],
    moles: Mapping[str, float],
) -> int:
    """Persist the definition of an equilibrium problem and return its ID."""
    cursor = connection.execute(
        "INSERT INTO problem (project_id, species, phases, stoich, moles) VALUES (?, ?, ?, ?, ?)",
        (
            project_id,
            _json_dumps(list(species)),
            _json_dumps(list(phases)),
            _json_dumps([list(row) for row in stoich]),
            _json_dumps(dict(moles)),
        ),
    )
    connection.commit()
    return int(cursor.lastrowid)


def save_run(
    connection: sqlite3.Connection,
    problem_id: int,
    status: int,
    options: Mapping[str, object],
    manifest: Mapping[str, object],
    started_utc: str | None = None,
) -> int:
    """Persist an adjustment run and return its ID."""
    started_utc = started_utc or _utc_now()
    cursor = connection.execute(
        "INSERT INTO run (problem_id, status, options, manifest, started) VALUES (?, ?, ?, ?, ?)",
        (problem_id, int(status), _json_dumps(options), _json_dumps(manifest), started_utc),
    )
    connection.commit()
    return int(cursor.lastrowid)


def save_steps(
    connection: sqlite3.Connection,
    run_id: int,
    steps: Sequence[Mapping[str, object]],
) -> None:
    """Save one row per reaction: species, dg, ds, line search step and note."""
    rows_list: list[tuple[object, ...]] = []
    for index, step in enumerate(steps):
        dx = step.get("dx")
        rows_list.append(
            (
                run_id,
                index,
                step["species"],
                float(step["dg"]),
                float(step["ds"]),
                None if dx is None else float(dx),
                step.get("note", ""),
            )
        )
    connection.executemany(
        "INSERT INTO step (run_id, reaction, species, dg, ds, dx, note) VALUES (?, ?, ?, ?, ?, ?, ?)",
        rows_list,
    )
    connection.commit()


def _to_builtin(value: object) -> object:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Cannot store {type(value).__name__} as JSON")


def _json_dumps(payload: object) -> str:
    return json.dumps(payload, sort_keys=True, default=_to_builtin)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
