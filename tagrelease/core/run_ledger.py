"""Append-only, hash-chained run ledger backed by SQLite.

Every job transition, pipeline transition and upload outcome is appended
here, so a run can be audited after the process exits.

Design:
- Append-only: ``append()`` is the only write; no update, no delete.
- Hash-chained per run: each entry seals the hash of the previous one.
- Appends are serialized with a lock because build tasks report from
  worker threads.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from tagrelease.core.hasher import compute_entry_hash
from tagrelease.errors import LedgerIntegrityError
from tagrelease.models.ledger import LedgerEntry

_CREATE_LEDGER = """
CREATE TABLE IF NOT EXISTS run_ledger (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    entry_id            TEXT NOT NULL UNIQUE,
    run_id              TEXT NOT NULL,
    subject             TEXT NOT NULL,
    transition          TEXT NOT NULL,
    detail              TEXT NOT NULL DEFAULT '',
    timestamp_utc       TEXT NOT NULL,
    previous_entry_hash TEXT NOT NULL DEFAULT '',
    entry_hash          TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_RUN = """
CREATE INDEX IF NOT EXISTS idx_run_id ON run_ledger(run_id, id);
"""

_COLUMNS = (
    "entry_id, run_id, subject, transition, detail, timestamp_utc, "
    "previous_entry_hash, entry_hash"
)


class RunLedger:
    """Append-only run ledger.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_LEDGER)
            conn.execute(_CREATE_IDX_RUN)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Seal ``entry`` onto the run's chain and persist it."""
        with self._lock:
            previous_hash = self._get_latest_hash(entry.run_id)
            entry_dict = entry.model_dump(mode="json")
            entry_dict["previous_entry_hash"] = previous_hash
            sealed = entry.model_copy(
                update={
                    "previous_entry_hash": previous_hash,
                    "entry_hash": compute_entry_hash(entry_dict),
                }
            )
            self._insert(sealed)
        return sealed

    def record(
        self, run_id: str, subject: str, transition: str, detail: str = ""
    ) -> LedgerEntry:
        """Build and append an entry in one call."""
        return self.append(
            LedgerEntry(
                run_id=run_id,
                subject=subject,
                transition=transition,
                detail=detail,
            )
        )

    def _insert(self, entry: LedgerEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO run_ledger ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.entry_id,
                    entry.run_id,
                    entry.subject,
                    entry.transition,
                    entry.detail,
                    entry.timestamp_utc.isoformat(),
                    entry.previous_entry_hash,
                    entry.entry_hash,
                ),
            )

    def _get_latest_hash(self, run_id: str) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT entry_hash FROM run_ledger WHERE run_id = ? ORDER BY id DESC LIMIT 1",
                (run_id,),
            ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_run_entries(self, run_id: str) -> list[LedgerEntry]:
        """All entries for a run, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM run_ledger WHERE run_id = ? ORDER BY id ASC",
                (run_id,),
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_all_run_ids(self) -> list[str]:
        """Distinct run ids, most recent first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT run_id FROM run_ledger GROUP BY run_id ORDER BY MAX(id) DESC"
            ).fetchall()
        return [row[0] for row in rows]

    def verify_chain(self, run_id: str) -> bool:
        """Walk a run's entries and recompute every link.

        Returns True when intact, raises LedgerIntegrityError otherwise.
        """
        prev_hash = ""
        for entry in self.get_run_entries(run_id):
            if entry.previous_entry_hash != prev_hash:
                raise LedgerIntegrityError(
                    f"Chain broken at entry {entry.entry_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {entry.previous_entry_hash!r}"
                )
            expected = compute_entry_hash(entry.model_dump(mode="json"))
            if entry.entry_hash != expected:
                raise LedgerIntegrityError(
                    f"Tampered entry {entry.entry_id}: "
                    f"expected hash={expected!r}, got {entry.entry_hash!r}"
                )
            prev_hash = entry.entry_hash
        return True

    @staticmethod
    def _row_to_entry(row: tuple) -> LedgerEntry:
        (
            entry_id,
            run_id,
            subject,
            transition,
            detail,
            timestamp_utc,
            previous_entry_hash,
            entry_hash,
        ) = row
        return LedgerEntry(
            entry_id=entry_id,
            run_id=run_id,
            subject=subject,
            transition=transition,
            detail=detail,
            timestamp_utc=datetime.fromisoformat(timestamp_utc),
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )
