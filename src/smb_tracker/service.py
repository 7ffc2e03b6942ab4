# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level services for entry CRUD operations and dashboard recomputation.

This module sits between:
- the low-level database helpers in `db.py` and the CSV readers in `io.py`,
- the stateless engine in `engine.py`, and
- user-facing layers such as the CLI.

Responsibilities
----------------
1) Change notifications
   - ``ChangeSignal`` keeps a list of callbacks and calls each of them when
     ``emit()`` is invoked. Every write performed through the service emits
     the kind of entry that changed.

2) Dashboard recomputation
   - ``DashboardService`` listens to its change signal. On each notification
     it loads a fresh snapshot from the database, rebuilds the whole
     ``DashboardReport`` and replaces the previous one.
   - ``DashboardService.batch()`` groups several writes: notifications
     raised inside the block are coalesced into a single recomputation when
     the outermost block exits.
   - Callbacks registered with ``subscribe()`` receive each new report.

3) CRUD operations
   - Create, update and delete single entries of any kind.
   - Import a CSV file of entries of one kind.
   - List the entries of one kind for the current user.

Design notes
------------
- The service keeps no state besides the last report, which is never
  patched in place: it is always rebuilt from a full snapshot.
- Everything runs synchronously in the calling thread.
"""

import logging
import os
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from typing import Any, Optional, Union

import pandas as pd

from . import db
from .config import AppConfig
from .engine import DashboardReport, build_dashboard
from .io import read_entries

logger = logging.getLogger(__name__)


class ChangeSignal:
    """Minimal synchronous observer list."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[..., None]] = []

    def connect(self, callback: Callable[..., None]) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., None]) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self, *args: Any) -> None:
        # Copy so that callbacks may disconnect themselves while being called.
        for callback in list(self._callbacks):
            callback(*args)

    def __len__(self) -> int:
        return len(self._callbacks)


class DashboardService:
    """
    Dashboard of one user, kept in sync with the entries stored in the DB.

    Parameters
    ----------
    app_config:
        Global application configuration (database, engine settings).
    user_id:
        Owner of the entries. Defaults to ``app_config.user_id``.
    signal:
        Change signal to listen to. A new one is created when omitted; pass
        a shared signal to be notified of writes made by other services.
    today:
        Reference date used for debt due-date proximity. Defaults to the
        current date at each recomputation.
    """

    def __init__(
        self,
        app_config: AppConfig,
        user_id: Optional[str] = None,
        *,
        signal: Optional[ChangeSignal] = None,
        today: Optional[date] = None,
    ) -> None:
        self.config = app_config
        self.user_id = user_id or app_config.user_id
        self.today = today
        self.changes = signal if signal is not None else ChangeSignal()
        self.reports = ChangeSignal()

        self._report: Optional[DashboardReport] = None
        self._batch_depth = 0
        self._pending = False
        self.recompute_count = 0

        db.init_database(app_config.database)
        self.changes.connect(self._on_change)

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    @property
    def report(self) -> DashboardReport:
        """The last computed report, computed on first access."""
        if self._report is None:
            self.refresh()
        assert self._report is not None
        return self._report

    def refresh(self) -> DashboardReport:
        """Reload the snapshot, rebuild the report and notify subscribers."""
        snapshot = db.load_snapshot(self.config.database, self.user_id)
        report = build_dashboard(snapshot, self.config.metrics, self.today)

        self._report = report
        self.recompute_count += 1
        logger.debug(
            "Dashboard recomputed for user %r (%s).",
            self.user_id,
            ", ".join(f"{k}={v}" for k, v in snapshot.counts().items()),
        )

        self.reports.emit(report)
        return report

    def subscribe(self, callback: Callable[[DashboardReport], None]) -> None:
        """Register a callback receiving every new report."""
        self.reports.connect(callback)

    def unsubscribe(self, callback: Callable[[DashboardReport], None]) -> None:
        self.reports.disconnect(callback)

    def close(self) -> None:
        """Stop listening to the change signal."""
        self.changes.disconnect(self._on_change)

    @contextmanager
    def batch(self) -> Iterator["DashboardService"]:
        """
        Coalesce change notifications into a single recomputation.

        Blocks may be nested; the recomputation happens when the outermost
        block exits, and only if at least one notification was received.
        When the block raises, a failing recomputation is logged and the
        block's exception is the one propagated.
        """
        self._batch_depth += 1
        try:
            yield self
        except BaseException:
            if self._leave_batch():
                try:
                    self.refresh()
                except Exception:
                    logger.exception(
                        "Dashboard recomputation failed after a batch error."
                    )
            raise
        else:
            if self._leave_batch():
                self.refresh()

    def _leave_batch(self) -> bool:
        """Close one batch level; True when a recomputation is due."""
        self._batch_depth -= 1
        if self._batch_depth == 0 and self._pending:
            self._pending = False
            return True
        return False

    def _on_change(self, kind: Optional[str] = None) -> None:
        if self._batch_depth > 0:
            self._pending = True
            return
        logger.debug("Change notification received (%s).", kind)
        self.refresh()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_entry(self, kind: str, values: Mapping[str, Any]) -> str:
        """Insert an entry and return its id."""
        entry_id = db.insert_entry(self.config.database, kind, self.user_id, values)
        self.changes.emit(kind)
        return entry_id

    def update_entry(
        self,
        kind: str,
        entry_id: str,
        values: Mapping[str, Any],
    ) -> None:
        db.update_entry(self.config.database, kind, self.user_id, entry_id, values)
        self.changes.emit(kind)

    def delete_entry(self, kind: str, entry_id: str) -> None:
        db.delete_entry(self.config.database, kind, self.user_id, entry_id)
        self.changes.emit(kind)

    def import_csv(
        self,
        path: Union[str, "os.PathLike[str]"],
        kind: str,
    ) -> db.ImportStats:
        """
        Read a CSV file of entries of one kind and store them.

        Raises
        ------
        ValueError
            If the CSV structure or values are invalid. Nothing is stored.
        """
        df = read_entries(path, kind)
        stats = db.import_entries(
            df, self.config.database, kind=kind, user_id=self.user_id
        )
        logger.info(
            "Imported %d %s entries from %s.", stats.rows_inserted, kind, path
        )
        self.changes.emit(kind)
        return stats

    def list_entries(self, kind: str) -> pd.DataFrame:
        return db.list_entries(self.config.database, kind, self.user_id)
