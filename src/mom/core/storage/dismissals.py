"""Persistent set of dismissed alert rule ids."""

from __future__ import annotations

import logging

from mom.core.storage.database import MomDatabase

logger = logging.getLogger(__name__)


class DismissalStore:
    """Remembers which alerts the user dismissed, keyed by rule id.

    Dismissing hides an alert; it does not touch the condition that raised
    it, so restoring brings the alert back if the condition still holds.
    """

    def __init__(self, database: MomDatabase) -> None:
        self._db = database

    def dismiss(self, rule_id: str) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO dismissed_alerts (rule_id) VALUES (?)", (rule_id,)
            )
        logger.info("Dismissed alert %s", rule_id)

    def restore(self, rule_id: str) -> bool:
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM dismissed_alerts WHERE rule_id = ?", (rule_id,))
        return cursor.rowcount > 0

    def restore_all(self) -> int:
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM dismissed_alerts")
        return cursor.rowcount

    def dismissed_ids(self) -> set[str]:
        rows = self._db.connection.execute("SELECT rule_id FROM dismissed_alerts").fetchall()
        return {row[0] for row in rows}

    def is_dismissed(self, rule_id: str) -> bool:
        row = self._db.connection.execute(
            "SELECT 1 FROM dismissed_alerts WHERE rule_id = ?", (rule_id,)
        ).fetchone()
        return row is not None
