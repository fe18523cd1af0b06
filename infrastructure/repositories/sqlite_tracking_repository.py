import sqlite3
import json
from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime
import logging
from enum import Enum

log = logging.getLogger(__name__)

class TrackingEvent(str, Enum):
    LOGIN_METHOD = "LOGIN_METHOD"
    FLOW_VARIANT = "FLOW_VARIANT"
    LOGIN_ID = "LOGIN_ID"
    ENGAGEMENT = "ENGAGEMENT"

ALLOWED_METADATA_KEYS = {
    "method", "prefilled", "variant", "login_id", "engagement"
}

class SQLiteTrackingRepository:
    """Tracker backed by a local SQLite table.

    The flow sets ``login_method``, ``login_flow_variant`` and ``login_id``
    and reports engagements; each of them becomes one row in ``events``.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._login_method = None
        self._login_flow_variant = None
        self._login_id = None
        self.init_db()

    def _conn(self):
        return sqlite3.connect(self.db_path)

    def init_db(self):
        try:
            with self._conn() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS events (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        ts TEXT NOT NULL,
                        event TEXT NOT NULL,
                        metadata_json TEXT
                    )
                """)
                conn.commit()
        except Exception as e:
            log.error(f"Tracking DB init failed: {e}", exc_info=True)

    @property
    def login_method(self):
        return self._login_method

    @login_method.setter
    def login_method(self, value):
        self._login_method = value
        if value is not None:
            self.log_event(TrackingEvent.LOGIN_METHOD, {
                "method": value.method_type.value,
                "prefilled": value.prefilled_value is not None,
            })

    @property
    def login_flow_variant(self):
        return self._login_flow_variant

    @login_flow_variant.setter
    def login_flow_variant(self, value):
        self._login_flow_variant = value
        if value is not None:
            self.log_event(TrackingEvent.FLOW_VARIANT, {"variant": value.value})

    @property
    def login_id(self):
        return self._login_id

    @login_id.setter
    def login_id(self, value):
        self._login_id = value
        self.log_event(TrackingEvent.LOGIN_ID, {"login_id": value})

    def engagement(self, event: str):
        self.log_event(TrackingEvent.ENGAGEMENT, {"engagement": event})

    def log_event(self, event: Any, metadata: Optional[Dict[str, Any]] = None):
        """Stores one event. Metadata is JSON serialized and constrained."""
        try:
            meta_str = None
            if metadata is not None:
                safe_meta = {k: v for k, v in metadata.items() if k in ALLOWED_METADATA_KEYS}
                try:
                    meta_str = json.dumps(safe_meta)[:2000]
                except (TypeError, ValueError):
                    meta_str = "{\"error\": \"unserializable\"}"

            ts = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")
            event_val = event.value if hasattr(event, "value") else str(event)[:50]

            with self._conn() as conn:
                conn.execute(
                    "INSERT INTO events (ts, event, metadata_json) VALUES (?, ?, ?)",
                    (ts, event_val, meta_str),
                )
                conn.commit()
        except Exception as e:
            # Tracking failures must not break the identity flow
            log.error(f"Tracking failed for event {event}: {e}", exc_info=True)

    def get_events(self, limit: int = 100, event_filter: Optional[str] = None) -> List[Tuple]:
        try:
            with self._conn() as conn:
                query = "SELECT id, ts, event, metadata_json FROM events"
                params = []
                if event_filter:
                    query += " WHERE event = ?"
                    params.append(event_filter)
                query += " ORDER BY id DESC LIMIT ?"
                params.append(limit)
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as e:
            log.error(f"Failed to fetch tracking events: {e}", exc_info=True)
            return []
