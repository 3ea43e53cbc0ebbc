import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app
from google.cloud import firestore
from google.api_core.exceptions import GoogleAPICallError, RetryError, ServiceUnavailable

log = logging.getLogger(__name__)

COLLECTION = "order_events"
ATTEMPTS = 3
BACKOFF_SECONDS = 1.0

ORDER_PLACED = "ORDER_PLACED"
STATUS_CHANGED = "STATUS_CHANGED"
ORDER_CANCELLED = "ORDER_CANCELLED"

_TRANSIENT = (ServiceUnavailable, GoogleAPICallError, RetryError)

# One client per Firestore database id ("default" is the Native-mode db, not "(default)").
_clients: Dict[str, firestore.Client] = {}


def get_client(database_id: str = "default") -> firestore.Client:
    if database_id not in _clients:
        _clients[database_id] = firestore.Client(database=database_id)
    return _clients[database_id]


def order_event(order_id: Any, user_id: str, event: str, payload: Optional[Dict[str, Any]] = None) -> dict:
    return {
        "order_id": str(order_id),
        "user_id": user_id or "",
        "event": event,
        "payload": payload or {},
        "created_at": firestore.SERVER_TIMESTAMP,
        "created_at_iso": datetime.now(timezone.utc).isoformat(),
    }


def log_order_event(
    order_id: Any,
    user_id: str,
    event: str,
    payload: Optional[Dict[str, Any]] = None,
    database_id: str = "default",
) -> str:
    """
    Append one event to the ``order_events`` collection and return its document id.

    Transient Firestore errors are retried with a linear backoff; after the last
    attempt a RuntimeError is raised.
    """
    events = get_client(database_id).collection(COLLECTION)
    doc = order_event(order_id, user_id, event, payload)

    error = None
    for attempt in range(ATTEMPTS):
        ref = events.document()
        try:
            ref.set(doc)
        except _TRANSIENT as e:
            error = e
            log.warning("Order event write failed (%d/%d): %s", attempt + 1, ATTEMPTS, e)
            if attempt + 1 < ATTEMPTS:
                time.sleep(BACKOFF_SECONDS * (attempt + 1))
            continue
        return ref.id

    raise RuntimeError(f"Order event not stored after {ATTEMPTS} attempts: {error}")


def record_order_event(order_id: Any, user_id: str, event: str, payload: Optional[Dict[str, Any]] = None):
    """Audit hook for views: a no-op unless enabled, and never breaks the user flow."""
    if not current_app.config.get("ORDER_EVENTS_ENABLED"):
        return None

    try:
        doc_id = log_order_event(
            order_id, user_id, event, payload,
            database_id=current_app.config.get("FIRESTORE_DB_ID", "default"),
        )
    except Exception as e:
        log.error("Order event %s for order %s was not stored: %s", event, order_id, e)
        return None

    log.info("Order event %s for order %s stored as %s", event, order_id, doc_id)
    return doc_id
