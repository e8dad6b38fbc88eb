import json
import logging
from typing import Any, Optional
from uuid import UUID

logger = logging.getLogger("gangbook.tracker")


def _label_value(val: Any) -> Any:
    """Coerce a label to something json.dumps accepts, or None to drop it."""
    if isinstance(val, (str, int, float, bool)) or val is None:
        return val
    if isinstance(val, UUID):
        return str(val)
    if hasattr(val, "pk"):
        return str(val.pk)
    try:
        json.dumps(val)
    except (TypeError, ValueError):
        return None
    return val


def track(event: str, n: int = 1, value: Optional[float] = None, **labels: Any) -> None:
    """
    Emit a structured log event.

    In production, StructuredLogHandler formats this as JSON for Cloud Logging.
    Elsewhere it is a JSON string on the console.

    Args:
        event: Event name (e.g. 'equipment_purchased')
        n: Count increment (default=1)
        value: Optional numeric value (e.g. credits spent)
        **labels: Arbitrary key=value metadata. Model instances are reduced to
            their primary key; other values that are not JSON serializable
            are dropped.

    Example:
        track("equipment_purchased", value=cost, gang=gang, equipment=equipment)
    """
    payload = {
        "event": event,
        "n": n,
    }
    if value is not None:
        payload["value"] = value

    if labels:
        filtered_labels = {}
        for key, val in labels.items():
            coerced = _label_value(val)
            if coerced is None and val is not None:
                logger.debug(
                    f"Dropping non-serializable label '{key}' with type {type(val).__name__} for event '{event}'"
                )
                continue
            filtered_labels[key] = coerced
        payload["labels"] = filtered_labels

    logger.info(json.dumps(payload))
