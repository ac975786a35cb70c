"""Event bus — delivers committed marketplace notifications to subscribers.

The ledger publishes a notification only after its transaction commits, so
subscribers (indexers, UIs, audit sinks) never observe a sale that was later
rolled back.  A subscriber that raises is logged and skipped; the committed
operation stands.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

from marketledger.core.hasher import canonical_json_bytes
from marketledger.models.events import EVENT_TYPE_MAP, MarketEvent, MarketEventKind

logger = logging.getLogger(__name__)

EventHandler = Callable[[MarketEvent], None]


class EventValidationError(ValueError):
    """Raised when a serialized notification fails validation."""


class EventBus:
    """Routes notifications to handlers registered per event kind."""

    def __init__(self) -> None:
        self._handlers: dict[MarketEventKind, list[EventHandler]] = {
            kind: [] for kind in MarketEventKind
        }

    def subscribe(self, handler: EventHandler, kind: MarketEventKind | None = None) -> None:
        """Register *handler* for one kind, or for every kind when *kind* is None."""
        kinds = [kind] if kind is not None else list(MarketEventKind)
        for k in kinds:
            self._handlers[k].append(handler)

    def publish(self, event: MarketEvent) -> int:
        """Dispatch *event* to its handlers. Returns how many ran cleanly."""
        delivered = 0
        for handler in self._handlers.get(event.kind, []):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s for item %d.",
                    handler, event.kind.value, event.item_id,
                )
                continue
            delivered += 1
        return delivered

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def serialize(event: MarketEvent) -> bytes:
        """Serialize a notification to canonical JSON bytes."""
        return canonical_json_bytes(event.model_dump(mode="json"))

    @staticmethod
    def receive(raw_json: bytes | str) -> MarketEvent:
        """Deserialize and validate a notification produced by ``serialize``."""
        if isinstance(raw_json, bytes):
            raw_json = raw_json.decode("utf-8")

        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise EventValidationError(f"Invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise EventValidationError(
                f"Notification must be a JSON object, got {type(data).__name__}"
            )

        try:
            kind = MarketEventKind(data.get("kind"))
        except ValueError as exc:
            raise EventValidationError(f"Unknown kind: {data.get('kind')!r}") from exc

        try:
            return EVENT_TYPE_MAP[kind].model_validate(data)
        except Exception as exc:
            raise EventValidationError(f"Notification validation failed: {exc}") from exc
