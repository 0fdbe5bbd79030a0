"""
Domain Events — Observer Pattern (GoF)

Services publish events after their writes are committed; subscribers react
without the publishing service knowing who they are.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), init=False)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EntityCreatedEvent(DomainEvent):
    entity_type: str = ""
    entity_id: Optional[int] = None
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EntityUpdatedEvent(DomainEvent):
    entity_type: str = ""
    entity_id: Optional[int] = None
    old_values: Dict[str, Any] = field(default_factory=dict)
    new_values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StatusChangedEvent(DomainEvent):
    entity_type: str = ""
    entity_id: Optional[int] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None


@dataclass
class InventoryMovedEvent(DomainEvent):
    transaction_type: str = ""
    product_id: Optional[int] = None
    lot_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    quantity: str = "0"
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None


@dataclass
class ForecastGeneratedEvent(DomainEvent):
    product_id: Optional[int] = None
    forecast_id: Optional[int] = None
    method: str = ""
    forecasted_quantity: str = "0"


Handler = Callable[[DomainEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def publish(self, event: DomainEvent) -> None:
        for event_type, handlers in self._handlers.items():
            if not isinstance(event, event_type):
                continue
            for handler in handlers:
                try:
                    handler(event)
                except Exception:  # noqa: BLE001
                    # Handlers run after commit; the publisher's writes stand regardless.
                    logger.exception("event_handler_failed event=%s", event.name)


class LoggingHandler:
    """Writes every domain event to the application log."""

    def __call__(self, event: DomainEvent) -> None:
        logger.info("domain_event %s", event.name, extra={"event": event.to_dict()})


_bus = EventBus()


def get_event_bus() -> EventBus:
    return _bus


def configure_event_bus() -> EventBus:
    _bus.clear()
    _bus.subscribe(DomainEvent, LoggingHandler())
    return _bus
