"""
Alert evaluator: maps an item's stock level to alert kinds and keeps at most
one open alert per (item, kind).
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.error_handlers import AlreadyResolvedError, NotFoundError
from warehouse.logging_config import get_logger
from warehouse.models.alert import Alert
from warehouse.models.item import InventoryItem
from warehouse.schemas.alert import AlertAction, AlertPriority, AlertType

logger = get_logger("alerts")


class AlertOutcome(str, Enum):
    NONE = "none"
    OPENED = "opened"
    UNCHANGED = "unchanged"


@dataclass
class AlertCondition:
    kind: AlertType
    priority: AlertPriority
    threshold: int


@dataclass
class ReconcileResult:
    """What reconciliation did for one item."""
    outcome: AlertOutcome
    alert: Optional[Alert] = None

    @property
    def kind(self) -> Optional[AlertType]:
        return AlertType(self.alert.alert_type) if self.alert else None

    @property
    def priority(self) -> Optional[AlertPriority]:
        return AlertPriority(self.alert.priority) if self.alert else None


def classify(item: InventoryItem) -> Optional[AlertCondition]:
    """
    Decide which alert condition, if any, an item's on-hand stock is in.

    Out of stock wins over low stock, which wins over overstock.
    """
    qty = item.qty_on_hand
    if qty == 0:
        return AlertCondition(AlertType.OUT_OF_STOCK, AlertPriority.CRITICAL, 0)
    if qty <= item.min_threshold:
        return AlertCondition(AlertType.LOW_STOCK, AlertPriority.MEDIUM, item.min_threshold)
    if qty >= item.max_threshold:
        return AlertCondition(AlertType.OVERSTOCK, AlertPriority.LOW, item.max_threshold)
    return None


_TITLES = {
    AlertType.OUT_OF_STOCK: "Out of stock: {sku}",
    AlertType.LOW_STOCK: "Low stock: {sku}",
    AlertType.OVERSTOCK: "Overstock: {sku}",
}

_MESSAGES = {
    AlertType.OUT_OF_STOCK: "{name} ({sku}) has no stock on hand.",
    AlertType.LOW_STOCK: "{name} ({sku}) is at {qty} {unit}, at or below the minimum of {threshold}.",
    AlertType.OVERSTOCK: "{name} ({sku}) is at {qty} {unit}, at or above the maximum of {threshold}.",
}


class AlertEvaluator:
    """Opens and resolves stock alerts. Never touches inventory quantities."""

    async def find_open(
        self,
        session: AsyncSession,
        item_id: uuid.UUID,
        kind: AlertType
    ) -> Optional[Alert]:
        result = await session.execute(
            select(Alert).where(
                and_(
                    Alert.item_id == item_id,
                    Alert.alert_type == kind.value,
                    Alert.is_resolved == False  # noqa: E712
                )
            )
        )
        return result.scalar_one_or_none()

    async def reconcile(self, session: AsyncSession, item: InventoryItem) -> ReconcileResult:
        """
        Open an alert for the item's current condition unless one is already open.

        Alerts for conditions that no longer hold are left open; resolution is
        always explicit.
        """
        condition = classify(item)
        if condition is None:
            return ReconcileResult(AlertOutcome.NONE)

        existing = await self.find_open(session, item.id, condition.kind)
        if existing is not None:
            return ReconcileResult(AlertOutcome.UNCHANGED, existing)

        fields = {
            "sku": item.sku,
            "name": item.name,
            "qty": item.qty_on_hand,
            "unit": item.unit,
            "threshold": condition.threshold,
        }
        alert = Alert(
            id=uuid.uuid4(),
            item_id=item.id,
            alert_type=condition.kind.value,
            priority=condition.priority.value,
            title=_TITLES[condition.kind].format(**fields),
            message=_MESSAGES[condition.kind].format(**fields),
            qty_at_trigger=item.qty_on_hand,
            threshold=condition.threshold,
            is_resolved=False,
            resolution_notes="",
        )
        session.add(alert)
        await session.flush()
        logger.info(
            f"[ALERT] Opened {condition.kind.value} alert for sku={item.sku}, "
            f"qty={item.qty_on_hand}, priority={condition.priority.value}"
        )
        return ReconcileResult(AlertOutcome.OPENED, alert)

    async def resolve(
        self,
        session: AsyncSession,
        alert_id: uuid.UUID,
        actor: uuid.UUID,
        notes: str = "",
        action_taken: AlertAction = AlertAction.OTHER
    ) -> Alert:
        """
        Mark an open alert as resolved.

        Raises:
            NotFoundError: If no alert has this id
            AlreadyResolvedError: If the alert was resolved before
        """
        alert = await session.get(Alert, alert_id)
        if alert is None:
            raise NotFoundError("Alert", alert_id)
        if alert.is_resolved:
            raise AlreadyResolvedError(alert_id)

        # Only one of several concurrent resolvers may flip the flag
        result = await session.execute(
            update(Alert)
            .where(
                and_(
                    Alert.id == alert_id,
                    Alert.is_resolved == False  # noqa: E712
                )
            )
            .values(
                is_resolved=True,
                resolved_at=datetime.now(timezone.utc),
                resolved_by=actor,
                resolution_notes=notes or "",
                action_taken=AlertAction(action_taken).value
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AlreadyResolvedError(alert_id)

        await session.refresh(alert)
        logger.info(f"[ALERT] Resolved alert {alert_id} ({alert.alert_type}) with action {alert.action_taken}")
        return alert
