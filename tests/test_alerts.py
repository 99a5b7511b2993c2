"""Tests for alert classification, reconciliation and resolution."""
import asyncio
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from warehouse.error_handlers import AlreadyResolvedError, NotFoundError
from warehouse.models import Alert, InventoryItem
from warehouse.schemas.alert import AlertAction, AlertPriority, AlertType
from warehouse.services.alerts import AlertEvaluator, AlertOutcome, classify


def _item(qty, min_threshold=5, max_threshold=100):
    return InventoryItem(
        sku="CLS-1", name="Classified", qty_on_hand=qty,
        min_threshold=min_threshold, max_threshold=max_threshold
    )


class TestClassify:
    """Tests for mapping stock levels to alert kinds."""

    @pytest.mark.parametrize("qty,expected", [
        (0, (AlertType.OUT_OF_STOCK, AlertPriority.CRITICAL)),
        (3, (AlertType.LOW_STOCK, AlertPriority.MEDIUM)),
        (5, (AlertType.LOW_STOCK, AlertPriority.MEDIUM)),
        (100, (AlertType.OVERSTOCK, AlertPriority.LOW)),
        (250, (AlertType.OVERSTOCK, AlertPriority.LOW)),
    ])
    def test_breaching_levels(self, qty, expected):
        condition = classify(_item(qty))
        assert (condition.kind, condition.priority) == expected

    def test_healthy_level(self):
        assert classify(_item(6)) is None
        assert classify(_item(99)) is None

    def test_zero_minimum_still_flags_empty_stock(self):
        """Test out of stock wins even when the minimum threshold is zero."""
        condition = classify(_item(0, min_threshold=0))
        assert condition.kind == AlertType.OUT_OF_STOCK


async def _open_alert_count(database, item_id) -> int:
    async with database.session() as session:
        return (await session.execute(
            select(func.count(Alert.id)).where(
                Alert.item_id == item_id, Alert.is_resolved == False  # noqa: E712
            )
        )).scalar()


class TestReconcile:
    """Tests for AlertEvaluator.reconcile."""

    async def test_opens_once_per_kind(self, database, ledger, make_item, actor):
        """Test reconciling the same breaching state twice keeps one open alert."""
        result = await ledger.create_item(make_item(qty_on_hand=2), actor)
        evaluator = AlertEvaluator()

        async with database.session() as session:
            item = await session.get(InventoryItem, result.item.id)
            first = await evaluator.reconcile(session, item)
            second = await evaluator.reconcile(session, item)

        # Creation already opened the alert
        assert first.outcome == AlertOutcome.UNCHANGED
        assert second.outcome == AlertOutcome.UNCHANGED
        assert second.alert.id == first.alert.id
        assert await _open_alert_count(database, result.item.id) == 1

    async def test_healthy_item_opens_nothing(self, database, ledger, make_item, actor):
        result = await ledger.create_item(make_item(qty_on_hand=50), actor)

        async with database.session() as session:
            item = await session.get(InventoryItem, result.item.id)
            outcome = await AlertEvaluator().reconcile(session, item)

        assert outcome.outcome == AlertOutcome.NONE
        assert outcome.alert is None
        assert await _open_alert_count(database, result.item.id) == 0

    async def test_new_alert_after_resolution(self, database, ledger, make_item, actor):
        """Test a resolved alert does not block a new one for the same kind."""
        result = await ledger.create_item(make_item(qty_on_hand=2), actor)
        evaluator = AlertEvaluator()

        async with database.session() as session:
            open_alert = await evaluator.find_open(session, result.item.id, AlertType.LOW_STOCK)
            await evaluator.resolve(session, open_alert.id, actor)

        async with database.session() as session:
            item = await session.get(InventoryItem, result.item.id)
            reopened = await evaluator.reconcile(session, item)

        assert reopened.outcome == AlertOutcome.OPENED
        assert reopened.kind == AlertType.LOW_STOCK
        assert reopened.alert.id != open_alert.id

    async def test_partial_unique_index_blocks_second_open_alert(self, database, ledger, make_item, actor):
        """Test the store refuses two open alerts of one kind for one item."""
        result = await ledger.create_item(make_item(qty_on_hand=0), actor)

        with pytest.raises(IntegrityError):
            async with database.session() as session:
                session.add(Alert(
                    item_id=result.item.id,
                    alert_type=AlertType.OUT_OF_STOCK.value,
                    priority=AlertPriority.CRITICAL.value,
                    title="Duplicate",
                    qty_at_trigger=0,
                    threshold=0,
                    is_resolved=False
                ))


class TestResolve:
    """Tests for AlertEvaluator.resolve."""

    async def test_resolve_sets_audit_fields(self, database, ledger, make_item, actor):
        result = await ledger.create_item(make_item(qty_on_hand=1), actor)
        evaluator = AlertEvaluator()

        async with database.session() as session:
            open_alert = await evaluator.find_open(session, result.item.id, AlertType.LOW_STOCK)
            resolved = await evaluator.resolve(
                session, open_alert.id, actor,
                notes="PO raised", action_taken=AlertAction.ORDERED
            )

        assert resolved.is_resolved is True
        assert resolved.resolved_by == actor
        assert resolved.resolved_at is not None
        assert resolved.resolution_notes == "PO raised"
        assert resolved.action_taken == "ORDERED"

    async def test_double_resolution_rejected(self, database, ledger, make_item, actor):
        """Test resolution is one-way."""
        result = await ledger.create_item(make_item(qty_on_hand=1), actor)
        evaluator = AlertEvaluator()

        async with database.session() as session:
            open_alert = await evaluator.find_open(session, result.item.id, AlertType.LOW_STOCK)
            await evaluator.resolve(session, open_alert.id, actor)

        with pytest.raises(AlreadyResolvedError):
            async with database.session() as session:
                await evaluator.resolve(session, open_alert.id, actor)

        async with database.session() as session:
            alert = await session.get(Alert, open_alert.id)
        assert alert.is_resolved is True

    async def test_concurrent_resolution_has_one_winner(self, database, ledger, make_item, actor):
        """Test two resolvers racing on one alert: one succeeds, the other is refused."""
        result = await ledger.create_item(make_item(qty_on_hand=1), actor)
        evaluator = AlertEvaluator()

        async with database.session() as session:
            open_alert = await evaluator.find_open(session, result.item.id, AlertType.LOW_STOCK)

        async def resolve(notes):
            async with database.session() as session:
                resolved = await evaluator.resolve(session, open_alert.id, actor, notes=notes)
                return resolved.resolution_notes

        outcomes = await asyncio.gather(
            resolve("first"), resolve("second"), return_exceptions=True
        )

        winners = [o for o in outcomes if isinstance(o, str)]
        assert len(winners) == 1
        assert sum(isinstance(o, AlreadyResolvedError) for o in outcomes) == 1

        async with database.session() as session:
            stored = await session.get(Alert, open_alert.id)
        assert stored.is_resolved is True
        assert stored.resolution_notes == winners[0]

    async def test_unknown_alert(self, database, actor):
        with pytest.raises(NotFoundError):
            async with database.session() as session:
                await AlertEvaluator().resolve(session, uuid.uuid4(), actor)

    async def test_default_action_is_other(self, database, ledger, make_item, actor):
        result = await ledger.create_item(make_item(qty_on_hand=0), actor)
        evaluator = AlertEvaluator()

        async with database.session() as session:
            open_alert = await evaluator.find_open(session, result.item.id, AlertType.OUT_OF_STOCK)
            resolved = await evaluator.resolve(session, open_alert.id, actor)

        assert resolved.action_taken == AlertAction.OTHER.value
        assert resolved.resolution_notes == ""
