"""Tests for the transaction recorder."""
import re
from decimal import Decimal

import pytest
from sqlalchemy import select

from warehouse.error_handlers import DuplicateKeyError, InvalidSubTypeError, ValidationFailedError
from warehouse.models import InventoryItem, InventoryTransaction
from warehouse.schemas.transaction import TransactionSubType, TransactionType
from warehouse.services import recorder as recorder_module
from warehouse.services.recorder import (
    TransactionRecorder,
    generate_transaction_id,
    validate_sub_type,
)


class TestTransactionIds:
    """Tests for transaction id generation."""

    def test_format(self):
        """Test ids are TXN, 13 millisecond digits and a 4 digit suffix."""
        txn_id = generate_transaction_id()
        assert re.fullmatch(r"TXN\d{13}\d{4}", txn_id)

    def test_ids_sort_by_time(self, monkeypatch):
        """Test a later millisecond always sorts after an earlier one."""
        monkeypatch.setattr(recorder_module.time, "time", lambda: 1_700_000_000.000)
        earlier = generate_transaction_id()
        monkeypatch.setattr(recorder_module.time, "time", lambda: 1_700_000_000.001)
        later = generate_transaction_id()
        assert earlier < later


class TestSubTypeValidation:
    """Tests for the type/sub-type table."""

    @pytest.mark.parametrize("ledger_type,sub_type", [
        ("IN", "PURCHASE"),
        ("OUT", "DAMAGED"),
        ("ADJUST", "LOSS_ADJUST"),
        ("TRANSFER", "WAREHOUSE_TRANSFER"),
        ("RESERVE", "PRODUCTION_RESERVE"),
        ("UNRESERVE", "ORDER_RELEASE"),
    ])
    def test_allowed_pairs(self, ledger_type, sub_type):
        assert validate_sub_type(ledger_type, sub_type) == (
            TransactionType(ledger_type), TransactionSubType(sub_type)
        )

    def test_sub_type_of_another_type_rejected(self):
        """Test SALE is an OUT sub-type and cannot be recorded as IN."""
        with pytest.raises(InvalidSubTypeError) as exc_info:
            validate_sub_type("IN", "SALE")
        assert exc_info.value.details["allowed"] == ["PRODUCTION", "PURCHASE", "RETURN"]

    def test_unknown_sub_type_rejected(self):
        with pytest.raises(InvalidSubTypeError):
            validate_sub_type("OUT", "THEFT")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationFailedError):
            validate_sub_type("SHIP", "SALE")


async def _load_item(database, ledger, make_item, actor, **overrides) -> InventoryItem:
    result = await ledger.create_item(make_item(**overrides), actor)
    return result.item


class TestRecord:
    """Tests for TransactionRecorder.record."""

    async def test_snapshot_and_value(self, database, ledger, make_item, actor):
        """Test the entry snapshots the item and prices the movement."""
        item = await _load_item(database, ledger, make_item, actor, qty_on_hand=8, unit_cost=Decimal("1.25"))

        async with database.session() as session:
            item = await session.get(InventoryItem, item.id)
            txn = await TransactionRecorder().record(
                session, item, TransactionType.IN, TransactionSubType.PURCHASE,
                quantity=4, unit_cost=None, reason="Supplier delivery", actor=actor,
                reference="PO-1001", batch_number="B-7"
            )

        assert txn.total_value == Decimal("5.00")
        assert txn.unit_cost == Decimal("1.25")
        assert txn.balance_after == 8
        assert txn.available_after == 8
        assert txn.reference == "PO-1001"
        assert txn.batch_number == "B-7"
        assert txn.item_sku == item.sku

    async def test_reason_required(self, database, ledger, make_item, actor):
        item = await _load_item(database, ledger, make_item, actor)

        with pytest.raises(ValidationFailedError):
            async with database.session() as session:
                await TransactionRecorder().record(
                    session, item, "IN", "PURCHASE",
                    quantity=1, unit_cost=None, reason="   ", actor=actor
                )

    async def test_negative_quantity_only_for_adjust(self, database, ledger, make_item, actor):
        item = await _load_item(database, ledger, make_item, actor)

        with pytest.raises(ValidationFailedError):
            async with database.session() as session:
                await TransactionRecorder().record(
                    session, item, "OUT", "SALE",
                    quantity=-1, unit_cost=None, reason="Sale", actor=actor
                )

        async with database.session() as session:
            txn = await TransactionRecorder().record(
                session, item, "ADJUST", "LOSS_ADJUST",
                quantity=-2, unit_cost=None, reason="Shrinkage", actor=actor
            )
        assert txn.quantity == -2
        assert txn.direction == "OUTBOUND"

    async def test_collision_retries_then_fails(self, database, ledger, make_item, actor, monkeypatch):
        """Test an id already in the ledger is never reused."""
        item = await _load_item(database, ledger, make_item, actor)

        async with database.session() as session:
            existing = (await session.execute(select(InventoryTransaction))).scalars().one()

        monkeypatch.setattr(
            recorder_module, "generate_transaction_id", lambda: existing.transaction_id
        )
        with pytest.raises(DuplicateKeyError):
            async with database.session() as session:
                await TransactionRecorder(id_attempts=3).record(
                    session, item, "IN", "RETURN",
                    quantity=1, unit_cost=None, reason="Customer return", actor=actor
                )

    async def test_collision_recovers_with_new_suffix(self, database, ledger, make_item, actor, monkeypatch):
        item = await _load_item(database, ledger, make_item, actor)

        async with database.session() as session:
            existing = (await session.execute(select(InventoryTransaction))).scalars().one()

        candidates = iter([existing.transaction_id, "TXN17000000000000001"])
        monkeypatch.setattr(recorder_module, "generate_transaction_id", lambda: next(candidates))

        async with database.session() as session:
            txn = await TransactionRecorder().record(
                session, item, "IN", "RETURN",
                quantity=1, unit_cost=None, reason="Customer return", actor=actor
            )
        assert txn.transaction_id == "TXN17000000000000001"
