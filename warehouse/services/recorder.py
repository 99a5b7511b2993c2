"""
Transaction recorder: builds the immutable ledger entry for a stock movement.
"""
import secrets
import time
import uuid
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from warehouse.error_handlers import (
    DuplicateKeyError,
    InvalidSubTypeError,
    ValidationFailedError,
)
from warehouse.logging_config import get_logger
from warehouse.models.item import InventoryItem
from warehouse.models.transaction import InventoryTransaction
from warehouse.schemas.transaction import (
    ALLOWED_SUB_TYPES,
    TransactionStatus,
    TransactionSubType,
    TransactionType,
)

logger = get_logger("recorder")

# session.info key holding the id of the entry the session is about to insert
PENDING_TRANSACTION_ID = "pending_transaction_id"


def generate_transaction_id() -> str:
    """'TXN' + epoch milliseconds + 4 random digits; sorts by creation time."""
    millis = int(time.time() * 1000)
    return f"TXN{millis:013d}{secrets.randbelow(10_000):04d}"


def is_transaction_id_collision(exc: IntegrityError) -> bool:
    """True when a unique violation was raised by the ledger's transaction id."""
    message = str(exc.orig)
    return (
        "uq_inventory_transactions_transaction_id" in message
        or "inventory_transactions.transaction_id" in message
    )


def validate_sub_type(
    ledger_type: Union[TransactionType, str],
    sub_type: Union[TransactionSubType, str]
) -> tuple[TransactionType, TransactionSubType]:
    """
    Check that a sub-type belongs to its ledger type.

    Returns:
        The (type, sub_type) pair as enum members

    Raises:
        ValidationFailedError: If the type itself is unknown
        InvalidSubTypeError: If the sub-type is unknown or belongs to another type
    """
    try:
        ledger_type = TransactionType(ledger_type)
    except ValueError:
        raise ValidationFailedError(f"Unknown transaction type '{ledger_type}'")

    allowed = ALLOWED_SUB_TYPES[ledger_type]
    try:
        sub_type = TransactionSubType(sub_type)
    except ValueError:
        sub_type_value = str(sub_type)
    else:
        if sub_type in allowed:
            return ledger_type, sub_type
        sub_type_value = sub_type.value

    raise InvalidSubTypeError(
        ledger_type.value,
        sub_type_value,
        sorted(member.value for member in allowed)
    )


class TransactionRecorder:
    """Creates ledger entries; never updates or deletes them."""

    def __init__(self, id_attempts: int = 5):
        self.id_attempts = id_attempts

    async def _allocate_transaction_id(self, session: AsyncSession) -> str:
        for attempt in range(1, self.id_attempts + 1):
            candidate = generate_transaction_id()
            taken = await session.scalar(
                select(exists().where(InventoryTransaction.transaction_id == candidate))
            )
            if not taken:
                return candidate
            logger.warning(f"Transaction id collision on {candidate} (attempt {attempt})")
        raise DuplicateKeyError("Transaction", "transaction_id", candidate)

    async def record(
        self,
        session: AsyncSession,
        item: InventoryItem,
        ledger_type: Union[TransactionType, str],
        sub_type: Union[TransactionSubType, str],
        quantity: int,
        unit_cost: Optional[Decimal],
        reason: str,
        actor: uuid.UUID,
        reference: Optional[str] = None,
        **extra
    ) -> InventoryTransaction:
        """
        Add the audit record for a mutation to the session.

        The caller passes the item in its post-mutation state; its on-hand and
        available quantities become ``balance_after`` and ``available_after``.

        Args:
            session: Session holding the surrounding mutation
            item: Mutated item
            ledger_type: Transaction type
            sub_type: Transaction sub-type, must belong to ``ledger_type``
            quantity: Size of the movement (signed only for ADJUST)
            unit_cost: Cost per unit, defaults to the item's unit cost
            reason: Why the stock moved
            actor: User performing the mutation
            reference: Free-text PO/SO number
            **extra: Optional supplier_id, customer_id, notes, batch_number

        Returns:
            The pending InventoryTransaction (flushed with the session)
        """
        ledger_type, sub_type = validate_sub_type(ledger_type, sub_type)

        if not reason or not reason.strip():
            raise ValidationFailedError("A reason is required for every stock movement")
        if actor is None:
            raise ValidationFailedError("An actor is required for every stock movement")
        if quantity < 0 and ledger_type != TransactionType.ADJUST:
            raise ValidationFailedError(
                f"{ledger_type.value} transactions record a non-negative quantity"
            )

        if unit_cost is None:
            unit_cost = item.unit_cost or Decimal("0")
        unit_cost = Decimal(unit_cost)

        transaction = InventoryTransaction(
            transaction_id=await self._allocate_transaction_id(session),
            item_id=item.id,
            item_sku=item.sku,
            supplier_id=extra.get("supplier_id"),
            customer_id=extra.get("customer_id"),
            type=ledger_type.value,
            sub_type=sub_type.value,
            quantity=quantity,
            unit_cost=unit_cost,
            total_value=Decimal(quantity) * unit_cost,
            balance_after=item.qty_on_hand,
            available_after=item.qty_available,
            reason=reason.strip(),
            reference=reference or "",
            notes=extra.get("notes") or "",
            batch_number=extra.get("batch_number") or "",
            created_by=actor,
            status=TransactionStatus.COMPLETED.value,
        )
        session.add(transaction)
        session.info[PENDING_TRANSACTION_ID] = transaction.transaction_id
        return transaction
