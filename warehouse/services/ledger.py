"""
Stock ledger engine.

Every mutation of an item's quantities runs as one unit of work: the item is
locked and loaded, the new quantities are checked, the item row, its ledger
entry and any alert it triggers are written in the same database transaction,
and only after commit is the change published to subscribers.
"""
import asyncio
import uuid
import weakref
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from warehouse.core.database import Database
from warehouse.error_handlers import (
    ConcurrencyConflictError,
    DuplicateKeyError,
    InvalidQuantityError,
    NotFoundError,
    ValidationFailedError,
)
from warehouse.logging_config import get_logger
from warehouse.models.catalog import Category, Supplier
from warehouse.models.item import InventoryItem
from warehouse.models.transaction import InventoryTransaction
from warehouse.schemas.item import ItemCreate, ItemResponse, ItemUpdate
from warehouse.schemas.transaction import TransactionSubType, TransactionType
from warehouse.services.alerts import AlertEvaluator
from warehouse.services.notifier import ConnectionManager
from warehouse.services.recorder import (
    PENDING_TRANSACTION_ID,
    TransactionRecorder,
    is_transaction_id_collision,
    validate_sub_type,
)

logger = get_logger("ledger")

MANUAL_ADJUSTMENT = "Manual adjustment"
INITIAL_STOCK = "Initial stock entry"
ITEM_DELETED = "Item deleted"

DEFAULT_SUB_TYPES = {
    TransactionType.IN: TransactionSubType.PRODUCTION,
    TransactionType.OUT: TransactionSubType.CONSUMPTION,
    TransactionType.ADJUST: TransactionSubType.COUNT_ADJUST,
    TransactionType.RESERVE: TransactionSubType.ORDER_RESERVE,
    TransactionType.UNRESERVE: TransactionSubType.ORDER_RELEASE,
}


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    QUANTITY_SET = "quantity_set"
    QUANTITY_DELTA = "quantity_delta"
    RESERVE = "reserve"
    RELEASE = "release"
    DELETE = "delete"


EVENT_KINDS = {
    MutationKind.CREATE: "created",
    MutationKind.DELETE: "deleted",
}


@dataclass
class MutationResult:
    """Item after the mutation and the ledger entry it wrote, if any."""
    item: InventoryItem
    transaction: Optional[InventoryTransaction] = None


def item_snapshot(item: InventoryItem) -> dict[str, Any]:
    """JSON-ready view of an item for notifications."""
    return ItemResponse.model_validate(item).model_dump(mode="json")


class LedgerEngine:
    """
    Applies stock mutations atomically.

    Mutations of the same item are serialized by an in-process lock; writers in
    other processes are caught by the item's version counter, in which case the
    whole unit of work is retried.
    """

    def __init__(
        self,
        db: Database,
        recorder: Optional[TransactionRecorder] = None,
        evaluator: Optional[AlertEvaluator] = None,
        notifier: Optional[ConnectionManager] = None,
        max_retries: int = 3
    ):
        self.db = db
        self.recorder = recorder or TransactionRecorder()
        self.evaluator = evaluator or AlertEvaluator()
        self.notifier = notifier
        self.max_retries = max(1, max_retries)
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._handlers = {
            MutationKind.CREATE: self._create,
            MutationKind.UPDATE: self._update,
            MutationKind.QUANTITY_SET: self._set_quantity,
            MutationKind.QUANTITY_DELTA: self._adjust_quantity,
            MutationKind.RESERVE: self._reserve,
            MutationKind.RELEASE: self._release,
            MutationKind.DELETE: self._delete,
        }

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def create_item(self, data: ItemCreate, actor: uuid.UUID) -> MutationResult:
        """Create an item and its initial-stock ledger entry."""
        return await self.apply_mutation(MutationKind.CREATE, None, actor, data=data)

    async def update_item(
        self,
        item_id: uuid.UUID,
        patch: Union[ItemUpdate, dict],
        actor: uuid.UUID
    ) -> MutationResult:
        """
        Apply a partial update.

        A changed ``qty_on_hand`` is recorded like :meth:`set_quantity`; other
        fields are plain edits and write no ledger entry.
        """
        if isinstance(patch, dict):
            patch = ItemUpdate.model_validate(
                {key: value for key, value in patch.items() if key != "qty_available"}
            )
        return await self.apply_mutation(MutationKind.UPDATE, item_id, actor, patch=patch)

    async def set_quantity(
        self,
        item_id: uuid.UUID,
        new_quantity: int,
        actor: uuid.UUID,
        reason: Optional[str] = None,
        reference: Optional[str] = None
    ) -> MutationResult:
        """Set on-hand stock to an absolute count."""
        return await self.apply_mutation(
            MutationKind.QUANTITY_SET, item_id, actor,
            new_quantity=new_quantity, reason=reason, reference=reference
        )

    async def adjust_quantity(
        self,
        item_id: uuid.UUID,
        delta: int,
        actor: uuid.UUID,
        ledger_type: Optional[TransactionType] = None,
        sub_type: Optional[TransactionSubType] = None,
        reason: Optional[str] = None,
        unit_cost: Optional[Decimal] = None,
        reference: Optional[str] = None,
        **extra
    ) -> MutationResult:
        """Move on-hand stock by a signed delta."""
        return await self.apply_mutation(
            MutationKind.QUANTITY_DELTA, item_id, actor,
            delta=delta, ledger_type=ledger_type, sub_type=sub_type, reason=reason,
            unit_cost=unit_cost, reference=reference, extra=extra
        )

    async def reserve(
        self,
        item_id: uuid.UUID,
        quantity: int,
        actor: uuid.UUID,
        sub_type: Optional[TransactionSubType] = None,
        reason: Optional[str] = None,
        reference: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None
    ) -> MutationResult:
        """Set aside on-hand stock for an order."""
        return await self.apply_mutation(
            MutationKind.RESERVE, item_id, actor,
            quantity=quantity, sub_type=sub_type, reason=reason,
            reference=reference, customer_id=customer_id
        )

    async def release(
        self,
        item_id: uuid.UUID,
        quantity: int,
        actor: uuid.UUID,
        sub_type: Optional[TransactionSubType] = None,
        reason: Optional[str] = None,
        reference: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None
    ) -> MutationResult:
        """Return reserved stock to the available pool."""
        return await self.apply_mutation(
            MutationKind.RELEASE, item_id, actor,
            quantity=quantity, sub_type=sub_type, reason=reason,
            reference=reference, customer_id=customer_id
        )

    async def delete_item(self, item_id: uuid.UUID, actor: uuid.UUID) -> MutationResult:
        """Zero out an item's stock with a final ledger entry and remove it."""
        return await self.apply_mutation(MutationKind.DELETE, item_id, actor)

    async def apply_mutation(
        self,
        kind: MutationKind,
        item_id: Optional[uuid.UUID],
        actor: uuid.UUID,
        **params
    ) -> MutationResult:
        """
        Run one mutation as a single unit of work and publish the result.

        Args:
            kind: Which mutation to apply
            item_id: Target item, None for CREATE
            actor: User performing the mutation
            **params: Arguments of the mutation kind

        Raises:
            NotFoundError, DuplicateKeyError, ValidationFailedError,
            InvalidQuantityError, InvalidSubTypeError, ConcurrencyConflictError
        """
        if actor is None:
            raise ValidationFailedError("An actor is required for every mutation")

        kind = MutationKind(kind)
        handler = self._handlers[kind]
        lock_key = f"sku:{params['data'].sku}" if item_id is None else str(item_id)

        async with self._lock_for(lock_key):
            result = await self._run_with_retry(handler, item_id, actor, params)

        txn = result.transaction
        logger.info(
            f"[LEDGER] {kind.value} sku={result.item.sku} on_hand={result.item.qty_on_hand} "
            f"reserved={result.item.qty_reserved} "
            f"txn={txn.transaction_id if txn is not None else '-'}"
        )
        self._publish(EVENT_KINDS.get(kind, "updated"), result.item)
        return result

    # ------------------------------------------------------------------
    # Unit-of-work plumbing
    # ------------------------------------------------------------------

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _run_with_retry(self, handler, item_id, actor, params) -> MutationResult:
        collided_id = None
        for attempt in range(1, self.max_retries + 1):
            session = None
            try:
                async with self.db.session() as session:
                    return await handler(session, item_id, actor, **params)
            except StaleDataError:
                collided_id = None
                logger.warning(
                    f"[LEDGER] Item {item_id} changed concurrently "
                    f"(attempt {attempt}/{self.max_retries})"
                )
            except IntegrityError as exc:
                # Another writer committed the same transaction id after our check
                if not is_transaction_id_collision(exc):
                    raise
                collided_id = session.info.get(PENDING_TRANSACTION_ID) if session is not None else None
                logger.warning(
                    f"[LEDGER] Transaction id {collided_id} taken concurrently "
                    f"(attempt {attempt}/{self.max_retries})"
                )
        if collided_id is not None:
            raise DuplicateKeyError("Transaction", "transaction_id", collided_id)
        raise ConcurrencyConflictError(item_id, self.max_retries)

    def _publish(self, event_kind: str, item: InventoryItem) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.publish(event_kind, item_snapshot(item))
        except Exception as exc:
            logger.error(f"[LEDGER] Failed to publish {event_kind} for {item.sku}: {exc}", exc_info=True)

    async def _load_item(self, session: AsyncSession, item_id: uuid.UUID) -> InventoryItem:
        result = await session.execute(
            select(InventoryItem).where(InventoryItem.id == item_id).with_for_update()
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        return item

    async def _check_references(
        self,
        session: AsyncSession,
        category_id: Optional[uuid.UUID] = None,
        supplier_id: Optional[uuid.UUID] = None
    ) -> None:
        errors = []
        if category_id is not None and await session.get(Category, category_id) is None:
            errors.append({"field": "category_id", "message": f"Unknown category '{category_id}'"})
        if supplier_id is not None and await session.get(Supplier, supplier_id) is None:
            errors.append({"field": "supplier_id", "message": f"Unknown supplier '{supplier_id}'"})
        if errors:
            raise ValidationFailedError("Item references unknown records", errors)

    @staticmethod
    def _check_quantities(item: InventoryItem, on_hand: int, reserved: int) -> None:
        if on_hand < 0:
            raise InvalidQuantityError(
                f"On-hand stock of {item.sku} cannot go below zero",
                sku=item.sku, requested_on_hand=on_hand, qty_on_hand=item.qty_on_hand
            )
        if reserved < 0:
            raise InvalidQuantityError(
                f"Reserved stock of {item.sku} cannot go below zero",
                sku=item.sku, requested_reserved=reserved, qty_reserved=item.qty_reserved
            )
        if reserved > on_hand:
            raise InvalidQuantityError(
                f"Reserved stock of {item.sku} cannot exceed on-hand stock",
                sku=item.sku, requested_on_hand=on_hand, requested_reserved=reserved
            )

    # ------------------------------------------------------------------
    # Mutation handlers, each running inside one session
    # ------------------------------------------------------------------

    async def _create(self, session, item_id, actor, data: ItemCreate) -> MutationResult:
        taken = await session.scalar(
            select(exists().where(InventoryItem.sku == data.sku))
        )
        if taken:
            raise DuplicateKeyError("InventoryItem", "sku", data.sku)
        await self._check_references(session, data.category_id, data.supplier_id)

        values = data.model_dump()
        values["item_type"] = data.item_type.value
        item = InventoryItem(id=uuid.uuid4(), created_by=actor, updated_by=actor, **values)
        self._check_quantities(item, item.qty_on_hand, item.qty_reserved)
        item.recompute_available()

        session.add(item)
        try:
            await session.flush()
        except IntegrityError:
            raise DuplicateKeyError("InventoryItem", "sku", data.sku)

        transaction = await self.recorder.record(
            session, item,
            TransactionType.IN, TransactionSubType.PRODUCTION,
            quantity=item.qty_on_hand,
            unit_cost=item.unit_cost,
            reason=INITIAL_STOCK,
            actor=actor,
        )
        await self.evaluator.reconcile(session, item)
        return MutationResult(item, transaction)

    async def _update(self, session, item_id, actor, patch: ItemUpdate) -> MutationResult:
        item = await self._load_item(session, item_id)

        changes = patch.model_dump(exclude_unset=True)
        changes.pop("qty_available", None)
        target = changes.pop("qty_on_hand", None)
        reason = changes.pop("reason", None)

        await self._check_references(
            session,
            changes.get("category_id"),
            changes.get("supplier_id")
        )
        if changes.get("item_type") is not None:
            changes["item_type"] = changes["item_type"].value
        for field, value in changes.items():
            if value is None and field != "supplier_id":
                continue
            setattr(item, field, value)
        item.updated_by = actor

        transaction = None
        if target is not None:
            transaction = await self._apply_count(session, item, target, actor, reason, None)
        else:
            item.recompute_available()

        await self.evaluator.reconcile(session, item)
        return MutationResult(item, transaction)

    async def _set_quantity(
        self, session, item_id, actor, new_quantity: int,
        reason: Optional[str] = None, reference: Optional[str] = None
    ) -> MutationResult:
        item = await self._load_item(session, item_id)
        item.updated_by = actor
        transaction = await self._apply_count(session, item, new_quantity, actor, reason, reference)
        await self.evaluator.reconcile(session, item)
        return MutationResult(item, transaction)

    async def _apply_count(
        self,
        session: AsyncSession,
        item: InventoryItem,
        target: int,
        actor: uuid.UUID,
        reason: Optional[str],
        reference: Optional[str]
    ) -> Optional[InventoryTransaction]:
        """Move on-hand stock to ``target``, recording IN or OUT for the difference."""
        self._check_quantities(item, target, item.qty_reserved)
        delta = target - item.qty_on_hand
        if delta == 0:
            item.recompute_available()
            return None

        item.qty_on_hand = target
        item.recompute_available()
        if delta > 0:
            ledger_type, sub_type = TransactionType.IN, TransactionSubType.PRODUCTION
        else:
            ledger_type, sub_type = TransactionType.OUT, TransactionSubType.CONSUMPTION

        return await self.recorder.record(
            session, item, ledger_type, sub_type,
            quantity=abs(delta),
            unit_cost=None,
            reason=reason or MANUAL_ADJUSTMENT,
            actor=actor,
            reference=reference,
        )

    async def _adjust_quantity(
        self, session, item_id, actor, delta: int,
        ledger_type: Optional[TransactionType] = None,
        sub_type: Optional[TransactionSubType] = None,
        reason: Optional[str] = None,
        unit_cost: Optional[Decimal] = None,
        reference: Optional[str] = None,
        extra: Optional[dict] = None
    ) -> MutationResult:
        if delta == 0:
            raise ValidationFailedError("A stock movement needs a non-zero quantity")

        if ledger_type is None:
            ledger_type = TransactionType.IN if delta > 0 else TransactionType.OUT
        ledger_type = TransactionType(ledger_type)
        if ledger_type not in (TransactionType.IN, TransactionType.OUT, TransactionType.ADJUST):
            raise ValidationFailedError(
                f"{ledger_type.value} is not a stock movement type; use IN, OUT or ADJUST"
            )
        if ledger_type == TransactionType.IN and delta < 0:
            raise ValidationFailedError("IN movements must add stock")
        if ledger_type == TransactionType.OUT and delta > 0:
            raise ValidationFailedError("OUT movements must remove stock")
        ledger_type, sub_type = validate_sub_type(
            ledger_type, sub_type or DEFAULT_SUB_TYPES[ledger_type]
        )

        item = await self._load_item(session, item_id)
        new_on_hand = item.qty_on_hand + delta
        self._check_quantities(item, new_on_hand, item.qty_reserved)

        item.qty_on_hand = new_on_hand
        item.recompute_available()
        item.updated_by = actor

        transaction = await self.recorder.record(
            session, item, ledger_type, sub_type,
            quantity=delta if ledger_type == TransactionType.ADJUST else abs(delta),
            unit_cost=unit_cost,
            reason=reason or MANUAL_ADJUSTMENT,
            actor=actor,
            reference=reference,
            **(extra or {})
        )
        await self.evaluator.reconcile(session, item)
        return MutationResult(item, transaction)

    async def _reserve(self, session, item_id, actor, **params) -> MutationResult:
        return await self._move_reserved(session, item_id, actor, TransactionType.RESERVE, **params)

    async def _release(self, session, item_id, actor, **params) -> MutationResult:
        return await self._move_reserved(session, item_id, actor, TransactionType.UNRESERVE, **params)

    async def _move_reserved(
        self, session, item_id, actor, ledger_type: TransactionType,
        quantity: int,
        sub_type: Optional[TransactionSubType] = None,
        reason: Optional[str] = None,
        reference: Optional[str] = None,
        customer_id: Optional[uuid.UUID] = None
    ) -> MutationResult:
        if quantity <= 0:
            raise ValidationFailedError("Reservation quantity must be positive")
        ledger_type, sub_type = validate_sub_type(
            ledger_type, sub_type or DEFAULT_SUB_TYPES[ledger_type]
        )

        item = await self._load_item(session, item_id)
        sign = 1 if ledger_type == TransactionType.RESERVE else -1
        new_reserved = item.qty_reserved + sign * quantity
        self._check_quantities(item, item.qty_on_hand, new_reserved)

        item.qty_reserved = new_reserved
        item.recompute_available()
        item.updated_by = actor

        default_reason = "Stock reserved" if sign > 0 else "Reservation released"
        transaction = await self.recorder.record(
            session, item, ledger_type, sub_type,
            quantity=quantity,
            unit_cost=None,
            reason=reason or default_reason,
            actor=actor,
            reference=reference,
            customer_id=customer_id,
        )
        return MutationResult(item, transaction)

    async def _delete(self, session, item_id, actor) -> MutationResult:
        item = await self._load_item(session, item_id)
        removed = item.qty_on_hand

        item.qty_on_hand = 0
        item.qty_reserved = 0
        item.recompute_available()
        item.updated_by = actor

        transaction = await self.recorder.record(
            session, item,
            TransactionType.OUT, TransactionSubType.CONSUMPTION,
            quantity=removed,
            unit_cost=None,
            reason=ITEM_DELETED,
            actor=actor,
        )
        await session.delete(item)
        return MutationResult(item, transaction)
