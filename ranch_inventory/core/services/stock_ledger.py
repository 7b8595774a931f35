"""
Stock ledger service.

Single writer for inventory quantities. Every stock change goes through
apply_movement, reserve or release, which run a validate, compute, persist
pipeline under a per-item lock and record an append-only movement.

Alert checks run after every committed write, once the lock is released.
Automatic reorders follow movements only: reservations never change
current stock.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ranch_inventory.config import get_logger, get_settings
from ranch_inventory.config.settings import Settings
from ranch_inventory.core.entities.inventory import (
    InventoryItem,
    MovementRequest,
    MovementType,
    StockMovement,
    utcnow,
)
from ranch_inventory.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientAvailableStockError,
    InsufficientStockError,
    InventoryItemNotFoundError,
    InvariantViolationError,
    OverReleaseError,
    ReorderCreationError,
    ValidationError,
)
from ranch_inventory.core.interfaces.inventory_store import IInventoryStore
from ranch_inventory.core.interfaces.notification import IClock
from ranch_inventory.core.services.status_classifier import classify_item

logger = get_logger(__name__)

COST_PRECISION = Decimal("0.000001")


def weighted_average_cost(
    current_stock: Decimal,
    current_cost: Decimal,
    quantity: Decimal,
    purchase_cost: Decimal,
) -> Decimal:
    """Blend a purchase into the running unit cost."""
    new_quantity = current_stock + quantity
    if new_quantity <= 0:
        return purchase_cost
    blended = (current_stock * current_cost + quantity * purchase_cost) / new_quantity
    return blended.quantize(COST_PRECISION, rounding=ROUND_HALF_UP)


def ensure_invariants(item: InventoryItem) -> None:
    """
    Reject item states the ledger must never persist.

    Raises:
        InvariantViolationError: naming the violated rule
    """
    if item.maximum_stock is not None and item.minimum_stock >= item.maximum_stock:
        raise InvariantViolationError(
            "minimum_below_maximum",
            f"Minimum stock {item.minimum_stock} must be lower than "
            f"maximum stock {item.maximum_stock}",
            item_id=item.id,
        )

    if (
        item.expiration_date is not None
        and item.manufacturing_date is not None
        and item.expiration_date <= item.manufacturing_date
    ):
        raise InvariantViolationError(
            "expiration_after_manufacturing",
            "Expiration date must be later than manufacturing date",
            item_id=item.id,
        )

    for field in ("minimum_stock", "reorder_point", "reorder_quantity", "unit_cost"):
        if getattr(item, field) < 0:
            raise InvariantViolationError(
                f"non_negative_{field}",
                f"{field} cannot be negative",
                item_id=item.id,
            )

    if item.reserved_stock < 0:
        raise InvariantViolationError(
            "non_negative_reserved_stock",
            "Reserved stock cannot be negative",
            item_id=item.id,
        )

    if not item.allow_negative_stock:
        if item.current_stock < 0:
            raise InvariantViolationError(
                "non_negative_stock",
                f"Current stock {item.current_stock} cannot be negative",
                item_id=item.id,
            )
        if item.reserved_stock > item.current_stock:
            raise InvariantViolationError(
                "reserved_within_current",
                f"Reserved stock {item.reserved_stock} exceeds "
                f"current stock {item.current_stock}",
                item_id=item.id,
            )


def _log_conflict_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "stock_write_conflict_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


class StockLedgerService:
    """
    Applies stock movements and reservations to inventory items.

    Writes to the same item are serialized by an in-process lock; writers
    in other processes are caught by the store's version check and the
    whole read-validate-write is retried.
    """

    def __init__(
        self,
        inventory_store: IInventoryStore,
        alert_engine: Any | None = None,
        auto_reorder: Any | None = None,
        clock: IClock | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the ledger.

        Args:
            inventory_store: Item and movement persistence
            alert_engine: Optional AlertEngineService run after each write
            auto_reorder: Optional AutoReorderService run after each movement
            clock: Time source (UTC now when omitted)
            settings: Application settings
        """
        self._store = inventory_store
        self._alert_engine = alert_engine
        self._auto_reorder = auto_reorder
        self._clock = clock
        self._settings = settings or get_settings()
        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = {}

    def _now(self):
        return self._clock.now() if self._clock else utcnow()

    @asynccontextmanager
    async def _item_lock(self, item_id: int) -> AsyncIterator[None]:
        # Dropped once the last holder or waiter leaves
        lock = self._locks.setdefault(item_id, asyncio.Lock())
        self._lock_users[item_id] = self._lock_users.get(item_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[item_id] -= 1
            if not self._lock_users[item_id]:
                del self._lock_users[item_id]
                del self._locks[item_id]

    def _get_retry_decorator(self) -> Any:
        inventory = self._settings.inventory
        return retry(
            stop=stop_after_attempt(inventory.conflict_max_retries),
            wait=wait_exponential(
                multiplier=inventory.conflict_retry_delay,
                min=inventory.conflict_retry_delay,
                max=inventory.conflict_retry_delay * 8,
            ),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            before_sleep=_log_conflict_retry,
            reraise=True,
        )

    async def _serialized(
        self,
        item_id: int,
        operation: Callable[[], Awaitable[InventoryItem]],
    ) -> InventoryItem:
        async with self._item_lock(item_id):
            return await self._get_retry_decorator()(operation)()

    async def _load(self, item_id: int) -> InventoryItem:
        item = await self._store.get_item(item_id)
        if item is None:
            raise InventoryItemNotFoundError(item_id)
        return item

    def _classified(self, item: InventoryItem, now) -> InventoryItem:
        item.status = classify_item(item, now, self._settings.inventory.overstock_factor)
        return item

    async def register_item(self, item: InventoryItem, user_id: str) -> InventoryItem:
        """
        Create a new inventory item.

        Status is derived from the initial quantities and invariants are
        checked before the insert. Duplicate item codes raise
        DuplicateItemCodeError from the store.
        """
        now = self._now()
        draft = item.model_copy(
            update={
                "id": None,
                "version": 0,
                "created_by": user_id,
                "updated_by": user_id,
                "created_at": now,
                "updated_at": now,
            }
        )
        ensure_invariants(self._classified(draft, now))
        created = await self._store.create_item(draft)

        logger.info(
            "inventory_item_registered",
            item_id=created.id,
            item_code=created.item_code,
            status=created.status.value,
        )
        return created

    async def apply_movement(
        self,
        item_id: int,
        request: MovementRequest,
        user_id: str,
    ) -> InventoryItem:
        """
        Apply a stock movement and return the updated item.

        Raises:
            ValidationError: RESERVATION/RELEASE passed here
            InventoryItemNotFoundError: unknown item
            InsufficientStockError: outbound movement beyond allowed stock
            InvariantViolationError: resulting state is invalid
            ReorderCreationError: automatic reorder failed after commit
        """
        if request.movement_type.is_reservation:
            raise ValidationError(
                "movement_type",
                "Reservations are recorded through reserve and release",
                request.movement_type.value,
            )

        async def operation() -> InventoryItem:
            item = await self._load(item_id)
            now = self._now()

            inbound = request.movement_type.is_inbound
            signed = request.quantity if inbound else -request.quantity
            new_quantity = item.current_stock + signed

            guarded = (
                not inbound
                and request.movement_type != MovementType.ADJUSTMENT
                and not item.allow_negative_stock
            )
            if guarded and new_quantity < 0:
                raise InsufficientStockError(item_id, request.quantity, item.current_stock)
            if guarded and new_quantity < item.reserved_stock:
                raise InsufficientStockError(item_id, request.quantity, item.available_stock)

            unit_cost = item.unit_cost
            if request.movement_type == MovementType.PURCHASE and request.unit_cost is not None:
                unit_cost = weighted_average_cost(
                    item.current_stock, item.unit_cost, request.quantity, request.unit_cost
                )

            updated = item.model_copy(
                update={
                    "current_stock": new_quantity,
                    "unit_cost": unit_cost,
                    "last_movement_date": now,
                    "updated_by": user_id,
                    "updated_at": now,
                }
            )
            ensure_invariants(self._classified(updated, now))

            movement_cost = (
                request.unit_cost if request.unit_cost is not None else item.unit_cost
            )
            movement = StockMovement(
                inventory_item_id=item_id,
                movement_type=request.movement_type,
                quantity=signed,
                unit_cost=movement_cost,
                total_cost=request.quantity * movement_cost,
                balance_after=new_quantity,
                performed_by=user_id,
                reason=request.reason,
                reference=request.reference,
                notes=request.notes,
                movement_date=now,
                created_at=now,
            )
            saved, _ = await self._store.commit_movement(updated, movement)

            logger.info(
                "stock_movement_applied",
                item_id=item_id,
                movement_type=request.movement_type.value,
                quantity=str(signed),
                previous_stock=str(item.current_stock),
                new_stock=str(new_quantity),
                status=saved.status.value,
            )
            return saved

        item = await self._serialized(item_id, operation)
        await self._after_write(item, user_id, reorder=True)
        return item

    async def reserve(
        self,
        item_id: int,
        quantity: Decimal,
        reference: str | None,
        user_id: str,
    ) -> InventoryItem:
        """Hold available stock for a pending order."""
        if quantity <= 0:
            raise ValidationError("quantity", "Quantity must be positive", str(quantity))

        async def operation() -> InventoryItem:
            item = await self._load(item_id)
            if quantity > item.available_stock:
                raise InsufficientAvailableStockError(item_id, quantity, item.available_stock)
            return await self._commit_reservation(
                item, MovementType.RESERVATION, quantity, reference, user_id
            )

        item = await self._serialized(item_id, operation)
        await self._after_write(item, user_id)
        return item

    async def release(
        self,
        item_id: int,
        quantity: Decimal,
        reference: str | None,
        user_id: str,
    ) -> InventoryItem:
        """Return previously reserved stock to availability."""
        if quantity <= 0:
            raise ValidationError("quantity", "Quantity must be positive", str(quantity))

        async def operation() -> InventoryItem:
            item = await self._load(item_id)
            if quantity > item.reserved_stock:
                raise OverReleaseError(item_id, quantity, item.reserved_stock)
            return await self._commit_reservation(
                item, MovementType.RELEASE, quantity, reference, user_id
            )

        item = await self._serialized(item_id, operation)
        await self._after_write(item, user_id)
        return item

    async def _commit_reservation(
        self,
        item: InventoryItem,
        movement_type: MovementType,
        quantity: Decimal,
        reference: str | None,
        user_id: str,
    ) -> InventoryItem:
        now = self._now()
        signed = quantity if movement_type == MovementType.RELEASE else -quantity

        updated = item.model_copy(
            update={
                "reserved_stock": item.reserved_stock - signed,
                "updated_by": user_id,
                "updated_at": now,
            }
        )
        ensure_invariants(self._classified(updated, now))

        movement = StockMovement(
            inventory_item_id=item.id,
            movement_type=movement_type,
            quantity=signed,
            unit_cost=item.unit_cost,
            total_cost=quantity * item.unit_cost,
            balance_after=updated.available_stock,
            performed_by=user_id,
            reason="Stock reserved" if signed < 0 else "Reservation released",
            reference=reference,
            movement_date=now,
            created_at=now,
        )
        saved, _ = await self._store.commit_movement(updated, movement)

        logger.info(
            "stock_reservation_changed",
            item_id=item.id,
            movement_type=movement_type.value,
            quantity=str(quantity),
            reserved_stock=str(saved.reserved_stock),
            available_stock=str(saved.available_stock),
            reference=reference,
        )
        return saved

    async def _after_write(
        self, item: InventoryItem, user_id: str, reorder: bool = False
    ) -> None:
        if self._alert_engine is not None:
            try:
                await self._alert_engine.check_item(item)
            except Exception:
                logger.warning("post_write_alert_check_failed", item_id=item.id, exc_info=True)

        if reorder and self._auto_reorder is not None:
            try:
                await self._auto_reorder.check_item(item, user_id)
            except ReorderCreationError as e:
                e.item = item
                raise
