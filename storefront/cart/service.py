"""Cart engine: state holder, persistence and hydration."""
import asyncio
import json
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional

from storefront import config
from storefront.errors import ERROR_QUANTITY_INVALID
from storefront.logging import get_logger, sanitize_id_for_logging

from .actions import AddItem, CartAction, ClearCart, LoadFromStorage, RemoveItem, SetQuantity, reduce
from .models import CartState, LineItem, ProductId, json_default
from .storage import CartStorage, create_cart_storage

logger = get_logger(__name__)

Listener = Callable[[CartState], None]


class CartStatus(str, Enum):
    """Engine lifecycle. Moves forward once and never back."""
    UNINITIALIZED = "uninitialized"
    HYDRATING = "hydrating"
    READY = "ready"


def parse_cart_record(raw: str) -> tuple[LineItem, ...]:
    """
    Parse the stored cart record.

    Entries with a non-positive quantity are dropped and duplicate ids keep
    the first entry; anything else that doesn't fit the record shape makes
    the whole record invalid.

    Raises:
        ValueError: Record isn't a JSON array of line item objects
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"Saved cart must be a JSON array, got {type(data).__name__}")

    items: list[LineItem] = []
    seen: set = set()
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Saved cart entry must be an object, got {type(entry).__name__}")
        quantity = entry.get("quantity")
        if isinstance(quantity, (int, float)) and not isinstance(quantity, bool) and quantity <= 0:
            logger.warning(
                f"Dropping saved cart entry {sanitize_id_for_logging(entry.get('id'))} with quantity {quantity}"
            )
            continue
        item = LineItem.from_dict(entry)
        if item.id in seen:
            logger.warning(f"Dropping duplicate saved cart entry {sanitize_id_for_logging(item.id)}")
            continue
        seen.add(item.id)
        items.append(item)
    return tuple(items)


class CartEngine:
    """
    Owns the cart state and keeps it in sync with durable storage.

    All changes go through dispatch(). Subscribers are called synchronously
    after every change. Writes start only once hydrate() has finished, so an
    empty startup state never overwrites a saved cart.

    Usage:
        engine = CartEngine(FileCartStorage(".storefront"))
        await engine.hydrate()
        engine.add_item({"id": 1, "name": "Mug", "price": 9.99})
        engine.subtotal()  # Decimal("9.99")
    """

    def __init__(self, storage: CartStorage, storage_key: str = config.CART_STORAGE_KEY) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self._state = CartState()
        self._status = CartStatus.UNINITIALIZED
        self._listeners: list[Listener] = []
        self._hydration: Optional[asyncio.Task] = None
        self._pending: set[asyncio.Task] = set()
        self._write_lock: Optional[asyncio.Lock] = None
        self._write_lock_loop: Optional[asyncio.AbstractEventLoop] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def items(self) -> tuple[LineItem, ...]:
        return self._state.items

    @property
    def status(self) -> CartStatus:
        return self._status

    @property
    def is_ready(self) -> bool:
        return self._status is CartStatus.READY

    def subtotal(self) -> Decimal:
        """Sum of price * quantity over all items."""
        return self._state.subtotal()

    def item_count(self) -> int:
        """Total unit count."""
        return self._state.item_count()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, product: Any) -> CartState:
        """
        Add one unit of a product.

        A new product is appended with quantity 1 and all of its fields; a
        product already in the cart only gets its quantity incremented.

        Raises:
            InvalidProductError: product has no id, an invalid price, or
                fields that can't be stored as JSON
        """
        item = LineItem.from_product(product)
        return self.dispatch(AddItem(item))

    def remove_item(self, product_id: ProductId) -> CartState:
        """Remove a product; no-op when it isn't in the cart."""
        return self.dispatch(RemoveItem(product_id))

    def set_quantity(self, product_id: ProductId, quantity: int) -> CartState:
        """
        Set a product's quantity. Zero or less removes it; products not in
        the cart are ignored.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError(f"{ERROR_QUANTITY_INVALID}, got {quantity!r}")
        return self.dispatch(SetQuantity(product_id, quantity))

    def clear(self) -> CartState:
        """Empty the cart (after checkout)."""
        return self.dispatch(ClearCart())

    def dispatch(self, action: CartAction) -> CartState:
        """Apply an action, persist once ready, and notify subscribers."""
        previous = self._state
        new_state = reduce(previous, action)
        if new_state is previous:
            return previous

        self._state = new_state
        # Write before notifying: a listener may dispatch again, and its write must land last
        if self._status is CartStatus.READY:
            self._schedule_write(new_state)
        self._notify(new_state)
        return new_state

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for state changes.

        Returns:
            Callable that removes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: CartState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Cart listener {listener!r} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def hydrate(self) -> CartState:
        """
        Load the saved cart and enable writes.

        Runs once per engine; concurrent and later calls wait for the first
        run and return the current state.
        """
        if self._hydration is None:
            self._status = CartStatus.HYDRATING
            self._hydration = asyncio.ensure_future(self._hydrate())
        await self._hydration
        return self._state

    async def _hydrate(self) -> CartState:
        try:
            raw = await self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning(f"Failed to read saved cart, starting empty: {e}")
            raw = None

        corrupted = False
        if raw is not None:
            try:
                items = parse_cart_record(raw)
            except (ValueError, TypeError, RecursionError) as e:
                # JSONDecodeError and InvalidProductError are both ValueErrors;
                # RecursionError comes from deeply nested JSON
                logger.warning(f"Corrupted saved cart, starting empty: {e}")
                items = ()
                corrupted = True
            self.dispatch(LoadFromStorage(items))

        self._status = CartStatus.READY
        logger.info(
            f"Cart ready: {len(self._state.items)} products, {self._state.item_count()} units"
        )

        if corrupted:
            await self._delete_record()
        elif raw is None and not self._state.is_empty():
            # Added before hydration finished and nothing was saved yet
            self._schedule_write(self._state)
        return self._state

    async def _delete_record(self) -> None:
        try:
            await self.storage.delete(self.storage_key)
        except Exception as e:
            logger.warning(f"Failed to delete corrupted saved cart: {e}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _schedule_write(self, state: CartState) -> None:
        try:
            payload = json.dumps(state.to_records(), default=json_default)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize cart, not saved: {e}")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called outside an event loop: finish the write before returning
            asyncio.run(self._write(payload))
            return

        task = loop.create_task(self._write(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _get_write_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._write_lock is None or self._write_lock_loop is not loop:
            self._write_lock = asyncio.Lock()
            self._write_lock_loop = loop
        return self._write_lock

    async def _write(self, payload: str) -> None:
        # Lock waiters are FIFO, so writes land in mutation order
        async with self._get_write_lock():
            try:
                await self.storage.set(self.storage_key, payload)
            except Exception as e:
                logger.warning(f"Failed to save cart: {e}")

    async def flush(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def create_cart_engine(
    storage: Optional[CartStorage] = None,
    backend: Optional[str] = None,
) -> CartEngine:
    """
    Build a cart engine on the configured storage backend.

    The engine still needs `await engine.hydrate()` before it saves anything.
    """
    return CartEngine(storage if storage is not None else create_cart_storage(backend))
