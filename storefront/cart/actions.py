"""
Cart actions and the reducer.

Every cart change is one of the actions below. reduce() maps an action to a
pure transition function and returns the next CartState. A transition that
changes nothing returns the state it was given, so callers can compare by
identity.
"""
from dataclasses import dataclass
from typing import Callable, Union

from .models import CartState, LineItem, ProductId


@dataclass(frozen=True)
class AddItem:
    item: LineItem


@dataclass(frozen=True)
class RemoveItem:
    id: ProductId


@dataclass(frozen=True)
class SetQuantity:
    id: ProductId
    quantity: int


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class LoadFromStorage:
    items: tuple[LineItem, ...]


CartAction = Union[AddItem, RemoveItem, SetQuantity, ClearCart, LoadFromStorage]


def _add_item(state: CartState, action: AddItem) -> CartState:
    existing = state.get_item(action.item.id)
    if existing is None:
        return CartState(items=state.items + (action.item.with_quantity(1),))
    # Stored snapshot wins: only the quantity moves on repeat adds
    return CartState(
        items=tuple(
            item.with_quantity(item.quantity + 1) if item.id == action.item.id else item
            for item in state.items
        )
    )


def _remove_item(state: CartState, action: RemoveItem) -> CartState:
    if state.get_item(action.id) is None:
        return state
    return CartState(items=tuple(item for item in state.items if item.id != action.id))


def _set_quantity(state: CartState, action: SetQuantity) -> CartState:
    if action.quantity <= 0:
        return _remove_item(state, RemoveItem(action.id))
    existing = state.get_item(action.id)
    if existing is None or existing.quantity == action.quantity:
        return state
    return CartState(
        items=tuple(
            item.with_quantity(action.quantity) if item.id == action.id else item
            for item in state.items
        )
    )


def _clear(state: CartState, action: ClearCart) -> CartState:
    if state.is_empty():
        return state
    return CartState()


def _load(state: CartState, action: LoadFromStorage) -> CartState:
    return CartState(items=action.items)


_TRANSITIONS: dict[type, Callable[[CartState, CartAction], CartState]] = {
    AddItem: _add_item,
    RemoveItem: _remove_item,
    SetQuantity: _set_quantity,
    ClearCart: _clear,
    LoadFromStorage: _load,
}


def reduce(state: CartState, action: CartAction) -> CartState:
    """Apply one action to a cart state."""
    transition = _TRANSITIONS.get(type(action))
    if transition is None:
        raise TypeError(f"Unknown cart action: {type(action).__name__}")
    return transition(state, action)
