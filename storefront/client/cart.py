"""Client-side cart for a single session.

One ``CartStore`` is created per session and handed to whatever needs it
(screens, the checkout flow). It is never persisted.
"""
import uuid
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EntryId = Union[str, int]
Listener = Callable[["CartStore"], None]


class Product(BaseModel):
    id: int
    name: str
    price: Decimal = Field(ge=0)
    image: str = ""


class CartItem(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    cart_item_id: str
    product_id: int
    name: str
    price: Decimal
    quantity: int = Field(ge=1)
    image: str = ""

    def line_total(self) -> Decimal:
        return self.price * self.quantity


def new_cart_item_id(product_id: int) -> str:
    return f"{product_id}-{uuid.uuid4().hex[:12]}"


class CartStore:
    def __init__(self):
        self._items: List[CartItem] = []
        self._listeners: List[Listener] = []

    # --- reads ---

    @property
    def items(self) -> List[CartItem]:
        return [it.model_copy() for it in self._items]

    def count(self) -> int:
        return sum(it.quantity for it in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def total(self) -> Decimal:
        return sum((it.line_total() for it in self._items), Decimal("0"))

    def find(self, entry_id: EntryId) -> Optional[CartItem]:
        # entries are addressable by cart entry id or by product id
        for it in self._items:
            if it.cart_item_id == entry_id or it.product_id == entry_id:
                return it
        return None

    def to_order_items(self) -> List[Dict]:
        return [
            {
                "productId": it.product_id,
                "name": it.name,
                "image": it.image,
                "price": float(it.price),
                "quantity": it.quantity,
            }
            for it in self._items
        ]

    # --- mutations ---

    def add_item(self, product: Product, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        existing = next((it for it in self._items if it.product_id == product.id), None)
        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(
                cart_item_id=new_cart_item_id(product.id),
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=quantity,
                image=product.image,
            )
            self._items.append(item)
        self._changed()
        return item.model_copy()

    def increase_quantity(self, entry_id: EntryId) -> None:
        item = self.find(entry_id)
        if not item:
            return
        item.quantity += 1
        self._changed()

    def decrease_quantity(self, entry_id: EntryId) -> None:
        item = self.find(entry_id)
        if not item or item.quantity <= 1:
            return
        item.quantity -= 1
        self._changed()

    def remove_item(self, entry_id: EntryId) -> None:
        item = self.find(entry_id)
        if not item:
            return
        self._items.remove(item)
        self._changed()

    def clear(self) -> None:
        self._items = []
        self._changed()

    # --- subscribers ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)
