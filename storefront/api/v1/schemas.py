from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from storefront.core.enums import OrderStatus, PaymentMethod

# --- auth ---

class RegisterPayload(BaseModel):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)

class LoginPayload(BaseModel):
    email: EmailStr
    password: str

class UserRead(BaseModel):
    id: int
    username: str
    email: EmailStr
    role: str
    model_config = ConfigDict(from_attributes=True)

class RegisterResponse(BaseModel):
    message: str
    data: UserRead

class LoginResponse(BaseModel):
    token: str
    data: UserRead
    message: str

# --- orders ---

MAX_DECIMAL_PLACES = 2

def at_most_cents(value: Optional[float], field: str) -> Optional[float]:
    # amounts are stored in NUMERIC(12, 2); finer values would be rounded silently
    if value is not None and Decimal(str(value)).as_tuple().exponent < -MAX_DECIMAL_PLACES:
        raise ValueError(f"{field} must have at most {MAX_DECIMAL_PLACES} decimal places")
    return value

class OrderItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)
    product_id: int = Field(alias="productId")
    name: str = Field(min_length=1)
    image: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)

    @field_validator("price")
    @classmethod
    def price_in_cents(cls, v):
        return at_most_cents(v, "price")

class ShippingAddress(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: Optional[str] = ""
    zip: str = Field(min_length=1)
    country: str = Field(min_length=1)

class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    items: Optional[List[OrderItemIn]] = None
    amount: Optional[float] = None
    address: Optional[ShippingAddress] = None
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH, alias="paymentMethod")

    @field_validator("amount")
    @classmethod
    def amount_in_cents(cls, v):
        return at_most_cents(v, "amount")

    @model_validator(mode="after")
    def check_required(self):
        if not self.items:
            raise ValueError("Order must contain items")
        if self.amount is None or self.amount <= 0:
            raise ValueError("Invalid order amount")
        if self.address is None:
            raise ValueError("Shipping address is required")
        return self

    def items_total(self) -> float:
        return round(sum(it.price * it.quantity for it in self.items or []), 2)

class StatusUpdate(BaseModel):
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def known_status(cls, v):
        if not isinstance(v, str) or v not in {s.value for s in OrderStatus}:
            raise ValueError("Invalid status value")
        return v

class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    product_id: int = Field(alias="productId")
    name: str
    image: str
    price: float
    quantity: int

class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: int = Field(alias="_id")
    user_id: int = Field(alias="userId")
    items: List[OrderItemOut] = []
    amount: float
    address: dict
    payment_method: PaymentMethod = Field(alias="paymentMethod")
    status: OrderStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

class OrderEnvelope(BaseModel):
    success: bool = True
    message: str = ""
    order: OrderOut

class OrderList(BaseModel):
    message: str
    orders: List[OrderOut]

class MessageOut(BaseModel):
    message: str
