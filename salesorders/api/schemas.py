from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator

from salesorders.domain.currencies import is_valid_currency, normalize_currency
from salesorders.domain.errors import InvalidPrice
from salesorders.domain.orders.pricing import MAX_QUANTITY, parse_price

MAX_URL_LENGTH = 255


def _check_currency(value: str) -> str:
    value = normalize_currency(value)
    if not is_valid_currency(value):
        raise ValueError("not a valid ISO 4217 currency code")
    return value


def _price_to_cents(value: str) -> int:
    try:
        return parse_price(value)
    except InvalidPrice as exc:
        raise ValueError(exc.message) from exc


def _check_price(value: str) -> str:
    _price_to_cents(value)
    return value


def _check_url_length(value: AnyHttpUrl) -> AnyHttpUrl:
    if len(str(value)) > MAX_URL_LENGTH:
        raise ValueError(f"URL must be at most {MAX_URL_LENGTH} characters")
    return value


CurrencyCode = Annotated[str, AfterValidator(_check_currency)]
DecimalPrice = Annotated[str, AfterValidator(_check_price)]
ResourceUrl = Annotated[AnyHttpUrl, AfterValidator(_check_url_length)]


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    rsin: str = Field(min_length=1, max_length=255)
    short_code: str = Field(pattern=r"^(?:\d{4}|[A-Za-z]{4})$", description="four digits or four letters")


class TaxCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2550)
    percentage: Decimal = Field(ge=0, max_digits=5, decimal_places=2, examples=["21.00"])


class OrderItemCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=2550)
    offer: ResourceUrl = Field(examples=["http://example.org/offers/1"])
    product: str | None = Field(default=None, max_length=255, description="deprecated, replaced by offer")
    quantity: int = Field(ge=0, le=MAX_QUANTITY, examples=[1])
    price: DecimalPrice = Field(description="decimal price, e.g. 50.00", examples=["50.00"])
    price_currency: CurrencyCode = Field(examples=["EUR"])
    taxes: list[str] = Field(default_factory=list, description="tax ids")

    def to_store_kwargs(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "offer": str(self.offer),
            "product": self.product,
            "quantity": self.quantity,
            "price": _price_to_cents(self.price),
            "price_currency": self.price_currency,
            "tax_ids": list(self.taxes),
        }


class OrderItemPost(OrderItemCreate):
    order: str = Field(description="order id")


class OrderItemUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=2550)
    offer: ResourceUrl | None = None
    product: str | None = Field(default=None, max_length=255)
    quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    price: DecimalPrice | None = None
    price_currency: CurrencyCode | None = None
    taxes: list[str] | None = None

    @field_validator("offer", "quantity", "price", "price_currency")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    def to_store_kwargs(self) -> dict:
        changes = self.model_dump(exclude_unset=True, exclude={"taxes"})
        if "offer" in changes:
            changes["offer"] = str(self.offer)
        if "price" in changes:
            changes["price"] = _price_to_cents(self.price)
        return {"tax_ids": self.taxes, **changes}


class OrderCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    organization: str = Field(description="organization id")
    name: str = Field(min_length=1, max_length=255, examples=["my Order"])
    description: str | None = Field(default=None, max_length=2550)
    target_organization: str = Field(min_length=1, max_length=255, description="RSIN", examples=["002851234"])
    customer: ResourceUrl | None = Field(default=None, examples=["https://example.org/people/1"])
    remark: str | None = None
    items: list[OrderItemCreate] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2550)
    target_organization: str | None = Field(default=None, min_length=1, max_length=255)
    customer: ResourceUrl | None = None
    remark: str | None = None

    @field_validator("name", "target_organization")
    @classmethod
    def _not_null(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("must not be null")
        return value

    def to_store_kwargs(self) -> dict:
        changes = self.model_dump(exclude_unset=True)
        if changes.get("customer") is not None:
            changes["customer"] = str(self.customer)
        return changes
