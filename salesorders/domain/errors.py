from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class OrderDomainError(Exception):
    message: str

    code = "order_domain_error"

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class CurrencyMismatch(OrderDomainError):
    left: str
    right: str

    code = "currency_mismatch"

    def __str__(self) -> str:
        return f"currency_mismatch: {self.left} vs {self.right} ({self.message})"


@dataclass(eq=False)
class InvalidMoney(OrderDomainError):
    code = "invalid_money"


@dataclass(eq=False)
class InvalidQuantity(OrderDomainError):
    quantity: object = None

    code = "invalid_quantity"


@dataclass(eq=False)
class InvalidPrice(OrderDomainError):
    price: object = None

    code = "invalid_price"


@dataclass(eq=False)
class InvalidTaxPercentage(OrderDomainError):
    percentage: object = None

    code = "invalid_tax_percentage"


@dataclass(eq=False)
class InvalidReference(OrderDomainError):
    reference: str = ""

    code = "invalid_reference"


@dataclass(eq=False)
class NotFound(OrderDomainError):
    object_id: str = ""

    code = "not_found"

    def __str__(self) -> str:
        return f"{self.code}: {self.object_id} ({self.message})"


@dataclass(eq=False)
class OrderNotFound(NotFound):
    code = "order_not_found"


@dataclass(eq=False)
class OrderItemNotFound(NotFound):
    code = "order_item_not_found"


@dataclass(eq=False)
class TaxNotFound(NotFound):
    code = "tax_not_found"


@dataclass(eq=False)
class OrganizationNotFound(NotFound):
    code = "organization_not_found"
