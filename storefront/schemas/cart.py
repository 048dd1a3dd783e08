from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.catalog import ImageRef, LinkedProduct
from storefront.schemas.fulfillment import FulfillmentType, normalize_method_type
from storefront.schemas.promotions import PromotionState


class SubproductSelection(BaseModel):
    id: str = Field(min_length=1)
    name: str
    names: dict[str, str] = Field(default_factory=dict)
    price: Decimal = Decimal("0")
    quantity: int = Field(default=1, ge=1)
    linked_product: Optional[LinkedProduct] = None
    image: Optional[ImageRef] = None
    tax_rate: Optional[Decimal] = None
    tax_rate_dine_in: Optional[Decimal] = None


class LineItem(BaseModel):
    product_id: str = Field(min_length=1)
    product_name: str = ""
    price: Optional[Decimal] = None
    quantity: int = Field(default=1, ge=1)
    note: Optional[str] = None
    subproducts: list[SubproductSelection] = Field(default_factory=list)
    image: Optional[ImageRef] = None
    has_options: bool = False
    tax_rate: Optional[Decimal] = None
    tax_rate_dine_in: Optional[Decimal] = None


class LineItemUpdate(BaseModel):
    product_name: Optional[str] = None
    price: Optional[Decimal] = None
    note: Optional[str] = None
    subproducts: Optional[list[SubproductSelection]] = None
    image: Optional[ImageRef] = None
    has_options: Optional[bool] = None
    tax_rate: Optional[Decimal] = None
    tax_rate_dine_in: Optional[Decimal] = None


class CartState(BaseModel):
    """Estado serializado do carrinho de uma sessão."""

    version: int = 1
    items: list[LineItem] = Field(default_factory=list)
    fulfillment_method: Optional[FulfillmentType] = None
    promotion: PromotionState = Field(default_factory=PromotionState)

    @field_validator("fulfillment_method", mode="before")
    @classmethod
    def normalize_method(cls, value: object) -> object:
        return normalize_method_type(value)


class CartLineResponse(LineItem):
    signature: str
    line_total: Decimal


class CartResponse(BaseModel):
    items: list[CartLineResponse]
    item_count: int
    subtotal: Decimal
    fulfillment_method: Optional[FulfillmentType] = None
    promotion: PromotionState
