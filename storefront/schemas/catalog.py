from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ImageRef(BaseModel):
    url: str
    alt: Optional[str] = None


class LinkedProduct(BaseModel):
    """Produto completo reaproveitado como opção dentro de um popup."""

    id: str = Field(min_length=1)
    name: str
    names: dict[str, str] = Field(default_factory=dict)
    price: Optional[Decimal] = None
    image: Optional[ImageRef] = None
    tax_rate: Optional[Decimal] = None
    tax_rate_dine_in: Optional[Decimal] = None


class Option(BaseModel):
    id: str = Field(min_length=1)
    name: str
    names: dict[str, str] = Field(default_factory=dict)
    price: Decimal = Decimal("0")
    linked_product: Optional[LinkedProduct] = None
    image: Optional[ImageRef] = None
    tax_rate: Optional[Decimal] = None
    tax_rate_dine_in: Optional[Decimal] = None

    @property
    def effective_id(self) -> str:
        if self.linked_product is not None:
            return self.linked_product.id
        return self.id

    @property
    def effective_name(self) -> str:
        if self.linked_product is not None:
            return self.linked_product.name
        return self.name

    @property
    def effective_price(self) -> Decimal:
        if self.linked_product is not None:
            return self.linked_product.price or Decimal("0")
        return self.price


class OptionGroup(BaseModel):
    """Popup de personalização (ex.: "Escolha o molho").

    ``maximum == 0`` significa sem limite superior.
    """

    id: str = Field(min_length=1)
    title: str
    multiselect: bool = False
    minimum: int = Field(default=0, ge=0)
    maximum: int = Field(default=0, ge=0)
    allow_multiple_times: bool = False
    options: list[Option] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_bounds(self) -> "OptionGroup":
        if self.maximum and self.minimum > self.maximum:
            raise ValueError("minimum não pode ser maior que maximum")
        effective_max = self.effective_maximum
        if effective_max is not None and self.minimum > effective_max:
            raise ValueError("minimum maior que o máximo efetivo do popup")
        return self

    @property
    def effective_maximum(self) -> int | None:
        if not self.multiselect and not self.allow_multiple_times:
            return 1
        return self.maximum or None

    def find_option(self, option_id: str) -> Option | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class ProductPopupRef(BaseModel):
    order: int = 0
    popup: Optional[OptionGroup] = None


class ProductDefinition(BaseModel):
    id: str = Field(min_length=1)
    name: str
    names: dict[str, str] = Field(default_factory=dict)
    description: Optional[str] = None
    price: Optional[Decimal] = None
    popups: list[ProductPopupRef] = Field(default_factory=list)
    image: Optional[ImageRef] = None
    tax_rate: Optional[Decimal] = None
    tax_rate_dine_in: Optional[Decimal] = None

    def option_groups(self) -> list[OptionGroup]:
        """Popups utilizáveis, ordenados por ``order`` (nulos e vazios descartados)."""
        refs = [ref for ref in self.popups if ref.popup is not None and ref.popup.options]
        refs.sort(key=lambda ref: ref.order)
        return [ref.popup for ref in refs]

    @property
    def has_options(self) -> bool:
        return bool(self.option_groups())
