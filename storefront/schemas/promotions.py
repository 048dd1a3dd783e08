from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class CouponInfo(BaseModel):
    id: str
    barcode: str
    value: Decimal = Field(ge=0)
    value_type: Literal["fixed", "percentage"]
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_uses: Optional[int] = Field(default=None, ge=0)
    uses: int = Field(default=0, ge=0)
    used: bool = False
    active: bool = True
    min_order_value: Optional[Decimal] = None


class GiftVoucherInfo(BaseModel):
    id: str
    barcode: str
    value: Decimal = Field(ge=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    used: bool = False


class PromotionState(BaseModel):
    coupon: Optional[CouponInfo] = None
    gift_voucher: Optional[GiftVoucherInfo] = None
    points_used: int = Field(default=0, ge=0)
    credits_used: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def validate_single_voucher(self) -> "PromotionState":
        if self.coupon is not None and self.gift_voucher is not None:
            raise ValueError("Cupom e vale-presente não podem ser usados juntos")
        return self


class CustomerBalances(BaseModel):
    """Saldos do cliente autenticado (somente leitura)."""

    points: int = Field(default=0, ge=0)
    credits: Decimal = Field(default=Decimal("0"), ge=0)
    redeem_ratio: Decimal = Field(default=Decimal("1"), gt=0)


class TipOption(BaseModel):
    type: Literal["percentage", "fixed"]
    value: Decimal = Field(ge=0)


class TippingConfig(BaseModel):
    enabled: bool = False
    enable_round_up: bool = False
    enable_custom_tip: bool = False
    tip_options: list[TipOption] = Field(default_factory=list)


class TipChoice(BaseModel):
    kind: Literal["none", "percentage", "fixed", "custom", "round_up"] = "none"
    value: Decimal = Field(default=Decimal("0"), ge=0)


class CouponValidation(BaseModel):
    valid: bool
    discount_amount: Decimal
    new_total: Decimal
    message: str
