from datetime import datetime, timezone
from decimal import Decimal

from storefront.schemas.promotions import (
    CouponInfo,
    CustomerBalances,
    GiftVoucherInfo,
    PromotionState,
    TipChoice,
    TippingConfig,
)
from storefront.services.promotions import (
    compute_tip,
    coupon_is_active,
    points_to_currency,
    promotion_discount,
    redeemable_credits,
    redeemable_points,
    validate_coupon,
    voucher_is_active,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _coupon(**kwargs) -> CouponInfo:
    data = {"id": "c1", "barcode": "PROMO", "value": Decimal("10"), "value_type": "percentage"}
    data.update(kwargs)
    return CouponInfo(**data)


def test_validate_coupon_happy_path():
    result = validate_coupon(_coupon(), Decimal("50.00"), NOW)

    assert result.valid is True
    assert result.discount_amount == Decimal("5.00")
    assert result.new_total == Decimal("45.00")


def test_validate_coupon_rejections():
    cases = [
        (_coupon(active=False), "Cupom inativo"),
        (_coupon(used=True), "Cupom já utilizado"),
        (_coupon(valid_until=datetime(2025, 3, 1)), "Cupom expirado"),
        (_coupon(valid_from=datetime(2025, 4, 1, tzinfo=timezone.utc)), "Cupom ainda não está válido"),
        (_coupon(max_uses=3, uses=3), "Cupom esgotado"),
        (_coupon(min_order_value=Decimal("60")), "Valor mínimo do pedido não atingido"),
    ]

    for coupon, message in cases:
        result = validate_coupon(coupon, Decimal("50.00"), NOW)
        assert result.valid is False
        assert result.message == message
        assert result.new_total == Decimal("50.00")


def test_validate_coupon_without_coupon_or_total():
    assert validate_coupon(None, Decimal("10"), NOW).message == "Cupom não encontrado"
    assert validate_coupon(_coupon(), Decimal("0"), NOW).message == "Total do pedido inválido"


def test_percentage_and_fixed_discounts_are_capped_at_subtotal():
    percentage = PromotionState(coupon=_coupon(value=Decimal("150")))
    fixed = PromotionState(coupon=_coupon(value=Decimal("30"), value_type="fixed"))
    voucher = PromotionState(gift_voucher=GiftVoucherInfo(id="v1", barcode="GIFT", value=Decimal("25")))

    assert promotion_discount(Decimal("20.00"), percentage, NOW) == Decimal("20.00")
    assert promotion_discount(Decimal("20.00"), fixed, NOW) == Decimal("20.00")
    assert promotion_discount(Decimal("20.00"), voucher, NOW) == Decimal("20.00")
    assert promotion_discount(Decimal("40.00"), voucher, NOW) == Decimal("25.00")


def test_inactive_promotions_give_no_discount():
    expired = PromotionState(coupon=_coupon(valid_until=datetime(2025, 1, 1, tzinfo=timezone.utc)))
    used_voucher = PromotionState(gift_voucher=GiftVoucherInfo(id="v1", barcode="GIFT", value=Decimal("5"), used=True))

    assert promotion_discount(Decimal("20.00"), expired, NOW) == Decimal("0")
    assert promotion_discount(Decimal("20.00"), used_voucher, NOW) == Decimal("0")
    assert promotion_discount(Decimal("20.00"), PromotionState(), NOW) == Decimal("0")
    assert promotion_discount(Decimal("20.00"), None, NOW) == Decimal("0")


def test_activity_helpers():
    assert coupon_is_active(_coupon(), Decimal("10"), NOW)
    assert voucher_is_active(GiftVoucherInfo(id="v", barcode="G", value=Decimal("1")), NOW)
    assert not voucher_is_active(
        GiftVoucherInfo(id="v", barcode="G", value=Decimal("1"), valid_until=datetime(2025, 3, 9)),
        NOW,
    )


def test_points_conversion_uses_redeem_ratio():
    assert points_to_currency(250, Decimal("100")) == Decimal("2.50")
    assert points_to_currency(10) == Decimal("10.00")
    assert points_to_currency(0, Decimal("100")) == Decimal("0")


def test_points_and_credits_are_bounded_by_balances():
    balances = CustomerBalances(points=40, credits=Decimal("3.00"))

    assert redeemable_points(100, balances) == 40
    assert redeemable_points(25, balances) == 25
    assert redeemable_credits(Decimal("5"), balances) == Decimal("3.00")
    assert redeemable_points(100, None) == 0
    assert redeemable_credits(Decimal("5"), None) == Decimal("0")


def test_tip_choices():
    config = TippingConfig(enabled=True, enable_round_up=True, enable_custom_tip=True)
    amount = Decimal("18.40")

    assert compute_tip(TipChoice(kind="percentage", value=Decimal("10")), amount, config) == Decimal("1.84")
    assert compute_tip(TipChoice(kind="fixed", value=Decimal("2")), amount, config) == Decimal("2.00")
    assert compute_tip(TipChoice(kind="custom", value=Decimal("3.33")), amount, config) == Decimal("3.33")
    assert compute_tip(TipChoice(kind="round_up"), amount, config) == Decimal("0.60")
    assert compute_tip(TipChoice(kind="round_up"), Decimal("19.00"), config) == Decimal("0.00")
    assert compute_tip(TipChoice(), amount, config) == Decimal("0")


def test_tip_respects_disabled_config():
    assert compute_tip(TipChoice(kind="fixed", value=Decimal("2")), Decimal("10"), TippingConfig()) == Decimal("0")
    assert compute_tip(
        TipChoice(kind="custom", value=Decimal("2")),
        Decimal("10"),
        TippingConfig(enabled=True),
    ) == Decimal("0")
