from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from storefront.schemas.cart import LineItem, SubproductSelection

CENTS = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _selection_key(selection: SubproductSelection) -> str:
    if selection.quantity > 1:
        return f"{selection.id}*{selection.quantity}"
    return selection.id


def compute_signature(item: LineItem) -> str:
    """Identidade da linha no carrinho: produto, opções (ordenadas) e observação.

    Duas linhas com a mesma assinatura são a mesma linha e têm a quantidade somada.
    """
    option_ids = sorted(_selection_key(selection) for selection in item.subproducts)
    return f"{item.product_id}|[{','.join(option_ids)}]|note={item.note or ''}"


def selection_unit_price(selection: SubproductSelection) -> Decimal:
    if selection.linked_product is not None:
        price = selection.linked_product.price or Decimal("0")
    else:
        price = selection.price or Decimal("0")
    return price * selection.quantity


def line_unit_price(item: LineItem) -> Decimal:
    base = item.price if item.price is not None else Decimal("0")
    return base + sum((selection_unit_price(selection) for selection in item.subproducts), Decimal("0"))


def line_total(item: LineItem) -> Decimal:
    return line_unit_price(item) * item.quantity
