from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from storefront.deps import get_cart_store
from storefront.schemas.cart import CartLineResponse, CartResponse, LineItem, LineItemUpdate
from storefront.schemas.catalog import ProductDefinition
from storefront.schemas.promotions import CouponInfo, CustomerBalances, GiftVoucherInfo
from storefront.services.cart_store import CartPersistenceError, CartStore
from storefront.services.customization_flow import CustomizationError, apply_selections, quick_add_item
from storefront.services.line_items import compute_signature, line_total, quantize_money
from storefront.services.promotions import validate_coupon, voucher_is_active

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/storefront/cart", tags=["storefront-cart"])


class CartMutationResponse(BaseModel):
    signature: Optional[str] = None
    cart: CartResponse


class UpdateItemPayload(BaseModel):
    signature: str
    changes: LineItemUpdate


class QuantityPayload(BaseModel):
    signature: str
    quantity: int


class SignaturePayload(BaseModel):
    signature: str


class CouponPayload(BaseModel):
    coupon: CouponInfo


class PointsPayload(BaseModel):
    points: int = Field(ge=0)
    balances: Optional[CustomerBalances] = None


class CreditsPayload(BaseModel):
    amount: Decimal = Field(ge=0)
    balances: Optional[CustomerBalances] = None


class FulfillmentMethodPayload(BaseModel):
    method_type: Optional[str] = None


class CustomizePayload(BaseModel):
    product: ProductDefinition
    selections: dict[str, list[str]] = Field(default_factory=dict)
    editing_signature: Optional[str] = None


def cart_response(cart: CartStore) -> CartResponse:
    snapshot = cart.snapshot()
    lines = [
        CartLineResponse(
            **item.model_dump(),
            signature=compute_signature(item),
            line_total=quantize_money(line_total(item)),
        )
        for item in snapshot.items
    ]
    return CartResponse(
        items=lines,
        item_count=sum(item.quantity for item in snapshot.items),
        subtotal=cart.subtotal(),
        fulfillment_method=snapshot.fulfillment_method,
        promotion=snapshot.promotion,
    )


async def cart_persistence_error_handler(request: Request, exc: CartPersistenceError) -> JSONResponse:
    logger.error("cart not saved path=%s", request.url.path)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def _mutation(cart: CartStore, signature: Optional[str]) -> CartMutationResponse:
    return CartMutationResponse(signature=signature, cart=cart_response(cart))


@router.get("", response_model=CartResponse)
def get_cart(cart: CartStore = Depends(get_cart_store)):
    return cart_response(cart)


@router.post("/items", response_model=CartMutationResponse)
def add_item(item: LineItem, cart: CartStore = Depends(get_cart_store)):
    signature = cart.add_item(item)
    return _mutation(cart, signature)


@router.post("/quick-add", response_model=CartMutationResponse)
def quick_add(product: ProductDefinition, cart: CartStore = Depends(get_cart_store)):
    if product.has_options:
        raise HTTPException(status_code=422, detail="Produto exige personalização")
    signature = cart.add_item(quick_add_item(product))
    return _mutation(cart, signature)


@router.patch("/items", response_model=CartMutationResponse)
def update_item(payload: UpdateItemPayload, cart: CartStore = Depends(get_cart_store)):
    try:
        signature = cart.update_item(payload.signature, payload.changes)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if signature is None:
        raise HTTPException(status_code=404, detail="Item não encontrado no carrinho")
    return _mutation(cart, signature)


@router.post("/items/quantity", response_model=CartResponse)
def update_quantity(payload: QuantityPayload, cart: CartStore = Depends(get_cart_store)):
    cart.update_quantity(payload.signature, payload.quantity)
    return cart_response(cart)


@router.post("/items/remove", response_model=CartResponse)
def remove_item(payload: SignaturePayload, cart: CartStore = Depends(get_cart_store)):
    cart.remove_item(payload.signature)
    return cart_response(cart)


@router.delete("", response_model=CartResponse)
def clear_cart(cart: CartStore = Depends(get_cart_store)):
    cart.clear()
    return cart_response(cart)


@router.post("/customize", response_model=CartMutationResponse)
def customize(payload: CustomizePayload, cart: CartStore = Depends(get_cart_store)):
    try:
        signature = apply_selections(
            cart,
            payload.product,
            payload.selections,
            editing_signature=payload.editing_signature,
        )
    except CustomizationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _mutation(cart, signature)


@router.post("/coupon", response_model=CartResponse)
def apply_coupon(payload: CouponPayload, cart: CartStore = Depends(get_cart_store)):
    validation = validate_coupon(payload.coupon, cart.subtotal())
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.message)
    cart.apply_coupon(payload.coupon)
    return cart_response(cart)


@router.delete("/coupon", response_model=CartResponse)
def remove_coupon(cart: CartStore = Depends(get_cart_store)):
    cart.remove_coupon()
    return cart_response(cart)


@router.post("/gift-voucher", response_model=CartResponse)
def apply_gift_voucher(voucher: GiftVoucherInfo, cart: CartStore = Depends(get_cart_store)):
    if not voucher_is_active(voucher):
        raise HTTPException(status_code=400, detail="Vale-presente inválido ou expirado")
    cart.apply_gift_voucher(voucher)
    return cart_response(cart)


@router.delete("/gift-voucher", response_model=CartResponse)
def remove_gift_voucher(cart: CartStore = Depends(get_cart_store)):
    cart.remove_gift_voucher()
    return cart_response(cart)


@router.post("/points", response_model=CartResponse)
def apply_points(payload: PointsPayload, cart: CartStore = Depends(get_cart_store)):
    if payload.points > 0 and payload.balances is None:
        raise HTTPException(status_code=400, detail="Entre na sua conta para usar pontos")
    if payload.balances is not None and payload.points > payload.balances.points:
        raise HTTPException(status_code=400, detail="Saldo de pontos insuficiente")
    cart.apply_points(payload.points)
    return cart_response(cart)


@router.post("/credits", response_model=CartResponse)
def apply_credits(payload: CreditsPayload, cart: CartStore = Depends(get_cart_store)):
    if payload.amount > 0 and payload.balances is None:
        raise HTTPException(status_code=400, detail="Entre na sua conta para usar créditos")
    if payload.balances is not None and payload.amount > payload.balances.credits:
        raise HTTPException(status_code=400, detail="Saldo de créditos insuficiente")
    cart.apply_credits(payload.amount)
    return cart_response(cart)


@router.put("/fulfillment-method", response_model=CartResponse)
def set_fulfillment_method(payload: FulfillmentMethodPayload, cart: CartStore = Depends(get_cart_store)):
    try:
        cart.set_fulfillment_method(payload.method_type)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return cart_response(cart)
