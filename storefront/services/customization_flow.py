from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Optional

from storefront.core.config import ENFORCE_OPTION_BOUNDS
from storefront.schemas.cart import LineItem, SubproductSelection
from storefront.schemas.catalog import Option, OptionGroup, ProductDefinition
from storefront.services.cart_store import CartStore

logger = logging.getLogger(__name__)


class FlowStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CustomizationError(ValueError):
    pass


def _selection_from_option(option: Option, quantity: int) -> SubproductSelection:
    linked = option.linked_product
    return SubproductSelection(
        id=option.effective_id,
        name=option.effective_name,
        names=linked.names if linked is not None else option.names,
        price=option.effective_price,
        quantity=quantity,
        linked_product=linked,
        image=option.image or (linked.image if linked is not None else None),
        tax_rate=linked.tax_rate if linked is not None else option.tax_rate,
        tax_rate_dine_in=linked.tax_rate_dine_in if linked is not None else option.tax_rate_dine_in,
    )


class CustomizationFlow:
    """Passo a passo dos popups de um produto até um único commit no carrinho.

    Nada é gravado no carrinho antes de ``next()`` no último passo. Em edição,
    o commit vira ``update_item`` da assinatura original.
    """

    def __init__(
        self,
        product: ProductDefinition,
        cart: CartStore,
        *,
        editing_item: Optional[LineItem] = None,
        editing_signature: Optional[str] = None,
        enforce_bounds: bool = ENFORCE_OPTION_BOUNDS,
    ) -> None:
        groups = product.option_groups()
        if not groups:
            raise ValueError(f"Produto {product.id} não tem popups de personalização")

        if editing_signature is not None and editing_item is None:
            editing_item = cart.find(editing_signature)
            if editing_item is None:
                raise ValueError(f"Item não encontrado no carrinho: {editing_signature}")

        self.product = product
        self.cart = cart
        self.groups = groups
        self.editing_item = editing_item
        self.editing_signature = editing_signature
        self.enforce_bounds = enforce_bounds

        self.status = FlowStatus.IN_PROGRESS
        self.error_message: Optional[str] = None
        self.committed_signature: Optional[str] = None
        self._step = 0
        # grupo -> {opção: contagem}, na ordem de escolha
        self._selections: dict[str, dict[str, int]] = {group.id: {} for group in groups}

        if editing_item is not None:
            self._prefill(editing_item)

    def _locate(self, selection_id: str) -> Optional[tuple[OptionGroup, Option]]:
        for group in self.groups:
            for option in group.options:
                if selection_id in (option.id, option.effective_id):
                    return group, option
        return None

    def _prefill(self, item: LineItem) -> None:
        # cada seleção gravada volta para o primeiro grupo que a oferece
        for selection in item.subproducts:
            found = self._locate(selection.id)
            if found is not None:
                group, option = found
                self._selections[group.id][option.id] = selection.quantity

    @property
    def step_index(self) -> int:
        return self._step

    @property
    def total_steps(self) -> int:
        return len(self.groups)

    @property
    def current_group(self) -> Optional[OptionGroup]:
        if self.status is not FlowStatus.IN_PROGRESS:
            return None
        return self.groups[self._step]

    @property
    def current_selections(self) -> list[str]:
        if self.status is not FlowStatus.IN_PROGRESS:
            return []
        return list(self._selections[self.groups[self._step].id])

    def option_count(self, option_id: str) -> int:
        group = self.groups[self._step]
        return self._selections[group.id].get(option_id, 0)

    def _require_open(self) -> OptionGroup:
        if self.status is not FlowStatus.IN_PROGRESS:
            raise ValueError(f"Fluxo já encerrado ({self.status.value})")
        return self.groups[self._step]

    def _require_option(self, group: OptionGroup, option_id: str) -> Option:
        option = group.find_option(option_id)
        if option is None:
            raise ValueError(f"Opção {option_id} não pertence ao popup {group.id}")
        return option

    def _picked(self, group: OptionGroup) -> int:
        return sum(self._selections[group.id].values())

    def _over_maximum(self, group: OptionGroup) -> bool:
        maximum = group.effective_maximum
        if maximum is None or self._picked(group) < maximum:
            return False
        self.error_message = f"Você pode escolher no máximo {maximum} opção(ões) em {group.title}"
        return self.enforce_bounds

    def select_option(self, option_id: str) -> bool:
        """Alterna (multiselect) ou substitui (escolha única) a opção do passo atual.

        Retorna False quando a escolha foi recusada pelo limite do popup.
        """
        group = self._require_open()
        self._require_option(group, option_id)
        chosen = self._selections[group.id]
        self.error_message = None

        if not group.multiselect and not group.allow_multiple_times:
            self._selections[group.id] = {option_id: 1}
            return True

        if option_id in chosen:
            del chosen[option_id]
            return True
        if self._over_maximum(group):
            return False
        chosen[option_id] = 1
        return True

    def increment_option(self, option_id: str) -> bool:
        group = self._require_open()
        self._require_option(group, option_id)
        if not group.allow_multiple_times:
            raise ValueError(f"Popup {group.id} não permite repetir opções")
        self.error_message = None
        if self._over_maximum(group):
            return False
        chosen = self._selections[group.id]
        chosen[option_id] = chosen.get(option_id, 0) + 1
        return True

    def decrement_option(self, option_id: str) -> None:
        group = self._require_open()
        self._require_option(group, option_id)
        self.error_message = None
        chosen = self._selections[group.id]
        count = chosen.get(option_id, 0)
        if count <= 1:
            chosen.pop(option_id, None)
        else:
            chosen[option_id] = count - 1

    def clear_selections(self) -> None:
        group = self._require_open()
        self._selections[group.id] = {}
        self.error_message = None

    def next(self) -> FlowStatus:
        group = self._require_open()
        picked = self._picked(group)
        if picked < group.minimum:
            self.error_message = f"Escolha pelo menos {group.minimum} opção(ões) em {group.title}"
            if self.enforce_bounds:
                return self.status
        else:
            self.error_message = None

        if self._step == len(self.groups) - 1:
            self._commit()
            self.status = FlowStatus.COMPLETED
        else:
            self._step += 1
        return self.status

    def back(self) -> None:
        if self.status is FlowStatus.IN_PROGRESS and self._step > 0:
            self._step -= 1
            self.error_message = None

    def cancel(self) -> None:
        if self.status is FlowStatus.IN_PROGRESS:
            self.status = FlowStatus.CANCELLED
            logger.info("customization cancelled product=%s step=%s", self.product.id, self._step)

    def build_selections(self) -> list[SubproductSelection]:
        selections: list[SubproductSelection] = []
        for group in self.groups:
            chosen = self._selections[group.id]
            for option in group.options:
                count = chosen.get(option.id, 0)
                if count > 0:
                    selections.append(_selection_from_option(option, count))
        return selections

    def _commit(self) -> None:
        selections = self.build_selections()
        if self.editing_signature is not None:
            self.committed_signature = self.cart.update_item(
                self.editing_signature,
                {"price": self.product.price, "subproducts": selections, "has_options": True},
            )
            if self.committed_signature is None:
                logger.warning(
                    "edited cart line vanished before commit signature=%s",
                    self.editing_signature,
                )
            return

        item = LineItem(
            product_id=self.product.id,
            product_name=self.product.name,
            price=self.product.price,
            quantity=1,
            subproducts=selections,
            image=self.product.image,
            has_options=True,
            tax_rate=self.product.tax_rate,
            tax_rate_dine_in=self.product.tax_rate_dine_in,
        )
        self.committed_signature = self.cart.add_item(item)


def quick_add_item(product: ProductDefinition) -> LineItem:
    return LineItem(
        product_id=product.id,
        product_name=product.name,
        price=product.price,
        quantity=1,
        image=product.image,
        has_options=False,
        tax_rate=product.tax_rate,
        tax_rate_dine_in=product.tax_rate_dine_in,
    )


def open_product(cart: CartStore, product: ProductDefinition, **kwargs) -> Optional[CustomizationFlow]:
    """Abre o fluxo do produto, ou adiciona direto quando não há popups."""
    if not product.has_options:
        cart.add_item(quick_add_item(product))
        return None
    return CustomizationFlow(product, cart, **kwargs)


def apply_selections(
    cart: CartStore,
    product: ProductDefinition,
    selections: Mapping[str, Iterable[str]],
    *,
    editing_signature: Optional[str] = None,
    enforce_bounds: bool = ENFORCE_OPTION_BOUNDS,
) -> Optional[str]:
    """Executa o fluxo inteiro a partir de ``{popup_id: [option_id, ...]}``.

    Em popups repetíveis cada ocorrência do id soma uma unidade.
    """
    if not product.has_options:
        if editing_signature is not None:
            return editing_signature
        return cart.add_item(quick_add_item(product))

    flow = CustomizationFlow(
        product,
        cart,
        editing_signature=editing_signature,
        enforce_bounds=enforce_bounds,
    )
    while flow.status is FlowStatus.IN_PROGRESS:
        group = flow.current_group
        if group.id in selections:
            flow.clear_selections()
            for option_id in selections[group.id]:
                if group.allow_multiple_times:
                    accepted = flow.increment_option(option_id)
                else:
                    accepted = flow.select_option(option_id)
                if not accepted:
                    raise CustomizationError(flow.error_message)
        step = flow.step_index
        status = flow.next()
        if status is FlowStatus.IN_PROGRESS and flow.step_index == step:
            raise CustomizationError(flow.error_message)
    return flow.committed_signature
