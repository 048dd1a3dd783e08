from decimal import Decimal

import pytest

from storefront.schemas.catalog import ProductDefinition
from storefront.services.cart_store import CartStore
from storefront.services.customization_flow import (
    CustomizationError,
    CustomizationFlow,
    FlowStatus,
    apply_selections,
    open_product,
)
from tests.fixtures_data import BURGER_PRODUCT, FRIES_PRODUCT, WATER_PRODUCT


def _product(data) -> ProductDefinition:
    return ProductDefinition.model_validate(data)


def test_groups_are_filtered_and_ordered():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore())

    assert flow.total_steps == 3
    assert [group.id for group in flow.groups] == ["popup-molho", "popup-extras", "popup-bebida"]


def test_three_steps_reach_completed_and_back_at_zero_is_noop():
    cart = CartStore()
    flow = CustomizationFlow(_product(BURGER_PRODUCT), cart, enforce_bounds=False)

    assert flow.step_index == 0
    flow.back()
    assert flow.step_index == 0

    assert flow.next() is FlowStatus.IN_PROGRESS
    assert flow.next() is FlowStatus.IN_PROGRESS
    assert flow.next() is FlowStatus.COMPLETED
    assert flow.current_group is None
    assert len(cart.items) == 1


def test_nothing_is_written_before_last_step():
    cart = CartStore()
    flow = CustomizationFlow(_product(BURGER_PRODUCT), cart)

    flow.select_option("molho-alho")
    flow.next()
    flow.select_option("extra-bacon")
    flow.back()

    assert cart.is_empty
    assert flow.current_selections == ["molho-alho"]


def test_commit_builds_line_with_linked_product_data():
    cart = CartStore()
    flow = CustomizationFlow(_product(BURGER_PRODUCT), cart)

    flow.select_option("molho-barbecue")
    flow.next()
    flow.select_option("extra-refri")
    flow.select_option("extra-bacon")
    flow.next()
    flow.select_option("bebida-suco")
    flow.next()

    item = cart.items[0]
    assert flow.status is FlowStatus.COMPLETED
    assert flow.committed_signature == "prod-burger|[extra-bacon,molho-barbecue,prod-refri,prod-suco]|note="
    assert item.has_options is True
    assert item.quantity == 1
    assert [selection.id for selection in item.subproducts] == [
        "molho-barbecue",
        "extra-bacon",
        "prod-refri",
        "prod-suco",
    ]
    assert item.subproducts[2].name == "Refri Lata"
    assert item.subproducts[2].price == Decimal("0")
    assert item.subproducts[3].price == Decimal("6.00")
    assert cart.subtotal() == Decimal("13.00")


def test_single_choice_replaces_selection():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore())

    flow.select_option("molho-barbecue")
    flow.select_option("molho-alho")
    flow.select_option("molho-alho")

    assert flow.current_selections == ["molho-alho"]


def test_multiselect_toggles_and_respects_maximum():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore())
    flow.select_option("molho-alho")
    flow.next()

    assert flow.select_option("extra-bacon") is True
    assert flow.select_option("extra-queijo") is True
    assert flow.select_option("extra-refri") is False
    assert "no máximo 2" in flow.error_message

    assert flow.select_option("extra-bacon") is True
    assert flow.current_selections == ["extra-queijo"]
    assert flow.error_message is None


def test_permissive_mode_allows_exceeding_maximum():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore(), enforce_bounds=False)
    flow.next()

    for option_id in ("extra-bacon", "extra-queijo", "extra-refri"):
        assert flow.select_option(option_id) is True
    assert len(flow.current_selections) == 3


def test_next_is_refused_below_minimum():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore())

    assert flow.next() is FlowStatus.IN_PROGRESS
    assert flow.step_index == 0
    assert "pelo menos 1" in flow.error_message


def test_unknown_option_raises():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore())

    with pytest.raises(ValueError):
        flow.select_option("extra-bacon")


def test_cancel_never_commits():
    cart = CartStore()
    flow = CustomizationFlow(_product(BURGER_PRODUCT), cart)
    flow.select_option("molho-alho")
    flow.next()

    flow.cancel()

    assert flow.status is FlowStatus.CANCELLED
    assert cart.is_empty
    with pytest.raises(ValueError):
        flow.next()


def test_product_without_groups_is_added_directly():
    cart = CartStore()

    assert open_product(cart, _product(WATER_PRODUCT)) is None
    assert cart.items[0].quantity == 1
    assert cart.items[0].subproducts == []
    assert cart.items[0].has_options is False

    with pytest.raises(ValueError):
        CustomizationFlow(_product(WATER_PRODUCT), cart)


def test_open_product_returns_flow_for_customizable_product():
    cart = CartStore()

    flow = open_product(cart, _product(BURGER_PRODUCT))

    assert isinstance(flow, CustomizationFlow)
    assert cart.is_empty


def test_repeatable_options_count_towards_maximum():
    cart = CartStore()
    flow = CustomizationFlow(_product(FRIES_PRODUCT), cart)

    assert flow.increment_option("pote-maionese") is True
    assert flow.increment_option("pote-maionese") is True
    assert flow.increment_option("pote-ketchup") is True
    assert flow.increment_option("pote-ketchup") is False
    flow.decrement_option("pote-ketchup")
    flow.increment_option("pote-maionese")
    flow.next()

    item = cart.items[0]
    assert [(selection.id, selection.quantity) for selection in item.subproducts] == [("pote-maionese", 3)]
    assert cart.subtotal() == Decimal("5.25")
    assert flow.committed_signature == "prod-fritas|[pote-maionese*3]|note="


def test_increment_requires_repeatable_group():
    flow = CustomizationFlow(_product(BURGER_PRODUCT), CartStore())

    with pytest.raises(ValueError):
        flow.increment_option("molho-alho")


def test_editing_prefills_and_updates_original_line():
    cart = CartStore()
    product = _product(BURGER_PRODUCT)
    signature = apply_selections(cart, product, {"popup-molho": ["molho-alho"], "popup-bebida": ["bebida-suco"]})
    cart.update_quantity(signature, 3)
    cart.update_item(signature, {"note": "bem passado"})
    signature = cart.signatures()[0]

    flow = CustomizationFlow(product, cart, editing_signature=signature)
    assert flow.current_selections == ["molho-alho"]
    flow.select_option("molho-barbecue")
    flow.next()
    flow.next()
    assert flow.current_selections == ["bebida-suco"]
    flow.next()

    assert len(cart.items) == 1
    item = cart.items[0]
    assert item.quantity == 3
    assert item.note == "bem passado"
    assert [selection.id for selection in item.subproducts] == ["molho-barbecue", "prod-suco"]
    assert flow.committed_signature == "prod-burger|[molho-barbecue,prod-suco]|note=bem passado"


def test_editing_unknown_signature_raises():
    with pytest.raises(ValueError):
        CustomizationFlow(_product(BURGER_PRODUCT), CartStore(), editing_signature="nada")


def test_apply_selections_reports_bound_violation():
    cart = CartStore()

    with pytest.raises(CustomizationError) as exc_info:
        apply_selections(cart, _product(BURGER_PRODUCT), {"popup-extras": ["extra-bacon"]})

    assert "Escolha o molho" in str(exc_info.value)
    assert cart.is_empty


def test_apply_selections_repeats_ids_for_repeatable_groups():
    cart = CartStore()

    signature = apply_selections(
        cart,
        _product(FRIES_PRODUCT),
        {"popup-potes": ["pote-ketchup", "pote-ketchup"]},
    )

    assert signature == "prod-fritas|[pote-ketchup*2]|note="


def test_editing_prefills_shared_linked_product_only_once():
    juice = {"id": "prod-suco", "name": "Suco Natural", "price": "6.00"}
    product = _product(
        {
            "id": "prod-combo",
            "name": "Combo",
            "price": "20.00",
            "popups": [
                {
                    "order": 0,
                    "popup": {
                        "id": "popup-combo-bebida",
                        "title": "Bebida do combo",
                        "options": [{"id": "combo-suco", "name": "Suco", "price": "0", "linked_product": juice}],
                    },
                },
                {
                    "order": 1,
                    "popup": {
                        "id": "popup-bebida-extra",
                        "title": "Bebida extra",
                        "options": [{"id": "extra-suco", "name": "Suco", "price": "0", "linked_product": juice}],
                    },
                },
            ],
        }
    )
    cart = CartStore()
    signature = apply_selections(cart, product, {"popup-combo-bebida": ["combo-suco"]})

    flow = CustomizationFlow(product, cart, editing_signature=signature)

    assert flow.current_selections == ["combo-suco"]
    flow.next()
    assert flow.current_selections == []
