"""Conjunto de dados reutilizável para os cenários de carrinho e checkout."""

SAUCE_GROUP = {
    "id": "popup-molho",
    "title": "Escolha o molho",
    "multiselect": False,
    "minimum": 1,
    "maximum": 1,
    "options": [
        {"id": "molho-barbecue", "name": "Barbecue", "price": "0.50"},
        {"id": "molho-alho", "name": "Alho", "price": "0.00"},
    ],
}

EXTRAS_GROUP = {
    "id": "popup-extras",
    "title": "Adicionais",
    "multiselect": True,
    "minimum": 0,
    "maximum": 2,
    "options": [
        {"id": "extra-bacon", "name": "Bacon", "price": "1.50"},
        {"id": "extra-queijo", "name": "Queijo", "price": "1.00"},
        {
            "id": "extra-refri",
            "name": "Refrigerante",
            "price": "4.00",
            "linked_product": {"id": "prod-refri", "name": "Refri Lata", "price": None},
        },
    ],
}

DRINK_GROUP = {
    "id": "popup-bebida",
    "title": "Bebida",
    "multiselect": False,
    "minimum": 0,
    "maximum": 1,
    "options": [
        {
            "id": "bebida-suco",
            "name": "Suco",
            "price": "0.00",
            "linked_product": {"id": "prod-suco", "name": "Suco Natural", "price": "6.00"},
        },
    ],
}

SAUCE_POT_GROUP = {
    "id": "popup-potes",
    "title": "Potes de molho",
    "multiselect": True,
    "minimum": 0,
    "maximum": 3,
    "allow_multiple_times": True,
    "options": [
        {"id": "pote-maionese", "name": "Maionese", "price": "0.75"},
        {"id": "pote-ketchup", "name": "Ketchup", "price": "0.50"},
    ],
}

BURGER_PRODUCT = {
    "id": "prod-burger",
    "name": "Burger Classic",
    "price": "5.00",
    "popups": [
        {"order": 2, "popup": DRINK_GROUP},
        {"order": 0, "popup": SAUCE_GROUP},
        {"order": 1, "popup": EXTRAS_GROUP},
        {"order": 3, "popup": None},
        {"order": 4, "popup": {"id": "popup-vazio", "title": "Vazio", "options": []}},
    ],
}

FRIES_PRODUCT = {
    "id": "prod-fritas",
    "name": "Batata Frita",
    "price": "3.00",
    "popups": [{"order": 0, "popup": SAUCE_POT_GROUP}],
}

WATER_PRODUCT = {
    "id": "prod-agua",
    "name": "Água",
    "price": "2.50",
    "popups": [],
}

DELIVERY_METHOD = {
    "method_type": "delivery",
    "delivery_fee": "2.00",
    "extra_cost_per_km": "0.50",
    "minimum_order": "10.00",
    "delivery_radius": "5",
    "checkout_phone_required": True,
}

TAKEAWAY_METHOD = {
    "method_type": "takeaway",
    "checkout_lastname_required": True,
}

DINE_IN_METHOD = {
    "method_type": "dine-in",
}

CART_HEADERS = {
    "X-Cart-Session": "sessao-123",
    "X-Tenant-Slug": "burgerhouse",
}
