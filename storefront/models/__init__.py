from storefront.models.cart_snapshot import CartSnapshot
