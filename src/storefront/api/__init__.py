"""Storefront API package."""

from storefront.api.problems import register_problem_handlers
from storefront.api.routes import admin_router, cart_router, order_router, product_router

__all__ = ["admin_router", "cart_router", "order_router", "product_router", "register_problem_handlers"]
