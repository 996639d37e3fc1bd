"""Shopify commerce platform integration."""

from .client import ShopifyClient
from .models import Order, OrderCustomer, OrderLineItem
from .orders import ShopifyOrderSource

__all__ = ["Order", "OrderCustomer", "OrderLineItem", "ShopifyClient", "ShopifyOrderSource"]
