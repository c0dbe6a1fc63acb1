"""Storefront API: carts, checkout, seller fulfillment and reviews."""

__version__ = "1.0.0"
