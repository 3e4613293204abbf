"""Cart, session and checkout core for the natural-products storefront."""

__version__ = "0.1.0"
