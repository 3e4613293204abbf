"""Typed client for the storefront REST backend."""
from storefront.api.client import ApiClient
from storefront.api.resources import StorefrontApi

__all__ = ["ApiClient", "StorefrontApi"]
