"""Use cases driven by storefront UI events."""
