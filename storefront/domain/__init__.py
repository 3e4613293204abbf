"""Domain types for the storefront core."""
