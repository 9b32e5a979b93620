"""Materialize versioned toolchain dist bundles and build against them."""

__version__ = "0.1.0"
