"""Morpho Blue borrow-rate monitor."""

__version__ = "1.0.0"
