"""Service modules"""
from .board import MarketBoard

__all__ = ["MarketBoard"]
