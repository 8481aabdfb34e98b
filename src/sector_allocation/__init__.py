"""Sector share allocation core for energy-economy simulation models."""

__version__ = "0.1.0"
