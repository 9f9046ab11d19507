"""Conditional markdown sections gated on the state of tracked issues."""

__version__ = "0.3.0"
