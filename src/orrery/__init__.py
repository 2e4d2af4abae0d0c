"""Orrery: a small description language for orbiting bodies."""

__version__ = "0.1.0"
