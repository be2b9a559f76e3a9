"""Wrap hard-coded Korean literals in JS/TS components with translation calls."""

__version__ = "0.1.0"
