"""Inkora - image template editor and personalized batch generator."""

__version__ = "1.0.0"
