"""Fooddash - restaurant discovery backed by a place-search service."""

__version__ = "0.1.0"
