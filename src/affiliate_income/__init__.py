"""Affiliate Income Engine - commission aggregation and hierarchy rollups for the admin back-office."""

__version__ = "1.0.0"
