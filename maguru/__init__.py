"""Maguru course marketplace API."""
