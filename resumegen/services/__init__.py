"""Render pipeline services."""
