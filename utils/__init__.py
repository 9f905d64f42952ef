# utils/__init__.py
"""Shared helpers: first-match rule lists and identifier naming."""
