# config/__init__.py
"""Application configuration."""
