# controllers/__init__.py
"""FastAPI routers."""
