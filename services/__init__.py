# services/__init__.py
"""Command execution, FK wiring, reports, sessions and orchestration."""
