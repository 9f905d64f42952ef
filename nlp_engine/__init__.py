# nlp_engine/__init__.py
"""
NLP Engine

Intent classification, identifier and column-spec extraction and the
per-session conversation context.
"""
