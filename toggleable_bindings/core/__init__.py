"""Binding lifecycle primitives (the binding base class, notification channels, predefined kinds).

Kept free of FastAPI and Redis concerns so it can be reused by the registry, the API, and tests.
"""
