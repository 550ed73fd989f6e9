"""Infrastructure Layer — persistence store and cross-cutting concerns.

Invariants:
    - Infrastructure never imports domain rules from core/lifecycle.py
    - All store calls wrapped with timeout and error mapping
"""
