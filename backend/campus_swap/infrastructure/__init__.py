"""Infrastructure Layer — SQL implementations of the core protocols and logging.

Invariants:
    - Infrastructure never decides domain rules; it only reads and writes
    - All store calls wrapped with timeout and error mapping (SQLAlchemy -> UnavailableError)
"""
