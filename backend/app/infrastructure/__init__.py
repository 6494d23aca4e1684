"""Infrastructure Layer — database access, the SQL resource store, logging setup.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Every SQLAlchemy failure is mapped to a TourbookError before leaving this layer
"""
