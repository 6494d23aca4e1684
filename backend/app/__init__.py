"""Tourbook Application Package — tour-booking REST API.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
