"""Services Layer — generic resource handlers and resource-specific workflows.

Invariants:
    - Services orchestrate stores and core functions; they never build HTTP responses
"""
