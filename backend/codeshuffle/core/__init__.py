"""Core Layer - pure round/shuffle rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - Time and randomness are passed in by the caller

Design Decisions:
    - Functional core separated from imperative shell (ADR: engine rules testable without a database)
"""
