"""Pydantic Schemas - request validation for the contest API.

Invariants:
    - Schemas validate at the system boundary (student and admin input)
    - Domain enums from core/ used for language and difficulty fields
"""
