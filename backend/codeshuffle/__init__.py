"""Code Relay backend package - team coding contest with rotating problems.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
