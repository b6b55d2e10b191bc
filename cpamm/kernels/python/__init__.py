"""
Production Python kernels.

These modules are designed to be:
- deterministic (integer-only, checked against a 256-bit width),
- easy to audit (explicit intermediate variables),
- small surface-area (pure functions, typed results).
"""
