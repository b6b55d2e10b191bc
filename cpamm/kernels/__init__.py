"""
Kernel layer.

Integer-only pricing and share-accounting kernels used by the pool engine.
"""
