"""
outliersim.stats.methods.common
===============================

Common statistical utilities shared across schemes.
"""
