"""
outliersim.backends
===================

Storage backends for batches and result ledgers.
"""
