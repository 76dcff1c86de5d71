"""
outliersim.reporting
====================

Tables and text reports computed from result ledgers.
"""
