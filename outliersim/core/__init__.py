"""
outliersim.core
===============

Domain-agnostic building blocks: names, errors, component base classes and
the result ledger.
"""
