"""
outliersim.backends.polars
==========================

Parquet and CSV persistence built on polars.
"""
