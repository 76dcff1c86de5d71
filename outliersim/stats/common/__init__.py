"""
outliersim.stats.common
=======================

Response-time distributions shared by every scheme.
"""
