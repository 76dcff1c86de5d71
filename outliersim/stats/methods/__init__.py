"""
Generic statistical computations.

These functions know nothing about units, groups or replicates; they work on
plain arrays of values or p-values.

Available modules:
- `common.statistical`: t-test p-values, rejection counts, p-value density
  and Wilson intervals
"""
