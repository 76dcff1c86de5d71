"""
Statistical pieces of the outlier-exclusion simulation.

1. **Common** (outliersim.stats.common):
   Response-time distributions and their registry.

2. **Methods** (outliersim.stats.methods):
   Generic computations independent of the experimental layout: two-sample
   p-values, rejection counts, p-value histograms and binomial intervals.

3. **Schemes** (outliersim.stats.schemes):
   The two-group, units-within-groups layout: generation, exclusion,
   testing and aggregation.

Example:
--------
>>> from outliersim.stats.methods.common.statistical import count_rejections
>>> count_rejections([0.01, 0.2, 0.04], alpha=0.05)
(2, 3)
"""
