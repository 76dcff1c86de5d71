"""
outliersim: a package for measuring how outlier exclusion distorts significance tests.

Reaction-time studies routinely drop "outlying" subjects or trials before
comparing two groups. Every such rule is a data-dependent choice, and data-
dependent choices change the error rates of the test that follows. outliersim
makes that distortion measurable by simulation: it draws many synthetic
two-group experiments from a chosen distribution, passes them through an
exclusion policy, runs a two-sample test on each replicate, and reports the
empirical rejection rate together with the full p-value distribution.

The pipeline is fixed:

    generate -> summarise units and groups -> filter -> test -> aggregate

while its two moving parts, the data-generating distribution and the
exclusion policy, are pluggable components. Unit and group summaries are
computed once from the unfiltered data and treated as constants afterwards,
so every filter is a single, non-iterative pass.

Example
-------
>>> import outliersim
>>> assert hasattr(outliersim, "core")
>>> assert hasattr(outliersim, "stats")
"""

from outliersim import core, stats
from outliersim.__version__ import __version__

__all__ = ["core", "stats", "__version__"]
