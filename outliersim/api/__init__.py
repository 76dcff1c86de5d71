"""
outliersim.api - Study-Oriented Facade
======================================

Entry points phrased the way an experimenter thinks about outlier exclusion:
subjects and trials, false-positive rate and power.

Examples
--------
>>> from outliersim.api.simulation import exclusion_rule
>>> exclusion_rule("subject", 2.5).name
'unit:2.5sd:both'

Unified Interface
-----------------
All functionality is consolidated in `outliersim.api.simulation`:
- `false_positive_rate()`: rejection rate with no true effect
- `power()`: rejection rate with a location shift in group 2
- `compare_exclusion_rules()`: several rules applied to one batch
- `exclusion_rule()`: a filter policy from study terms

Architecture
------------
This facade delegates to the underlying framework components:
- outliersim.config: run configuration
- outliersim.runtime: templates and runners
- outliersim.stats.schemes.two_group: the pipeline stages
"""
