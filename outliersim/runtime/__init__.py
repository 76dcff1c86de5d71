"""
outliersim.runtime
==================

Runtime environment for executing simulations.

Key Components
--------------
- `ExperimentTemplate`: Base class for simulation definitions
- `SimulationTemplate`: Template driven by a `SimulationConfig`
- `AnalysisResult`: Outcome of one exclusion policy
- `SequentialRunner`: Sweeps exclusion policies over one batch
- `BatchRunner`: The same sweep over several templates
- `ordered_map`: Order-preserving thread/process fan-out
"""
