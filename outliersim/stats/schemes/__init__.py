"""
Layout-specific implementations.

Available schemes:
- `two_group`: two groups of units, each unit with repeated observations
"""
