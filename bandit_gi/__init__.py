"""Multi-armed bandit operator selection for program-optimization search."""

__version__ = "0.1.0"
