"""schedsim - resource-constrained project scheduling with probabilistic durations."""

__version__ = "0.1.0"
