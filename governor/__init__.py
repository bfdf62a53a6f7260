"""Rate limiting with the Generic Cell Rate Algorithm: quotas, clocks, direct and keyed limiters."""

__version__ = "0.1.0"