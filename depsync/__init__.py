"""depsync: reconcile declared dependencies with what the code imports."""

__version__ = "0.1.0"
