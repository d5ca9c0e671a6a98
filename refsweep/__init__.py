"""refsweep - clean up stale git branches and tags."""

__version__ = "0.1.0"
