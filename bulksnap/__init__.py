"""
bulksnap - Bulk delete AWS EBS snapshots with tags and expiration date.

This package provides the snapshot selection-and-deletion engine and a
click CLI that drives it.
"""

__version__ = "0.1.0"
