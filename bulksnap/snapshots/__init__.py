"""
Snapshot listing, selection and deletion.
"""

from .bulk_delete import BulkDelete, BulkDeleteConfig, Options
from .gateway import AWSConfig, EC2SnapshotGateway, SnapshotGateway
from .models import DeletionResult, FailedSnapshot, Snapshot

__all__ = [
    "BulkDelete",
    "BulkDeleteConfig",
    "Options",
    "AWSConfig",
    "EC2SnapshotGateway",
    "SnapshotGateway",
    "DeletionResult",
    "FailedSnapshot",
    "Snapshot",
]
