"""
Data models for snapshots and deletion outcomes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of an EBS snapshot returned by DescribeSnapshots."""
    snapshot_id: str
    start_time: datetime
    volume_size: Optional[int] = None
    encrypted: bool = False
    owner_id: str = ""
    owner_alias: str = ""
    state: str = ""
    storage_tier: str = ""
    volume_id: str = ""
    description: str = ""
    progress: str = ""
    tags: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Snapshot":
        """
        Build a snapshot from a DescribeSnapshots response item.

        Args:
            item: Element of the response "Snapshots" list

        Returns:
            Snapshot model
        """
        tags = {tag["Key"]: tag.get("Value", "") for tag in item.get("Tags", [])}
        return cls(
            snapshot_id=item["SnapshotId"],
            start_time=item["StartTime"],
            volume_size=item.get("VolumeSize"),
            encrypted=item.get("Encrypted", False),
            owner_id=item.get("OwnerId", ""),
            owner_alias=item.get("OwnerAlias", ""),
            state=item.get("State", ""),
            storage_tier=item.get("StorageTier", ""),
            volume_id=item.get("VolumeId", ""),
            description=item.get("Description", ""),
            progress=item.get("Progress", ""),
            tags=tags,
        )


@dataclass(frozen=True)
class FailedSnapshot:
    """A snapshot whose delete call failed, paired with the error."""
    snapshot: Snapshot
    error: Exception


@dataclass
class DeletionResult:
    """Snapshots partitioned by delete outcome, in attempt order."""
    successful: List[Snapshot] = field(default_factory=list)
    failed: List[FailedSnapshot] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.successful) + len(self.failed)
