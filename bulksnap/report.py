"""
Human readable deletion plan and result tables.
"""

from typing import Iterable, List, Mapping, Optional, Sequence, Set

from tabulate import tabulate

from .snapshots.models import FailedSnapshot, Snapshot

DEFAULT_PROPERTIES = [
    "Description",
    "Encrypted",
    "OwnerAlias",
    "OwnerId",
    "Progress",
    "SnapshotId",
    "StartTime",
    "State",
    "StorageTier",
    "VolumeId",
    "VolumeSize",
    "Tags",
]


def show_properties(selected: Optional[Iterable[str]] = None) -> Set[str]:
    """Properties to display; all defaults when nothing is selected."""
    properties = {p.strip() for p in selected or ()}
    return properties or set(DEFAULT_PROPERTIES)


def show_tags(selected: Optional[Iterable[str]] = None) -> Set[str]:
    """Tag keys to display; an empty set shows every tag."""
    return {t.strip() for t in selected or ()}


def header_row(properties: Set[str]) -> List[str]:
    return [p for p in DEFAULT_PROPERTIES if p in properties]


def tags_cell(tags: Mapping[str, str], tag_keys: Set[str]) -> str:
    """Render tags as '"key":"value"' pairs sorted by key."""
    pairs = [
        f'"{key}":"{tags[key]}"'
        for key in sorted(tags)
        if not tag_keys or key in tag_keys
    ]
    return " ".join(pairs)


def _format_start_time(snapshot: Snapshot) -> str:
    start_time = snapshot.start_time.replace(microsecond=0).isoformat()
    return start_time.replace("+00:00", "Z")


def properties_row(snapshot: Snapshot, properties: Set[str], tag_keys: Set[str]) -> List[str]:
    values = {
        "Description": lambda: snapshot.description,
        "Encrypted": lambda: str(snapshot.encrypted).lower(),
        "OwnerAlias": lambda: snapshot.owner_alias,
        "OwnerId": lambda: snapshot.owner_id,
        "Progress": lambda: snapshot.progress,
        "SnapshotId": lambda: snapshot.snapshot_id,
        "StartTime": lambda: _format_start_time(snapshot),
        "State": lambda: snapshot.state,
        "StorageTier": lambda: snapshot.storage_tier,
        "VolumeId": lambda: snapshot.volume_id,
        "VolumeSize": lambda: "" if snapshot.volume_size is None else str(snapshot.volume_size),
        "Tags": lambda: tags_cell(snapshot.tags, tag_keys),
    }
    return [values[p]() for p in header_row(properties)]


def _table(rows: List[List[str]], headers: List[str]) -> str:
    return tabulate(rows, headers=headers, tablefmt="plain", disable_numparse=True)


def format_deletion_plan(snapshots: Sequence[Snapshot], properties: Set[str],
                         tag_keys: Set[str]) -> str:
    """
    Render the snapshots that will be deleted.

    Args:
        snapshots: Snapshots selected for deletion
        properties: Properties to display
        tag_keys: Tag keys to display (empty shows all)

    Returns:
        Table followed by the plan summary line
    """
    rows = [properties_row(s, properties, tag_keys) for s in snapshots]
    lines = [
        _table(rows, header_row(properties)),
        "",
        f"Plan: {len(snapshots)} to delete.",
        "",
    ]
    return "\n".join(lines)


def format_deletion_result(successful: Sequence[Snapshot], failed: Sequence[FailedSnapshot],
                           properties: Set[str], tag_keys: Set[str]) -> str:
    """
    Render the outcome of every attempted delete.

    Args:
        successful: Deleted snapshots
        failed: Snapshots whose delete call failed
        properties: Properties to display
        tag_keys: Tag keys to display (empty shows all)

    Returns:
        Table followed by the result summary line
    """
    headers = ["Result"] + header_row(properties) + ["error"]
    rows = []
    for snapshot in successful:
        rows.append(["successful"] + properties_row(snapshot, properties, tag_keys) + ["-"])
    for item in failed:
        rows.append(["failed"] + properties_row(item.snapshot, properties, tag_keys) + [str(item.error)])

    lines = [
        _table(rows, headers),
        "",
        f"Result: {len(successful)} to successful, {len(failed)} to failed.",
        "",
    ]
    return "\n".join(lines)
