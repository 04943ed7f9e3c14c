"""
Tag utilities for parsing user tag filters and building EC2 filters.
"""

from typing import Any, Dict, Iterable, List, Optional

from .errors import InvalidTagError

TAG_FILTER_PREFIX = "tag:"


def parse_tags(tag_strings: Iterable[str]) -> Dict[str, str]:
    """
    Parse user-provided tag strings in format "key=value".

    Only the first "=" separates key and value, so the value may itself
    contain "=" or commas. Values are kept as raw strings here.

    Args:
        tag_strings: Tag strings in "key=value" format

    Returns:
        Dictionary of trimmed keys to trimmed raw values

    Raises:
        InvalidTagError: If a tag string has no "=", an empty key, or no
            non-empty comma separated value
    """
    tags = {}

    for tag_str in tag_strings:
        if "=" not in tag_str:
            raise InvalidTagError(tag_str)

        key, value = tag_str.split("=", 1)
        key, value = key.strip(), value.strip()
        if not key or not split_values(value):
            raise InvalidTagError(tag_str)

        tags[key] = value

    return tags


def split_values(raw: str) -> List[str]:
    """Split a comma separated tag value into trimmed, non-empty components."""
    return [value.strip() for value in raw.split(",") if value.strip()]


def tag_filters(tags: Optional[Dict[str, str]]) -> List[Dict[str, Any]]:
    """
    Build DescribeSnapshots filters from a tag filter map.

    Args:
        tags: Mapping of tag key to comma separated accepted values

    Returns:
        One "tag:<key>" filter per key, sorted by key
    """
    if not tags:
        return []

    filters = []
    for key in sorted(tags, key=str.strip):
        filters.append({
            "Name": f"{TAG_FILTER_PREFIX}{key.strip()}",
            "Values": split_values(tags[key]),
        })

    return filters
