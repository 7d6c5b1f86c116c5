"""Fingerprint comparison - detects whether the remote tree changed."""

from typing import Mapping, Optional

from .core import ChangeSet


def changed(previous: Optional[Mapping[str, str]], current: Mapping[str, str]) -> bool:
    """
    Check whether current differs from previous.

    Args:
        previous: Fingerprints of the cached snapshot (None = never observed)
        current: Fingerprints of the new snapshot

    Returns:
        True on first observation, or when key sets or any value differ

    Note:
        There is no rename detection. A moved file shows up as one path
        disappearing and another appearing.
    """
    if previous is None:
        return True
    return dict(previous) != dict(current)


def compute_changes(previous: Optional[Mapping[str, str]], current: Mapping[str, str]) -> ChangeSet:
    """
    List the paths that were added, removed, or modified.

    Args:
        previous: Earlier fingerprints (None = everything is new)
        current: Later fingerprints

    Returns:
        ChangeSet with sorted path lists
    """
    previous = previous or {}
    added = sorted(set(current) - set(previous))
    removed = sorted(set(previous) - set(current))
    modified = sorted(
        path for path in set(previous) & set(current)
        if previous[path] != current[path]
    )
    return ChangeSet(added=added, removed=removed, modified=modified)
