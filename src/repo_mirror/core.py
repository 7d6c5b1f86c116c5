"""Core data models for repo-mirror.

Snapshot Lifecycle:
-------------------
A Snapshot is one consistent {tree, fingerprints} pair produced by a single
full read of the remote store. Snapshots are never patched: every poll cycle
or mutation builds a wholly new Snapshot and replaces the cached reference.

1. Read Phase: list the remote tree and fetch every file's content
2. Fingerprint Phase: flatten the tree into path -> content identity
3. Publish Phase: compare with the cached fingerprints, replace, broadcast
"""

import json
from enum import Enum
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============= Remote Listing =============

class EntryKind(str, Enum):
    """Kind of entry reported by a remote directory listing."""

    FILE = "file"
    DIRECTORY = "directory"


class RemoteEntry(BaseModel):
    """One immediate entry of a remote directory listing."""

    name: str
    path: str
    kind: EntryKind
    version_token: Optional[str] = None
    size: Optional[int] = None
    download_url: Optional[str] = None


class RemoteWriteResult(BaseModel):
    """What the remote store reports after a write or delete."""

    path: str
    version_token: Optional[str] = None  # None after a delete
    commit: Optional[str] = None


# ============= Tree Nodes =============

class FileNode(_WireModel):
    """A file in the mirrored tree.

    `content` holds decoded text, or a parsed value for structured formats.
    When content retrieval failed, `content` is None and `error` is set.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["file"] = "file"
    name: str
    path: str
    content_identity: Optional[str] = None
    content: Any = None
    size: Optional[int] = None
    source_url: Optional[str] = None
    error: Optional[str] = None


class DirectoryNode(_WireModel):
    """A directory in the mirrored tree; children keep remote listing order."""

    model_config = ConfigDict(frozen=True)

    type: Literal["directory"] = "directory"
    name: str
    path: str
    content_identity: Optional[str] = None
    children: List["Node"] = Field(default_factory=list)


Node = Annotated[Union[FileNode, DirectoryNode], Field(discriminator="type")]

DirectoryNode.model_rebuild()


def iter_nodes(tree: Union[FileNode, DirectoryNode]) -> Iterator[Union[FileNode, DirectoryNode]]:
    """Yield every node of a tree depth-first, parents before children."""
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, DirectoryNode):
            stack.extend(reversed(node.children))


# ============= Snapshot =============

class Snapshot(BaseModel):
    """Immutable {tree, fingerprints} pair from one full remote read."""

    model_config = ConfigDict(frozen=True)

    tree: DirectoryNode
    fingerprints: Dict[str, str] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Response body for readers: {"tree": ..., "fingerprints": ...}."""
        return self.model_dump(mode="json", by_alias=True)

    def to_payload(self) -> str:
        """Canonical JSON text; equal snapshots always serialize identically."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


# ============= Change Detection =============

class ChangeSet(BaseModel):
    """Paths that differ between two fingerprint maps."""

    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    @property
    def summary(self) -> str:
        """One-line description like '2 added, 1 removed'."""
        if self.is_empty:
            return "no changes"
        parts = []
        if self.added:
            parts.append(f"{len(self.added)} added")
        if self.modified:
            parts.append(f"{len(self.modified)} modified")
        if self.removed:
            parts.append(f"{len(self.removed)} removed")
        return ", ".join(parts)


# ============= Mutations =============

class MutationAction(str, Enum):
    """Kind of mutation applied to the remote store."""

    SAVE = "save"
    REMOVE = "remove"
    MOVE = "move"


class MutationResult(_WireModel):
    """Outcome of a successful create/update/delete/move."""

    action: MutationAction
    path: str
    new_path: Optional[str] = None
    version_token: Optional[str] = None
    commit: Optional[str] = None
    created: bool = False
    synced: bool = False  # post-mutation snapshot was rebuilt and broadcast
