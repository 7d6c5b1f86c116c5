"""Flatten a tree into its fingerprint map."""

from typing import Dict, Union

from .core import DirectoryNode, FileNode
from .decoding import encode_content
from .hashing import compute_blob_token, compute_composite_digest


def build_fingerprint_map(tree: Union[FileNode, DirectoryNode]) -> Dict[str, str]:
    """Map every node's path to its content identity.

    Nodes without a remote identity (the synthetic root) get a composite
    digest of their children's fingerprints, so every path in the tree is
    a key of the result.

    Args:
        tree: Root node of a materialized tree

    Returns:
        Dict of path -> fingerprint
    """
    fingerprints: Dict[str, str] = {}

    def visit(node: Union[FileNode, DirectoryNode]) -> str:
        if isinstance(node, DirectoryNode):
            child_tokens = [(child.name, visit(child)) for child in node.children]
            token = node.content_identity or compute_composite_digest(child_tokens)
        else:
            token = node.content_identity or compute_blob_token(
                encode_content(node.content if node.content is not None else "")
            )
        fingerprints[node.path] = token
        return token

    visit(tree)
    return fingerprints
