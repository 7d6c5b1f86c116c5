"""Tests for reading the remote tree into nodes."""

import asyncio
import json

import pytest

from repo_mirror.core import DirectoryNode, FileNode, iter_nodes
from repo_mirror.errors import RemoteListError
from repo_mirror.reader import RemoteTreeReader
from repo_mirror.snapshot import SnapshotAssembler

from tests.fixtures.stores import RecordingStore


def read(store, path="", **kwargs):
    return asyncio.run(RemoteTreeReader(store, **kwargs).read(path))


def child(node: DirectoryNode, name: str):
    return next(c for c in node.children if c.name == name)


class TestTreeShape:
    """Test the materialized tree mirrors the remote listing."""

    def test_root_is_directory_with_listing_order(self, store):
        tree = read(store)

        assert isinstance(tree, DirectoryNode)
        assert tree.path == ""
        assert tree.content_identity is None
        assert [c.name for c in tree.children] == ["README.md", "docs", "data", "config.yaml"]

    def test_nested_directories(self, store):
        tree = read(store)

        docs = child(tree, "docs")
        assert isinstance(docs, DirectoryNode)
        assert docs.content_identity
        guide = child(docs, "guide")
        assert isinstance(guide, DirectoryNode)
        assert [c.path for c in guide.children] == ["docs/guide/intro.md"]

    def test_child_paths_extend_parent_path(self, store):
        tree = read(store)

        for node in iter_nodes(tree):
            if isinstance(node, DirectoryNode):
                for c in node.children:
                    expected = f"{node.path}/{c.name}" if node.path else c.name
                    assert c.path == expected

    def test_paths_are_unique(self, store):
        paths = [node.path for node in iter_nodes(read(store))]
        assert len(paths) == len(set(paths))

    def test_order_independent_of_completion(self):
        """Slow siblings still land in listing order."""
        store = RecordingStore({"a.txt": "a", "b.txt": "b", "c/d.txt": "d"})
        store.delays = {"a.txt": 0.05, "c": 0.02}

        tree = read(store)

        assert [c.name for c in tree.children] == ["a.txt", "b.txt", "c"]

    def test_read_subdirectory(self, store):
        tree = read(store, "docs")

        assert tree.path == "docs"
        assert tree.name == "docs"
        assert [c.name for c in tree.children] == ["a.txt", "guide"]


class TestFileContent:
    """Test file content decoding on the nodes."""

    def test_text_content(self, store):
        readme = child(read(store), "README.md")

        assert isinstance(readme, FileNode)
        assert readme.content == "# crime\n"
        assert readme.size == len("# crime\n")
        assert readme.error is None

    def test_structured_json_parsed(self, store):
        cases = child(child(read(store), "data"), "cases.json")
        assert cases.content == {"open": 3, "closed": [1, 2]}

    def test_structured_yaml_parsed(self, store):
        cfg = child(read(store), "config.yaml")
        assert cfg.content == {"name": "mirror", "replicas": 2}

    def test_malformed_structured_degrades_to_text(self, store):
        broken = child(child(read(store), "data"), "broken.json")

        assert broken.content == "{not json"
        assert broken.error is None

    def test_structured_parsing_can_be_disabled(self, store):
        cases = child(child(read(store, structured_extensions=()), "data"), "cases.json")
        assert cases.content == '{"open": 3, "closed": [1, 2]}'

    def test_deeply_nested_json_degrades_to_text(self):
        deep = "[" * 100000 + "]" * 100000
        store = RecordingStore({"deep.json": deep, "ok.txt": "fine"})

        tree = read(store)

        assert child(tree, "deep.json").content == deep
        assert child(tree, "ok.txt").content == "fine"

    def test_unserializable_yaml_value_degrades_to_text(self):
        text = "k: !!binary |\n  /w==\n"
        store = RecordingStore({"x.yaml": text})

        snapshot = asyncio.run(SnapshotAssembler(RemoteTreeReader(store)).assemble())

        assert child(snapshot.tree, "x.yaml").content == text
        assert json.loads(snapshot.to_payload())["tree"]["children"][0]["content"] == text


class TestFailures:
    """Test failure handling during the read."""

    def test_file_fetch_failure_captured_on_node(self, store):
        store.fail_fetch.add("docs/a.txt")

        docs = child(read(store), "docs")
        failed = child(docs, "a.txt")

        assert failed.type == "file"
        assert failed.content is None
        assert failed.error
        assert "docs/a.txt" in failed.error
        # Sibling unaffected
        assert [c.name for c in docs.children] == ["a.txt", "guide"]
        assert child(child(docs, "guide"), "intro.md").content == "intro"

    def test_root_listing_failure_propagates(self, store):
        store.fail_list.add("")

        with pytest.raises(RemoteListError):
            read(store)

    def test_subdirectory_listing_failure_propagates(self, store):
        store.fail_list.add("docs/guide")

        with pytest.raises(RemoteListError) as exc:
            read(store)
        assert exc.value.path == "docs/guide"

    def test_listing_a_file_fails(self, store):
        with pytest.raises(RemoteListError):
            read(store, "README.md")
