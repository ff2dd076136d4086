"""Tests for the filesystem vault adapter."""

import asyncio
import os

import pytest
import yaml

from atomic_notes.adapters.storage_vault import FileVault, join_frontmatter, split_frontmatter


def run(coro):
    return asyncio.run(coro)


class TestFileVault:
    def test_write_creates_parents_and_leaves_no_temp_files(self, vault, vault_dir):
        run(vault.write_text("Notes/deep/a.md", "hello"))
        assert (vault_dir / "Notes" / "deep" / "a.md").read_text(encoding="utf-8") == "hello"
        assert os.listdir(vault_dir / "Notes" / "deep") == ["a.md"]
        assert run(vault.read_text("./Notes//deep/a.md")) == "hello"

    def test_exists_and_ensure_folder(self, vault, vault_dir):
        assert not run(vault.exists("Out"))
        run(vault.ensure_folder("Out/Sub"))
        run(vault.ensure_folder("Out/Sub"))
        assert (vault_dir / "Out" / "Sub").is_dir()
        assert run(vault.exists("Out"))

    def test_list_children_splits_files_and_folders(self, vault, vault_dir):
        (vault_dir / "Clippings" / "b.md").write_text("b")
        (vault_dir / "Clippings" / "a.md").write_text("a")
        (vault_dir / "Clippings" / "nested").mkdir()
        files, folders = run(vault.list_children("Clippings"))
        assert files == ["Clippings/a.md", "Clippings/b.md"]
        assert folders == ["Clippings/nested"]

    def test_snapshot_walks_recursively(self, vault, vault_dir):
        (vault_dir / "Clippings" / "nested").mkdir()
        (vault_dir / "Clippings" / "nested" / "c.md").write_text("c")
        (vault_dir / "Clippings" / "a.md").write_text("a")
        assert set(vault.snapshot("Clippings")) == {"Clippings/a.md", "Clippings/nested/c.md"}
        assert vault.snapshot("Missing") == {}


class TestFrontmatter:
    def test_reads_header_mapping(self, vault, vault_dir):
        (vault_dir / "Clippings" / "a.md").write_text("---\ntitle: A\ntags: [x]\n---\nBody\n")
        assert vault.read_frontmatter("Clippings/a.md") == {"title": "A", "tags": ["x"]}

    @pytest.mark.parametrize(
        "content",
        ["No header here", "---\ntitle: [unclosed\n---\nBody", "---\n- just\n- a list\n---\n", "---\ntitle: A\n"],
    )
    def test_missing_or_unreadable_header_is_empty(self, vault, vault_dir, content):
        (vault_dir / "Clippings" / "a.md").write_text(content)
        assert vault.read_frontmatter("Clippings/a.md") == {}

    def test_missing_file_has_no_frontmatter(self, vault):
        assert vault.read_frontmatter("Clippings/nope.md") == {}

    def test_unreadable_file_has_no_frontmatter(self, vault, vault_dir):
        (vault_dir / "Clippings" / "bad.md").write_bytes(b"---\ntitle: \xff\xfe\n---\n")
        assert vault.read_frontmatter("Clippings/bad.md") == {}
        assert vault.read_frontmatter("Clippings") == {}

    def test_cache_follows_writes_and_external_edits(self, vault, vault_dir):
        target = vault_dir / "Clippings" / "a.md"
        target.write_text("---\nv: 1\n---\n")
        assert vault.read_frontmatter("Clippings/a.md") == {"v": 1}

        run(vault.write_text("Clippings/a.md", "---\nv: 2\n---\n"))
        assert vault.read_frontmatter("Clippings/a.md") == {"v": 2}

        target.write_text("---\nv: 3\n---\n")
        stat = target.stat()
        os.utime(target, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000))
        assert vault.read_frontmatter("Clippings/a.md") == {"v": 3}

    def test_update_preserves_body_and_other_keys(self, vault, vault_dir):
        target = vault_dir / "Clippings" / "a.md"
        target.write_text("---\ntitle: A\n---\n# Heading\n\nBody text\n")

        run(vault.update_frontmatter("Clippings/a.md", lambda data: data.update(done=True)))

        header, body = split_frontmatter(target.read_text())
        assert yaml.safe_load(header) == {"title": "A", "done": True}
        assert body == "# Heading\n\nBody text\n"

    def test_update_adds_header_to_plain_file(self, vault, vault_dir):
        target = vault_dir / "Clippings" / "a.md"
        target.write_text("Just text")
        run(vault.update_frontmatter("Clippings/a.md", lambda data: data.update(done=True)))
        assert target.read_text() == "---\ndone: true\n---\nJust text"

    def test_update_refuses_to_overwrite_unreadable_header(self, vault, vault_dir):
        target = vault_dir / "Clippings" / "a.md"
        target.write_text("---\ntitle: [unclosed\n---\nBody")
        with pytest.raises(yaml.YAMLError):
            run(vault.update_frontmatter("Clippings/a.md", lambda data: data.update(done=True)))
        assert target.read_text() == "---\ntitle: [unclosed\n---\nBody"


class TestSplitJoin:
    def test_unclosed_header_is_body(self):
        assert split_frontmatter("---\ntitle: A\nno end") == (None, "---\ntitle: A\nno end")

    def test_join_without_data_returns_body(self):
        assert join_frontmatter({}, "Body") == "Body"
