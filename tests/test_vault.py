"""Tests for the file-backed vault and its front matter transactions."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import frontmatter
import pytest

from lastedit.app.vault import Note, Vault
from lastedit.errors import MetadataAccessError
from lastedit.identifier import IdentifierStrategy, resolve


@pytest.fixture
def vault(tmp_path):
    (tmp_path / "Notes" / "Deep").mkdir(parents=True)
    (tmp_path / ".obsidian").mkdir()
    (tmp_path / "root.md").write_text("Top level\n", encoding="utf-8")
    (tmp_path / "Notes" / "a.md").write_text("---\ntitle: A\ncreated: 2024-01-01\n---\nBody A\n", encoding="utf-8")
    (tmp_path / "Notes" / "Deep" / "b.md").write_text("Body B\n", encoding="utf-8")
    (tmp_path / "Notes" / "image.png").write_bytes(b"\x89PNG")
    (tmp_path / ".obsidian" / "workspace.md").write_text("ignored\n", encoding="utf-8")
    return Vault(tmp_path)


def test_markdown_files_lists_notes_only(vault):
    assert [note.path for note in vault.markdown_files()] == ["root.md", "Notes/a.md", "Notes/Deep/b.md"]


def test_note_from_absolute_and_relative_paths(vault):
    assert vault.note(vault.root / "Notes" / "a.md") == Note("Notes/a.md")
    assert vault.note("Notes/a.md") == Note("Notes/a.md")
    assert vault.note("Notes/a.md").name == "a.md"


def test_note_outside_vault_is_rejected(vault, tmp_path_factory):
    outside = tmp_path_factory.mktemp("elsewhere") / "x.md"
    with pytest.raises(MetadataAccessError):
        vault.note(outside)


def test_read_only_transaction_does_not_write(vault):
    path = vault.file_for(Note("Notes/a.md"))
    before = path.read_text(encoding="utf-8")
    seen = {}
    vault.process_front_matter(Note("Notes/a.md"), lambda fm: seen.update(fm))
    assert seen["title"] == "A"
    assert path.read_text(encoding="utf-8") == before


def test_mutation_is_written_back(vault):
    writes = []
    vault.on_write = writes.append
    note = Note("Notes/Deep/b.md")
    vault.process_front_matter(note, lambda fm: fm.__setitem__("uuid", "abc"))
    assert vault.file_for(note).read_text(encoding="utf-8") == "---\nuuid: abc\n---\nBody B\n"
    assert writes == ["Notes/Deep/b.md"]


def test_existing_keys_keep_their_order(vault):
    note = Note("Notes/a.md")
    vault.process_front_matter(note, lambda fm: fm.__setitem__("uuid", "abc"))
    text = vault.file_for(note).read_text(encoding="utf-8")
    assert text.index("title:") < text.index("created:") < text.index("uuid:")


def test_malformed_front_matter_raises(vault):
    note = Note("broken.md")
    vault.file_for(note).write_text("---\ntitle: [unclosed\n---\nbody\n", encoding="utf-8")
    with pytest.raises(MetadataAccessError):
        vault.process_front_matter(note, lambda fm: None)
    assert vault.cached_front_matter(note) == {}
    assert resolve(note, IdentifierStrategy.GENERATED, "uuid", True, vault) == ""
    assert "uuid" not in vault.file_for(note).read_text(encoding="utf-8")


def test_missing_note_raises(vault):
    with pytest.raises(MetadataAccessError):
        vault.process_front_matter(Note("nope.md"), lambda fm: None)


def test_cached_front_matter_refreshes_after_write(vault):
    note = Note("root.md")
    assert vault.cached_front_matter(note) == {}
    vault.process_front_matter(note, lambda fm: fm.__setitem__("uuid", "xyz"))
    assert vault.cached_front_matter(note) == {"uuid": "xyz"}


def test_generated_identifier_persists_in_file(vault):
    note = Note("Notes/Deep/b.md")
    token = resolve(note, IdentifierStrategy.GENERATED, "uuid", True, vault)
    assert token
    assert frontmatter.load(vault.file_for(note))["uuid"] == token
    assert resolve(note, IdentifierStrategy.GENERATED, "uuid", False, vault) == token


def test_user_field_date_value_is_stringified(vault):
    assert resolve(Note("Notes/a.md"), IdentifierStrategy.USER_FIELD, "created", False, vault) == "2024-01-01"


@pytest.mark.parametrize(
    "body",
    [
        "\n\nIntro line\n\n    indented code\n\n\n",
        "    indented first line\nnext\n",
        "no trailing newline",
        "",
    ],
)
def test_body_is_kept_byte_for_byte_when_front_matter_is_added(vault, body):
    note = Note("raw.md")
    vault.file_for(note).write_text(body, encoding="utf-8")
    assert vault.process_front_matter(note, lambda fm: fm.__setitem__("uuid", "abc")) == 3
    assert vault.file_for(note).read_text(encoding="utf-8") == "---\nuuid: abc\n---\n" + body


def test_body_is_kept_byte_for_byte_when_front_matter_is_updated(vault):
    note = Note("titled.md")
    vault.file_for(note).write_text("---\ntitle: A\n---\nBody\n\n\n", encoding="utf-8")
    assert vault.process_front_matter(note, lambda fm: fm.__setitem__("uuid", "abc")) == 1
    assert vault.file_for(note).read_text(encoding="utf-8") == "---\ntitle: A\nuuid: abc\n---\nBody\n\n\n"


def test_unchanged_front_matter_reports_no_added_lines(vault):
    assert vault.process_front_matter(Note("Notes/a.md"), lambda fm: None) == 0


def test_non_mapping_front_matter_raises(vault):
    note = Note("listy.md")
    vault.file_for(note).write_text("---\n- a\n- b\n---\nbody\n", encoding="utf-8")
    with pytest.raises(MetadataAccessError):
        vault.process_front_matter(note, lambda fm: None)


def test_writes_from_worker_threads_all_land(vault):
    notes = [Note(f"Notes/n{i}.md") for i in range(20)]
    for note in notes:
        vault.file_for(note).write_text("body\n", encoding="utf-8")

    def _stamp(note):
        return vault.process_front_matter(note, lambda fm: fm.__setitem__("uuid", note.path))

    with ThreadPoolExecutor(max_workers=4) as pool:
        assert list(pool.map(_stamp, notes)) == [3] * len(notes)
    for note in notes:
        assert vault.file_for(note).read_text(encoding="utf-8") == f"---\nuuid: {note.path}\n---\nbody\n"
