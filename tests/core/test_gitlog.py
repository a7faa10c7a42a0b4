"""Tests for reading commit history from a Git repository."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest
from git import Actor
from git.objects import Commit as GitCommit

from atask.errors import RepositoryError
from atask.gitlog import read_commits
from tests.conftest import BASE_EPOCH, GitRepoBuilder


class TestReadCommits:
    def test_oldest_first_by_default(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("first", {"a.txt": "a\n"})
        git_repo.commit("second", {"b.txt": "b\n"})
        git_repo.commit("third", {"c.txt": "c\n"})
        records = list(read_commits(git_repo.path))
        assert [r.hash for r in records] == git_repo.commits
        assert [r.message for r in records] == ["first", "second", "third"]

    def test_newest_first_when_not_reversed(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("first", {"a.txt": "a\n"})
        git_repo.commit("second", {"b.txt": "b\n"})
        records = list(read_commits(git_repo.path, reverse=False))
        assert [r.hash for r in records] == list(reversed(git_repo.commits))

    def test_each_call_is_a_fresh_walk(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("only", {"a.txt": "a\n"})
        assert len(list(read_commits(git_repo.path))) == 1
        assert len(list(read_commits(git_repo.path))) == 1

    def test_subdirectory_path_finds_repository(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("nested", {"pkg/mod.py": "x = 1\n"})
        records = list(read_commits(git_repo.path / "pkg"))
        assert len(records) == 1

    def test_empty_repository_yields_nothing(self, git_repo: GitRepoBuilder) -> None:
        assert list(read_commits(git_repo.path)) == []

    def test_missing_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RepositoryError, match="does not exist"):
            read_commits(tmp_path / "nope")

    def test_non_repository_raises(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(RepositoryError):
            read_commits(plain)


class TestCommitRecord:
    def test_author_and_date(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("dated", {"a.txt": "a\n"}, author=Actor("Bob", "bob@example.com"), when=BASE_EPOCH, offset="+0200")
        (record,) = read_commits(git_repo.path)
        assert record.author_name == "Bob"
        assert record.author_email == "bob@example.com"
        assert record.commit_date == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
        assert record.commit_date.utcoffset() is not None

    def test_root_commit_counts_all_lines(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("root", {"a.txt": "1\n2\n3\n", "b.txt": "x\n"})
        (record,) = read_commits(git_repo.path)
        assert sorted(record.files_changed) == ["a.txt", "b.txt"]
        assert record.insertions == 4
        assert record.deletions == 0
        assert record.parent_count == 0

    def test_modification_counts_insertions_and_deletions(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("root", {"a.txt": "1\n2\n3\n"})
        git_repo.commit("edit", {"a.txt": "1\nTWO\n3\n4\n"})
        record = list(read_commits(git_repo.path))[-1]
        assert record.files_changed == ("a.txt",)
        assert record.insertions == 2
        assert record.deletions == 1

    def test_deletion_is_a_touched_file(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("root", {"a.txt": "1\n2\n", "keep.txt": "k\n"})
        git_repo.remove("drop a", "a.txt")
        record = list(read_commits(git_repo.path))[-1]
        assert record.files_changed == ("a.txt",)
        assert record.insertions == 0
        assert record.deletions == 2

    def test_non_ascii_and_spaced_paths_are_verbatim(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("root", {"café.txt": "a\n", "with space.txt": "b\n", "docs/naïve.md": "c\nd\n"})
        (record,) = read_commits(git_repo.path)
        assert sorted(record.files_changed) == ["café.txt", "docs/naïve.md", "with space.txt"]
        assert record.insertions == 4

    def test_non_ascii_path_on_modification(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("root", {"café.txt": "a\n"})
        git_repo.commit("edit", {"café.txt": "b\n"})
        record = list(read_commits(git_repo.path))[-1]
        assert record.files_changed == ("café.txt",)
        assert record.insertions == 1
        assert record.deletions == 1

    def test_binary_file_touched_with_no_lines(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("root", {"blob.bin": "\x00\x01\x02", "a.txt": "a\n"})
        (record,) = read_commits(git_repo.path)
        assert sorted(record.files_changed) == ["a.txt", "blob.bin"]
        assert record.insertions == 1
        assert record.deletions == 0

    def test_trailing_newlines_stripped_from_message(self, git_repo: GitRepoBuilder) -> None:
        git_repo.commit("subject\n\nbody line\n\n", {"a.txt": "a\n"})
        (record,) = read_commits(git_repo.path)
        assert record.message == "subject\n\nbody line"

    def test_merge_commit_diffs_against_first_parent(self, git_repo: GitRepoBuilder) -> None:
        base = git_repo.commit("base", {"a.txt": "a\n"})
        git_repo.commit("mainline", {"b.txt": "b\n"})
        base_commit = git_repo.repo.commit(base)
        side = GitCommit.create_from_tree(
            git_repo.repo,
            base_commit.tree,
            "side branch",
            parent_commits=[base_commit],
            head=False,
            author=Actor("Side", "side@example.com"),
            committer=Actor("Side", "side@example.com"),
        )
        mainline = git_repo.repo.head.commit
        (git_repo.path / "m.txt").write_text("merged\n")
        git_repo.repo.index.add([str(git_repo.path / "m.txt")])
        merge = git_repo.repo.index.commit("merge side", parent_commits=[mainline, side])

        records = {r.hash: r for r in read_commits(git_repo.path)}
        assert records[merge.hexsha].parent_count == 2
        assert records[merge.hexsha].files_changed == ("m.txt",)
        assert records[merge.hexsha].insertions == 1
