"""Tests for issue CRUD, status transitions and enum validation."""

from __future__ import annotations

import pytest

from atask.core import AtaskDB, IssuePriority, IssueStatus
from atask.errors import DataCorruption


class TestInsertIssue:
    def test_defaults(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue("Write docs")
        issue = db.get_issue(issue_id)
        assert issue is not None
        assert issue.title == "Write docs"
        assert issue.status is IssueStatus.OPEN
        assert issue.priority is IssuePriority.MEDIUM
        assert issue.description is None
        assert issue.assignee is None
        assert issue.labels == []
        assert issue.created_at == issue.updated_at

    def test_all_fields(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue(
            "Crash on start",
            description="Stack trace attached",
            status=IssueStatus.IN_PROGRESS,
            priority="critical",
            assignee="  bob  ",
        )
        issue = db.get_issue(issue_id)
        assert issue is not None
        assert issue.description == "Stack trace attached"
        assert issue.status is IssueStatus.IN_PROGRESS
        assert issue.priority is IssuePriority.CRITICAL
        assert issue.assignee == "bob"

    def test_ids_increase(self, db: AtaskDB) -> None:
        first = db.insert_issue("one")
        second = db.insert_issue("two")
        assert second > first

    @pytest.mark.parametrize("title", ["", "   "])
    def test_empty_title_rejected(self, db: AtaskDB, title: str) -> None:
        with pytest.raises(ValueError, match="Title cannot be empty"):
            db.insert_issue(title)
        assert db.count_issues() == 0

    def test_unknown_status_rejected(self, db: AtaskDB) -> None:
        with pytest.raises(ValueError, match="Invalid status 'blocked'"):
            db.insert_issue("x", status="blocked")
        assert db.count_issues() == 0

    def test_unknown_priority_rejected(self, db: AtaskDB) -> None:
        with pytest.raises(ValueError, match="Valid values: low, medium, high, critical"):
            db.insert_issue("x", priority="urgent")

    def test_assignee_with_control_chars_rejected(self, db: AtaskDB) -> None:
        with pytest.raises(ValueError, match="control characters"):
            db.insert_issue("x", assignee="bob\n")

    def test_labels_attached_on_create(self, db: AtaskDB) -> None:
        db.create_default_labels()
        issue_id = db.insert_issue("x", labels=["question", "bug"])
        issue = db.get_issue(issue_id)
        assert issue is not None
        assert issue.labels == ["bug", "question"]

    def test_unknown_label_rejected_before_write(self, db: AtaskDB) -> None:
        db.create_default_labels()
        with pytest.raises(ValueError, match="Unknown label"):
            db.insert_issue("x", labels=["bug", "nonexistent"])
        assert db.count_issues() == 0


class TestGetIssues:
    def test_missing_returns_none(self, db: AtaskDB) -> None:
        assert db.get_issue(999) is None

    def test_all_in_insertion_order(self, populated_db: AtaskDB) -> None:
        titles = [i.title for i in populated_db.get_all_issues()]
        assert titles == ["Issue A", "Issue B", "Issue C"]

    def test_filter_by_status(self, populated_db: AtaskDB) -> None:
        assert [i.title for i in populated_db.get_all_issues(status="in_progress")] == ["Issue B"]
        assert populated_db.get_all_issues(status=IssueStatus.RESOLVED) == []

    def test_filter_rejects_unknown_status(self, populated_db: AtaskDB) -> None:
        with pytest.raises(ValueError):
            populated_db.get_all_issues(status="nope")

    def test_empty_store(self, db: AtaskDB) -> None:
        assert db.get_all_issues() == []

    def test_to_dict(self, populated_db: AtaskDB) -> None:
        ids = populated_db._test_ids  # type: ignore[attr-defined]
        issue = populated_db.get_issue(ids["c"])
        assert issue is not None
        d = issue.to_dict()
        assert d["status"] == "closed"
        assert d["priority"] == "low"
        assert d["labels"] == ["documentation", "good first issue"]


class TestUpdateStatus:
    def test_round_trip_every_status(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue("x")
        for status in IssueStatus:
            assert db.update_status(issue_id, status) is True
            issue = db.get_issue(issue_id)
            assert issue is not None
            assert issue.status is status

    def test_updated_at_strictly_increases(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue("x")
        before = db.get_issue(issue_id)
        assert before is not None
        stamps = [before.updated_at]
        for status in ("in_progress", "resolved", "closed", "open"):
            db.update_status(issue_id, status)
            after = db.get_issue(issue_id)
            assert after is not None
            stamps.append(after.updated_at)
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)
        assert after.created_at == before.created_at

    def test_missing_issue_returns_false(self, db: AtaskDB) -> None:
        assert db.update_status(999, "closed") is False

    def test_invalid_status_leaves_issue_untouched(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue("x")
        with pytest.raises(ValueError):
            db.update_status(issue_id, "done")
        issue = db.get_issue(issue_id)
        assert issue is not None
        assert issue.status is IssueStatus.OPEN


class TestDeleteIssue:
    def test_delete_removes_issue_and_associations(self, populated_db: AtaskDB) -> None:
        ids = populated_db._test_ids  # type: ignore[attr-defined]
        assert populated_db.delete_issue(ids["c"]) is True
        assert populated_db.get_issue(ids["c"]) is None
        remaining = populated_db.conn.execute("SELECT COUNT(*) FROM issue_labels WHERE issue_id = ?", (ids["c"],)).fetchone()[0]
        assert remaining == 0
        # Labels themselves survive.
        assert populated_db.get_label_by_name("documentation") is not None

    def test_delete_missing_returns_false(self, db: AtaskDB) -> None:
        assert db.delete_issue(999) is False

    def test_foreign_key_cascade(self, populated_db: AtaskDB) -> None:
        ids = populated_db._test_ids  # type: ignore[attr-defined]
        populated_db.conn.execute("DELETE FROM issues WHERE id = ?", (ids["a"],))
        populated_db.conn.commit()
        count = populated_db.conn.execute("SELECT COUNT(*) FROM issue_labels WHERE issue_id = ?", (ids["a"],)).fetchone()[0]
        assert count == 0


class TestCorruptRows:
    def _corrupt(self, db: AtaskDB, issue_id: int, column: str, value: str) -> None:
        db.conn.execute("PRAGMA ignore_check_constraints = ON")
        db.conn.execute(f"UPDATE issues SET {column} = ? WHERE id = ?", (value, issue_id))
        db.conn.commit()
        db.conn.execute("PRAGMA ignore_check_constraints = OFF")

    def test_bad_status_is_data_corruption(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue("x")
        self._corrupt(db, issue_id, "status", "archived")
        with pytest.raises(DataCorruption, match="archived"):
            db.get_issue(issue_id)

    def test_bad_priority_is_data_corruption(self, db: AtaskDB) -> None:
        issue_id = db.insert_issue("x")
        self._corrupt(db, issue_id, "priority", "p0")
        with pytest.raises(DataCorruption, match="priority"):
            db.get_all_issues()


class TestEnums:
    def test_text_mapping(self) -> None:
        assert [s.value for s in IssueStatus] == ["open", "in_progress", "resolved", "closed"]
        assert [p.value for p in IssuePriority] == ["low", "medium", "high", "critical"]

    def test_parse_accepts_members_and_text(self) -> None:
        assert IssueStatus.parse("resolved") is IssueStatus.RESOLVED
        assert IssueStatus.parse(IssueStatus.CLOSED) is IssueStatus.CLOSED

    def test_parse_is_case_sensitive(self) -> None:
        with pytest.raises(ValueError):
            IssuePriority.parse("HIGH")

    def test_str_is_value(self) -> None:
        assert str(IssueStatus.IN_PROGRESS) == "in_progress"

    def test_noun_is_not_a_member(self) -> None:
        assert IssueStatus.noun == "status"
        assert IssuePriority.noun == "priority"
        assert "noun" not in IssueStatus.__members__
        assert len(IssuePriority) == 4

    def test_errors_name_their_domain(self) -> None:
        with pytest.raises(ValueError, match="Invalid priority 'urgent'"):
            IssuePriority.parse("urgent")
        with pytest.raises(DataCorruption, match="Corrupt status 'archived' in store \\(row 7\\)"):
            IssueStatus.decode("archived", row_id=7)
