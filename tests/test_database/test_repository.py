"""Tests for GraphRepository — full-replace writes and atomicity."""

import pytest

from taskpulse.database.connection import SQLiteConnection
from taskpulse.database.models import EntityGraph, Group, Milestone, Task
from taskpulse.database.repository import DELETE_ORDER, GraphRepository
from taskpulse.errors import TransactionFailure, Unreachable
from taskpulse.utils.constants import default_graph


class TestReadWrite:
    def test_empty_store_reads_empty_graph(self, repo):
        assert repo.read() == EntityGraph()

    def test_write_then_read_identical(self, repo, sample_graph):
        repo.write(sample_graph)
        assert repo.read() == sample_graph

    def test_default_dataset_round_trip(self, repo):
        graph = default_graph()
        repo.write(graph)
        assert repo.read() == graph

    def test_write_replaces_everything(self, repo, sample_graph):
        repo.write(default_graph())
        repo.write(sample_graph)
        assert repo.read() == sample_graph

    def test_write_empty_graph_clears_store(self, repo, sample_graph):
        repo.write(sample_graph)
        repo.write(EntityGraph())
        assert repo.read() == EntityGraph()

    def test_toggle_milestone_rewrite(self, repo, db, sample_graph):
        repo.write(sample_graph)
        before = db.execute('SELECT id, name FROM "groups"')
        members_before = db.execute("SELECT id, name, role, group_id FROM members")

        sample_graph.tasks[0].milestones[0].is_completed = True
        repo.write(sample_graph)

        assert db.execute('SELECT id, name FROM "groups"') == before
        assert db.execute(
            "SELECT id, name, role, group_id FROM members") == members_before
        rows = db.execute("SELECT is_completed FROM milestones WHERE id = ?",
                          ("ms1",))
        assert [bool(r["is_completed"]) for r in rows] == [True]
        assert repo.read().tasks[0].milestones[0].is_completed is True

    def test_soft_references_are_stored(self, repo):
        graph = EntityGraph(
            groups=[Group("g1", "Eng")],
            tasks=[Task(id="t1", title="Orphan", assigned_to="nobody")],
        )
        repo.write(graph)
        assert repo.read().tasks[0].assigned_to == "nobody"

    def test_same_child_id_under_different_tasks(self, repo):
        graph = EntityGraph(tasks=[
            Task(id="t1", milestones=[Milestone("ms1", "A")]),
            Task(id="t2", milestones=[Milestone("ms1", "B")]),
        ])
        repo.write(graph)
        assert repo.read() == graph

    def test_delete_order_children_first(self):
        assert DELETE_ORDER.index("daily_logs") < DELETE_ORDER.index("tasks")
        assert DELETE_ORDER.index("milestones") < DELETE_ORDER.index("tasks")
        assert DELETE_ORDER[-1] == "groups"


class TestAtomicity:
    def test_failure_after_groups_keeps_previous_graph(
            self, repo, sample_graph, monkeypatch):
        repo.write(sample_graph)
        original_insert = GraphRepository._insert_rows

        def failing_insert(self, cursor, table, rows):
            if table == "tasks":
                raise RuntimeError("simulated crash before tasks insert")
            return original_insert(self, cursor, table, rows)

        monkeypatch.setattr(GraphRepository, "_insert_rows", failing_insert)
        with pytest.raises(TransactionFailure):
            repo.write(default_graph())

        monkeypatch.undo()
        assert repo.read() == sample_graph

    def test_duplicate_ids_roll_back(self, repo, sample_graph):
        repo.write(sample_graph)
        bad = EntityGraph(groups=[Group("dup", "A"), Group("dup", "B")])
        with pytest.raises(TransactionFailure):
            repo.write(bad)
        assert repo.read() == sample_graph

    def test_transaction_failure_is_unreachable_class(self):
        assert issubclass(TransactionFailure, Unreachable)


class TestUninitializedStore:
    def test_read_without_tables(self, tmp_path):
        repo = GraphRepository(SQLiteConnection(tmp_path / "bare.db"))
        with pytest.raises(Unreachable):
            repo.read()

    def test_write_without_tables(self, tmp_path, sample_graph):
        repo = GraphRepository(SQLiteConnection(tmp_path / "bare.db"))
        with pytest.raises(TransactionFailure):
            repo.write(sample_graph)
