"""Tests for the project-health report: prompt context and failure mapping."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

import taskpulse.agent.report as report_mod
from taskpulse.agent.report import (
    EMPTY_REPORT,
    FALLBACK_MESSAGES,
    ReportFailure,
    ReportWorker,
    generate_report,
    summarize_tasks,
)
from taskpulse.config import Config
from taskpulse.database.models import Member, Task


@pytest.fixture(autouse=True)
def llm_configured(monkeypatch):
    monkeypatch.setattr(Config, "LM_STUDIO_BASE_URL", "http://llm.local:1234/v1")
    monkeypatch.setattr(Config, "LM_STUDIO_MODEL", "local-model")


def _client_returning(content):
    client = MagicMock()
    message = SimpleNamespace(content=content)
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=message)]
    )
    return client


def _client_raising(error):
    client = MagicMock()
    client.chat.completions.create.side_effect = error
    return client


_REQUEST = httpx.Request("POST", "http://llm.local:1234/v1/chat/completions")


class TestSummarizeTasks:
    def test_includes_assignee_and_latest_log(self, sample_graph):
        text = summarize_tasks(sample_graph.tasks, sample_graph.members)
        assert "Task: Build" in text
        assert "Assignee: Ann" in text
        assert "Progress: 50%" in text
        assert "Latest Log: Halfway there" in text

    def test_unknown_assignee_and_no_logs(self):
        text = summarize_tasks([Task(id="t1", title="Solo", assigned_to="m9")], [])
        assert "Assignee: Unknown" in text
        assert "Latest Log: No logs" in text

    def test_tasks_are_separated(self):
        tasks = [Task(id="a", title="A"), Task(id="b", title="B")]
        assert summarize_tasks(tasks, []).count("\n---\n") == 1


class TestGenerateReport:
    def test_returns_model_text(self, sample_graph):
        client = _client_returning("- All on track")
        result = generate_report(sample_graph.tasks, sample_graph.members, client)
        assert result == "- All on track"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "local-model"
        assert "Task: Build" in kwargs["messages"][0]["content"]

    def test_empty_reply(self, sample_graph):
        client = _client_returning("")
        assert generate_report(sample_graph.tasks, [], client) == EMPTY_REPORT

    def test_not_configured_without_calling(self, monkeypatch):
        monkeypatch.setattr(Config, "LM_STUDIO_MODEL", "")
        client = MagicMock()
        result = generate_report([], [], client)
        assert result == FALLBACK_MESSAGES[ReportFailure.NOT_CONFIGURED]
        client.chat.completions.create.assert_not_called()

    def test_auth_failure_means_not_configured(self):
        error = openai.AuthenticationError(
            "bad key",
            response=httpx.Response(401, request=_REQUEST),
            body=None,
        )
        result = generate_report([Task(id="t1")], [], _client_raising(error))
        assert result == FALLBACK_MESSAGES[ReportFailure.NOT_CONFIGURED]

    def test_connection_failure(self):
        error = openai.APIConnectionError(request=_REQUEST)
        result = generate_report([Task(id="t1")], [], _client_raising(error))
        assert result == FALLBACK_MESSAGES[ReportFailure.NETWORK_FAILURE]

    def test_other_failure(self):
        result = generate_report([Task(id="t1")], [],
                                 _client_raising(RuntimeError("model crashed")))
        assert result == FALLBACK_MESSAGES[ReportFailure.UNAVAILABLE]


class TestReportWorker:
    def test_emits_report(self, qtbot, monkeypatch, sample_graph):
        monkeypatch.setattr(report_mod, "generate_report",
                            lambda tasks, members: f"{len(tasks)} task(s) fine")
        worker = ReportWorker(sample_graph.tasks, sample_graph.members)
        with qtbot.waitSignal(worker.finished_report, timeout=2000) as blocker:
            worker.start()
        worker.wait()
        assert blocker.args == ["1 task(s) fine"]
