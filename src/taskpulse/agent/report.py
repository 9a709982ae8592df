"""Advisory project-health report from an OpenAI-compatible endpoint (LM Studio).

``generate_report`` never raises: every failure becomes a message the
dashboard can show as-is.
"""

import logging
from enum import Enum

import openai
from openai import OpenAI
from PySide6.QtCore import QThread, Signal

from taskpulse.config import Config
from taskpulse.database.models import Member, Task

logger = logging.getLogger(__name__)

REPORT_PROMPT = """\
You are a project manager's assistant for a results-oriented team lead.
The lead does not want details; they want RISKS and OUTCOMES.

Analyze the tasks below and identify:
1. Which tasks are most likely to slip, given due date and current progress?
2. Is anyone overloaded or stuck?

Reply with a concise executive summary of project health in 3-4 bullet
points. Do not list every task; only highlight problems or notable wins.

Tasks:
{tasks}
"""


class ReportFailure(str, Enum):
    NOT_CONFIGURED = "not_configured"
    NETWORK_FAILURE = "network_failure"
    UNAVAILABLE = "unavailable"


FALLBACK_MESSAGES = {
    ReportFailure.NOT_CONFIGURED:
        "Configure the AI endpoint in Settings to use this feature.",
    ReportFailure.NETWORK_FAILURE:
        "Could not reach the AI service. Check your network settings.",
    ReportFailure.UNAVAILABLE:
        "The AI analysis service is temporarily unavailable. Try again later.",
}

EMPTY_REPORT = "Unable to generate an analysis report."


def summarize_tasks(tasks: list[Task], members: list[Member]) -> str:
    """Compact per-task context for the prompt."""
    names = {m.id: m.name for m in members}
    blocks = []
    for t in tasks:
        latest = t.latest_log.note if t.latest_log else "No logs"
        blocks.append(
            f"Task: {t.title}\n"
            f"Assignee: {names.get(t.assigned_to, 'Unknown')}\n"
            f"Goal: {t.outcome}\n"
            f"Due: {t.due_date}\n"
            f"Progress: {t.progress}%\n"
            f"Latest Log: {latest}"
        )
    return "\n---\n".join(blocks)


def _classify(error: Exception) -> ReportFailure:
    if isinstance(error, openai.AuthenticationError):
        return ReportFailure.NOT_CONFIGURED
    if isinstance(error, openai.APIConnectionError):
        return ReportFailure.NETWORK_FAILURE
    return ReportFailure.UNAVAILABLE


def _make_client() -> OpenAI:
    return OpenAI(
        base_url=Config.LM_STUDIO_BASE_URL,
        api_key=Config.LM_STUDIO_API_KEY or "lm-studio",
        timeout=Config.LM_STUDIO_TIMEOUT,
    )


def generate_report(tasks: list[Task], members: list[Member],
                    client: OpenAI | None = None) -> str:
    """Ask the model for an executive summary, or explain why it could not."""
    if not (Config.LM_STUDIO_BASE_URL and Config.LM_STUDIO_MODEL):
        return FALLBACK_MESSAGES[ReportFailure.NOT_CONFIGURED]

    prompt = REPORT_PROMPT.format(tasks=summarize_tasks(tasks, members))
    try:
        client = client or _make_client()
        response = client.chat.completions.create(
            model=Config.LM_STUDIO_MODEL,
            messages=[{"role": "user", "content": prompt}],
        )
    except Exception as e:
        reason = _classify(e)
        logger.error("Report generation failed (%s): %s", reason.value, e)
        return FALLBACK_MESSAGES[reason]

    content = response.choices[0].message.content if response.choices else None
    return content or EMPTY_REPORT


class ReportWorker(QThread):
    """Generates the report in a thread."""

    finished_report = Signal(str)

    def __init__(self, tasks: list[Task], members: list[Member]):
        super().__init__()
        self.tasks = tasks
        self.members = members

    def run(self):
        self.finished_report.emit(generate_report(self.tasks, self.members))
