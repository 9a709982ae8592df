"""Application-wide constants and the seeded default dataset."""

from datetime import date, timedelta

from taskpulse.database.models import (
    DailyLog,
    EntityGraph,
    Group,
    Member,
    Milestone,
    Task,
)

APP_NAME = "TaskPulse"
APP_VERSION = "1.0.0"

# Error body returned by GET /api/data when no connection resolves
DB_NOT_CONFIGURED = "DB_NOT_CONFIGURED"

# Save modes reported by the connector
MODE_REMOTE = "remote"
MODE_LOCAL = "local"

PROGRESS_MIN = 0
PROGRESS_MAX = 100


def _day(offset: int) -> str:
    return (date.today() + timedelta(days=offset)).isoformat()


def default_graph() -> EntityGraph:
    """Sample team shown when neither the server nor the cache has data.

    Dates are relative to today so the sample always shows a mix of
    on-track, at-risk, and overdue work.
    """
    groups = [
        Group("g1", "Frontend"),
        Group("g2", "Backend"),
        Group("g3", "Product Design"),
        Group("g4", "QA"),
    ]
    members = [
        Member("m1", "Li Ming", "Frontend Engineer",
               "https://picsum.photos/seed/m1/100/100", "g1"),
        Member("m2", "Wang Qiang", "Backend Architect",
               "https://picsum.photos/seed/m2/100/100", "g2"),
        Member("m3", "Zhang Wei", "UI Designer",
               "https://picsum.photos/seed/m3/100/100", "g3"),
        Member("m4", "Zhao Lin", "Test Engineer",
               "https://picsum.photos/seed/m4/100/100", "g4"),
    ]
    tasks = [
        Task(
            id="t1",
            title="User center rebuild",
            outcome="Ship the new login, sign-up and password reset pages; "
                    "cut load time by 30%.",
            assigned_to="m1",
            start_date=_day(-5),
            due_date=_day(2),
            progress=85,
            logs=[DailyLog("l1", _day(-1), 80, "Login page animations tuned")],
            milestones=[
                Milestone("ms1", "Pick component library", True),
                Milestone("ms2", "Login page", True),
                Milestone("ms3", "Sign-up flow integration", True),
                Milestone("ms4", "Performance pass", False),
            ],
        ),
        Task(
            id="t2",
            title="Payment gateway integration",
            outcome="Support both card and wallet payments at 99.9% success, "
                    "with every failure path tested.",
            assigned_to="m2",
            start_date=_day(-10),
            due_date=_day(-1),
            progress=60,
            logs=[DailyLog("l2", _day(-2), 60,
                           "Wallet signature issue, investigating")],
            milestones=[
                Milestone("ms5", "Card SDK", True),
                Milestone("ms6", "Wallet SDK", False),
                Milestone("ms7", "Refund flow", False),
            ],
        ),
        Task(
            id="t3",
            title="Design system v2.0",
            outcome="Complete component library with token definitions.",
            assigned_to="m3",
            start_date=_day(-3),
            due_date=_day(7),
            progress=30,
        ),
        Task(
            id="t4",
            title="Automated test coverage",
            outcome="Core checkout path fully covered by automated tests.",
            assigned_to="m4",
            start_date=_day(-2),
            due_date=_day(5),
            progress=10,
        ),
        Task(
            id="t5",
            title="Admin reporting",
            outcome="Multi-dimensional sales dashboard.",
            assigned_to="m1",
            start_date=_day(-1),
            due_date=_day(3),
            progress=5,
        ),
        Task(
            id="t6",
            title="Database migration check",
            outcome="Verify the database upgrade with no data loss.",
            assigned_to="m2",
            start_date=_day(-7),
            due_date=_day(0),
            progress=95,
        ),
    ]
    return EntityGraph(groups=groups, members=members, tasks=tasks)
