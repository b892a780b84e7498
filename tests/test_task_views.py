from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from taskflow.models import Task, TaskPriority, TaskStatus
from taskflow.services.task_views import (
    TaskFilter,
    by_priority,
    by_search,
    by_status,
    compute_statistics,
    filter_tasks,
    first_name,
    initials,
    outstanding_count,
    recent_tasks,
)

OWNER = uuid4()
_START = datetime(2024, 5, 1, tzinfo=timezone.utc)


def make_task(
    title: str,
    *,
    description: str | None = None,
    status: TaskStatus = TaskStatus.PENDING,
    priority: TaskPriority = TaskPriority.MEDIUM,
    offset: int = 0,
) -> Task:
    created = _START + timedelta(minutes=offset)
    return Task(
        id=uuid4(),
        user_id=OWNER,
        title=title,
        description=description,
        status=status,
        priority=priority,
        created_at=created,
        updated_at=created,
    )


@pytest.fixture()
def tasks() -> tuple[Task, ...]:
    return (
        make_task("Report Q1", description="Quarterly numbers", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH),
        make_task("Meeting notes", status=TaskStatus.COMPLETED, priority=TaskPriority.LOW),
        make_task("Write report draft", description=None, priority=TaskPriority.HIGH),
        make_task("Groceries", description="Milk, eggs and a REPORT card", status=TaskStatus.COMPLETED),
        make_task("Plan sprint", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.LOW),
    )


def test_search_matches_title_case_insensitively() -> None:
    report = make_task("Report Q1")
    notes = make_task("Meeting notes")

    assert filter_tasks((report, notes), TaskFilter(search="report")) == (report,)


def test_search_matches_description_and_skips_missing_description(tasks) -> None:
    titles = [task.title for task in by_search(tasks, "quarterly")]
    assert titles == ["Report Q1"]

    titles = [task.title for task in by_search(tasks, "eggs")]
    assert titles == ["Groceries"]

    assert by_search([make_task("Alpha")], "beta") == []


def test_empty_search_matches_everything(tasks) -> None:
    assert by_search(tasks, "") == list(tasks)


def test_status_and_priority_filters(tasks) -> None:
    completed = by_status(tasks, TaskStatus.COMPLETED)
    assert {task.title for task in completed} == {"Meeting notes", "Groceries"}
    assert by_status(tasks, None) == list(tasks)

    high = by_priority(tasks, TaskPriority.HIGH)
    assert {task.title for task in high} == {"Report Q1", "Write report draft"}
    assert by_priority(tasks, None) == list(tasks)


def test_composite_filter_is_independent_of_application_order(tasks) -> None:
    search, status, priority = "report", TaskStatus.IN_PROGRESS, TaskPriority.HIGH
    steps = [
        lambda items: by_search(items, search),
        lambda items: by_status(items, status),
        lambda items: by_priority(items, priority),
    ]

    expected = filter_tasks(tasks, TaskFilter(search=search, status=status, priority=priority))
    assert [task.title for task in expected] == ["Report Q1"]

    for ordering in itertools.permutations(steps):
        result = list(tasks)
        for step in ordering:
            result = step(result)
        assert tuple(result) == expected


def test_filter_preserves_mirror_order(tasks) -> None:
    result = filter_tasks(tasks, TaskFilter(search="report"))
    assert [task.title for task in result] == ["Report Q1", "Write report draft", "Groceries"]


def test_filter_from_query_treats_all_and_unknown_values_as_unrestricted() -> None:
    criteria = TaskFilter.from_query("docs", "all", "urgent")
    assert criteria == TaskFilter(search="docs")
    assert criteria.status_value == "all"
    assert criteria.priority_value == "all"

    criteria = TaskFilter.from_query(None, "in_progress", "HIGH")
    assert criteria.status is TaskStatus.IN_PROGRESS
    assert criteria.priority is TaskPriority.HIGH
    assert TaskFilter.from_query().is_empty


def test_statistics_scenario() -> None:
    snapshot = [
        make_task("a", status=TaskStatus.PENDING),
        make_task("b", status=TaskStatus.COMPLETED),
        make_task("c", status=TaskStatus.IN_PROGRESS),
    ]

    stats = compute_statistics(snapshot)

    assert stats.model_dump() == {"total": 3, "completed": 1, "in_progress": 1, "pending": 1}


@pytest.mark.parametrize(
    "statuses",
    [
        [],
        [TaskStatus.PENDING] * 4,
        [TaskStatus.COMPLETED, TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS],
        list(TaskStatus) * 3 + [TaskStatus.PENDING],
    ],
)
def test_statistics_counts_add_up_to_total(statuses) -> None:
    stats = compute_statistics([make_task(f"t{index}", status=status) for index, status in enumerate(statuses)])

    assert stats.total == len(statuses)
    assert stats.pending + stats.in_progress + stats.completed == stats.total


def test_recent_tasks_returns_first_entries_in_order() -> None:
    snapshot = [make_task(f"task {index}", offset=-index) for index in range(9)]

    recent = recent_tasks(snapshot)

    assert [task.title for task in recent] == [f"task {index}" for index in range(6)]
    assert recent_tasks(snapshot, 2) == snapshot[:2]
    assert recent_tasks(snapshot[:3]) == snapshot[:3]


def test_outstanding_count_ignores_completed(tasks) -> None:
    assert outstanding_count(tasks) == 3


@pytest.mark.parametrize(
    ("full_name", "expected"),
    [("Ada Lovelace", "Ada"), ("  ", "there"), (None, "there")],
)
def test_first_name(full_name, expected) -> None:
    assert first_name(full_name) == expected


@pytest.mark.parametrize(
    ("full_name", "expected"),
    [("Ada Lovelace", "AL"), ("grace brewster murray hopper", "GB"), ("Cher", "C"), (None, "U"), ("", "U")],
)
def test_initials(full_name, expected) -> None:
    assert initials(full_name) == expected


def test_search_text_is_matched_verbatim() -> None:
    report = make_task("Quarterly report")
    reporting = make_task("Reporting tools")

    criteria = TaskFilter.from_query(" report")

    assert criteria.search == " report"
    assert filter_tasks((report, reporting), criteria) == (report,)


def test_filter_tasks_matches_the_single_filters(tasks) -> None:
    criteria = TaskFilter(search="report", priority=TaskPriority.HIGH)

    expected = by_priority(by_search(tasks, "report"), TaskPriority.HIGH)

    assert filter_tasks(tasks, criteria) == tuple(expected)
