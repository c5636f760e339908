"""Column layouts for each CLI listing and detail view."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from quartz_admin.cli.render import render_table
from quartz_admin.core.formatting import format_relative
from quartz_admin.core.store import Record

Getter = Callable[[Record], Any]


def _qualified(group_key: str, name_key: str) -> Getter:
    return lambda r: f"{r.get(group_key)}.{r.get(name_key)}"


JOB_COLUMNS: list[tuple[str, Getter]] = [
    ("Scheduler", lambda r: r["schedulerName"]),
    ("Group", lambda r: r["group"]),
    ("Name", lambda r: r["name"]),
    ("Class", lambda r: r["class"]),
    ("Description", lambda r: r["description"]),
    ("Triggers", lambda r: r["triggerCount"]),
]

TRIGGER_COLUMNS: list[tuple[str, Getter]] = [
    ("Group", lambda r: r["group"]),
    ("Name", lambda r: r["name"]),
    ("Job", _qualified("jobGroup", "jobName")),
    ("Type", lambda r: r["type"]),
    ("State", lambda r: r["state"]),
    ("Next Fire", lambda r: r["nextFireTime"]),
    ("Previous Fire", lambda r: r["prevFireTime"]),
]

RUNNING_COLUMNS: list[tuple[str, Getter]] = [
    ("Job", _qualified("jobGroup", "jobName")),
    ("Trigger", _qualified("triggerGroup", "triggerName")),
    ("Instance", lambda r: r["instanceName"]),
    ("Fired Time", lambda r: r["firedTime"]),
    ("State", lambda r: r["state"]),
]

PAUSED_COLUMNS: list[tuple[str, Getter]] = [
    ("Scheduler", lambda r: r["schedulerName"]),
    ("Group", lambda r: r["triggerGroup"]),
]

SCHEDULER_COLUMNS: list[tuple[str, Getter]] = [
    ("Scheduler", lambda r: r["schedulerName"]),
    ("Instance Name", lambda r: r["instanceName"]),
    ("Last Checkin", lambda r: r["lastCheckinTime"]),
    ("Age", lambda r: format_relative(r["lastCheckinTimeMs"])),
    ("Checkin Interval (ms)", lambda r: r["checkinInterval"]),
]

JOB_PROPERTIES: list[tuple[str, str]] = [
    ("Scheduler", "schedulerName"),
    ("Group", "group"),
    ("Name", "name"),
    ("Description", "description"),
    ("Job Class", "class"),
    ("Is Durable", "isDurable"),
    ("Is Non-Concurrent", "isNonConcurrent"),
    ("Is Update Data", "isUpdateData"),
    ("Requests Recovery", "requestsRecovery"),
    ("Job Data", "jobData"),
]

TRIGGER_PROPERTIES: list[tuple[str, str]] = [
    ("Scheduler", "schedulerName"),
    ("Group", "group"),
    ("Name", "name"),
    ("Job Group", "jobGroup"),
    ("Job Name", "jobName"),
    ("Description", "description"),
    ("Type", "type"),
    ("State", "state"),
    ("Priority", "priority"),
    ("Next Fire Time", "nextFireTime"),
    ("Previous Fire Time", "prevFireTime"),
    ("Start Time", "startTime"),
    ("End Time", "endTime"),
    ("Calendar Name", "calendarName"),
    ("Misfire Instruction", "misfireInstruction"),
    ("Cron Expression", "cronExpression"),
    ("Time Zone", "timeZoneId"),
    ("Repeat Count", "repeatCount"),
    ("Repeat Interval (ms)", "repeatInterval"),
    ("Times Triggered", "timesTriggered"),
    ("Job Data", "jobData"),
]


def list_table(columns: list[tuple[str, Getter]], records: list[Record]) -> str:
    headers = [header for header, _ in columns]
    rows = [[getter(record) for _, getter in columns] for record in records]
    return render_table(headers, rows)


def detail_table(properties: list[tuple[str, str]], record: Record) -> str:
    """Two-column Property/Value table; keys absent from the record are skipped."""
    rows = [(label, record[key]) for label, key in properties if key in record]
    return render_table(["Property", "Value"], rows)
