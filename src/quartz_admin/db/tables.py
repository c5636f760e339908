"""Quartz table names — schema and prefix resolution."""

from __future__ import annotations

JOB_DETAILS = "job_details"
TRIGGERS = "triggers"
FIRED_TRIGGERS = "fired_triggers"
SIMPLE_TRIGGERS = "simple_triggers"
CRON_TRIGGERS = "cron_triggers"
BLOB_TRIGGERS = "blob_triggers"
SIMPROP_TRIGGERS = "simprop_triggers"
PAUSED_TRIGGER_GRPS = "paused_trigger_grps"
SCHEDULER_STATE = "scheduler_state"
LOCKS = "locks"
CALENDARS = "calendars"

ALL_TABLES = (
    JOB_DETAILS,
    TRIGGERS,
    FIRED_TRIGGERS,
    SIMPLE_TRIGGERS,
    CRON_TRIGGERS,
    BLOB_TRIGGERS,
    SIMPROP_TRIGGERS,
    PAUSED_TRIGGER_GRPS,
    SCHEDULER_STATE,
    LOCKS,
    CALENDARS,
)

# Satellite tables keyed 1:1 by trigger identity, in deletion order.
TRIGGER_SATELLITES = (SIMPLE_TRIGGERS, CRON_TRIGGERS, BLOB_TRIGGERS, SIMPROP_TRIGGERS)

# Child tables before parents.
CLEAR_ORDER = (
    FIRED_TRIGGERS,
    SIMPLE_TRIGGERS,
    SIMPROP_TRIGGERS,
    CRON_TRIGGERS,
    BLOB_TRIGGERS,
    TRIGGERS,
    CALENDARS,
    PAUSED_TRIGGER_GRPS,
    SCHEDULER_STATE,
    LOCKS,
    JOB_DETAILS,
)


def qualified_name(table: str, prefix: str, schema: str | None = None) -> str:
    """Return ``schema.prefix+table`` (or ``prefix+table`` without a schema).

    Names are trusted configuration and are not quoted.
    """
    name = f"{prefix.lower()}{table}"
    if schema:
        return f"{schema}.{name}"
    return name


class TableNames:
    """Resolves logical Quartz table names for one schema/prefix pair."""

    def __init__(self, prefix: str, schema: str | None = None) -> None:
        self.prefix = prefix.lower()
        self.schema = schema or None

    def __getitem__(self, table: str) -> str:
        if table not in ALL_TABLES:
            raise ValueError(f"Unknown Quartz table: {table!r}")
        return qualified_name(table, self.prefix, self.schema)

    def __repr__(self) -> str:
        return f"TableNames(prefix={self.prefix!r}, schema={self.schema!r})"
