"""Shared fixtures: a throw-away SQLite database holding the Quartz schema."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text

MAIN = "MainScheduler"
OTHER = "OtherScheduler"

QUARTZ_DDL = """
CREATE TABLE qrtz_job_details (
    sched_name VARCHAR(120) NOT NULL,
    job_name VARCHAR(200) NOT NULL,
    job_group VARCHAR(200) NOT NULL,
    description VARCHAR(250) NULL,
    job_class_name VARCHAR(250) NOT NULL,
    is_durable VARCHAR(1) NOT NULL,
    is_nonconcurrent VARCHAR(1) NOT NULL,
    is_update_data VARCHAR(1) NOT NULL,
    requests_recovery VARCHAR(1) NOT NULL,
    job_data BLOB NULL,
    PRIMARY KEY (sched_name, job_name, job_group)
);
CREATE TABLE qrtz_triggers (
    sched_name VARCHAR(120) NOT NULL,
    trigger_name VARCHAR(200) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    job_name VARCHAR(200) NOT NULL,
    job_group VARCHAR(200) NOT NULL,
    description VARCHAR(250) NULL,
    next_fire_time BIGINT NULL,
    prev_fire_time BIGINT NULL,
    priority INTEGER NULL,
    trigger_state VARCHAR(16) NOT NULL,
    trigger_type VARCHAR(8) NOT NULL,
    start_time BIGINT NOT NULL,
    end_time BIGINT NULL,
    calendar_name VARCHAR(200) NULL,
    misfire_instr SMALLINT NULL,
    job_data BLOB NULL,
    PRIMARY KEY (sched_name, trigger_name, trigger_group)
);
CREATE TABLE qrtz_simple_triggers (
    sched_name VARCHAR(120) NOT NULL,
    trigger_name VARCHAR(200) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    repeat_count BIGINT NOT NULL,
    repeat_interval BIGINT NOT NULL,
    times_triggered BIGINT NOT NULL,
    PRIMARY KEY (sched_name, trigger_name, trigger_group)
);
CREATE TABLE qrtz_cron_triggers (
    sched_name VARCHAR(120) NOT NULL,
    trigger_name VARCHAR(200) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    cron_expression VARCHAR(120) NOT NULL,
    time_zone_id VARCHAR(80),
    PRIMARY KEY (sched_name, trigger_name, trigger_group)
);
CREATE TABLE qrtz_simprop_triggers (
    sched_name VARCHAR(120) NOT NULL,
    trigger_name VARCHAR(200) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    str_prop_1 VARCHAR(512) NULL,
    int_prop_1 INTEGER NULL,
    long_prop_1 BIGINT NULL,
    bool_prop_1 VARCHAR(1) NULL,
    PRIMARY KEY (sched_name, trigger_name, trigger_group)
);
CREATE TABLE qrtz_blob_triggers (
    sched_name VARCHAR(120) NOT NULL,
    trigger_name VARCHAR(200) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    blob_data BLOB NULL,
    PRIMARY KEY (sched_name, trigger_name, trigger_group)
);
CREATE TABLE qrtz_calendars (
    sched_name VARCHAR(120) NOT NULL,
    calendar_name VARCHAR(200) NOT NULL,
    calendar BLOB NOT NULL,
    PRIMARY KEY (sched_name, calendar_name)
);
CREATE TABLE qrtz_paused_trigger_grps (
    sched_name VARCHAR(120) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    PRIMARY KEY (sched_name, trigger_group)
);
CREATE TABLE qrtz_fired_triggers (
    sched_name VARCHAR(120) NOT NULL,
    entry_id VARCHAR(95) NOT NULL,
    trigger_name VARCHAR(200) NOT NULL,
    trigger_group VARCHAR(200) NOT NULL,
    instance_name VARCHAR(200) NOT NULL,
    fired_time BIGINT NOT NULL,
    sched_time BIGINT NOT NULL,
    priority INTEGER NOT NULL,
    state VARCHAR(16) NOT NULL,
    job_name VARCHAR(200) NULL,
    job_group VARCHAR(200) NULL,
    is_nonconcurrent VARCHAR(1) NULL,
    requests_recovery VARCHAR(1) NULL,
    PRIMARY KEY (sched_name, entry_id)
);
CREATE TABLE qrtz_scheduler_state (
    sched_name VARCHAR(120) NOT NULL,
    instance_name VARCHAR(200) NOT NULL,
    last_checkin_time BIGINT NOT NULL,
    checkin_interval BIGINT NOT NULL,
    PRIMARY KEY (sched_name, instance_name)
);
CREATE TABLE qrtz_locks (
    sched_name VARCHAR(120) NOT NULL,
    lock_name VARCHAR(40) NOT NULL,
    PRIMARY KEY (sched_name, lock_name)
);
"""

# (table, columns, rows)
SEED = [
    (
        "job_details",
        "sched_name, job_group, job_name, description, job_class_name, is_durable, "
        "is_nonconcurrent, is_update_data, requests_recovery, job_data",
        [
            (MAIN, "DEFAULT", "sampleJob", "Sample job", "com.example.SampleJob", "1", "0", "0", "0", None),
            (MAIN, "reports", "dailyReport", "Daily report", "com.example.ReportJob", "1", "1", "0", "1", b"aGVsbG8="),
            (MAIN, "reports", "weeklyReport", None, "com.example.ReportJob", "0", "0", "1", "0", None),
            (OTHER, "reports", "dailyReport", "Daily report", "com.example.ReportJob", "1", "0", "0", "0", None),
        ],
    ),
    (
        "triggers",
        "sched_name, trigger_group, trigger_name, job_group, job_name, description, next_fire_time, "
        "prev_fire_time, priority, trigger_state, trigger_type, start_time, end_time, "
        "calendar_name, misfire_instr, job_data",
        [
            (MAIN, "DEFAULT", "sampleTrigger1", "DEFAULT", "sampleJob", None, 1700000000000, 1699999940000, 5, "WAITING", "SIMPLE", 1699990000000, 0, None, 0, None),
            (MAIN, "DEFAULT", "sampleTrigger2", "DEFAULT", "sampleJob", None, -1, 0, 5, "PAUSED", "SIMPLE", 1699990000000, 0, None, 0, None),
            (MAIN, "reports", "dailyTrigger", "reports", "dailyReport", "Every morning", 1700003600000, 0, 5, "WAITING", "CRON", 1699990000000, 0, "holidays", 1, b"\\x7b7d"),
            (MAIN, "reports", "weeklyTrigger", "reports", "weeklyReport", None, 1700500000000, 0, 5, "WAITING", "CAL_INT", 1699990000000, 0, None, 0, None),
            (MAIN, "reports", "weeklyBlob", "reports", "weeklyReport", None, None, None, 5, "WAITING", "BLOB", 1699990000000, None, None, 0, None),
            (OTHER, "reports", "dailyTrigger", "reports", "dailyReport", None, 1700007200000, 0, 5, "WAITING", "CRON", 1699990000000, 0, None, 0, None),
            (OTHER, "misc", "otherSimple", "reports", "dailyReport", None, 1700001000000, 0, 5, "WAITING", "SIMPLE", 1699990000000, 0, None, 0, None),
            (OTHER, "misc", "otherBlob", "reports", "dailyReport", None, 0, 0, 5, "WAITING", "BLOB", 1699990000000, 0, None, 0, None),
            (OTHER, "misc", "otherProp", "reports", "dailyReport", None, 0, 0, 5, "WAITING", "CAL_INT", 1699990000000, 0, None, 0, None),
        ],
    ),
    (
        "simple_triggers",
        "sched_name, trigger_group, trigger_name, repeat_count, repeat_interval, times_triggered",
        [
            (MAIN, "DEFAULT", "sampleTrigger1", 10, 60000, 2),
            (MAIN, "DEFAULT", "sampleTrigger2", -1, 5000, 0),
            (OTHER, "misc", "otherSimple", 3, 1000, 1),
        ],
    ),
    (
        "cron_triggers",
        "sched_name, trigger_group, trigger_name, cron_expression, time_zone_id",
        [
            (MAIN, "reports", "dailyTrigger", "0 0 6 * * ?", "UTC"),
            (OTHER, "reports", "dailyTrigger", "0 0 7 * * ?", "Europe/Berlin"),
        ],
    ),
    (
        "simprop_triggers",
        "sched_name, trigger_group, trigger_name, str_prop_1, int_prop_1",
        [
            (MAIN, "reports", "weeklyTrigger", "WEEK", 1),
            (OTHER, "misc", "otherProp", "DAY", 2),
        ],
    ),
    (
        "blob_triggers",
        "sched_name, trigger_group, trigger_name, blob_data",
        [
            (MAIN, "reports", "weeklyBlob", b"\x00\x01"),
            (OTHER, "misc", "otherBlob", b"\x02\x03"),
        ],
    ),
    (
        "fired_triggers",
        "sched_name, entry_id, trigger_group, trigger_name, instance_name, fired_time, sched_time, "
        "priority, state, job_group, job_name, is_nonconcurrent, requests_recovery",
        [
            (MAIN, "node-1-1", "DEFAULT", "sampleTrigger1", "node-1", 1699999940000, 1699999940000, 5, "EXECUTING", "DEFAULT", "sampleJob", "0", "0"),
            (MAIN, "node-1-2", "reports", "dailyTrigger", "node-1", 1699999950000, 1699999950000, 5, "ACQUIRED", "reports", "dailyReport", "1", "1"),
            (OTHER, "node-2-1", "reports", "dailyTrigger", "node-2", 1699999960000, 1699999960000, 5, "EXECUTING", "reports", "dailyReport", "0", "0"),
        ],
    ),
    (
        "paused_trigger_grps",
        "sched_name, trigger_group",
        [(MAIN, "reports"), (OTHER, "misc")],
    ),
    (
        "scheduler_state",
        "sched_name, instance_name, last_checkin_time, checkin_interval",
        [(MAIN, "node-1", 1699999990000, 7500), (OTHER, "node-2", 0, 15000)],
    ),
    (
        "locks",
        "sched_name, lock_name",
        [(MAIN, "TRIGGER_ACCESS"), (MAIN, "STATE_ACCESS"), (OTHER, "TRIGGER_ACCESS")],
    ),
    (
        "calendars",
        "sched_name, calendar_name, calendar",
        [(MAIN, "holidays", b"\x00"), (OTHER, "holidays", b"\x00")],
    ),
]

# Seeded row counts per table and scheduler.
SEEDED = {
    table: {
        MAIN: sum(1 for row in rows if row[0] == MAIN),
        OTHER: sum(1 for row in rows if row[0] == OTHER),
    }
    for table, _, rows in SEED
}


def _seed(engine) -> None:
    with engine.begin() as conn:
        for statement in QUARTZ_DDL.split(";"):
            if statement.strip():
                conn.execute(text(statement))
        for table, columns, rows in SEED:
            names = [c.strip() for c in columns.split(",")]
            sql = (
                f"INSERT INTO qrtz_{table} ({', '.join(names)}) "
                f"VALUES ({', '.join(':' + n for n in names)})"
            )
            conn.execute(text(sql), [dict(zip(names, row)) for row in rows])


@pytest.fixture
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'quartz.db'}"
    engine = create_engine(url)
    _seed(engine)
    engine.dispose()
    return url


@pytest.fixture
def settings(db_url):
    from quartz_admin.config import Settings

    return Settings(url=db_url)


@pytest.fixture
def store(settings):
    from quartz_admin.core.store import QuartzStore

    store = QuartzStore.from_settings(settings)
    yield store
    store.engine.dispose()


@pytest.fixture
def service(store):
    from quartz_admin.core.service import QuartzService

    return QuartzService(store)


@pytest.fixture
def count_rows(db_url):
    """Return ``count(table, sched=None)`` reading straight from the database."""
    engine = create_engine(db_url)

    def count(table: str, sched: str | None = None) -> int:
        sql = f"SELECT COUNT(*) FROM qrtz_{table}"
        params = {}
        if sched is not None:
            sql += " WHERE sched_name = :sched"
            params["sched"] = sched
        with engine.connect() as conn:
            return conn.execute(text(sql), params).scalar_one()

    yield count
    engine.dispose()


@pytest.fixture
def drop_table(db_url):
    """Drop one Quartz table out from under the store to force a mid-cascade failure."""
    engine = create_engine(db_url)

    def drop(table: str) -> None:
        with engine.begin() as conn:
            conn.execute(text(f"DROP TABLE qrtz_{table}"))

    yield drop
    engine.dispose()


@pytest.fixture
def seeded():
    """Seeded row counts: ``seeded[table][scheduler]``."""
    return SEEDED
