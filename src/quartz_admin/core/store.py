"""Quartz table queries and cascading deletes.

Every read is a single parameterized statement against the Quartz schema; the
rows come back as plain dicts with camelCase keys, which is the shape both the
CLI and the API emit. Deletes run inside one transaction per call so a failure
at any step leaves the tables untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, NamedTuple

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from quartz_admin.config import Settings
from quartz_admin.core.formatting import (
    as_bool,
    decode_job_data,
    format_timestamp,
    has_payload,
    millis,
)
from quartz_admin.db import tables as t
from quartz_admin.db.tables import TableNames
from quartz_admin.errors import ConnectionFailure, QueryFailure

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class Key(NamedTuple):
    """Identity of a job or trigger row."""

    scheduler_name: str
    group: str
    name: str


class _Where:
    """Accumulates optional WHERE clauses and their bind parameters."""

    def __init__(self) -> None:
        self.clauses: list[str] = []
        self.params: dict[str, Any] = {}

    def match(self, column: str, param: str, value: str | None, exact: bool = False) -> None:
        if not value:
            return
        if exact:
            self.clauses.append(f"{column} = :{param}")
            self.params[param] = value
        else:
            self.clauses.append(f"LOWER({column}) LIKE :{param}")
            self.params[param] = f"%{value.lower()}%"

    def equals(self, column: str, param: str, value: Any) -> None:
        if value is None:
            return
        self.clauses.append(f"{column} = :{param}")
        self.params[param] = value

    def sql(self) -> str:
        if not self.clauses:
            return ""
        return "WHERE " + " AND ".join(self.clauses)


def _mapping(row: Any) -> dict[str, Any]:
    return {str(k).lower(): v for k, v in row._mapping.items()}


def _timestamps(record: Record, **columns: Any) -> None:
    for field, value in columns.items():
        ms = millis(value)
        record[field] = format_timestamp(ms)
        record[f"{field}Ms"] = ms


class QuartzStore:
    """Reads and deletes Quartz scheduler rows through one SQLAlchemy engine."""

    def __init__(
        self,
        engine: Engine,
        tables: TableNames,
        scheduler_name: str | None = None,
    ) -> None:
        self.engine = engine
        self.tables = tables
        self.scheduler_name = scheduler_name or None

    @classmethod
    def from_settings(cls, settings: Settings, engine: Engine | None = None) -> QuartzStore:
        if engine is None:
            from quartz_admin.db.session import create_engine

            engine = create_engine(settings)
        return cls(
            engine,
            TableNames(settings.table_prefix, settings.db_schema),
            settings.scheduler_name,
        )

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    @contextmanager
    def _connect(self, action: str) -> Iterator[Connection]:
        try:
            conn = self.engine.connect()
        except SQLAlchemyError as exc:
            raise ConnectionFailure(f"Error {action}: {_reason(exc)}", exc) from exc
        with conn:
            try:
                yield conn
            except SQLAlchemyError as exc:
                raise QueryFailure(f"Error {action}: {_reason(exc)}", exc) from exc

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Connection]:
        with self._connect(action) as conn:
            with conn.begin():
                yield conn

    def _fetch(self, conn: Connection, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        logger.debug("SQL: %s | params=%s", " ".join(sql.split()), params)
        return [_mapping(row) for row in conn.execute(text(sql), params)]

    def _scoped(self) -> _Where:
        where = _Where()
        where.equals("sched_name", "sched", self.scheduler_name)
        return where

    def ping(self) -> bool:
        with self._connect("checking connection") as conn:
            conn.execute(text("SELECT 1"))
        return True

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def list_jobs(self, group: str | None = None, name: str | None = None) -> list[Record]:
        where = _Where()
        where.match("j.job_group", "group", group)
        where.match("j.job_name", "name", name)
        where.equals("j.sched_name", "sched", self.scheduler_name)
        sql = f"""
            SELECT j.sched_name, j.job_group, j.job_name, j.description, j.job_class_name,
                   COUNT(tr.trigger_name) AS trigger_count
            FROM {self.tables[t.JOB_DETAILS]} j
            LEFT JOIN {self.tables[t.TRIGGERS]} tr
              ON tr.sched_name = j.sched_name
             AND tr.job_group = j.job_group
             AND tr.job_name = j.job_name
            {where.sql()}
            GROUP BY j.sched_name, j.job_group, j.job_name, j.description, j.job_class_name
            ORDER BY j.sched_name, j.job_group, j.job_name
        """
        with self._connect("listing jobs") as conn:
            rows = self._fetch(conn, sql, where.params)
        return [
            {
                "schedulerName": row["sched_name"],
                "group": row["job_group"],
                "name": row["job_name"],
                "class": row["job_class_name"],
                "description": row["description"],
                "triggerCount": int(row["trigger_count"] or 0),
            }
            for row in rows
        ]

    def list_triggers(self, group: str | None = None, name: str | None = None) -> list[Record]:
        where = _Where()
        where.match("trigger_group", "group", group)
        where.match("trigger_name", "name", name)
        where.equals("sched_name", "sched", self.scheduler_name)
        sql = f"""
            SELECT {_TRIGGER_COLUMNS},
                   CASE WHEN job_data IS NULL THEN 0 ELSE 1 END AS has_job_data
            FROM {self.tables[t.TRIGGERS]}
            {where.sql()}
            ORDER BY CASE WHEN next_fire_time IS NULL OR next_fire_time <= 0 THEN 0 ELSE 1 END,
                     next_fire_time DESC, trigger_group, trigger_name
        """
        with self._connect("listing triggers") as conn:
            rows = self._fetch(conn, sql, where.params)
        return [_trigger_record(row, bool(row["has_job_data"])) for row in rows]

    def list_running(self, group: str | None = None, name: str | None = None) -> list[Record]:
        where = _Where()
        where.match("job_group", "group", group)
        where.match("job_name", "name", name)
        where.equals("sched_name", "sched", self.scheduler_name)
        sql = f"""
            SELECT sched_name, entry_id, trigger_group, trigger_name, job_group, job_name,
                   instance_name, fired_time, sched_time, priority, state,
                   is_nonconcurrent, requests_recovery
            FROM {self.tables[t.FIRED_TRIGGERS]}
            {where.sql()}
            ORDER BY fired_time, entry_id
        """
        with self._connect("listing running jobs") as conn:
            rows = self._fetch(conn, sql, where.params)

        records = []
        for row in rows:
            record: Record = {
                "schedulerName": row["sched_name"],
                "entryId": row["entry_id"],
                "triggerGroup": row["trigger_group"],
                "triggerName": row["trigger_name"],
                "jobGroup": row["job_group"],
                "jobName": row["job_name"],
                "instanceName": row["instance_name"],
            }
            _timestamps(record, firedTime=row["fired_time"], scheduledTime=row["sched_time"])
            record.update(
                priority=row["priority"],
                state=row["state"],
                isNonConcurrent=as_bool(row["is_nonconcurrent"]),
                requestsRecovery=as_bool(row["requests_recovery"]),
            )
            records.append(record)
        return records

    def list_paused(self, group: str | None = None) -> list[Record]:
        where = _Where()
        where.match("trigger_group", "group", group)
        where.equals("sched_name", "sched", self.scheduler_name)
        sql = f"""
            SELECT sched_name, trigger_group
            FROM {self.tables[t.PAUSED_TRIGGER_GRPS]}
            {where.sql()}
            ORDER BY trigger_group, sched_name
        """
        with self._connect("listing paused trigger groups") as conn:
            rows = self._fetch(conn, sql, where.params)
        return [
            {"schedulerName": row["sched_name"], "triggerGroup": row["trigger_group"]}
            for row in rows
        ]

    def list_schedulers(self) -> list[Record]:
        where = self._scoped()
        sql = f"""
            SELECT sched_name, instance_name, last_checkin_time, checkin_interval
            FROM {self.tables[t.SCHEDULER_STATE]}
            {where.sql()}
            ORDER BY sched_name, instance_name
        """
        with self._connect("listing schedulers") as conn:
            rows = self._fetch(conn, sql, where.params)

        records = []
        for row in rows:
            record: Record = {
                "schedulerName": row["sched_name"],
                "instanceName": row["instance_name"],
            }
            _timestamps(record, lastCheckinTime=row["last_checkin_time"])
            record["checkinInterval"] = int(row["checkin_interval"] or 0)
            records.append(record)
        return records

    # ------------------------------------------------------------------
    # Match resolution and details
    # ------------------------------------------------------------------

    def match_jobs(
        self, group: str | None = None, name: str | None = None, exact: bool = False
    ) -> list[Key]:
        where = _Where()
        where.match("job_group", "group", group, exact)
        where.match("job_name", "name", name, exact)
        where.equals("sched_name", "sched", self.scheduler_name)
        sql = f"""
            SELECT sched_name, job_group, job_name
            FROM {self.tables[t.JOB_DETAILS]}
            {where.sql()}
            ORDER BY sched_name, job_group, job_name
        """
        with self._connect("finding jobs") as conn:
            rows = self._fetch(conn, sql, where.params)
        return [Key(r["sched_name"], r["job_group"], r["job_name"]) for r in rows]

    def match_triggers(
        self, group: str | None = None, name: str | None = None, exact: bool = False
    ) -> list[Key]:
        where = _Where()
        where.match("trigger_group", "group", group, exact)
        where.match("trigger_name", "name", name, exact)
        where.equals("sched_name", "sched", self.scheduler_name)
        sql = f"""
            SELECT sched_name, trigger_group, trigger_name
            FROM {self.tables[t.TRIGGERS]}
            {where.sql()}
            ORDER BY sched_name, trigger_group, trigger_name
        """
        with self._connect("finding triggers") as conn:
            rows = self._fetch(conn, sql, where.params)
        return [Key(r["sched_name"], r["trigger_group"], r["trigger_name"]) for r in rows]

    def get_job_details(self, key: Key) -> Record | None:
        sql = f"""
            SELECT sched_name, job_group, job_name, description, job_class_name,
                   is_durable, is_nonconcurrent, is_update_data, requests_recovery, job_data
            FROM {self.tables[t.JOB_DETAILS]}
            WHERE sched_name = :sched AND job_group = :group AND job_name = :name
        """
        with self._connect("getting job details") as conn:
            rows = self._fetch(conn, sql, _key_params(key))
            if not rows:
                return None
            row = rows[0]
            job: Record = {
                "schedulerName": row["sched_name"],
                "group": row["job_group"],
                "name": row["job_name"],
                "class": row["job_class_name"],
                "description": row["description"],
                "isDurable": as_bool(row["is_durable"]),
                "isNonConcurrent": as_bool(row["is_nonconcurrent"]),
                "isUpdateData": as_bool(row["is_update_data"]),
                "requestsRecovery": as_bool(row["requests_recovery"]),
                "hasJobData": has_payload(row["job_data"]),
                "jobData": decode_job_data(row["job_data"]),
            }

            owned = self._fetch(
                conn,
                f"""
                SELECT sched_name, trigger_group, trigger_name
                FROM {self.tables[t.TRIGGERS]}
                WHERE sched_name = :sched AND job_group = :group AND job_name = :name
                ORDER BY trigger_group, trigger_name
                """,
                _key_params(key),
            )
            job["triggers"] = [
                self._trigger_details(
                    conn, Key(r["sched_name"], r["trigger_group"], r["trigger_name"])
                )
                for r in owned
            ]
        return job

    def get_trigger_details(self, key: Key) -> Record | None:
        with self._connect("getting trigger details") as conn:
            return self._trigger_details(conn, key)

    def _trigger_details(self, conn: Connection, key: Key) -> Record | None:
        params = _key_params(key)
        rows = self._fetch(
            conn,
            f"""
            SELECT {_TRIGGER_COLUMNS}, description, calendar_name, job_data
            FROM {self.tables[t.TRIGGERS]}
            WHERE sched_name = :sched AND trigger_group = :group AND trigger_name = :name
            """,
            params,
        )
        if not rows:
            return None
        row = rows[0]
        trigger = _trigger_record(row, has_payload(row["job_data"]))
        trigger.update(
            description=row["description"],
            calendarName=row["calendar_name"],
            jobData=decode_job_data(row["job_data"]),
        )

        trigger_type = (row["trigger_type"] or "").upper()
        if trigger_type == "CRON":
            satellite = self._fetch(
                conn,
                f"""
                SELECT cron_expression, time_zone_id
                FROM {self.tables[t.CRON_TRIGGERS]}
                WHERE sched_name = :sched AND trigger_group = :group AND trigger_name = :name
                """,
                params,
            )
            if satellite:
                trigger["cronExpression"] = satellite[0]["cron_expression"]
                trigger["timeZoneId"] = satellite[0]["time_zone_id"]
        elif trigger_type == "SIMPLE":
            satellite = self._fetch(
                conn,
                f"""
                SELECT repeat_count, repeat_interval, times_triggered
                FROM {self.tables[t.SIMPLE_TRIGGERS]}
                WHERE sched_name = :sched AND trigger_group = :group AND trigger_name = :name
                """,
                params,
            )
            if satellite:
                trigger["repeatCount"] = satellite[0]["repeat_count"]
                trigger["repeatInterval"] = satellite[0]["repeat_interval"]
                trigger["timesTriggered"] = satellite[0]["times_triggered"]
        return trigger

    # ------------------------------------------------------------------
    # Cascading deletes
    # ------------------------------------------------------------------

    def delete_jobs(self, keys: Sequence[Key]) -> dict[str, int]:
        """Delete jobs with their triggers, satellite rows and fired-trigger rows.

        All keys are removed in one transaction. Returns rows deleted per
        logical table, in the order the tables were first touched.
        """
        counts: dict[str, int] = {}
        with self._transaction("deleting jobs") as conn:
            for key in keys:
                self._cascade_job(conn, key, counts)
        return counts

    def delete_triggers(self, keys: Sequence[Key]) -> dict[str, int]:
        counts: dict[str, int] = {}
        with self._transaction("deleting triggers") as conn:
            for key in keys:
                self._cascade_trigger(conn, key, counts)
        return counts

    def clear(self) -> dict[str, int]:
        """Empty every Quartz table, scoped to the configured scheduler if any."""
        where = self._scoped()
        counts: dict[str, int] = {}
        with self._transaction("clearing tables") as conn:
            for table in t.CLEAR_ORDER:
                self._delete(conn, table, where.sql(), where.params, counts)
        return counts

    def _cascade_job(self, conn: Connection, key: Key, counts: dict[str, int]) -> None:
        job_where = "WHERE sched_name = :sched AND job_group = :group AND job_name = :name"
        params = _key_params(key)

        self._delete(conn, t.FIRED_TRIGGERS, job_where, params, counts)

        owned = self._fetch(
            conn,
            f"SELECT trigger_group, trigger_name FROM {self.tables[t.TRIGGERS]} {job_where}",
            params,
        )
        for row in owned:
            trigger_params = {
                "sched": key.scheduler_name,
                "group": row["trigger_group"],
                "name": row["trigger_name"],
            }
            for table in t.TRIGGER_SATELLITES:
                self._delete(conn, table, _TRIGGER_WHERE, trigger_params, counts)

        self._delete(conn, t.TRIGGERS, job_where, params, counts)
        self._delete(conn, t.JOB_DETAILS, job_where, params, counts)

    def _cascade_trigger(self, conn: Connection, key: Key, counts: dict[str, int]) -> None:
        params = _key_params(key)
        self._delete(conn, t.FIRED_TRIGGERS, _TRIGGER_WHERE, params, counts)
        for table in t.TRIGGER_SATELLITES:
            self._delete(conn, table, _TRIGGER_WHERE, params, counts)
        self._delete(conn, t.TRIGGERS, _TRIGGER_WHERE, params, counts)

    def _delete(
        self,
        conn: Connection,
        table: str,
        where: str,
        params: dict[str, Any],
        counts: dict[str, int],
    ) -> None:
        sql = f"DELETE FROM {self.tables[table]} {where}".strip()
        logger.debug("SQL: %s | params=%s", sql, params)
        result = conn.execute(text(sql), params)
        deleted = max(result.rowcount or 0, 0)
        counts[table] = counts.get(table, 0) + deleted
        logger.info("Deleted %d row(s) from %s", deleted, self.tables[table])


_TRIGGER_COLUMNS = (
    "sched_name, trigger_group, trigger_name, job_group, job_name, trigger_type, "
    "trigger_state, priority, next_fire_time, prev_fire_time, start_time, end_time, "
    "misfire_instr"
)

_TRIGGER_WHERE = "WHERE sched_name = :sched AND trigger_group = :group AND trigger_name = :name"


def _key_params(key: Key) -> dict[str, Any]:
    return {"sched": key.scheduler_name, "group": key.group, "name": key.name}


def _trigger_record(row: dict[str, Any], has_job_data: bool) -> Record:
    record: Record = {
        "schedulerName": row["sched_name"],
        "group": row["trigger_group"],
        "name": row["trigger_name"],
        "jobGroup": row["job_group"],
        "jobName": row["job_name"],
        "type": row["trigger_type"],
        "state": row["trigger_state"],
        "priority": row["priority"],
    }
    _timestamps(
        record,
        nextFireTime=row["next_fire_time"],
        prevFireTime=row["prev_fire_time"],
        startTime=row["start_time"],
        endTime=row["end_time"],
    )
    record["misfireInstruction"] = row["misfire_instr"]
    record["hasJobData"] = has_job_data
    return record


def _reason(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc).strip()
