"""Command layer shared by the CLI and the REST API."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from quartz_admin.config import Settings
from quartz_admin.core.store import Key, QuartzStore, Record
from quartz_admin.errors import AmbiguousResult, UserCancelled

logger = logging.getLogger(__name__)

ConfirmMatches = Callable[[list[Key]], bool]


class ViewOutcome(enum.StrEnum):
    NOT_FOUND = "not_found"
    DETAIL = "detail"
    LIST = "list"


@dataclass
class ViewResult:
    outcome: ViewOutcome
    detail: Record | None = None
    rows: list[Record] = field(default_factory=list)


@dataclass
class DeleteResult:
    matches: list[Key]
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return bool(self.matches)


def _require_filter(command: str, group: str | None, name: str | None) -> None:
    if not group and not name:
        raise ValueError(f"At least one of group or name must be specified for {command}")


def key_records(keys: list[Key]) -> list[dict[str, Any]]:
    return [{"schedulerName": k.scheduler_name, "group": k.group, "name": k.name} for k in keys]


class QuartzService:
    """List/view/delete/clear operations over a :class:`QuartzStore`."""

    def __init__(self, store: QuartzStore) -> None:
        self.store = store

    # ── lists ─────────────────────────────────────────────────────────────────

    def list_jobs(self, group: str | None = None, name: str | None = None) -> list[Record]:
        return self.store.list_jobs(group, name)

    def list_triggers(self, group: str | None = None, name: str | None = None) -> list[Record]:
        return self.store.list_triggers(group, name)

    def list_running(self, group: str | None = None, name: str | None = None) -> list[Record]:
        return self.store.list_running(group, name)

    def list_paused(self, group: str | None = None) -> list[Record]:
        return self.store.list_paused(group)

    def list_schedulers(self) -> list[Record]:
        return self.store.list_schedulers()

    # ── views ─────────────────────────────────────────────────────────────────

    def view_job(self, group: str | None = None, name: str | None = None) -> ViewResult:
        _require_filter("view-job", group, name)
        keys = self.store.match_jobs(group, name)
        if not keys:
            return ViewResult(ViewOutcome.NOT_FOUND)
        if len(keys) > 1:
            return ViewResult(ViewOutcome.LIST, rows=self.store.list_jobs(group, name))
        detail = self.store.get_job_details(keys[0])
        if detail is None:
            return ViewResult(ViewOutcome.NOT_FOUND)
        return ViewResult(ViewOutcome.DETAIL, detail=detail)

    def view_trigger(self, group: str | None = None, name: str | None = None) -> ViewResult:
        _require_filter("view-trigger", group, name)
        keys = self.store.match_triggers(group, name)
        if not keys:
            return ViewResult(ViewOutcome.NOT_FOUND)
        if len(keys) > 1:
            return ViewResult(ViewOutcome.LIST, rows=self.store.list_triggers(group, name))
        detail = self.store.get_trigger_details(keys[0])
        if detail is None:
            return ViewResult(ViewOutcome.NOT_FOUND)
        return ViewResult(ViewOutcome.DETAIL, detail=detail)

    def get_job(self, group: str, name: str) -> Record | None:
        """Exact lookup; raises :class:`AmbiguousResult` if several schedulers share the key."""
        keys = self.store.match_jobs(group, name, exact=True)
        if not keys:
            return None
        if len(keys) > 1:
            raise AmbiguousResult("job", key_records(keys))
        return self.store.get_job_details(keys[0])

    def get_trigger(self, group: str, name: str) -> Record | None:
        keys = self.store.match_triggers(group, name, exact=True)
        if not keys:
            return None
        if len(keys) > 1:
            raise AmbiguousResult("trigger", key_records(keys))
        return self.store.get_trigger_details(keys[0])

    # ── deletes ───────────────────────────────────────────────────────────────

    def delete_jobs(
        self,
        group: str | None = None,
        name: str | None = None,
        *,
        exact: bool = False,
        force: bool = False,
        confirm: ConfirmMatches | None = None,
    ) -> DeleteResult:
        """Delete every matching job with its triggers in one transaction.

        Several matches need ``force`` or a ``confirm`` callback that returns
        True; without either an :class:`AmbiguousResult` is raised.
        """
        _require_filter("delete-job", group, name)
        keys = self.store.match_jobs(group, name, exact=exact)
        if not keys:
            return DeleteResult([])
        self._check_many("job", keys, force, confirm)
        logger.info("Deleting %d job(s)", len(keys))
        return DeleteResult(keys, self.store.delete_jobs(keys))

    def delete_triggers(
        self,
        group: str | None = None,
        name: str | None = None,
        *,
        exact: bool = False,
        force: bool = False,
        confirm: ConfirmMatches | None = None,
    ) -> DeleteResult:
        _require_filter("delete-trigger", group, name)
        keys = self.store.match_triggers(group, name, exact=exact)
        if not keys:
            return DeleteResult([])
        self._check_many("trigger", keys, force, confirm)
        logger.info("Deleting %d trigger(s)", len(keys))
        return DeleteResult(keys, self.store.delete_triggers(keys))

    def clear(
        self, *, force: bool = False, confirm: Callable[[], bool] | None = None
    ) -> dict[str, int]:
        if not force and (confirm is None or not confirm()):
            raise UserCancelled()
        logger.info("Clearing Quartz tables (scheduler=%s)", self.store.scheduler_name or "*")
        return self.store.clear()

    @staticmethod
    def _check_many(
        kind: str, keys: list[Key], force: bool, confirm: ConfirmMatches | None
    ) -> None:
        if len(keys) < 2 or force:
            return
        if confirm is None:
            raise AmbiguousResult(kind, key_records(keys))
        if not confirm(keys):
            raise UserCancelled()


def connection_info(settings: Settings) -> dict[str, Any]:
    from quartz_admin.db.session import display_url

    return {
        "url": display_url(settings),
        "driver": settings.driver,
        "schema": settings.db_schema or "Default",
        "tablePrefix": settings.table_prefix.lower(),
        "schedulerName": settings.scheduler_name,
    }
