"""Quartz router — paginated listings, exact-key detail/delete, clear and info."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from quartz_admin.core.pagination import paginate
from quartz_admin.core.service import DeleteResult, QuartzService, connection_info, key_records

router = APIRouter()


class PageOut(BaseModel):
    content: list[dict[str, Any]]
    totalItems: int
    totalPages: int
    currentPage: int
    pageSize: int


class DeleteOut(BaseModel):
    deleted: int
    matches: list[dict[str, str]]
    rows: dict[str, int]


class ClearOut(BaseModel):
    cleared: dict[str, int]


def get_service(request: Request) -> QuartzService:
    service = request.app.state.service
    if service is None:
        raise HTTPException(status_code=503, detail="Database not configured (set QUARTZ_URL)")
    return service


def _deleted(result: DeleteResult, kind: str, group: str, name: str) -> DeleteOut:
    if not result.found:
        raise HTTPException(status_code=404, detail=f"{kind} '{group}.{name}' not found")
    return DeleteOut(
        deleted=len(result.matches),
        matches=key_records(result.matches),
        rows=result.counts,
    )


# ── listings ───────────────────────────────────────────────────────────────────


@router.get("/jobs", response_model=PageOut)
def list_jobs(
    group: str | None = None,
    name: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    service: QuartzService = Depends(get_service),
):
    return paginate(service.list_jobs(group, name), page, size)


@router.get("/triggers", response_model=PageOut)
def list_triggers(
    group: str | None = None,
    name: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    service: QuartzService = Depends(get_service),
):
    return paginate(service.list_triggers(group, name), page, size)


@router.get("/running-jobs", response_model=PageOut)
def list_running(
    group: str | None = None,
    name: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    service: QuartzService = Depends(get_service),
):
    return paginate(service.list_running(group, name), page, size)


@router.get("/paused-groups", response_model=PageOut)
def list_paused(
    group: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    service: QuartzService = Depends(get_service),
):
    return paginate(service.list_paused(group), page, size)


@router.get("/schedulers", response_model=PageOut)
def list_schedulers(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    service: QuartzService = Depends(get_service),
):
    return paginate(service.list_schedulers(), page, size)


# ── jobs ───────────────────────────────────────────────────────────────────────


@router.get("/jobs/{group}/{name}")
def get_job(group: str, name: str, service: QuartzService = Depends(get_service)):
    job = service.get_job(group, name)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job '{group}.{name}' not found")
    return job


@router.delete("/jobs/{group}/{name}", response_model=DeleteOut)
def delete_job(
    group: str,
    name: str,
    force: bool = False,
    service: QuartzService = Depends(get_service),
):
    result = service.delete_jobs(group, name, exact=True, force=force)
    return _deleted(result, "Job", group, name)


# ── triggers ───────────────────────────────────────────────────────────────────


@router.get("/triggers/{group}/{name}")
def get_trigger(group: str, name: str, service: QuartzService = Depends(get_service)):
    trigger = service.get_trigger(group, name)
    if trigger is None:
        raise HTTPException(status_code=404, detail=f"Trigger '{group}.{name}' not found")
    return trigger


@router.delete("/triggers/{group}/{name}", response_model=DeleteOut)
def delete_trigger(
    group: str,
    name: str,
    force: bool = False,
    service: QuartzService = Depends(get_service),
):
    result = service.delete_triggers(group, name, exact=True, force=force)
    return _deleted(result, "Trigger", group, name)


# ── maintenance ────────────────────────────────────────────────────────────────


@router.delete("/clear", response_model=ClearOut)
def clear(force: bool = False, service: QuartzService = Depends(get_service)):
    if not force:
        raise HTTPException(status_code=400, detail="Clearing all tables requires force=true")
    return ClearOut(cleared=service.clear(force=True))


@router.get("/info")
def info(request: Request):
    return connection_info(request.app.state.settings)
