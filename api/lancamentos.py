"""Ledger entries REST API (CRUD, listing, attachments, statistics, reports)."""

import logging
import re
from datetime import date, datetime

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import Permission, Scope, require
from src.core.db import get_session
from src.core.entry_store import SqlEntryStore
from src.core.interfaces import AttachmentStore
from src.core.ledger_service import LedgerService
from src.core.models.enums import EntryType
from src.core.models.ledger_entry import LedgerEntry
from src.core.reports import PersonReportGenerator
from src.core.schemas.ledger import (
    Attachment,
    CategoryAggregate,
    DayAggregate,
    EntrySummary,
    LedgerEntryRead,
    LedgerEntryWrite,
)
from src.core.schemas.query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    LedgerFilter,
    Page,
    PageRequest,
)
from src.core.storage import get_attachment_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/lancamentos", tags=["lancamentos"])

CAN_READ = Depends(require(Permission.READ, Scope.READ))
CAN_WRITE = Depends(require(Permission.WRITE, Scope.WRITE))
CAN_DELETE = Depends(require(Permission.DELETE, Scope.WRITE))

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


# --- Dependencies ---


def get_entry_store(session: AsyncSession = Depends(get_session)) -> SqlEntryStore:
    return SqlEntryStore(session)


def get_ledger_service(
    store: SqlEntryStore = Depends(get_entry_store),
    attachments: AttachmentStore = Depends(get_attachment_store),
) -> LedgerService:
    return LedgerService(store, PersonReportGenerator(store), attachments)


# --- Helpers ---


def _parse_date(value: str, name: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date or reject the request."""
    if _ISO_DATE.fullmatch(value):
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            pass
    raise HTTPException(status_code=422, detail=f"'{name}' must be a date in YYYY-MM-DD format")


def _with_url(entry: LedgerEntryRead, attachments: AttachmentStore) -> LedgerEntryRead:
    if entry.attachment:
        entry.attachment_url = attachments.url_for(entry.attachment)
    return entry


def _to_read(entry: LedgerEntry, attachments: AttachmentStore) -> LedgerEntryRead:
    return _with_url(LedgerEntryRead.model_validate(entry), attachments)


# --- Endpoints ---


@router.post("/anexo", response_model=Attachment, dependencies=[CAN_WRITE])
async def upload_attachment(
    anexo: UploadFile = File(...),
    attachments: AttachmentStore = Depends(get_attachment_store),
):
    """Upload a file to object storage and return its storage key and URL."""
    content = await anexo.read()
    name = await attachments.store(content, anexo.filename or "anexo", anexo.content_type)
    return Attachment(name=name, url=attachments.url_for(name))


@router.get(
    "/relatorios/por-pessoa",
    response_class=Response,
    dependencies=[CAN_READ],
    responses={200: {"content": {"application/pdf": {}}}},
)
async def report_by_person(
    inicio: str = Query(..., description="Start date, YYYY-MM-DD"),
    fim: str = Query(..., description="End date, YYYY-MM-DD"),
    service: LedgerService = Depends(get_ledger_service),
):
    """PDF statement of totals per person and type for entries due in the range."""
    start = _parse_date(inicio, "inicio")
    end = _parse_date(fim, "fim")
    pdf = await service.report_by_person(start, end)
    return Response(content=pdf, media_type="application/pdf")


@router.get("", response_model=None, dependencies=[CAN_READ])
async def list_entries(
    request: Request,
    description: str | None = None,
    due_date_from: date | None = Query(None, alias="dueDateFrom"),
    due_date_to: date | None = Query(None, alias="dueDateTo"),
    type: EntryType | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: list[str] | None = Query(None),
    service: LedgerService = Depends(get_ledger_service),
    attachments: AttachmentStore = Depends(get_attachment_store),
) -> Page[LedgerEntryRead] | Page[EntrySummary]:
    """List entries with filters and pagination.

    ``?resumo`` (any value, or none) switches the response to the summary
    projection.
    """
    criteria = LedgerFilter(
        description=description,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        type=type,
    )
    page_request = PageRequest.from_query(page, size, sort)

    if "resumo" in request.query_params:
        return await service.list_summary(criteria, page_request)

    result = await service.list_entries(criteria, page_request)
    for entry in result.content:
        _with_url(entry, attachments)
    return result


@router.get(
    "/estatistica/por-categoria",
    response_model=list[CategoryAggregate],
    dependencies=[CAN_READ],
)
async def stats_by_category(service: LedgerService = Depends(get_ledger_service)):
    """Expense totals per category for the current month."""
    return await service.by_category()


@router.get("/estatistica/por-dia", response_model=list[DayAggregate], dependencies=[CAN_READ])
async def stats_by_day(service: LedgerService = Depends(get_ledger_service)):
    """Totals per type and due date for the current month."""
    return await service.by_day()


@router.get(
    "/{entry_id}",
    name="get_entry",
    response_model=LedgerEntryRead,
    dependencies=[CAN_READ],
)
async def get_entry(
    entry_id: int,
    service: LedgerService = Depends(get_ledger_service),
    attachments: AttachmentStore = Depends(get_attachment_store),
):
    entry = await service.find_one(entry_id)
    return _to_read(entry, attachments)


@router.post("", response_model=LedgerEntryRead, status_code=201, dependencies=[CAN_WRITE])
async def create_entry(
    data: LedgerEntryWrite,
    request: Request,
    response: Response,
    service: LedgerService = Depends(get_ledger_service),
    attachments: AttachmentStore = Depends(get_attachment_store),
):
    """Create an entry; responds 201 with a Location pointing at the new resource."""
    entry = await service.save(LedgerEntry(**data.model_dump()))
    response.headers["Location"] = str(request.url_for("get_entry", entry_id=entry.id))
    return _to_read(entry, attachments)


@router.put("/{entry_id}", response_model=LedgerEntryRead, dependencies=[CAN_WRITE])
async def update_entry(
    entry_id: int,
    data: LedgerEntryWrite,
    service: LedgerService = Depends(get_ledger_service),
    attachments: AttachmentStore = Depends(get_attachment_store),
):
    """Replace the whole entry. Unknown ids answer 404."""
    entry = await service.update(entry_id, data)
    return _to_read(entry, attachments)


@router.delete(
    "/{entry_id}",
    status_code=204,
    response_class=Response,
    dependencies=[CAN_DELETE],
)
async def delete_entry(
    entry_id: int,
    service: LedgerService = Depends(get_ledger_service),
):
    await service.delete(entry_id)
    return Response(status_code=204)
