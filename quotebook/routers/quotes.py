from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.export.excel_export import quote_workbook_bytes
from quotebook.models.profile import Profile
from quotebook.repositories.quotes import QuoteFilters, get_quote_by_id, list_quotes
from quotebook.schemas.common import MAX_PER_PAGE, Page, PageParams
from quotebook.schemas.project import ConvertResult, ProjectOut, TransactionOut
from quotebook.schemas.quote import (
    ConvertToProjectIn,
    QuoteCopyIn,
    QuoteCreate,
    QuoteFullOut,
    QuoteOut,
    QuotePreviewIn,
    QuoteStatusIn,
    QuoteTemplateOut,
    QuoteUpdate,
    SaveAsTemplateIn,
)
from quotebook.services import profile_service, project_service, quote_service

router = APIRouter(prefix="/quotes", tags=["quotes"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("", response_model=Page[QuoteOut])
def list_all_quotes(
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    amount_min: Optional[Decimal] = None,
    amount_max: Optional[Decimal] = None,
    created_by: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    sort_by: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    params = PageParams(page=page, per_page=per_page)
    filters = QuoteFilters(
        status=status,
        client_id=client_id,
        search=search,
        date_from=date_from,
        date_to=date_to,
        amount_min=amount_min,
        amount_max=amount_max,
        created_by=created_by,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    rows, total = list_quotes(db, filters, offset=params.offset, limit=params.per_page)
    return Page.build([QuoteOut.model_validate(r) for r in rows], total, params)


@router.post("/calculate")
def calculate_quote(
    payload: QuotePreviewIn,
    user: Profile = Depends(get_current_user),
):
    return quote_service.calculate(payload).as_dict()


@router.post("", response_model=QuoteFullOut, status_code=201)
def create_quote(
    payload: QuoteCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote = quote_service.create_quote(db, payload, user)
    return quote_service.quote_detail(db, quote)


@router.get("/{quote_id}", response_model=QuoteFullOut)
def get_quote(
    quote_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return quote_service.quote_detail(db, get_quote_by_id(db, quote_id))


@router.put("/{quote_id}", response_model=QuoteFullOut)
def update_quote(
    quote_id: str,
    payload: QuoteUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote = quote_service.update_quote(db, quote_id, payload, user)
    return quote_service.quote_detail(db, quote)


@router.delete("/{quote_id}", status_code=204)
def delete_quote(
    quote_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote_service.delete_quote(db, quote_id, user)
    return Response(status_code=204)


@router.patch("/{quote_id}/status", response_model=QuoteFullOut)
def change_quote_status(
    quote_id: str,
    payload: QuoteStatusIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote = quote_service.change_status(db, quote_id, payload, user)
    return quote_service.quote_detail(db, quote)


@router.post("/{quote_id}/copy", response_model=QuoteFullOut, status_code=201)
def copy_quote(
    quote_id: str,
    payload: QuoteCopyIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote = quote_service.copy_quote(db, quote_id, payload, user)
    return quote_service.quote_detail(db, quote)


@router.post("/{quote_id}/convert-to-project", response_model=ConvertResult, status_code=201)
def convert_to_project(
    quote_id: str,
    payload: ConvertToProjectIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    project, transactions = project_service.convert_to_project(db, quote_id, payload, user)
    return ConvertResult(
        project=ProjectOut.model_validate(project),
        transactions=[TransactionOut.model_validate(t) for t in transactions],
    )


@router.post("/{quote_id}/save-as-template", response_model=QuoteTemplateOut, status_code=201)
def save_as_template(
    quote_id: str,
    payload: SaveAsTemplateIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return quote_service.save_as_template(db, quote_id, payload, user)


@router.get("/{quote_id}/export.xlsx")
def export_quote(
    quote_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote = get_quote_by_id(db, quote_id)
    content = quote_workbook_bytes(
        quote,
        quote_service.calculate_stored(quote),
        profile_service.get_company_settings(db),
    )
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{quote.quote_number}.xlsx"'},
    )
