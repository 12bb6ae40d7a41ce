from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.client import Client
from quotebook.models.profile import Profile
from quotebook.schemas.client import ClientCreate, ClientOut, ClientSummary, ClientUpdate
from quotebook.schemas.common import MAX_PER_PAGE, Page, PageParams
from quotebook.services import master_data_service as svc

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=Page[ClientOut])
def list_clients(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    sort_by: str = "name",
    sort_order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    params = PageParams(page=page, per_page=per_page)
    rows, total = svc.list_records(
        db,
        Client,
        search=search,
        search_fields=("name", "contact_person", "business_registration_number"),
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=params.offset,
        limit=params.per_page,
    )
    return Page.build([ClientOut.model_validate(r) for r in rows], total, params)


@router.post("", response_model=ClientOut, status_code=201)
def create_client(
    payload: ClientCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.create_record(db, Client, payload.model_dump(), user)


@router.get("/{client_id}", response_model=ClientOut)
def get_client(
    client_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.get_or_404(db, Client, client_id)


@router.get("/{client_id}/summary", response_model=ClientSummary)
def get_client_summary(
    client_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.client_summary(db, client_id)


@router.patch("/{client_id}", response_model=ClientOut)
def update_client(
    client_id: str,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.update_record(db, Client, client_id, payload.model_dump(exclude_unset=True), user)


@router.delete("/{client_id}", response_model=ClientOut)
def delete_client(
    client_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.deactivate_record(db, Client, client_id, user)
