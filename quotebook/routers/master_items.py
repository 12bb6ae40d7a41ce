from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.master_item import MasterItem
from quotebook.models.profile import Profile
from quotebook.schemas.common import MAX_PER_PAGE, Page, PageParams
from quotebook.schemas.master_item import (
    MasterItemCreate,
    MasterItemOut,
    MasterItemUpdate,
    PriceHistoryOut,
)
from quotebook.services import master_data_service as svc

router = APIRouter(prefix="/master-items", tags=["master-items"])


@router.get("", response_model=Page[MasterItemOut])
def list_master_items(
    search: Optional[str] = None,
    category: Optional[str] = None,
    supplier_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    sort_by: str = "name",
    sort_order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    params = PageParams(page=page, per_page=per_page)
    extra = []
    if category:
        extra.append(MasterItem.category == category)
    if supplier_id:
        extra.append(MasterItem.supplier_id == supplier_id)
    rows, total = svc.list_records(
        db,
        MasterItem,
        search=search,
        search_fields=("name", "description", "category"),
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=params.offset,
        limit=params.per_page,
        extra_filters=tuple(extra),
    )
    return Page.build([MasterItemOut.model_validate(r) for r in rows], total, params)


@router.post("", response_model=MasterItemOut, status_code=201)
def create_master_item(
    payload: MasterItemCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.create_master_item(db, payload.model_dump(), user)


@router.get("/{item_id}", response_model=MasterItemOut)
def get_master_item(
    item_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.get_or_404(db, MasterItem, item_id)


@router.get("/{item_id}/price-history", response_model=list[PriceHistoryOut])
def get_price_history(
    item_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.get_or_404(db, MasterItem, item_id).price_history


@router.patch("/{item_id}", response_model=MasterItemOut)
def update_master_item(
    item_id: str,
    payload: MasterItemUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.update_master_item(db, item_id, payload.model_dump(exclude_unset=True), user)


@router.delete("/{item_id}", response_model=MasterItemOut)
def delete_master_item(
    item_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.deactivate_record(db, MasterItem, item_id, user)
