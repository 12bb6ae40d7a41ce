from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.supplier import Supplier
from quotebook.models.profile import Profile
from quotebook.schemas.supplier import SupplierCreate, SupplierOut, SupplierUpdate
from quotebook.schemas.common import MAX_PER_PAGE, Page, PageParams
from quotebook.services import master_data_service as svc

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.get("", response_model=Page[SupplierOut])
def list_suppliers(
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
        Supplier,
        search=search,
        search_fields=("name", "contact_person"),
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=params.offset,
        limit=params.per_page,
    )
    return Page.build([SupplierOut.model_validate(r) for r in rows], total, params)


@router.post("", response_model=SupplierOut, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.create_record(db, Supplier, payload.model_dump(), user)


@router.get("/{supplier_id}", response_model=SupplierOut)
def get_supplier(
    supplier_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.get_or_404(db, Supplier, supplier_id)


@router.patch("/{supplier_id}", response_model=SupplierOut)
def update_supplier(
    supplier_id: str,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.update_record(db, Supplier, supplier_id, payload.model_dump(exclude_unset=True), user)


@router.delete("/{supplier_id}", response_model=SupplierOut)
def delete_supplier(
    supplier_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return svc.deactivate_record(db, Supplier, supplier_id, user)
