from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.schemas.common import MAX_PER_PAGE, Page, PageParams
from quotebook.schemas.project import TransactionCreate, TransactionOut, TransactionUpdate
from quotebook.services import transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=Page[TransactionOut])
def list_transactions(
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    type: Optional[str] = None,
    due_from: Optional[date] = None,
    due_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    params = PageParams(page=page, per_page=per_page)
    rows, total = transaction_service.list_transactions(
        db,
        project_id=project_id,
        status=status,
        type=type,
        due_from=due_from,
        due_to=due_to,
        offset=params.offset,
        limit=params.per_page,
    )
    return Page.build([TransactionOut.model_validate(r) for r in rows], total, params)


@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return transaction_service.create_transaction(db, payload, user)


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return transaction_service.get_transaction(db, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return transaction_service.update_transaction(
        db, transaction_id, payload.model_dump(exclude_unset=True), user
    )


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    transaction_service.delete_transaction(db, transaction_id, user)
    return Response(status_code=204)
