from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.schemas.common import MAX_PER_PAGE, Page, PageParams
from quotebook.schemas.project import (
    ProjectDetailOut,
    ProjectOut,
    ProjectUpdate,
    TransactionOut,
)
from quotebook.services import project_service

router = APIRouter(prefix="/projects", tags=["projects"])


def _detail(db: Session, project) -> ProjectDetailOut:
    base = ProjectOut.model_validate(project).model_dump()
    return ProjectDetailOut(
        **base,
        transactions=[TransactionOut.model_validate(t) for t in project.transactions],
        financials=project_service.financial_summary(db, project),
    )


@router.get("", response_model=Page[ProjectOut])
def list_projects(
    status: Optional[str] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    params = PageParams(page=page, per_page=per_page)
    rows, total = project_service.list_projects(
        db,
        status=status,
        client_id=client_id,
        search=search,
        offset=params.offset,
        limit=params.per_page,
    )
    return Page.build([ProjectOut.model_validate(r) for r in rows], total, params)


@router.get("/{project_id}", response_model=ProjectDetailOut)
def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return _detail(db, project_service.get_project(db, project_id))


@router.patch("/{project_id}")
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    project, settlement = project_service.update_project(
        db, project_id, payload.model_dump(exclude_unset=True), user
    )
    return {
        "project": _detail(db, project),
        "settlement": settlement,
    }
