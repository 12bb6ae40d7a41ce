from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.models.quote_template import QuoteTemplate
from quotebook.schemas.quote import QuoteTemplateIn, QuoteTemplateOut
from quotebook.services import quote_service

router = APIRouter(prefix="/quote-templates", tags=["quote-templates"])


@router.get("", response_model=list[QuoteTemplateOut])
def list_templates(
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return db.query(QuoteTemplate).order_by(QuoteTemplate.name.asc()).limit(200).all()


@router.post("", response_model=QuoteTemplateOut, status_code=201)
def create_template(
    payload: QuoteTemplateIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return quote_service.create_template(db, payload, user)


@router.get("/{template_id}", response_model=QuoteTemplateOut)
def get_template(
    template_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return quote_service.get_template(db, template_id)


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: str,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    quote_service.delete_template(db, template_id, user)
    return Response(status_code=204)
