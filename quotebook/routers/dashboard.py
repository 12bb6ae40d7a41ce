from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.services.dashboard_service import dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return dashboard_stats(db)
