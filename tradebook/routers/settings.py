from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..messages import INVOICE_VARIABLES, QUOTE_VARIABLES
from ..repository import SettingsRepository

router = APIRouter(prefix="/settings", tags=["settings"])


def get_settings_repo(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SettingsRepository:
    return SettingsRepository(db, current_user.id)


@router.get("/", response_model=schemas.BusinessSettings)
def get_business_settings(repo: SettingsRepository = Depends(get_settings_repo)):
    """The business settings, or the defaults if none have been saved yet."""
    return repo.get() or schemas.BusinessSettings()


@router.put("/", response_model=schemas.BusinessSettings)
def save_business_settings(
    update: schemas.BusinessSettingsBase,
    repo: SettingsRepository = Depends(get_settings_repo),
):
    return repo.upsert(**update.model_dump())


@router.get("/template-variables", response_model=schemas.TemplateVariables)
def template_variables():
    """Placeholders available in the quote and invoice message templates."""
    return {"quote": list(QUOTE_VARIABLES), "invoice": list(INVOICE_VARIABLES)}
