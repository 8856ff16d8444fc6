# campus_connect/services/survey_service.py
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import is_admin
from campus_connect.crud import survey_crud
from campus_connect.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from campus_connect.models.survey_model import Survey, SurveyResponse
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.services.service_helper import to_utc_naive, utcnow

logger = logging.getLogger(__name__)


def get_survey_or_404(db: Session, survey_id: int) -> Survey:
    db_survey = survey_crud.get_survey(db, survey_id)
    if not db_survey:
        raise NotFoundError("Survey not found")
    return db_survey


def create_survey(db: Session, creator_id: int, survey_data: dict) -> Survey:
    if survey_data.get("closes_at") is not None:
        survey_data["closes_at"] = to_utc_naive(survey_data["closes_at"])
    return survey_crud.create_survey(db, creator_id, survey_data)


def list_open(db: Session) -> List[Survey]:
    now = utcnow()
    return [s for s in survey_crud.list_active_surveys(db) if s.closes_at is None or s.closes_at > now]


def submit_response(db: Session, survey_id: int, user_id: int, answers: dict) -> SurveyResponse:
    """One response per user per survey."""
    db_survey = get_survey_or_404(db, survey_id)
    if not db_survey.is_active or (db_survey.closes_at and db_survey.closes_at <= utcnow()):
        raise ValidationError("This survey is closed")
    if survey_crud.get_response(db, survey_id, user_id):
        raise ConflictError("You have already responded to this survey")
    try:
        return survey_crud.create_response(db, survey_id, user_id, answers)
    except IntegrityError:
        # lost a race against a concurrent submission
        db.rollback()
        logger.info(f"Duplicate survey response rejected: survey={survey_id} user={user_id}")
        raise ConflictError("You have already responded to this survey")


def list_responses(db: Session, survey_id: int, current_user: AuthenticatedUser) -> List[SurveyResponse]:
    db_survey = get_survey_or_404(db, survey_id)
    if db_survey.created_by != current_user.id and not is_admin(current_user.role):
        raise AuthorizationError("Only the survey creator can view responses")
    return survey_crud.list_responses(db, survey_id)
