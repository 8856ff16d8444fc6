from typing import List, Optional

from sqlalchemy.orm import Session

from campus_connect.models.survey_model import Survey, SurveyResponse


def get_survey(db: Session, survey_id: int) -> Optional[Survey]:
    return db.query(Survey).filter(Survey.id == survey_id).first()


def list_active_surveys(db: Session) -> List[Survey]:
    return db.query(Survey).filter(Survey.is_active.is_(True)).order_by(Survey.created_at.desc()).all()


def create_survey(db: Session, created_by: int, survey_data: dict) -> Survey:
    db_survey = Survey(created_by=created_by, **survey_data)
    db.add(db_survey)
    db.commit()
    db.refresh(db_survey)
    return db_survey


def get_response(db: Session, survey_id: int, user_id: int) -> Optional[SurveyResponse]:
    return db.query(SurveyResponse).filter(
        SurveyResponse.survey_id == survey_id,
        SurveyResponse.user_id == user_id,
    ).first()


def create_response(db: Session, survey_id: int, user_id: int, answers: dict) -> SurveyResponse:
    db_response = SurveyResponse(survey_id=survey_id, user_id=user_id, answers=answers)
    db.add(db_response)
    db.commit()
    db.refresh(db_response)
    return db_response


def list_responses(db: Session, survey_id: int) -> List[SurveyResponse]:
    return db.query(SurveyResponse).filter(SurveyResponse.survey_id == survey_id).all()
