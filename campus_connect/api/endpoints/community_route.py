# campus_connect/api/endpoints/community_route.py
"""
Posts, comments, forums, events and surveys. Any signed-in user may read; creating
events and surveys needs the matching capability.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import get_current_active_user, require_capability
from campus_connect.api.auth.permissions import Capability
from campus_connect.crud import event_crud, forum_crud, post_crud
from campus_connect.crud.ownership import raise_for_outcome
from campus_connect.schemas import event_schema, forum_schema, post_schema, survey_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import event_service, forum_service, post_service, survey_service
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import build_pagination, utcnow

router = APIRouter()

EVENT_CREATORS = require_capability(Capability.CREATE_EVENTS)
SURVEY_CREATORS = require_capability(Capability.CREATE_SURVEYS)


# ---------------------------------------------------------
# POSTS & COMMENTS
# ---------------------------------------------------------

@router.get("/posts", response_model=Envelope[List[post_schema.PostRead]], summary="Active posts")
def list_posts(
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    rows, total = post_crud.list_posts(db, page=page, limit=limit, category=category)
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.post(
    "/posts",
    response_model=Envelope[post_schema.PostRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a post",
)
def create_post(
    post_in: post_schema.PostCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "message": "Post created", "data": post_crud.create_post(db, current_user.id, post_in.model_dump())}


@router.get("/posts/{post_id}", response_model=Envelope[post_schema.PostRead], summary="Post details")
def get_post(
    post_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": post_service.get_post_or_404(db, post_id)}


@router.put("/posts/{post_id}", response_model=Envelope[post_schema.PostRead], summary="Edit my post")
def update_post(
    post_id: int,
    post_in: post_schema.PostUpdate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_post = post_service.update_post(db, post_id, current_user.id, post_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Post updated", "data": db_post}


@router.delete("/posts/{post_id}", response_model=Envelope[dict], summary="Delete a post")
def delete_post(
    post_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    post_service.delete_post(db, post_id, current_user)
    return {"success": True, "message": "Post deleted"}


@router.get(
    "/posts/{post_id}/comments",
    response_model=Envelope[List[post_schema.CommentRead]],
    summary="Comments on a post",
)
def list_comments(
    post_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    post_service.get_post_or_404(db, post_id)
    return {"success": True, "data": post_crud.list_comments(db, post_id)}


@router.post(
    "/comments",
    response_model=Envelope[post_schema.CommentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
)
def create_comment(
    comment_in: post_schema.CommentCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_comment = post_service.add_comment(db, current_user.id, comment_in.post_id, comment_in.content)
    return {"success": True, "message": "Comment added", "data": db_comment}


@router.delete("/comments/{comment_id}", response_model=Envelope[dict], summary="Delete my comment")
def delete_comment(
    comment_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    raise_for_outcome(post_crud.delete_owned_comment(db, comment_id, current_user.id), "Comment")
    return {"success": True, "message": "Comment deleted"}


# ---------------------------------------------------------
# FORUMS
# ---------------------------------------------------------

@router.get("/forums", response_model=Envelope[List[forum_schema.ForumRead]], summary="Forums")
def list_forums(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    rows, total = forum_crud.list_forums(db, page=page, limit=limit)
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.post(
    "/forums",
    response_model=Envelope[forum_schema.ForumRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a forum",
)
def create_forum(
    forum_in: forum_schema.ForumCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_forum = forum_crud.create_forum(db, current_user.id, forum_in.model_dump())
    return {"success": True, "message": "Forum created", "data": db_forum}


@router.get("/forums/{forum_id}", response_model=Envelope[forum_schema.ForumRead], summary="Forum details")
def get_forum(
    forum_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": forum_service.get_forum_or_404(db, forum_id)}


@router.put("/forums/{forum_id}", response_model=Envelope[forum_schema.ForumRead], summary="Edit my forum")
def update_forum(
    forum_id: int,
    forum_in: forum_schema.ForumUpdate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_forum = forum_service.update_forum(db, forum_id, current_user.id, forum_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Forum updated", "data": db_forum}


@router.delete("/forums/{forum_id}", response_model=Envelope[dict], summary="Delete a forum")
def delete_forum(
    forum_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    forum_service.delete_forum(db, forum_id, current_user)
    return {"success": True, "message": "Forum deleted"}


@router.get(
    "/forums/{forum_id}/posts",
    response_model=Envelope[List[forum_schema.ForumPostRead]],
    summary="Active posts and replies in a forum",
)
def list_forum_posts(
    forum_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    forum_service.get_forum_or_404(db, forum_id)
    rows, total = forum_crud.list_forum_posts(db, forum_id=forum_id, page=page, limit=limit)
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.post(
    "/forums/{forum_id}/posts",
    response_model=Envelope[forum_schema.ForumPostRead],
    status_code=status.HTTP_201_CREATED,
    summary="Post or reply in a forum",
)
def create_forum_post(
    forum_id: int,
    post_in: forum_schema.ForumPostCreate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_post = forum_service.add_post(db, forum_id, current_user.id, post_in.content, post_in.parent_id, notifier)
    return {"success": True, "message": "Forum post created", "data": db_post}


@router.put(
    "/forum-posts/{post_id}",
    response_model=Envelope[forum_schema.ForumPostRead],
    summary="Edit my forum post",
)
def update_forum_post(
    post_id: int,
    post_in: forum_schema.ForumPostUpdate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_post = forum_service.update_post(db, post_id, current_user.id, post_in.model_dump())
    return {"success": True, "message": "Forum post updated", "data": db_post}


@router.delete("/forum-posts/{post_id}", response_model=Envelope[dict], summary="Delete a forum post")
def delete_forum_post(
    post_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    forum_service.delete_post(db, post_id, current_user)
    return {"success": True, "message": "Forum post deleted"}


# ---------------------------------------------------------
# EVENTS
# ---------------------------------------------------------

@router.get("/events", response_model=Envelope[List[event_schema.EventRead]], summary="Events")
def list_events(
    upcoming: bool = Query(True, description="Only events that have not started"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    rows = event_crud.list_events(db, upcoming_from=utcnow() if upcoming else None, skip=skip, limit=limit)
    return {"success": True, "data": rows}


@router.post(
    "/events",
    response_model=Envelope[event_schema.EventRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create an event",
)
def create_event(
    event_in: event_schema.EventCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(EVENT_CREATORS),
):
    db_event = event_service.create_event(db, current_user.id, event_in.model_dump())
    return {"success": True, "message": "Event created", "data": db_event}


@router.get("/events/{event_id}", response_model=Envelope[event_schema.EventRead], summary="Event details")
def get_event(
    event_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": event_service.get_event_or_404(db, event_id)}


@router.put("/events/{event_id}", response_model=Envelope[event_schema.EventRead], summary="Update an event")
def update_event(
    event_id: int,
    event_in: event_schema.EventUpdate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_event = event_service.update_event(db, event_id, event_in.model_dump(exclude_unset=True), current_user, notifier)
    return {"success": True, "message": "Event updated", "data": db_event}


@router.delete("/events/{event_id}", response_model=Envelope[dict], summary="Delete an event")
def delete_event(
    event_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    event_service.delete_event(db, event_id, current_user)
    return {"success": True, "message": "Event deleted"}


@router.post("/events/{event_id}/rsvp", response_model=Envelope[event_schema.RsvpRead], summary="RSVP to an event")
def rsvp(
    event_id: int,
    rsvp_in: event_schema.RsvpRequest,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_rsvp = event_service.rsvp(db, event_id, current_user.id, rsvp_in.status)
    return {"success": True, "message": f"RSVP saved as {rsvp_in.status.value}", "data": db_rsvp}


# ---------------------------------------------------------
# SURVEYS
# ---------------------------------------------------------

@router.get("/surveys", response_model=Envelope[List[survey_schema.SurveyRead]], summary="Open surveys")
def list_surveys(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": survey_service.list_open(db)}


@router.post(
    "/surveys",
    response_model=Envelope[survey_schema.SurveyRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a survey",
)
def create_survey(
    survey_in: survey_schema.SurveyCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(SURVEY_CREATORS),
):
    db_survey = survey_service.create_survey(db, current_user.id, survey_in.model_dump())
    return {"success": True, "message": "Survey created", "data": db_survey}


@router.get("/surveys/{survey_id}", response_model=Envelope[survey_schema.SurveyRead], summary="Survey details")
def get_survey(
    survey_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": survey_service.get_survey_or_404(db, survey_id)}


@router.post(
    "/surveys/{survey_id}/responses",
    response_model=Envelope[survey_schema.SurveyResponseRead],
    status_code=status.HTTP_201_CREATED,
    summary="Answer a survey",
)
def respond_to_survey(
    survey_id: int,
    response_in: survey_schema.SurveyResponseCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_response = survey_service.submit_response(db, survey_id, current_user.id, response_in.answers)
    return {"success": True, "message": "Response recorded", "data": db_response}


@router.get(
    "/surveys/{survey_id}/responses",
    response_model=Envelope[List[survey_schema.SurveyResponseRead]],
    summary="Responses to my survey",
)
def list_survey_responses(
    survey_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": survey_service.list_responses(db, survey_id, current_user)}
