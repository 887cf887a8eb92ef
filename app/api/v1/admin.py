from __future__ import annotations
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.schemas.user import UserRead
from app.models.user import User, UserType
from app.core.deps import get_db, require_user_type
from app.core.exceptions import ValidationError
from app.services.email import EmailSender, get_email_sender
from app.services.password_reset import PasswordResetService
from app.services.verification import VerificationService
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_user_type(UserType.ADMIN))],
)


class PurgeResult(BaseModel):
    email_verification_tokens: int
    password_reset_tokens: int


def _agents(db: Session):
    return db.query(User).filter(User.user_type == UserType.AGENT.value, User.is_active.is_(True))


@router.get("/agents/pending", response_model=list[UserRead])
def list_pending_agents(db: Session = Depends(get_db)):
    """Agents who verified their email and are waiting for approval."""
    return (
        _agents(db)
        .filter(User.is_verified.is_(True), User.is_approved.is_(False))
        .order_by(User.created_at.asc(), User.id.asc())
        .all()
    )


@router.get("/agents", response_model=list[UserRead])
def list_agents(db: Session = Depends(get_db)):
    return _agents(db).order_by(User.created_at.desc(), User.id.desc()).all()


@router.post("/agents/{agent_id}/approve", response_model=UserRead)
def approve_agent(
    agent_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_user_type(UserType.ADMIN)),
):
    agent = db.get(User, agent_id)
    if not agent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent not found")
    if not agent.is_agent:
        raise ValidationError("Only agents can be approved")
    if agent.is_approved:
        return agent

    agent.is_approved = True
    agent.approved_at = utcnow()
    agent.approved_by = admin.id
    db.add(agent)
    db.commit()
    db.refresh(agent)
    logger.info("Agent approved", extra={"agent_id": agent.id, "admin_id": admin.id})
    return agent


@router.get("/users", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db)):
    return db.query(User).order_by(User.id.asc()).all()


@router.post("/maintenance/purge-tokens", response_model=PurgeResult)
def purge_tokens(db: Session = Depends(get_db), sender: EmailSender = Depends(get_email_sender)):
    """Deletes expired and consumed tokens; meant to be hit by an external timer."""
    return PurgeResult(
        email_verification_tokens=VerificationService(db, sender).purge_expired(),
        password_reset_tokens=PasswordResetService(db, sender).purge_expired(),
    )
