# groupchat/routers/groups.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ValidationError
from ..schemas import GroupOut, MessageCreate, MessageOut
from ..services import groups as group_service
from ..services import messages as message_service
from .auth import current_principal

router = APIRouter(prefix="/api/groups", tags=["groups"])

chat_db = Annotated[Session, Depends(get_db)]


@router.get("", response_model=List[GroupOut])
def list_groups(db: chat_db):
    return group_service.list_groups(db)


@router.get("/{group_id}", response_model=Optional[GroupOut])
def get_group(group_id: int, db: chat_db):
    # unknown groups are an empty result, not an error
    return group_service.get_group(db, group_id)


@router.get("/{group_id}/messages", response_model=List[MessageOut])
def list_messages(group_id: int, db: chat_db):
    return message_service.list_messages(db, group_id)


@router.post("/{group_id}/messages", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def post_message(group_id: int, body: MessageCreate, db: chat_db, principal: current_principal):
    if not body.message.strip():
        raise ValidationError("Message is required")
    return message_service.append_message(
        db,
        group_id=group_id,
        author_id=principal.id,
        author_name=principal.username,
        body=body.message,
    )
