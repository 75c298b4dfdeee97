# groupchat/services/messages.py
"""
Ordered message persistence for a group.

Messages are append-only. Each append is a single insert whose id and (by
default) timestamp are assigned by the store, so concurrent posts never race
on a read-modify-write. History is read back ordered by send time with the
id as tie-breaker, which keeps same-second posts in insertion order.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import asc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StoreError, ValidationError
from ..models import Message

logger = logging.getLogger(__name__)


def list_messages(db: Session, group_id: int) -> List[Message]:
    try:
        return (
            db.query(Message)
            .filter(Message.group_id == group_id)
            .order_by(asc(Message.timestamp), asc(Message.id))
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Message listing failed for group %s", group_id)
        raise StoreError("Server error") from exc


def append_message(
    db: Session,
    *,
    group_id: int,
    author_id: Optional[int],
    author_name: Optional[str],
    body: str,
    sent_at: Optional[datetime] = None,
) -> Message:
    if body is None or not body.strip():
        raise ValidationError("Message is required")

    msg = Message(
        group_id=group_id,
        user_id=author_id,
        username=author_name,
        message=body,
    )
    if sent_at is not None:
        if sent_at.tzinfo is not None:
            sent_at = sent_at.astimezone(timezone.utc).replace(tzinfo=None)
        msg.timestamp = sent_at
    try:
        db.add(msg)
        db.commit()
        db.refresh(msg)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Could not store message in group %s", group_id)
        raise StoreError("Server error") from exc
    logger.debug("Stored message %s in group %s from user %s", msg.id, group_id, author_id)
    return msg
