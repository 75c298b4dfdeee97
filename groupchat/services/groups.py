# groupchat/services/groups.py
import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StoreError
from ..models import Group

logger = logging.getLogger(__name__)


def get_group(db: Session, group_id: int) -> Optional[Group]:
    try:
        return db.get(Group, group_id)
    except SQLAlchemyError as exc:
        logger.exception("Group lookup failed for %s", group_id)
        raise StoreError("Server error") from exc


def list_groups(db: Session) -> List[Group]:
    try:
        return db.query(Group).order_by(desc(Group.created_at), desc(Group.id)).all()
    except SQLAlchemyError as exc:
        logger.exception("Group listing failed")
        raise StoreError("Server error") from exc
