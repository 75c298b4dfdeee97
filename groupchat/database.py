# groupchat/database.py
import logging
from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from . import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str = config.DATABASE_URL) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # needed for SQLite + FastAPI; timeout bounds how long a write waits on the lock
        connect_args = {"check_same_thread": False, "timeout": config.DB_TIMEOUT_SECONDS}
    return create_engine(url, connect_args=connect_args, future=True, echo=config.SQL_ECHO)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, future=True)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DEFAULT_GROUP = {"id": 1, "name": "Fun Friday Group", "description": "A group for fun discussions"}

DEMO_USERS = [
    {"id": 1, "username": "Anonymous"},
    {"id": 2, "username": "Kirtidan Gadhvi"},
]

DEMO_MESSAGES = [
    (1, "Anonymous", "Someone order Bornvita!!", "2020-08-20 11:35:00"),
    (1, "Anonymous", "hahahahah!!", "2020-08-20 11:38:00"),
    (1, "Anonymous", "I'm Excited For this Event! Ho-Ho", "2020-08-20 11:56:00"),
    (1, "Anonymous", "Hello!", "2020-08-20 12:35:00"),
    (1, "Anonymous", "Yessss!!!!!", "2020-08-20 12:42:00"),
    (2, "Kirtidan Gadhvi", "We have Surprise For you!!", "2020-08-20 13:35:00"),
]


def init_db(bind: Engine = None, seed: bool = config.SEED_DEMO_DATA) -> None:
    """Create tables and, once per database, seed the default group with demo history."""
    from .models import Group, Message, Users

    bind = bind or engine
    Base.metadata.create_all(bind=bind)  # create tables
    if not seed:
        return

    with Session(bind) as db:
        if db.get(Group, DEFAULT_GROUP["id"]) is not None:
            return
        db.add(Group(**DEFAULT_GROUP))
        for u in DEMO_USERS:
            # demo authors carry no credentials, so they can never log in
            if db.get(Users, u["id"]) is None:
                db.add(Users(id=u["id"], username=u["username"], email=None, hashed_password=None))
        db.flush()
        for user_id, username, body, ts in DEMO_MESSAGES:
            db.add(Message(
                group_id=DEFAULT_GROUP["id"],
                user_id=user_id,
                username=username,
                message=body,
                timestamp=datetime.strptime(ts, "%Y-%m-%d %H:%M:%S"),
            ))
        db.commit()
        logger.info("Seeded group %s with %d demo messages", DEFAULT_GROUP["id"], len(DEMO_MESSAGES))
