# flavatix_backend/app/db/session.py
from sqlmodel import SQLModel, Session, create_engine

from flavatix_backend.app.config import DB_URL, ensure_data_dir

# the default sqlite file sits in DATA_DIR
ensure_data_dir()

_connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}
engine = create_engine(DB_URL, echo=False, connect_args=_connect_args)

def init_db() -> None:
    from . import models  # noqa: F401  (registers the tables)
    SQLModel.metadata.create_all(engine)

def drop_db() -> None:
    from . import models  # noqa: F401
    SQLModel.metadata.drop_all(engine)

def new_session() -> Session:
    # committed rows stay loaded; responses are serialized from them
    return Session(engine, expire_on_commit=False)

def get_session():
    """FastAPI dependency: one Session per request."""
    with new_session() as session:
        yield session
