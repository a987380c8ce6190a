from sqlmodel import SQLModel, Session, create_engine
from .config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync endpoints in a threadpool
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, connect_args=connect_args)

def init_db(bind=None):
    # Import so every table is registered on the metadata
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)

def get_session():
    with Session(engine) as session:
        yield session
