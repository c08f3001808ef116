import importlib
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from catalog_admin.config import settings

log = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # sessions are opened in FastAPI's threadpool and used from another worker
    connect_args["check_same_thread"] = False

engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# add new model modules here so their tables land in Base.metadata
MODEL_MODULES = [
    "catalog_admin.models.product",
]


def init_db(reset: bool = False):
    """
    Create the schema for every registered model.

    With ``reset`` (or ``RESET_DB`` in the environment) all tables are dropped
    first, which is what the test suite and the seed script rely on.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or settings.RESET_DB:
        log.info("Dropping all tables (reset requested)")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized: %s", ", ".join(sorted(Base.metadata.tables)))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
