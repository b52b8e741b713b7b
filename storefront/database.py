# storefront/database.py
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# Import models so SQLModel metadata is populated before create_all()
from storefront.models import order as _order_models  # noqa: F401
from storefront.models import user as _user_models  # noqa: F401

# ---------------------------------------------------------
# SQL engine for the relational record store
#
# - pool_pre_ping=True : validate connections before using them
# - SQLite             : allow use from FastAPI's worker threads
#                        and wait on the file lock instead of failing
# ---------------------------------------------------------


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for `database_url`.

    The engine is lazy: no connection is opened until first use.
    """
    connect_args: dict = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}

    return create_engine(
        database_url,
        echo=echo,  # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)
