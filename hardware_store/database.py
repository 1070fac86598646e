# hardware_store/database.py
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session


class Database:
    """
    Owns the SQLAlchemy engine for one process.

    Lifecycle is explicit: main.py's lifespan calls open() on startup and
    close() on shutdown, and keeps the instance on app.state. Tests build
    their own instance against in-memory SQLite.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        if self._engine is not None:
            return self

        if self.url.startswith("sqlite"):
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            # In-memory SQLite lives inside a single connection
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        else:
            # ---------------------------------------------------------
            # Postgres (via pooler)
            #
            # - pool_pre_ping=True: validate connections before using them
            # - keep the pool small; managed poolers cap client count
            # ---------------------------------------------------------
            kwargs = {
                "pool_pre_ping": True,
                "pool_size": 5,
                "max_overflow": 5,
            }

        self._engine = create_engine(self.url, echo=self.echo, **kwargs)
        return self

    def create_all(self) -> None:
        """
        Create all tables defined in SQLModel metadata if they do not exist.
        """
        # Populate metadata before create_all()
        from hardware_store.models import order as _order_models  # noqa: F401
        from hardware_store.models import product as _product_models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return Session(self.engine)

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def get_session(request: Request) -> Iterator[Session]:
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    database: Database = request.app.state.database
    with database.session() as session:
        yield session
