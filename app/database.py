from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_settings
from app.core.timeout_policy import get_timeout_policy
from app.models.base import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@lru_cache
def get_engine() -> Engine:
    """`SQLAlchemy` 엔진을 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다.

    모든 요청이 이 엔진의 커넥션 풀을 공유한다. 드라이버 수준 타임아웃은
    `DATABASE_TIMEOUT_SECONDS`를 따른다.
    """
    settings = get_settings()
    url = settings.DATABASE_URL.strip()
    timeout_seconds = get_timeout_policy(settings).database_timeout_seconds

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    connect_args = {}
    if url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": timeout_seconds,
            "options": f"-c statement_timeout={timeout_seconds * 1000}",
        }
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


@lru_cache
def get_session_local() -> sessionmaker[Session]:
    """`SessionLocal` 팩토리를 반환한다.

    저장소는 연산마다 이 팩토리로 세션을 열고 같은 스레드에서 닫는다.
    """
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=get_engine())


def create_tables() -> None:
    """선언된 모든 테이블을 생성한다. 이미 존재하는 테이블은 건너뛴다."""
    import app.models.place  # noqa: F401
    import app.models.product  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
