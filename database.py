from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

from core.exceptions import ElectionException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./election.db"
    controller_id: str = "controller"
    tiebreak_source: str = "timestamp"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()


def _engine_options(url: str) -> dict:
    """
    依照資料庫 URL 決定 create_engine 參數

    - SQLite 需要 check_same_thread=False（FastAPI 在 threadpool 執行同步 route）
    - 記憶體 SQLite 每條連線都是獨立資料庫，必須用 StaticPool 共用同一條連線
    """
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency：每個請求一個 Session，結束時關閉"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    選舉操作的 transaction 邊界

    成功就 commit；失敗就 rollback 再把異常往上丟，
    狀態變更與 EventLog 一起撤銷。
    ElectionException（規則拒絕）記 warning，其他異常記 error。

    被包裝的函式第一個參數（或 db= 關鍵字）必須是 Session，且不自行 commit。
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        # 找出 db session（可能在 args 或 kwargs）
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires 'db: Session' as first argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except ElectionException as e:
            logger.warning(f"{func.__name__} rejected: {e}")
            db.rollback()
            raise
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
