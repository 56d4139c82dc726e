from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

from core.exceptions import FizzBuzzGameException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./fizzbuzz_game.db"
    log_level: str = "INFO"

    # Session 抽號範圍
    min_number: int = 1
    max_number: int = 1000

    # HTTP API 接受的遊戲時長範圍（秒）
    min_duration_seconds: int = 10
    max_duration_seconds: int = 300

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()

# SQLite 需要特殊設定：connect_args={"check_same_thread": False}
# FastAPI 用 thread pool 跑同步 endpoint，同一個連線可能被多個執行緒使用
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func=None, *, commit_on=()):
    """
    Transaction decorator：確保資料庫操作的原子性

    使用方式：
        @transactional
        def some_business_logic(db: Session, ...):
            record = SessionRecord(...)
            db.add(record)
            # 不需要手動 commit，decorator 會處理

        @transactional(commit_on=(SessionEnded,))
        def draw(db: Session, ...):
            # 拋出 SessionEnded 時仍然 commit（保留結束狀態），再往上拋

    如果函式內發生異常：
        - commit_on 列出的異常：先 commit，再重新拋出
        - 遊戲異常：rollback 後重新拋出（預期內的錯誤，不記 error log）
        - 其他異常：記 log、rollback、重新拋出

    注意：
        - 必須有一個 Session 位置參數（或 `db` 關鍵字參數）
        - 不要在函式內手動 commit（decorator 會處理）
    """
    if func is None:
        return lambda f: transactional(f, commit_on=commit_on)

    @wraps(func)
    def wrapper(*args, **kwargs):
        # 找出 db session（位置參數，例如在 self 之後，或 db 關鍵字參數）
        db = next((arg for arg in args if isinstance(arg, Session)), None)
        if db is None and 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires a 'db: Session' argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except commit_on as e:
            logger.info(f"{func.__name__} committed before raising {type(e).__name__}: {e}")
            db.commit()
            raise
        except FizzBuzzGameException as e:
            logger.info(f"{func.__name__} rejected: {e}")
            db.rollback()
            raise
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
