"""
並發控制工具

狀態機假設同一個 Session 同時最多只有一個修改中的操作，由兩層鎖保證：

1. 行級鎖：Session row 上的 SELECT ... FOR UPDATE（PostgreSQL 等）
2. Process 鎖：每個 session id 一把 threading.Lock
   （SQLite 會忽略 FOR UPDATE，而 FastAPI 在 thread pool 裡執行同步 endpoint）

不同的 Session 之間不共用鎖
"""
from contextlib import contextmanager
from typing import Iterator
import threading
import weakref

from sqlalchemy.orm import Session, Query

from models import SessionRecord


class _SessionLock:
    """包一層 threading.Lock；_thread.lock 本身不能被 weakref 引用"""
    __slots__ = ("lock", "__weakref__")

    def __init__(self):
        self.lock = threading.Lock()


_registry_lock = threading.Lock()
# 沒有人持有這把鎖之後，項目會自動消失
_session_locks: "weakref.WeakValueDictionary[str, _SessionLock]" = weakref.WeakValueDictionary()


def with_session_lock(session_id: str, db: Session) -> Query:
    """
    鎖定一個 Session（行級鎖）

    範例：
        record = with_session_lock(session_id, db).first()
        if not record:
            raise SessionNotFound(session_id)

    返回：
        Query object（需要呼叫 .first() 取得結果）

    注意：
        - nowait=False 表示鎖被佔用時會等待
        - 必須在 transaction 內使用（commit 或 rollback 才會釋放）
    """
    return db.query(SessionRecord).filter(
        SessionRecord.id == session_id
    ).with_for_update(nowait=False)


def _lock_for(session_id: str) -> _SessionLock:
    with _registry_lock:
        lock = _session_locks.get(session_id)
        if lock is None:
            lock = _SessionLock()
            _session_locks[session_id] = lock
        return lock


@contextmanager
def session_guard(session_id: str) -> Iterator[None]:
    """同一個 process 內，讓同一個 Session 的 讀取-修改-寫回 依序執行"""
    guard = _lock_for(str(session_id))
    with guard.lock:
        yield
