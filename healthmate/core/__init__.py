from .config import settings
from .database import create_db_engine, get_db, init_db

__all__ = ["settings", "create_db_engine", "get_db", "init_db"]
