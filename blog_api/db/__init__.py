from blog_api.db.base import Base
from blog_api.db.models import Post, User
from blog_api.db.session import DbSession, build_engine, get_db, get_session_maker, init_db

__all__ = [
    "Base",
    "DbSession",
    "Post",
    "User",
    "build_engine",
    "get_db",
    "get_session_maker",
    "init_db",
]
