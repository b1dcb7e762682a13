# legalchat/db/__init__.py
from legalchat.db.base import Base
from legalchat.db.session import get_db, engine
from legalchat.db.models import *

__all__ = [
    "Base",
    "get_db",
    "engine",
]
