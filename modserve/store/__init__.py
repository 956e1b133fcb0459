"""
ModServe 数据层

包含数据库模型、关联表与实体仓库。
"""

from modserve.store.database import create_engine, create_session_factory, init_db
from modserve.store.association import Association, LinkTable, ReferenceLink
from modserve.store.repository import Repositories
from modserve.store import relations

__all__ = [
    "create_engine",
    "create_session_factory",
    "init_db",
    "Association",
    "LinkTable",
    "ReferenceLink",
    "Repositories",
    "relations",
]
