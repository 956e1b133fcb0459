"""
数据库模型

实体表与关联表定义。关联表以 (A, B) 复合主键保证每对只出现一次。
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from modserve.storage.artifact import Artifact, FILE, LOGO


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, onupdate=_now
    )


class Pack(TimestampMixin, Base):
    __tablename__ = "packs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    # 指向本包的构建，不设外键以避免 packs/builds 循环依赖
    recommended_id: Mapped[Optional[int]] = mapped_column(Integer)
    latest_id: Mapped[Optional[int]] = mapped_column(Integer)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    private: Mapped[bool] = mapped_column(Boolean, default=False)
    logo_md5: Mapped[Optional[str]] = mapped_column(String(32))
    logo_content_type: Mapped[Optional[str]] = mapped_column(String(255))

    @property
    def logo(self) -> Optional[Artifact]:
        if not self.logo_md5:
            return None
        return Artifact(
            md5=self.logo_md5, content_type=self.logo_content_type, category=LOGO
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "website": self.website,
            "recommended_id": self.recommended_id,
            "latest_id": self.latest_id,
            "hidden": self.hidden,
            "private": self.private,
            "logo": (
                {"md5": self.logo_md5, "content_type": self.logo_content_type}
                if self.logo_md5
                else None
            ),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Build(TimestampMixin, Base):
    __tablename__ = "builds"
    __table_args__ = (UniqueConstraint("pack_id", "slug"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    pack_id: Mapped[int] = mapped_column(ForeignKey("packs.id"), index=True)
    minecraft_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("minecrafts.id"), index=True
    )
    forge_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("forges.id"), index=True
    )
    slug: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
    min_java: Mapped[Optional[str]] = mapped_column(String(255))
    min_memory: Mapped[Optional[str]] = mapped_column(String(255))
    published: Mapped[bool] = mapped_column(Boolean, default=True)
    private: Mapped[bool] = mapped_column(Boolean, default=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pack_id": self.pack_id,
            "minecraft_id": self.minecraft_id,
            "forge_id": self.forge_id,
            "slug": self.slug,
            "name": self.name,
            "min_java": self.min_java,
            "min_memory": self.min_memory,
            "published": self.published,
            "private": self.private,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Mod(TimestampMixin, Base):
    __tablename__ = "mods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    author: Mapped[Optional[str]] = mapped_column(String(255))
    website: Mapped[Optional[str]] = mapped_column(String(255))
    donate: Mapped[Optional[str]] = mapped_column(String(255))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "author": self.author,
            "website": self.website,
            "donate": self.donate,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Version(TimestampMixin, Base):
    __tablename__ = "versions"
    __table_args__ = (UniqueConstraint("mod_id", "slug"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    mod_id: Mapped[int] = mapped_column(ForeignKey("mods.id"), index=True)
    slug: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
    file_md5: Mapped[Optional[str]] = mapped_column(String(32))
    file_content_type: Mapped[Optional[str]] = mapped_column(String(255))

    @property
    def file(self) -> Optional[Artifact]:
        if not self.file_md5:
            return None
        return Artifact(
            md5=self.file_md5, content_type=self.file_content_type, category=FILE
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "mod_id": self.mod_id,
            "slug": self.slug,
            "name": self.name,
            "file": (
                {"md5": self.file_md5, "content_type": self.file_content_type}
                if self.file_md5
                else None
            ),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Minecraft(TimestampMixin, Base):
    __tablename__ = "minecrafts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    type: Mapped[str] = mapped_column(String(32), default="release")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "type": self.type,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Forge(TimestampMixin, Base):
    __tablename__ = "forges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    minecraft: Mapped[str] = mapped_column(String(255))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "minecraft": self.minecraft,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "slug": self.slug, "name": self.name}


class Team(TimestampMixin, Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "slug": self.slug, "name": self.name}


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    value: Mapped[Optional[str]] = mapped_column(String(255))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "value": self.value,
        }


# 关联表


class BuildVersion(Base):
    __tablename__ = "build_versions"

    build_id: Mapped[int] = mapped_column(ForeignKey("builds.id"), primary_key=True)
    version_id: Mapped[int] = mapped_column(
        ForeignKey("versions.id"), primary_key=True
    )


class ClientPack(Base):
    __tablename__ = "client_packs"

    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), primary_key=True)
    pack_id: Mapped[int] = mapped_column(ForeignKey("packs.id"), primary_key=True)


class UserPack(Base):
    __tablename__ = "user_packs"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    pack_id: Mapped[int] = mapped_column(ForeignKey("packs.id"), primary_key=True)
    perm: Mapped[Optional[str]] = mapped_column(String(32))


class TeamPack(Base):
    __tablename__ = "team_packs"

    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), primary_key=True)
    pack_id: Mapped[int] = mapped_column(ForeignKey("packs.id"), primary_key=True)
    perm: Mapped[Optional[str]] = mapped_column(String(32))


class UserMod(Base):
    __tablename__ = "user_mods"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    mod_id: Mapped[int] = mapped_column(ForeignKey("mods.id"), primary_key=True)
    perm: Mapped[Optional[str]] = mapped_column(String(32))


class TeamMod(Base):
    __tablename__ = "team_mods"

    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), primary_key=True)
    mod_id: Mapped[int] = mapped_column(ForeignKey("mods.id"), primary_key=True)
    perm: Mapped[Optional[str]] = mapped_column(String(32))


class TeamUser(Base):
    __tablename__ = "team_users"

    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    perm: Mapped[Optional[str]] = mapped_column(String(32))
