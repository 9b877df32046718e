"""Relational schema for stored entities.

Association rows (document tags, document properties, property values and
directory children) live in their own tables so filters can join on them and
count matches per document.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

DATABASE_INFO_ID = 0


class Base(DeclarativeBase):
    """Declarative base for all docman tables."""


document_tags = Table(
    "document_tags",
    Base.metadata,
    Column("document_path", ForeignKey("documents.absolute_path"), primary_key=True),
    Column("tag_name", ForeignKey("tags.name"), primary_key=True),
)

property_value_links = Table(
    "property_value_links",
    Base.metadata,
    Column("property_name", ForeignKey("properties.name"), primary_key=True),
    Column("value", ForeignKey("property_values.value"), primary_key=True),
)

directory_documents = Table(
    "directory_documents",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("directory_path", ForeignKey("directories.path"), nullable=False, index=True),
    Column("document_path", ForeignKey("documents.absolute_path"), nullable=False, index=True),
)

directory_children = Table(
    "directory_children",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("parent_path", ForeignKey("directories.path"), nullable=False, index=True),
    Column("child_path", ForeignKey("directories.path"), nullable=False, index=True),
)


class TagRow(Base):
    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)


class PropertyValueRow(Base):
    __tablename__ = "property_values"

    value: Mapped[str] = mapped_column(String(255), primary_key=True)


class PropertyRow(Base):
    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    values: Mapped[List[PropertyValueRow]] = relationship(
        secondary=property_value_links, order_by=PropertyValueRow.value
    )


class DocumentPropertyRow(Base):
    """One property/value pair of one document."""

    __tablename__ = "document_properties"
    __table_args__ = (UniqueConstraint("document_path", "property_name", "value"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_path: Mapped[str] = mapped_column(
        ForeignKey("documents.absolute_path"), index=True
    )
    property_name: Mapped[str] = mapped_column(ForeignKey("properties.name"))
    value: Mapped[str] = mapped_column(ForeignKey("property_values.value"))


class DocumentRow(Base):
    __tablename__ = "documents"

    absolute_path: Mapped[str] = mapped_column(String(512), primary_key=True)
    filename: Mapped[str] = mapped_column(String(255), index=True)
    parent_path: Mapped[str] = mapped_column(String(512), index=True)
    creation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)

    tags: Mapped[List[TagRow]] = relationship(secondary=document_tags, order_by=TagRow.name)
    properties: Mapped[List[DocumentPropertyRow]] = relationship(
        order_by=DocumentPropertyRow.id
    )


class DirectoryRow(Base):
    __tablename__ = "directories"

    path: Mapped[str] = mapped_column(String(512), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))

    documents: Mapped[List[DocumentRow]] = relationship(
        secondary=directory_documents, order_by=DocumentRow.absolute_path
    )
    directories: Mapped[List["DirectoryRow"]] = relationship(
        secondary=directory_children,
        primaryjoin=lambda: DirectoryRow.path == directory_children.c.parent_path,
        secondaryjoin=lambda: DirectoryRow.path == directory_children.c.child_path,
        order_by=lambda: DirectoryRow.path,
    )


class DatabaseInfoRow(Base):
    __tablename__ = "database_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=DATABASE_INFO_ID)
    source_path: Mapped[str] = mapped_column(String(512))


__all__ = [
    "Base",
    "DATABASE_INFO_ID",
    "document_tags",
    "property_value_links",
    "directory_documents",
    "directory_children",
    "TagRow",
    "PropertyValueRow",
    "PropertyRow",
    "DocumentPropertyRow",
    "DocumentRow",
    "DirectoryRow",
    "DatabaseInfoRow",
]
