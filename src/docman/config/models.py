"""Configuration models describing Docman settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocmanBaseModel(BaseModel):
    """Shared configuration for Docman Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StoreSettings(DocmanBaseModel):
    """Connection and schema settings for the metadata store.

    Attributes:
        provider: Database backend; ``sqlite`` uses ``database_file``, ``mariadb``
            uses the server fields.
        database_file: SQLite database file.
        host: MariaDB server host.
        port: MariaDB server port.
        database: MariaDB schema name.
        user: MariaDB user name.
        password: MariaDB password.
        url: Explicit SQLAlchemy URL; overrides every provider field when set.
        schema_action: What to do with the schema when the store is opened.
        echo: Whether to log every emitted SQL statement.
        batch_size: Maximum number of keys or rows sent in one statement.
    """

    provider: Literal["sqlite", "mariadb"] = "sqlite"
    database_file: str = "database.db"
    host: str = "localhost"
    port: int = 3306
    database: str = "docman"
    user: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    schema_action: Literal["create", "recreate", "none"] = "create"
    echo: bool = False
    batch_size: int = Field(default=999, ge=1)


class SearchSettings(DocmanBaseModel):
    """Result limits applied to queries.

    Attributes:
        page_size: Maximum number of documents returned by one search.
        fuzzy_limit: Maximum number of names returned by prefix lookups.
    """

    page_size: int = Field(default=100, ge=1)
    fuzzy_limit: int = Field(default=25, ge=1)


class ScanningSettings(DocmanBaseModel):
    """File system scanning options.

    Attributes:
        include_hidden: Whether dot-files and dot-directories are scanned.
        follow_symlinks: Whether symbolic links are traversed.
    """

    include_hidden: bool = False
    follow_symlinks: bool = False


class LoggingSettings(DocmanBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        console: Whether to log to the console.
        file: Optional log file; file logging is disabled when unset.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    console: bool = True
    file: Optional[str] = None
    max_size_mb: int = 100
    backup_count: int = 5


class DocmanConfig(DocmanBaseModel):
    """Top-level configuration struct for Docman.

    Attributes:
        store: Metadata store settings.
        search: Query limits.
        scanning: File system scanning options.
        logging: Logging configuration.
    """

    store: StoreSettings = Field(default_factory=StoreSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    scanning: ScanningSettings = Field(default_factory=ScanningSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "DocmanBaseModel",
    "StoreSettings",
    "SearchSettings",
    "ScanningSettings",
    "LoggingSettings",
    "DocmanConfig",
]
