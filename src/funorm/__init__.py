"""funorm: declared entity model reconciled against a live PostgreSQL schema.

Declare entities in code (or db.toml), reconcile them against the database
in one of four modes, then query through a ready ``Database`` handle.

Usage:
    from funorm import EntityModel, ReconciliationMode, column, connect, primary

    model = EntityModel().register("user", {"id": primary(), "name": column("string")})
    db = await connect(model, ReconciliationMode.AUTO_APPLY, database_url=url)
    user = await db.find_one("user")
"""

__version__ = "0.1.0"

# Adapters
from funorm.adapters.base import DatabaseClient
from funorm.adapters.postgres import AsyncPostgresAdapter

# Config
from funorm.config.loader import load_db_config
from funorm.config.models import DatabaseConfig, DatabaseProfile

# Query facade
from funorm.database import Database

# Errors
from funorm.exceptions import (
    DuplicateEntityError,
    FunormError,
    InvalidEntityError,
    MigrationApplyFailedError,
    MigrationRejectedError,
    ModelSealedError,
    RecordShapeError,
    StoreUnavailableError,
    UnknownEntityError,
    ValidationFailedError,
)

# Factory
from funorm.factory import ProfileNotFoundError, connect, get_adapter, resolve_url

# Prompt
from funorm.prompt import ConsolePrompt, Prompt, StaticPrompt

# Schema
from funorm.schema.models import (
    ColumnDefinition,
    EntityDefinition,
    EntityModel,
    ReconciliationReport,
    column,
    entity,
    primary,
)
from funorm.schema.reconciler import (
    Reconciler,
    ReconciliationMode,
    ReconciliationResult,
    ReconciliationState,
)
from funorm.schema.types import ColumnType

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncPostgresAdapter",
    # Config
    "load_db_config",
    "DatabaseProfile",
    "DatabaseConfig",
    # Query facade
    "Database",
    # Errors
    "FunormError",
    "InvalidEntityError",
    "DuplicateEntityError",
    "ModelSealedError",
    "StoreUnavailableError",
    "ValidationFailedError",
    "MigrationRejectedError",
    "MigrationApplyFailedError",
    "UnknownEntityError",
    "RecordShapeError",
    # Factory
    "connect",
    "get_adapter",
    "resolve_url",
    "ProfileNotFoundError",
    # Prompt
    "Prompt",
    "ConsolePrompt",
    "StaticPrompt",
    # Schema
    "ColumnType",
    "ColumnDefinition",
    "EntityDefinition",
    "EntityModel",
    "column",
    "primary",
    "entity",
    "ReconciliationReport",
    "Reconciler",
    "ReconciliationMode",
    "ReconciliationResult",
    "ReconciliationState",
]
