"""Pydantic models for database configuration."""

from pydantic import BaseModel, Field

from funorm.schema.models import ColumnDefinition, EntityModel
from funorm.schema.reconciler import ReconciliationMode


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    schema_name: str = "public"


class DatabaseConfig(BaseModel):
    """Complete database configuration from db.toml.

    Example:
        >>> config = DatabaseConfig(profiles={})
        >>> config.mode
        <ReconciliationMode.STRICT: 'strict'>
    """

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    mode: ReconciliationMode = ReconciliationMode.STRICT
    entities: dict[str, dict[str, ColumnDefinition]] = Field(default_factory=dict)

    def entity_model(self) -> EntityModel:
        """Build an ``EntityModel`` from the declared entities, in file order."""
        model = EntityModel()
        for name, columns in self.entities.items():
            model.register(name, columns)
        return model
