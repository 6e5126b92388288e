"""Connection factory and reconciliation entry point.

Resolves which database to use, creates the adapter, reconciles the
declared entity model against it and hands back a ready ``Database``.

Connection resolution priority:
1. Explicit ``database_url``
2. Explicit ``profile_name`` (looked up in db.toml)
3. ``{env_prefix}DB_PROFILE`` environment variable (looked up in db.toml)

Usage:
    from funorm import EntityModel, ReconciliationMode, column, connect, primary

    model = EntityModel().register("user", {"id": primary(), "name": column("string")})
    db = await connect(model, ReconciliationMode.AUTO_APPLY, profile_name="local")
    user = await db.find_one("user")
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from funorm.adapters.base import DatabaseClient
from funorm.adapters.postgres import AsyncPostgresAdapter
from funorm.config.loader import load_db_config
from funorm.config.models import DatabaseProfile
from funorm.database import Database
from funorm.prompt import ConsolePrompt, Prompt
from funorm.schema.models import EntityModel
from funorm.schema.reconciler import Reconciler, ReconciliationMode

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the environment variable, e.g. ``"APP_"``
            reads ``APP_DB_PROFILE``.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Set {env_var}=<name> or pass a profile name explicitly."
    )


def get_active_profile(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[str, DatabaseProfile]:
    """Get profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured or the name is not in
            db.toml
        FileNotFoundError: If db.toml is missing
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix=env_prefix)
    config = load_db_config(config_path)

    if profile_name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with the ``[YOUR-PASSWORD]`` placeholder replaced by
        the URL-encoded ``db_password``
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config_path: Path | None = None,
) -> AsyncPostgresAdapter:
    """Create a new adapter.  No caching: each call builds a fresh pool.

    Raises:
        ProfileNotFoundError: If no database configuration found
    """
    if database_url:
        return AsyncPostgresAdapter(database_url=database_url)

    name, profile = get_active_profile(
        profile_name=profile_name, env_prefix=env_prefix, config_path=config_path
    )
    logger.debug(f"Using database profile '{name}' (schema={profile.schema_name})")
    return AsyncPostgresAdapter(
        database_url=resolve_url(profile), schema=profile.schema_name
    )


# ============================================================================
# Construction Entry Point
# ============================================================================


async def connect(
    entities: EntityModel,
    mode: ReconciliationMode | str = ReconciliationMode.STRICT,
    *,
    database_url: str | None = None,
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
    client: DatabaseClient | None = None,
    prompt: Prompt | None = None,
) -> Database:
    """Reconcile *entities* against the store and return a query handle.

    Args:
        entities: Declared entity model.
        mode: How to resolve drift (see ``ReconciliationMode``).
        database_url: Connect to this URL directly.
        profile_name: Profile from db.toml (ignored when a URL is given).
        env_prefix: Prefix for the ``DB_PROFILE`` environment variable.
        config_path: db.toml to read profiles from (default ``./db.toml``).
        client: Use an existing adapter instead of creating one.  It is not
            closed when reconciliation fails.
        prompt: Decision prompt for ``INTERACTIVE_CONFIRM``; defaults to a
            console prompt.

    Returns:
        ``Database`` handle, only after a clean or reconciled run.

    Raises:
        ProfileNotFoundError: If no connection can be resolved.
        StoreUnavailableError: If introspection fails.
        ValidationFailedError: In ``STRICT`` mode with drift.
        MigrationRejectedError: If the operator declines.
        MigrationApplyFailedError: If a migration step fails.

    Example:
        db = await connect(model, "interactive_confirm", profile_name="local")
    """
    mode = ReconciliationMode(mode)
    if mode == ReconciliationMode.INTERACTIVE_CONFIRM and prompt is None:
        prompt = ConsolePrompt()

    owns_client = client is None
    if client is None:
        client = await get_adapter(
            profile_name=profile_name,
            env_prefix=env_prefix,
            database_url=database_url,
            config_path=config_path,
        )

    try:
        reconciler = Reconciler(client, entities, mode=mode, prompt=prompt)
        result = await reconciler.reconcile()
    except BaseException:
        if owns_client:
            logger.debug("Reconciliation did not complete, closing adapter")
            await client.close()
        raise

    return Database(client, entities, result)
