"""Tests for package exports and public API.

Verifies that ``__all__`` lists are accurate and that the top-level
convenience imports cover a full declare/connect/query round.
"""

import importlib

import pytest


class TestTopLevelExports:
    """Tests for src/funorm/__init__.py exports."""

    def test_version_defined(self) -> None:
        import funorm

        assert funorm.__version__ == "0.1.0"

    @pytest.mark.parametrize(
        "module",
        ["funorm", "funorm.schema", "funorm.adapters", "funorm.config"],
    )
    def test_all_names_are_importable(self, module) -> None:
        """Every name in __all__ is actually accessible on the module."""
        mod = importlib.import_module(module)
        for name in mod.__all__:
            assert hasattr(mod, name), f"'{name}' is in __all__ but not on {module}"

    def test_declare_connect_query_surface(self) -> None:
        from funorm import (
            Database,
            EntityModel,
            ReconciliationMode,
            column,
            connect,
            entity,
            primary,
        )

        assert callable(connect)
        assert callable(entity)
        assert isinstance(EntityModel().register("t", {"id": primary(), "n": column("int")}), EntityModel)
        assert {m.value for m in ReconciliationMode} == {
            "auto_create",
            "auto_apply",
            "interactive_confirm",
            "strict",
        }
        assert hasattr(Database, "find_one")

    def test_errors_exported(self) -> None:
        import funorm

        for name in (
            "ValidationFailedError",
            "MigrationRejectedError",
            "MigrationApplyFailedError",
            "StoreUnavailableError",
            "UnknownEntityError",
        ):
            assert issubclass(getattr(funorm, name), funorm.FunormError)
