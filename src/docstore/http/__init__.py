"""HTTP surface for the document store."""

from .app import authenticated, build_storage, create_app, create_app_from_config

__all__ = ["create_app", "create_app_from_config", "build_storage", "authenticated"]
