"""Authentication services: token registry, credential checks, cleanup job"""
from recipe_api.services.credentials import (
    CredentialStore,
    DatabaseCredentialStore,
    StaticCredentialStore,
    build_credential_store,
)
from recipe_api.services.token_registry import TokenRegistry

__all__ = [
    "CredentialStore",
    "DatabaseCredentialStore",
    "StaticCredentialStore",
    "TokenRegistry",
    "build_credential_store",
]
