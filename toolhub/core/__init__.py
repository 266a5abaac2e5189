"""Core utilities for the ToolHub server."""

from .config import configure_logging, get_app_settings, get_auth_settings, load_environment
from .database import ensure_indexes, get_database, get_mongo_client, safe_create_index
from .security import (
    create_token,
    decode_token,
    generate_reset_token,
    hash_password,
    read_token,
    verify_password,
)
from .utils import (
    client_ip,
    isoformat,
    parse_int_arg,
    parse_pagination,
    serialize_document,
    user_agent,
    validate_object_id,
)

__all__ = [
    "configure_logging",
    "get_app_settings",
    "get_auth_settings",
    "load_environment",
    "ensure_indexes",
    "get_database",
    "get_mongo_client",
    "safe_create_index",
    "create_token",
    "decode_token",
    "generate_reset_token",
    "hash_password",
    "read_token",
    "verify_password",
    "client_ip",
    "isoformat",
    "parse_int_arg",
    "parse_pagination",
    "serialize_document",
    "user_agent",
    "validate_object_id",
]
