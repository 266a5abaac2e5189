"""Database helpers and index management."""

import logging
import os
from typing import Any

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import OperationFailure

logger = logging.getLogger(__name__)


def get_mongo_client() -> MongoClient:
    uri = os.environ.get("MONGODB_URI")
    if not uri:
        raise RuntimeError("MONGODB_URI must be set")
    return MongoClient(uri, tlsAllowInvalidCertificates=False)


def get_database(client: MongoClient):
    db_name = os.environ.get("MONGODB_DB")
    if db_name:
        return client[db_name]
    database = client.get_default_database()
    if database is None:
        raise RuntimeError("Database name must be provided via connection string or MONGODB_DB")
    return database


def safe_create_index(coll, keys, **opts):
    """
    Create an index but gracefully:
    - ignore IndexOptionsConflict (code 85),
    - handle IndexKeySpecsConflict (code 86) by dropping the named index
      and recreating it with the requested options.
    """
    requested_name = opts.get("name")
    try:
        return coll.create_index(keys, **opts)
    except OperationFailure as e:
        code = getattr(e, "code", None)

        if code == 85:  # IndexOptionsConflict
            logger.warning("Index %s on %s exists with other options", keys, coll.name)
            return None

        if code == 86:  # IndexKeySpecsConflict
            if not requested_name:
                requested_name = "_".join(f"{k}_{int(direction)}" for k, direction in keys)
            logger.warning("Recreating index %s on %s", requested_name, coll.name)
            try:
                coll.drop_index(requested_name)
                return coll.create_index(keys, **opts)
            except OperationFailure:
                raise e

        raise


def ensure_indexes(database: Any) -> None:
    users = database["authusers"]
    safe_create_index(users, [("email", ASCENDING)], unique=True)
    safe_create_index(users, [("username", ASCENDING)], unique=True, sparse=True)

    admins = database["adminusers"]
    safe_create_index(admins, [("email", ASCENDING)], unique=True)

    safe_create_index(database["admin_activity"], [("createdAt", DESCENDING)])
    safe_create_index(database["password_reset_tokens"], [("token", ASCENDING)])

    urls = database["shortened_urls"]
    safe_create_index(urls, [("shortCode", ASCENDING)], unique=True)
    safe_create_index(urls, [("userId", ASCENDING), ("createdAt", DESCENDING)])

    history = database["analysis_history"]
    safe_create_index(history, [("userId", ASCENDING), ("parameterHash", ASCENDING)])
    safe_create_index(
        history, [("userId", ASCENDING), ("toolSlug", ASCENDING), ("createdAt", DESCENDING)]
    )

    safe_create_index(
        database["tool_ratings"], [("userId", ASCENDING), ("toolSlug", ASCENDING)], unique=True
    )
    safe_create_index(
        database["user_favorites"], [("userId", ASCENDING), ("toolSlug", ASCENDING)], unique=True
    )

    usage = database["tool_usage"]
    safe_create_index(usage, [("toolSlug", ASCENDING), ("createdAt", DESCENDING)])
    safe_create_index(usage, [("userId", ASCENDING), ("createdAt", DESCENDING)])

    safe_create_index(database["contact_messages"], [("status", ASCENDING), ("createdAt", DESCENDING)])
