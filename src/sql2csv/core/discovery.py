"""Locating SQLite database files on disk."""

import logging
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from sql2csv.models.config import DatabaseConfig

logger = logging.getLogger(__name__)

DATABASE_PATTERN = "*.db"


def discover_databases(
    path: Union[str, Path], **config_kwargs: Any
) -> list[DatabaseConfig]:
    """
    Find SQLite databases.

    A directory yields every ``*.db`` file directly inside it (not recursive),
    sorted by file name; a file path yields that one database.

    Args:
        path: Directory or database file
        **config_kwargs: Extra DatabaseConfig fields (e.g. statement_timeout)

    Returns:
        One configuration per database, empty if the path does not exist
    """
    path = Path(path)
    logger.info(f"Discovering databases in: {path}")

    if path.is_file():
        files = [path]
    elif path.is_dir():
        files = sorted(p for p in path.glob(DATABASE_PATTERN) if p.is_file())
    else:
        logger.warning(f"Path does not exist: {path}")
        return []

    databases = []
    for file_path in files:
        try:
            config = DatabaseConfig.from_sqlite_file(file_path, **config_kwargs)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Skipping database file {file_path}: {e}")
            continue
        databases.append(config)
        logger.debug(f"Discovered database: {config.database_name} at {file_path}")

    logger.info(f"Discovered {len(databases)} databases")
    return databases
