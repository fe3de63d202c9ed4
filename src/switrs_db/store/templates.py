"""
Templated table creation.

DDL files name their table and primary key type with ``{table}`` and
``{pk_type}`` placeholders so one file can define many lookup tables.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional

from switrs_db.store.database import Database

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schema"

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def render_ddl(template: str, table: str, pk_type: str = "") -> str:
    """Fill ``{table}`` and ``{pk_type}`` in a DDL template.

    Args:
        template: DDL text
        table: Table name
        pk_type: SQL type of the primary key column (lookup tables)

    Returns:
        Rendered DDL

    Raises:
        ValueError: If the template uses an unknown placeholder
    """
    values: Dict[str, str] = {"table": table, "pk_type": pk_type}

    def replacer(match):
        name = match.group(1)
        if name not in values:
            raise ValueError(f"Unknown placeholder '{{{name}}}' in schema for {table}")
        return values[name]

    return _PLACEHOLDER.sub(replacer, template)


def resolve_schema_path(schema: Path, base_dir: Optional[Path] = None) -> Path:
    """Find a DDL file.

    Relative paths are tried against ``base_dir`` first, then against the
    bundled ``switrs_db/schema`` directory.
    """
    schema = Path(schema)
    if schema.is_absolute():
        return schema

    if base_dir is not None and (base_dir / schema).exists():
        return base_dir / schema

    bundled = SCHEMA_DIR / schema
    if bundled.exists():
        return bundled

    bundled = SCHEMA_DIR / schema.name
    if bundled.exists():
        return bundled

    return (base_dir / schema) if base_dir is not None else schema


def create_table(
    database: Database,
    name: str,
    pk_type: str,
    table_schema: Path,
) -> None:
    """Create a table from a DDL template.

    Args:
        database: Target database
        name: Table name substituted for ``{table}``
        pk_type: Key type substituted for ``{pk_type}``
        table_schema: Path to the DDL template

    Raises:
        FileNotFoundError: If the template does not exist
    """
    table_schema = Path(table_schema)
    if not table_schema.exists():
        raise FileNotFoundError(f"failed to read {table_schema}: schema file not found")

    ddl = render_ddl(table_schema.read_text(encoding="utf-8"), name, pk_type)
    logger.debug(f"Creating table {name} from {table_schema}")
    database.executescript(ddl)
