"""
Configuration manager for database schema settings.

Loads the schema configuration (which tables to build, from which DDL and
data files, in which order) from a YAML file, validates it, and provides
environment variable substitution.
"""

import os
import re
import yaml
from typing import Dict, Any, Optional, List
from pathlib import Path
from dataclasses import dataclass, field

from switrs_db.store.templates import resolve_schema_path

DATA_TYPES = ("raw_data", "path", "empty")


@dataclass
class LookupTableConfig:
    """A code lookup table built from the shared lookup schema."""
    name: str
    pk_type: str
    data: Path
    schema: Optional[Path] = None


@dataclass
class TableConfig:
    """A primary table and where its data comes from."""
    name: str
    schema: Path
    data_type: str = "empty"
    data_path: Optional[Path] = None

    def resolve_data(self, raw_data_dir: Path) -> Optional[Path]:
        """Path of the CSV to load, or None for tables created empty.

        Args:
            raw_data_dir: Directory the raw SWITRS dump was extracted to
        """
        if self.data_type == "raw_data":
            return Path(raw_data_dir) / self.data_path
        if self.data_type == "path":
            return self.data_path
        return None


@dataclass
class RoadFixupConfig:
    """Tables and files used to reconcile road names."""
    enabled: bool = True
    collisions_table: str = "collisions"
    normalized_table: str = "normalized_roads"
    corrected_table: str = "corrected_roads"
    typo_table: str = "berkeley_road_typos"
    known_good_table: Optional[str] = None
    known_good_column: str = "correct_rd"
    corrections_path: Path = Path("berkeley-tables/CORRECTED_ROADS.csv")
    typo_source: Optional[str] = None


@dataclass
class SchemaConfig:
    """Validated schema configuration."""
    name: str
    table_order: List[str]
    tables: Dict[str, TableConfig]
    lookup_schema: Path
    lookup_tables: Dict[str, LookupTableConfig] = field(default_factory=dict)
    road_fixups: RoadFixupConfig = field(default_factory=RoadFixupConfig)
    base_dir: Path = Path(".")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "table_order": list(self.table_order),
            "tables": {
                name: {
                    "schema": str(table.schema),
                    "data": {"type": table.data_type, "path": str(table.data_path) if table.data_path else None},
                }
                for name, table in self.tables.items()
            },
            "lookup_schema": str(self.lookup_schema),
            "lookup_tables": {
                name: {
                    "pk_type": table.pk_type,
                    "data": str(table.data),
                    "schema": str(table.schema) if table.schema else None,
                }
                for name, table in self.lookup_tables.items()
            },
            "road_fixups": {
                "enabled": self.road_fixups.enabled,
                "corrections_path": str(self.road_fixups.corrections_path),
                "typo_table": self.road_fixups.typo_table,
                "corrected_table": self.road_fixups.corrected_table,
            },
        }


class ConfigManager:
    """Manages schema configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration YAML file (optional)
        """
        self.config_path = config_path
        self._config: Optional[Dict[str, Any]] = None

    def load(self, config_path: Optional[Path] = None) -> SchemaConfig:
        """Load and validate configuration from YAML file.

        Args:
            config_path: Path to configuration file (overrides init path)

        Returns:
            SchemaConfig with validated settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        path = config_path or self.config_path
        if path is None:
            raise ValueError("No configuration path provided")

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            config = yaml.safe_load(f)

        if not isinstance(config, dict):
            raise ValueError(f"Configuration must be a mapping: {path}")

        config = self._substitute_env_vars(config)
        self._validate_config(config)
        self._config = config

        return self._create_schema_config(config, base_dir=path.resolve().parent)

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute environment variables in configuration.

        Supports syntax: ${VAR_NAME} or ${VAR_NAME:default_value}

        Args:
            config: Configuration dictionary or value

        Returns:
            Configuration with substituted values
        """
        if isinstance(config, dict):
            return {
                key: self._substitute_env_vars(value)
                for key, value in config.items()
            }
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_string(config)
        else:
            return config

    def _substitute_env_var_string(self, value: str) -> str:
        """Substitute environment variables in a string.

        Args:
            value: String potentially containing ${VAR} syntax

        Returns:
            String with substituted values
        """
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replacer, value)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate configuration structure and required fields.

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        for required in ("table_order", "tables", "lookup_schema"):
            if required not in config:
                raise ValueError(f"Configuration missing required field: {required}")

        if not isinstance(config["table_order"], list):
            raise ValueError("table_order must be a list")

        tables = config["tables"]
        if not isinstance(tables, dict):
            raise ValueError("tables must be a dictionary")

        for table_name in config["table_order"]:
            if table_name not in tables:
                raise ValueError(f"table missing from [tables]: {table_name}")

        for table_name, table_config in tables.items():
            if not isinstance(table_config, dict):
                raise ValueError(f"Table {table_name} configuration must be a dictionary")
            if "schema" not in table_config:
                raise ValueError(f"Table {table_name} missing required field: schema")

            data = table_config.get("data", {"type": "empty"})
            if not isinstance(data, dict) or data.get("type") not in DATA_TYPES:
                raise ValueError(
                    f"Table {table_name} data type must be one of {', '.join(DATA_TYPES)}"
                )
            if data["type"] != "empty" and not data.get("path"):
                raise ValueError(f"Table {table_name} data of type {data['type']} needs a path")

        lookup_tables = config.get("lookup_tables") or {}
        if not isinstance(lookup_tables, dict):
            raise ValueError("lookup_tables must be a dictionary")

        for table_name, table_config in lookup_tables.items():
            if not isinstance(table_config, dict):
                raise ValueError(f"Lookup table {table_name} configuration must be a dictionary")
            for required in ("pk_type", "data"):
                if required not in table_config:
                    raise ValueError(f"Lookup table {table_name} missing required field: {required}")

        road_fixups = config.get("road_fixups") or {}
        if not isinstance(road_fixups, dict):
            raise ValueError("road_fixups must be a dictionary")

    def _create_schema_config(self, config: Dict[str, Any], base_dir: Path) -> SchemaConfig:
        """Create SchemaConfig from validated configuration.

        Data and correction paths are relative to the configuration file;
        schema paths additionally fall back to the bundled DDL templates.

        Args:
            config: Validated configuration dictionary
            base_dir: Directory of the configuration file

        Returns:
            SchemaConfig instance
        """
        def local(value: str) -> Path:
            p = Path(value).expanduser()
            return p if p.is_absolute() else base_dir / p

        tables = {}
        for name, table_config in config["tables"].items():
            data = table_config.get("data", {"type": "empty"})
            data_type = data["type"]
            if data_type == "raw_data":
                data_path = Path(data["path"])
            elif data_type == "path":
                data_path = local(data["path"])
            else:
                data_path = None

            tables[name] = TableConfig(
                name=name,
                schema=resolve_schema_path(Path(table_config["schema"]), base_dir),
                data_type=data_type,
                data_path=data_path,
            )

        lookup_tables = {
            name: LookupTableConfig(
                name=name,
                pk_type=str(table_config["pk_type"]),
                data=local(table_config["data"]),
                schema=(
                    resolve_schema_path(Path(table_config["schema"]), base_dir)
                    if table_config.get("schema") else None
                ),
            )
            for name, table_config in (config.get("lookup_tables") or {}).items()
        }

        fixups = config.get("road_fixups") or {}
        defaults = RoadFixupConfig()
        typo_table = fixups.get("typo_table", defaults.typo_table)
        road_fixups = RoadFixupConfig(
            enabled=bool(fixups.get("enabled", True)),
            collisions_table=fixups.get("collisions_table", defaults.collisions_table),
            normalized_table=fixups.get("normalized_table", defaults.normalized_table),
            corrected_table=fixups.get("corrected_table", defaults.corrected_table),
            typo_table=typo_table,
            known_good_table=fixups.get("known_good_table", typo_table),
            known_good_column=fixups.get("known_good_column", defaults.known_good_column),
            corrections_path=local(fixups.get("corrections_path", str(defaults.corrections_path))),
            typo_source=fixups.get("typo_source") or self._data_source(typo_table, tables, lookup_tables),
        )

        return SchemaConfig(
            name=config.get("name", "switrs"),
            table_order=list(config["table_order"]),
            tables=tables,
            lookup_schema=resolve_schema_path(Path(config["lookup_schema"]), base_dir),
            lookup_tables=lookup_tables,
            road_fixups=road_fixups,
            base_dir=base_dir,
        )

    @staticmethod
    def _data_source(
        table_name: str,
        tables: Dict[str, TableConfig],
        lookup_tables: Dict[str, LookupTableConfig],
    ) -> Optional[str]:
        """Data file a table is loaded from, for naming it in messages."""
        if table_name in lookup_tables:
            return str(lookup_tables[table_name].data)
        table = tables.get(table_name)
        if table is not None and table.data_path is not None:
            return str(table.data_path)
        return None

    def get_table_config(self, table_name: str) -> Dict[str, Any]:
        """Get raw configuration for a specific table.

        Args:
            table_name: Name of table

        Returns:
            Table configuration dictionary

        Raises:
            ValueError: If table not found in configuration
        """
        if self._config is None:
            raise ValueError("Configuration not loaded - call load() first")

        tables = self._config.get("tables", {})
        if table_name not in tables:
            raise ValueError(f"Table {table_name} not found in configuration")

        return tables[table_name]

    def save_example_config(self, output_path: Path) -> None:
        """Save an example configuration file.

        Args:
            output_path: Path where to save example config
        """
        example_config = {
            "name": "berkeley",
            "lookup_schema": "pk_table.sql",
            "lookup_tables": {
                "day_of_week": {
                    "pk_type": "CHAR(1)",
                    "data": "lookup-tables/DAY_OF_WEEK.csv",
                },
                "pcf_viol_category": {
                    "pk_type": "CHAR(2)",
                    "data": "lookup-tables/PCF_VIOL_CATEGORY.csv",
                },
            },
            "table_order": [
                "berkeley_road_typos",
                "collisions",
                "parties",
                "victims",
                "normalized_roads",
                "corrected_roads",
            ],
            "tables": {
                "berkeley_road_typos": {
                    "schema": "road_typos.sql",
                    "data": {"type": "path", "path": "berkeley-tables/BERKELEY_ROAD_TYPOS.csv"},
                },
                "collisions": {
                    "schema": "collisions.sql",
                    "data": {"type": "raw_data", "path": "CollisionRecords.txt"},
                },
                "parties": {
                    "schema": "parties.sql",
                    "data": {"type": "raw_data", "path": "PartyRecords.txt"},
                },
                "victims": {
                    "schema": "victims.sql",
                    "data": {"type": "raw_data", "path": "VictimRecords.txt"},
                },
                "normalized_roads": {
                    "schema": "normalized_roads.sql",
                    "data": {"type": "empty"},
                },
                "corrected_roads": {
                    "schema": "corrected_roads.sql",
                    "data": {"type": "path", "path": "${CORRECTED_ROADS:berkeley-tables/CORRECTED_ROADS.csv}"},
                },
            },
            "road_fixups": {
                "enabled": True,
                "typo_table": "berkeley_road_typos",
                "corrected_table": "corrected_roads",
                "corrections_path": "${CORRECTED_ROADS:berkeley-tables/CORRECTED_ROADS.csv}",
            },
        }

        with open(output_path, 'w') as f:
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)

        print(f"Saved example configuration to {output_path}")
