"""
Persisted per-table configuration.

The whole TableConfig array lives under a single storage key and is rewritten
in full on every change. All mutations go through ``apply_config_update`` so
each one starts from the latest snapshot; subscribers are told about every
new snapshot.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError as SchemaValidationError

from catalog_explorer.core.enums import CANONICAL_FIELDS, FieldSelection
from catalog_explorer.schemas.catalog import TableConfig
from catalog_explorer.services.catalog.column_mapper import merge_auto_mapping

logger = logging.getLogger(__name__)

STORAGE_KEY = "catalog_search_tables"

ConfigUpdater = Callable[[List[TableConfig]], List[TableConfig]]
ConfigListener = Callable[[List[TableConfig]], None]

_configs_adapter = TypeAdapter(List[TableConfig])


def default_table_config(name: str) -> TableConfig:
    return TableConfig(name=name, enabled=False, search_fields=[], display_fields=[], column_mapping={})


def _load_entry(entry) -> Optional[TableConfig]:
    """
    Validate one stored entry. Mapping keys that are not canonical fields are
    dropped so the rest of the entry survives; entries that still fail are skipped.
    """
    try:
        return TableConfig.model_validate(entry)
    except SchemaValidationError as e:
        error = e

    if isinstance(entry, dict) and isinstance(entry.get("columnMapping"), dict):
        mapping = entry["columnMapping"]
        unknown = [key for key in mapping if key not in CANONICAL_FIELDS]
        if unknown:
            cleaned = dict(entry, columnMapping={k: v for k, v in mapping.items() if k in CANONICAL_FIELDS})
            try:
                config = TableConfig.model_validate(cleaned)
            except SchemaValidationError as e:
                error = e
            else:
                logger.warning(f"Dropped unknown mapping field(s) {unknown} from table configuration '{config.name}'")
                return config

    name = entry.get("name") if isinstance(entry, dict) else None
    logger.warning(f"Skipping invalid table configuration {name or entry!r}: {error}")
    return None


def _selection_attr(kind: FieldSelection | str) -> str:
    kind = FieldSelection(kind)
    return "search_fields" if kind == FieldSelection.SEARCH else "display_fields"


class TableConfigStore:
    def __init__(self, path: Optional[Path | str] = None):
        self.path = Path(path) if path else None
        self._configs: List[TableConfig] = []
        self._listeners: List[ConfigListener] = []
        self._load()

    # Persistence

    def _load(self):
        if not self.path or not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                stored = json.load(f)
            entries = stored.get(STORAGE_KEY, [])
            if not isinstance(entries, list):
                raise ValueError(f"'{STORAGE_KEY}' is not a list")
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Error reading table configurations from {self.path}: {e}")
            self._configs = []
            return

        configs = []
        for entry in entries:
            config = _load_entry(entry)
            if config is not None:
                configs.append(config)
        self._configs = configs
        logger.info(f"Loaded {len(self._configs)} table configuration(s) from {self.path}")

    def _save(self):
        if not self.path:
            return
        payload = {STORAGE_KEY: [config.model_dump(by_alias=True) for config in self._configs]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except OSError as e:
            # The in-memory snapshot stays current; only persistence is lost.
            logger.error(f"Error saving table configurations to {self.path}: {e}")

    # Reading

    def snapshot(self) -> List[TableConfig]:
        return copy.deepcopy(self._configs)

    def get(self, name: str) -> Optional[TableConfig]:
        for config in self._configs:
            if config.name == name:
                return config.model_copy(deep=True)
        return None

    def enabled_tables(self) -> List[str]:
        return [config.name for config in self._configs if config.enabled]

    # Subscription

    def subscribe(self, listener: ConfigListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Mutation

    def apply_config_update(self, updater: ConfigUpdater) -> List[TableConfig]:
        """
        Single mutation entry point.

        ``updater`` receives a private copy of the current array and returns the
        new one, which is persisted in full and broadcast to subscribers.
        """
        updated = updater(self.snapshot())
        self._configs = _configs_adapter.validate_python(
            [config.model_dump(by_alias=True) for config in updated]
        )
        self._save()
        current = self.snapshot()
        for listener in list(self._listeners):
            listener(current)
        return current

    def _update_table(self, name: str, change: Callable[[TableConfig], None]) -> TableConfig:
        def updater(configs: List[TableConfig]) -> List[TableConfig]:
            target = next((config for config in configs if config.name == name), None)
            if target is None:
                target = default_table_config(name)
                configs.append(target)
            change(target)
            return configs

        self.apply_config_update(updater)
        return self.get(name)

    def register_tables(self, names: Iterable[str]) -> List[str]:
        """Append default configs for tables not seen before; returns the newly added names."""
        names = list(names)
        added: List[str] = []

        def updater(configs: List[TableConfig]) -> List[TableConfig]:
            known = {config.name for config in configs}
            for name in names:
                if name not in known:
                    configs.append(default_table_config(name))
                    known.add(name)
                    added.append(name)
            return configs

        if any(self.get(name) is None for name in names):
            self.apply_config_update(updater)
            logger.info(f"Registered {len(added)} new table(s): {', '.join(added)}")
        return added

    def set_enabled(self, name: str, enabled: bool) -> TableConfig:
        def change(config: TableConfig):
            config.enabled = enabled
        return self._update_table(name, change)

    def toggle_enabled(self, name: str) -> TableConfig:
        def change(config: TableConfig):
            config.enabled = not config.enabled
        return self._update_table(name, change)

    def toggle_field(self, name: str, column: str, kind: FieldSelection | str) -> TableConfig:
        attr = _selection_attr(kind)

        def change(config: TableConfig):
            fields = getattr(config, attr)
            if column in fields:
                fields.remove(column)
            else:
                fields.append(column)
        return self._update_table(name, change)

    def select_all_fields(self, name: str, columns: Sequence[str], kind: FieldSelection | str) -> TableConfig:
        attr = _selection_attr(kind)

        def change(config: TableConfig):
            setattr(config, attr, list(columns))
        return self._update_table(name, change)

    def clear_fields(self, name: str, kind: FieldSelection | str) -> TableConfig:
        attr = _selection_attr(kind)

        def change(config: TableConfig):
            setattr(config, attr, [])
        return self._update_table(name, change)

    def set_column_mapping(self, name: str, field: str, column: Optional[str]) -> TableConfig:
        """Explicitly map a canonical field to a column; an empty column removes the mapping."""
        if field not in CANONICAL_FIELDS:
            raise ValueError(f"Unknown canonical field: {field}")

        def change(config: TableConfig):
            if column:
                config.column_mapping[field] = column
            else:
                config.column_mapping.pop(field, None)
        return self._update_table(name, change)

    def auto_map_table(self, name: str, columns: Sequence[str]) -> Dict[str, str]:
        """Fill unmapped fields from the heuristics; explicit mappings are never overwritten."""
        if not columns:
            return dict((self.get(name) or default_table_config(name)).column_mapping)

        def change(config: TableConfig):
            config.column_mapping = merge_auto_mapping(config.column_mapping, columns)
        return self._update_table(name, change).column_mapping

    def clear_column_mapping(self, name: str) -> TableConfig:
        def change(config: TableConfig):
            config.column_mapping = {}
        return self._update_table(name, change)
