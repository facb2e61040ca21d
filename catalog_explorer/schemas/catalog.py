"""
Schemas for discovered tables, their persisted configuration, and the
normalized rows and product groups produced by a search.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_explorer.core.enums import CANONICAL_FIELDS, GroupKeyKind, SearchMode


class TableDescriptor(BaseModel):
    name: str
    columns: List[str] = Field(default_factory=list)


class TableConfig(BaseModel):
    """
    Per-table user configuration, persisted as camelCase JSON.

    A freshly discovered table starts disabled with empty selections and no
    explicit column mapping.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    enabled: bool = False
    search_fields: List[str] = Field(default_factory=list, alias="searchFields")
    display_fields: List[str] = Field(default_factory=list, alias="displayFields")
    column_mapping: Dict[str, str] = Field(default_factory=dict, alias="columnMapping")

    @field_validator('search_fields', 'display_fields', mode='before')
    @classmethod
    def dedupe_fields(cls, v):
        if v is None:
            return []
        seen = []
        for item in v:
            if item not in seen:
                seen.append(item)
        return seen

    @field_validator('column_mapping', mode='before')
    @classmethod
    def validate_column_mapping(cls, v):
        if v is None:
            return {}
        unknown = [key for key in v if key not in CANONICAL_FIELDS]
        if unknown:
            raise ValueError(f"Unknown canonical field(s): {', '.join(unknown)}")
        return {key: column for key, column in v.items() if column}


class NormalizedProductRow(BaseModel):
    """One row projected onto the canonical schema; every field is present, most may be null."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Any] = None
    reference: Optional[Any] = None
    barcode: Optional[Any] = None
    description: Optional[Any] = None
    brand: Optional[Any] = None
    supplier_code: Optional[Any] = None
    name: Optional[Any] = None
    price: Optional[Any] = None
    stock: Optional[Any] = None
    location: Optional[Any] = None
    ean: Optional[Any] = None
    source_table: str

    def value(self, field: str) -> Optional[Any]:
        return getattr(self, field)

    def text(self, field: str) -> Optional[str]:
        """Field value as a stripped string, or None when null or blank."""
        value = getattr(self, field)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def filled_count(self) -> int:
        count = 0
        for field in CANONICAL_FIELDS:
            value = getattr(self, field)
            if isinstance(value, str):
                value = value.strip()
            if value:
                count += 1
        return count


class ProductGroup(BaseModel):
    group_key: str
    group_key_kind: GroupKeyKind
    members: List[NormalizedProductRow]
    primary: NormalizedProductRow
    source_tables: List[str] = Field(default_factory=list)
    conflicts: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class SearchResult(BaseModel):
    data: Optional[List[NormalizedProductRow]] = None
    count: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None
    term: str = ""
    mode: Optional[SearchMode] = None
    tables_searched: List[str] = Field(default_factory=list)
    tables_skipped: List[str] = Field(default_factory=list)
    truncated_tables: List[str] = Field(default_factory=list)

    @property
    def truncated(self) -> bool:
        return bool(self.truncated_tables)


class TablePage(BaseModel):
    table: str
    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total_count: int = 0

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total_count


class TablePageResult(BaseModel):
    data: Optional[TablePage] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


class TableMappingView(BaseModel):
    """Explicit mapping, what the projection will actually use, and fields with several candidates."""
    table: str
    columns: List[str]
    explicit: Dict[str, str] = Field(default_factory=dict)
    effective: Dict[str, str] = Field(default_factory=dict)
    ambiguities: Dict[str, List[str]] = Field(default_factory=dict)


# Request bodies for the table configuration endpoints

class EnabledUpdate(BaseModel):
    enabled: bool


class FieldToggle(BaseModel):
    column: str


class MappingUpdate(BaseModel):
    column: Optional[str] = None
