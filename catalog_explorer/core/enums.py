"""
Shared enums and constants used across the application.
"""

from enum import Enum


class CanonicalField(str, Enum):
    """Fixed product vocabulary every catalog table is normalized toward."""
    ID = "id"
    REFERENCE = "reference"
    BARCODE = "barcode"
    DESCRIPTION = "description"
    BRAND = "brand"
    SUPPLIER_CODE = "supplier_code"
    NAME = "name"
    PRICE = "price"
    STOCK = "stock"
    LOCATION = "location"
    EAN = "ean"

    @property
    def label(self):
        return CANONICAL_FIELD_LABELS[self]


CANONICAL_FIELD_LABELS = {
    CanonicalField.ID: "ID",
    CanonicalField.REFERENCE: "Reference",
    CanonicalField.BARCODE: "Barcode",
    CanonicalField.DESCRIPTION: "Description",
    CanonicalField.BRAND: "Brand",
    CanonicalField.SUPPLIER_CODE: "Supplier code",
    CanonicalField.NAME: "Name",
    CanonicalField.PRICE: "Price",
    CanonicalField.STOCK: "Stock",
    CanonicalField.LOCATION: "Location",
    CanonicalField.EAN: "EAN",
}

# Declaration order is the projection order and the mapping resolution order
CANONICAL_FIELDS = [field.value for field in CanonicalField]


class SearchMode(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"


class GroupKeyKind(str, Enum):
    """Which identity attribute a reconciled product group was keyed on."""
    BARCODE = "barcode"
    SUPPLIER_CODE = "supplier_code"
    REFERENCE = "reference"


class FieldSelection(str, Enum):
    """The two per-table column selections a user can edit."""
    SEARCH = "search"
    DISPLAY = "display"
