"""In-memory product shapes used while an import run is in flight."""
from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional
import json


PLACEHOLDER = "-"


def canonical_specifications(specifications: Optional[Dict[str, Any]]) -> str:
    """Serialize an attribute map with sorted keys for structural comparison.

    Two maps canonicalize identically iff they hold the same keys with the
    same values, regardless of insertion order. Values keep their JSON type,
    so "1" and 1 differ. None serializes as ``null`` and {} as ``{}``, so a
    missing map never equals an empty one.
    """
    return json.dumps(
        specifications,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def specifications_equal(
    left: Optional[Dict[str, Any]],
    right: Optional[Dict[str, Any]],
) -> bool:
    """Return True if two attribute maps are structurally equal."""
    return canonical_specifications(left) == canonical_specifications(right)


class CategoryKey(NamedTuple):
    """Identity of a category record; sub_category may be None."""
    main_category: str
    category: str
    sub_category: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.main_category}|{self.category}|{self.sub_category or ''}"


@dataclass
class ProductDraft:
    """A normalized, not-yet-persisted product built from one input row.

    ``category_key`` only drives category resolution; once resolved the
    draft carries ``category_id`` and the key is not written.
    """
    name: str = PLACEHOLDER
    cpn: str = PLACEHOLDER
    manufacturer: str = PLACEHOLDER
    mfr_part_number: str = PLACEHOLDER
    ltwks: str = PLACEHOLDER
    remarks: str = PLACEHOLDER
    source: Optional[str] = None
    datasheet_link: Optional[str] = None
    description: Optional[str] = None
    stock_qty: Optional[int] = None
    spq: Optional[int] = None
    moq: Optional[int] = None
    specifications: Optional[Dict[str, str]] = None
    category_key: Optional[CategoryKey] = None
    category_id: Optional[int] = None
    row_number: Optional[int] = None
    _canonical: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    @property
    def canonical_specifications(self) -> str:
        if self._canonical is None:
            self._canonical = canonical_specifications(self.specifications)
        return self._canonical

    def to_record(self) -> Dict[str, Any]:
        """Build the column values written for this draft."""
        return {
            "source": self.source,
            "name": self.name,
            "cpn": self.cpn,
            "manufacturer": self.manufacturer,
            "mfr_part_number": self.mfr_part_number,
            "stock_qty": self.stock_qty,
            "spq": self.spq,
            "moq": self.moq,
            "ltwks": self.ltwks,
            "remarks": self.remarks,
            "datasheet_link": self.datasheet_link,
            "description": self.description,
            "specifications": self.specifications,
            "category_id": self.category_id,
        }


@dataclass(frozen=True)
class ExistingProduct:
    """Read-only view of a stored product used for duplicate detection."""
    id: str
    name: str
    specifications: Optional[Dict[str, Any]] = None


@dataclass
class ProductUpdate:
    """Replacement values for an existing product, keyed by its id."""
    id: str
    values: Dict[str, Any]
