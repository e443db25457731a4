"""Row normalization: raw spreadsheet rows into product drafts.

Known columns map to fixed draft fields; every other column with a
non-empty value lands in the draft's ``specifications`` map. Rows without a
main category or category are rejected since a category is mandatory.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple
import re
import structlog

from catalog_import.models.product_draft import PLACEHOLDER, CategoryKey, ProductDraft

logger = structlog.get_logger(__name__)


COL_SOURCE = "Source"
COL_MAIN_CATEGORY = "Main Category"
COL_CATEGORY = "Category"
COL_SUB_CATEGORY = "Sub-category"
COL_NAME = "Product Name/Part No."
COL_DATASHEET = "Datasheet Link (PDF)"
COL_DESCRIPTION = "Description"
COL_CPN = "CPN"
COL_MANUFACTURER = "Manufacturer"
COL_MFR_PART = "Mfr Part #"
COL_STOCK_QTY = "Stock Qty"
COL_SPQ = "SPQ"
COL_MOQ = "MOQ"
COL_LTWKS = "LTWKS"
COL_REMARKS = "Remarks"

STANDARD_COLUMNS = frozenset({
    COL_SOURCE, COL_MAIN_CATEGORY, COL_CATEGORY, COL_SUB_CATEGORY,
    COL_NAME, COL_DATASHEET, COL_DESCRIPTION, COL_CPN, COL_MANUFACTURER,
    COL_MFR_PART, COL_STOCK_QTY, COL_SPQ, COL_MOQ, COL_LTWKS, COL_REMARKS,
})

# Same leading-integer reading as a base-10 parseInt: "12 pcs" -> 12, "3.9" -> 3
_INT_PREFIX = re.compile(r"^[+-]?\d+")


def clean_text(value: Any) -> Optional[str]:
    """Return the trimmed string, or None for missing, non-string or blank values."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def text_or_placeholder(value: Any) -> str:
    return clean_text(value) or PLACEHOLDER


def parse_int_or_null(value: Any) -> Optional[int]:
    """Parse the leading integer of a cell; None when absent or non-numeric."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = clean_text(value)
    if text is None:
        return None
    match = _INT_PREFIX.match(text)
    return int(match.group()) if match else None


def extract_specifications(
    row: Mapping[str, Any],
    standard_columns: frozenset = STANDARD_COLUMNS,
) -> Optional[Dict[str, str]]:
    """Collect non-standard, non-empty columns; None if there are none."""
    specifications = {}
    for key, value in row.items():
        if key in standard_columns:
            continue
        text = clean_text(value)
        if text is not None:
            specifications[key] = text
    return specifications or None


def normalize_row(
    row: Mapping[str, Any],
    row_number: Optional[int] = None,
    standard_columns: frozenset = STANDARD_COLUMNS,
) -> Optional[ProductDraft]:
    """Build a ProductDraft from one row, or None if the row has no category."""
    main_category = text_or_placeholder(row.get(COL_MAIN_CATEGORY))
    category = text_or_placeholder(row.get(COL_CATEGORY))
    if main_category == PLACEHOLDER or category == PLACEHOLDER:
        return None

    return ProductDraft(
        source=clean_text(row.get(COL_SOURCE)),
        name=text_or_placeholder(row.get(COL_NAME)),
        datasheet_link=clean_text(row.get(COL_DATASHEET)),
        description=clean_text(row.get(COL_DESCRIPTION)),
        cpn=text_or_placeholder(row.get(COL_CPN)),
        manufacturer=text_or_placeholder(row.get(COL_MANUFACTURER)),
        mfr_part_number=text_or_placeholder(row.get(COL_MFR_PART)),
        stock_qty=parse_int_or_null(row.get(COL_STOCK_QTY)),
        spq=parse_int_or_null(row.get(COL_SPQ)),
        moq=parse_int_or_null(row.get(COL_MOQ)),
        ltwks=text_or_placeholder(row.get(COL_LTWKS)),
        remarks=text_or_placeholder(row.get(COL_REMARKS)),
        specifications=extract_specifications(row, standard_columns),
        category_key=CategoryKey(
            main_category=main_category,
            category=category,
            sub_category=clean_text(row.get(COL_SUB_CATEGORY)),
        ),
        row_number=row_number,
    )


@dataclass
class NormalizedRows:
    """Drafts plus the distinct category triples and names they reference."""
    drafts: List[ProductDraft] = field(default_factory=list)
    category_keys: Dict[CategoryKey, None] = field(default_factory=dict)
    names: Set[str] = field(default_factory=set)
    rows_parsed: int = 0
    rows_rejected: int = 0
    rows_failed: int = 0

    def add(self, draft: ProductDraft) -> None:
        self.drafts.append(draft)
        # dict keeps first-seen order of triples
        self.category_keys.setdefault(draft.category_key, None)
        # "-" is indexed too so nameless rows still match on a rerun
        self.names.add(draft.name)


def normalize_rows(rows: Iterable[Tuple[int, Mapping[str, Any]]]) -> NormalizedRows:
    """Normalize a stream of (row_number, row) pairs.

    A row that cannot be normalized is logged and skipped; it never aborts
    the stream.
    """
    normalized = NormalizedRows()
    for row_number, row in rows:
        normalized.rows_parsed += 1
        try:
            draft = normalize_row(row, row_number)
        except (TypeError, ValueError, AttributeError) as e:
            normalized.rows_failed += 1
            logger.warning(
                "row_normalization_failed",
                row_number=row_number,
                error=str(e),
                error_type=type(e).__name__,
            )
            continue
        if draft is None:
            normalized.rows_rejected += 1
            logger.debug("row_rejected_missing_category", row_number=row_number)
            continue
        normalized.add(draft)
    return normalized
