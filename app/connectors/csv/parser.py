"""RevPace — CSV Upload Parser.

Reads platform, flat-fee and Skimlinks CSV exports with pandas and turns
each row into a typed record. Platform rows that fail to parse are skipped
with a warning; flat-fee contracts are all-or-nothing.
"""

import io
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from app.analyzer.finance_calendar import parse_date
from app.core.exceptions import RowParseError, ValidationError
from app.models.pacing_models import FlatFeeContractInput
from app.models.upload_models import PlatformRow, SkimlinksRow
from app.core.logging import get_logger

logger = get_logger("connectors.csv")

# Normalized header → field name
PLATFORM_COLUMNS = {
    "date": "date",
    "brand": "brand",
    "weeklyrevenue": "weekly_revenue",
    "mtdrevenue": "mtd_revenue",
    "mtdgmv": "mtd_gmv",
    "targetgmv": "target_gmv",
    "totalcontractrevenue": "total_contract_revenue",
}
PLATFORM_REQUIRED = [
    "date",
    "brand",
    "weekly_revenue",
    "mtd_revenue",
    "mtd_gmv",
    "target_gmv",
]

FLAT_FEE_COLUMNS = {
    "partnername": "partner_name",
    "partner": "partner_name",
    "contractstart": "contract_start",
    "contractend": "contract_end",
    "totalcontractrevenue": "total_contract_revenue",
}
FLAT_FEE_REQUIRED = [
    "partner_name",
    "contract_start",
    "contract_end",
    "total_contract_revenue",
]

SKIMLINKS_HEADER = re.compile(r"^merchant\s*,\s*clicks\s*,\s*sales", re.IGNORECASE)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def normalize_header(header: str) -> str:
    """'Weekly Revenue', 'weekly_revenue' and 'weeklyRevenue' all match."""
    return re.sub(r"[^a-z0-9]", "", str(header).lower())


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_amount(value: Any, field: str = "amount") -> float:
    """Parse a money/number cell, stripping currency symbols and commas.

    "(1,200)" is read as -1200. Raises RowParseError when nothing numeric
    is left.
    """
    if isinstance(value, bool):
        raise RowParseError(f"Invalid {field}: {value!r}", field=field)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise RowParseError(f"Invalid {field}: {value!r}", field=field)
        return float(value)
    if _is_blank(value):
        raise RowParseError(f"Missing {field}", field=field)

    text = str(value).strip()
    negative = text.startswith("(") and text.endswith(")")
    cleaned = _NON_NUMERIC.sub("", text)
    try:
        amount = float(cleaned)
    except ValueError:
        raise RowParseError(f"Invalid {field}: {value!r}", field=field)
    return -amount if negative else amount


def _optional_amount(value: Any, field: str) -> Optional[float]:
    if _is_blank(value):
        return None
    return parse_amount(value, field)


def canonicalize(row: Dict[str, Any], columns: Dict[str, str]) -> Dict[str, Any]:
    """Rename known headers of a row to field names; unknown headers are dropped."""
    result: Dict[str, Any] = {}
    for key, value in row.items():
        field = columns.get(normalize_header(key))
        if field and field not in result:
            result[field] = value
    return result


def missing_columns(headers: Iterable[str], columns: Dict[str, str], required: List[str]) -> List[str]:
    present = {columns.get(normalize_header(h)) for h in headers}
    return [f for f in required if f not in present]


def read_csv_rows(content: Union[bytes, str]) -> List[Dict[str, Any]]:
    """Parse CSV content into a list of row dicts (all values as strings)."""
    file_like = io.BytesIO(content) if isinstance(content, bytes) else io.StringIO(content)
    try:
        df = pd.read_csv(
            file_like,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        raise ValidationError("CSV file is empty", field="file")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"Failed to parse CSV file: {e}", field="file")

    df.columns = [str(c).strip() for c in df.columns]
    logger.info(f"Parsed CSV with {len(df)} rows and {len(df.columns)} columns")
    return df.to_dict(orient="records")


# ─────────────────────────────────────────────
# PLATFORM ROWS
# ─────────────────────────────────────────────


def parse_platform_row(row: Dict[str, Any], index: int = 0) -> PlatformRow:
    """Parse one platform row. Raises RowParseError with the row number."""
    data = canonicalize(row, PLATFORM_COLUMNS)
    missing = [f for f in PLATFORM_REQUIRED if _is_blank(data.get(f))]
    if missing:
        raise RowParseError(
            f"Row {index}: missing required fields {', '.join(missing)}",
            field=missing[0],
            row=index,
        )

    try:
        return PlatformRow(
            date=parse_date(str(data["date"])),
            brand=str(data["brand"]).strip(),
            weekly_revenue=parse_amount(data["weekly_revenue"], "weeklyRevenue"),
            mtd_revenue=parse_amount(data["mtd_revenue"], "mtdRevenue"),
            mtd_gmv=parse_amount(data["mtd_gmv"], "mtdGmv"),
            target_gmv=parse_amount(data["target_gmv"], "targetGmv"),
            total_contract_revenue=_optional_amount(
                data.get("total_contract_revenue"), "totalContractRevenue"
            ),
        )
    except ValidationError as e:
        raise RowParseError(f"Row {index}: {e}", field=e.field, row=index)


def parse_platform_rows(
    rows: List[Dict[str, Any]],
) -> Tuple[List[PlatformRow], List[RowParseError]]:
    """Parse every row, skipping (and logging) the ones that fail."""
    parsed: List[PlatformRow] = []
    skipped: List[RowParseError] = []
    for index, row in enumerate(rows, 1):
        try:
            parsed.append(parse_platform_row(row, index))
        except RowParseError as e:
            logger.warning(f"Skipping row: {e}", extra={"row": index})
            skipped.append(e)
    return parsed, skipped


# ─────────────────────────────────────────────
# FLAT-FEE CONTRACTS
# ─────────────────────────────────────────────


def parse_flat_fee_rows(rows: List[Dict[str, Any]]) -> List[FlatFeeContractInput]:
    """Parse contract rows. Any invalid row rejects the whole batch."""
    contracts: List[FlatFeeContractInput] = []
    for index, row in enumerate(rows, 1):
        data = canonicalize(row, FLAT_FEE_COLUMNS)
        partner = str(data.get("partner_name") or "").strip() or None
        missing = [f for f in FLAT_FEE_REQUIRED if _is_blank(data.get(f))]
        if missing:
            raise ValidationError(
                f"Row {index} ({partner or 'unknown partner'}): missing required "
                f"fields {', '.join(missing)}",
                field=missing[0],
                row=index,
                partner=partner,
            )
        try:
            contracts.append(
                FlatFeeContractInput(
                    partner_name=partner,
                    contract_start=parse_date(str(data["contract_start"])),
                    contract_end=parse_date(str(data["contract_end"])),
                    total_contract_revenue=parse_amount(
                        data["total_contract_revenue"], "totalContractRevenue"
                    ),
                )
            )
        except ValidationError as e:
            raise ValidationError(
                f"Row {index} ({partner}): {e}",
                field=e.field,
                row=index,
                partner=partner,
            )
    return contracts


# ─────────────────────────────────────────────
# SKIMLINKS PUBLISHER REPORT
# ─────────────────────────────────────────────


def _lenient(value: Any, cast=float) -> Any:
    try:
        return cast(parse_amount(value))
    except RowParseError:
        return cast(0)


def parse_skimlinks_report(content: str) -> List[SkimlinksRow]:
    """Parse a Skimlinks report: Merchant, Clicks, Sales, Conversion rate,
    Order value, Revenue, EPC. Preamble lines before the header are ignored.
    """
    lines = content.splitlines()
    header_index = next(
        (i for i, line in enumerate(lines) if SKIMLINKS_HEADER.match(line.strip())),
        None,
    )
    if header_index is None:
        raise ValidationError(
            'Invalid CSV format: Could not find header line starting with "Merchant,Clicks,Sales"',
            field="csvContent",
        )

    # Rows wider than the header (trailing totals) are skipped by pandas;
    # short rows come back padded and are dropped below.
    body = io.StringIO("\n".join(lines[header_index:]))
    try:
        df = pd.read_csv(
            body,
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            on_bad_lines="skip",
        )
    except pd.errors.ParserError as e:
        raise ValidationError(f"Failed to parse CSV file: {e}", field="csvContent")

    merchants: List[SkimlinksRow] = []
    for values in df.iloc[1:].itertuples(index=False):
        values = list(values)
        if len(values) < 7 or any(pd.isna(v) for v in values[:7]):
            continue
        if all(not str(v).strip() for v in values[1:7]):
            continue
        merchant = str(values[0]).strip()
        if not merchant or "total" in merchant.lower():
            continue
        merchants.append(
            SkimlinksRow(
                merchant=merchant,
                clicks=_lenient(values[1], int),
                sales=_lenient(values[2], int),
                conversion_rate=_lenient(values[3]),
                gmv=_lenient(values[4]),
                revenue=_lenient(values[5]),
                epc=_lenient(values[6]),
            )
        )
    return merchants
