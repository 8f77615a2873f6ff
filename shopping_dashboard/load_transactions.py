"""
Transaction Loader - Parse and Validate Shopping Mall Transactions
Reads the customer shopping CSV export and turns every row into a typed record.
Rows with bad numeric or categorical fields are excluded and reported per field
instead of being coerced to NaN and silently carried into the aggregates.

Inputs:
- customer_shopping_data.csv with columns invoice_no, customer_id, gender, age,
  category, quantity, price, payment_method, invoice_date, shopping_mall

Outputs:
- LoadResult.records: typed DataFrame of valid transactions plus line_value
- LoadResult.issues: one row per failing field (row, field, value, reason)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd

# Setup logging
logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = [
    'invoice_no',
    'customer_id',
    'gender',
    'age',
    'category',
    'quantity',
    'price',
    'payment_method',
    'invoice_date',
    'shopping_mall',
]

GENDERS = ['Male', 'Female']

# Day-first calendar date used by the mall export, e.g. 5/8/2022 = 5 Aug 2022
DATE_FORMAT = '%d/%m/%Y'

ISSUE_COLUMNS = ['Row', 'Field', 'Value', 'Reason']

# Largest whole number a float64 holds exactly
MAX_WHOLE_NUMBER = 2 ** 53


class DatasetLoadError(Exception):
    """Raised when the dataset cannot be read at all."""


@dataclass
class LoadResult:
    """Typed records plus the per-field report of what was left out."""
    records: pd.DataFrame
    issues: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=ISSUE_COLUMNS))
    skipped_rows: int = 0
    undated_rows: int = 0

    @property
    def total_rows(self) -> int:
        return len(self.records) + self.skipped_rows


def compute_line_value(df: pd.DataFrame) -> pd.Series:
    """
    Monetary value of a transaction line.

    Every chart, statistic and export uses quantity x unit price. This is the
    only place the convention is written down.
    """
    return df['quantity'] * df['price']


def _numeric_issue(text: pd.Series, parsed: pd.Series, integer: bool) -> pd.Series:
    """Return a reason per row for a numeric column, None where the value is fine."""
    reasons = pd.Series(None, index=text.index, dtype=object)
    values = parsed.astype('float64')

    missing = text == ''
    reasons[missing] = 'missing value'
    reasons[~missing & values.isna()] = 'not a number'

    finite = pd.Series(np.isfinite(values.to_numpy()), index=text.index)
    reasons[values.notna() & ~finite] = 'not a finite number'

    negative = finite & (values < 0)
    reasons[negative] = 'negative value'

    in_range = finite & ~negative & (values <= MAX_WHOLE_NUMBER)
    reasons[finite & ~negative & ~in_range] = 'out of range'

    if integer:
        reasons[in_range & (values % 1 != 0)] = 'not a whole number'

    return reasons


def _text_issue(text: pd.Series, allowed=None) -> pd.Series:
    reasons = pd.Series(None, index=text.index, dtype=object)

    missing = text == ''
    reasons[missing] = 'missing value'

    if allowed is not None:
        reasons[~missing & ~text.isin(allowed)] = f"expected one of {', '.join(allowed)}"

    return reasons


def parse_transactions(raw: pd.DataFrame) -> LoadResult:
    """
    Validate raw text columns and build the typed record frame.

    Reported row numbers are CSV line numbers (position + 2 for the header row).
    """
    missing_cols = [col for col in TRANSACTION_COLUMNS if col not in raw.columns]
    if missing_cols:
        raise DatasetLoadError(f"Missing required columns: {', '.join(missing_cols)}")

    text = raw[TRANSACTION_COLUMNS].reset_index(drop=True).fillna('').astype(str)
    for col in TRANSACTION_COLUMNS:
        text[col] = text[col].str.strip()

    age = pd.to_numeric(text['age'], errors='coerce')
    quantity = pd.to_numeric(text['quantity'], errors='coerce')
    price = pd.to_numeric(text['price'], errors='coerce')

    checks = {
        'gender': _text_issue(text['gender'], allowed=GENDERS),
        'age': _numeric_issue(text['age'], age, integer=True),
        'category': _text_issue(text['category']),
        'quantity': _numeric_issue(text['quantity'], quantity, integer=True),
        'price': _numeric_issue(text['price'], price, integer=False),
    }

    issues = []
    bad_rows = pd.Series(False, index=text.index)
    for field_name, reasons in checks.items():
        failing = reasons.notna()
        bad_rows |= failing
        for idx in reasons[failing].index:
            issues.append({
                'Row': idx + 2,
                'Field': field_name,
                'Value': text.at[idx, field_name],
                'Reason': reasons[idx]
            })

    issues_df = pd.DataFrame(issues, columns=ISSUE_COLUMNS)
    valid = ~bad_rows

    records = text.loc[valid, ['invoice_no', 'customer_id', 'gender', 'category',
                               'payment_method', 'shopping_mall']].copy()
    records['age'] = age[valid].astype('int64')
    records['quantity'] = quantity[valid].astype('int64')
    records['price'] = price[valid].astype('float64')
    records['invoice_date'] = pd.to_datetime(text.loc[valid, 'invoice_date'], format=DATE_FORMAT, errors='coerce')
    records = records[TRANSACTION_COLUMNS].reset_index(drop=True)
    records['line_value'] = compute_line_value(records)

    undated = int(records['invoice_date'].isna().sum())
    skipped = int(bad_rows.sum())

    if skipped:
        logger.warning(f"Skipped {skipped:,} records with invalid fields ({len(issues_df):,} field issues)")
    if undated:
        logger.warning(f"{undated:,} records have no valid invoice date and are left out of the monthly trend")

    return LoadResult(records=records, issues=issues_df, skipped_rows=skipped, undated_rows=undated)


def records_from_dicts(rows) -> LoadResult:
    """Build a LoadResult from plain dict rows; absent or None fields become blanks."""
    raw = pd.DataFrame(list(rows), columns=TRANSACTION_COLUMNS)
    raw = raw.astype(object).where(raw.notna(), '')
    return parse_transactions(raw)


def load_transactions(input_path) -> LoadResult:
    """Load the transactions CSV and validate every row."""
    input_path = Path(input_path)
    logger.info(f"Loading transactions from {input_path}")

    if not input_path.exists():
        raise DatasetLoadError(f"Dataset not found: {input_path}")

    try:
        raw = pd.read_csv(input_path, dtype=str, keep_default_na=False, na_values=[''])
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DatasetLoadError(f"Could not read {input_path}: {e}") from e

    result = parse_transactions(raw)
    logger.info(f"Loaded {len(result.records):,} of {result.total_rows:,} records")
    return result
