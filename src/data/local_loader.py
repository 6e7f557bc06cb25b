"""
Local data loader for the LTBI household-contact CSV.

Reads the tabular dataset with pandas, coerces the numeric columns and converts
each row into an immutable ContactRecord. Malformed numeric cells become NaN
(or a missing Year) instead of failing the load, so downstream charts render
with undefined values rather than crashing.
"""

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from src.data.schemas import (
    NUMERIC_COLUMNS,
    REQUIRED_COLUMNS,
    YEAR,
    ContactRecord,
)
from src.exceptions import DataLoadError, DataValidationError

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "LTBI_estimates_cleaned.csv"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LoadResult:
    """Result of loading the contact dataset."""

    records: list[ContactRecord] = field(default_factory=list)

    # Statistics
    columns: list[str] = field(default_factory=list)
    passthrough_columns: list[str] = field(default_factory=list)
    total_rows: int = 0
    unique_countries: int = 0
    coerced_values: dict[str, int] = field(default_factory=dict)
    load_duration_ms: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# =============================================================================
# LOCAL DATA LOADER
# =============================================================================


class LocalDataLoader:
    """
    Load the household-contact dataset from a local CSV file.

    Usage:
        loader = LocalDataLoader("data/LTBI_estimates_cleaned.csv")
        result = loader.load()

        # Use with pipeline
        from src.pipeline import run_pipeline
        pipeline_result = run_pipeline(records=result.records)
    """

    def __init__(
        self,
        path: str | Path,
        *,
        encoding: str = "utf-8",
        keep_passthrough: bool = True,
    ):
        """
        Initialize loader.

        Args:
            path: CSV file to read
            encoding: File encoding
            keep_passthrough: Keep non-required columns in ContactRecord.extra
        """
        self.path = Path(path)
        self.encoding = encoding
        self.keep_passthrough = keep_passthrough

    def load(self) -> LoadResult:
        """
        Load all rows from the CSV file.

        Returns:
            LoadResult with records and statistics

        Raises:
            DataValidationError: If a required column is missing
        """
        start_time = time.perf_counter()
        result = LoadResult()

        if not self.path.exists():
            result.errors.append(f"Data file not found: {self.path}")
            return result

        try:
            frame = self.read_frame()
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            result.errors.append(f"Could not parse {self.path}: {e}")
            return result
        except pd.errors.EmptyDataError:
            # A file without a header row yields an empty dataset
            logger.warning(f"Data file {self.path} is empty")
            result.load_duration_ms = (time.perf_counter() - start_time) * 1000
            return result

        result.records = frame_to_records(
            frame,
            keep_passthrough=self.keep_passthrough,
            coerced_counts=result.coerced_values,
        )
        result.columns = list(frame.columns)
        result.passthrough_columns = [c for c in frame.columns if c not in REQUIRED_COLUMNS]
        result.total_rows = len(result.records)
        result.unique_countries = len({r.country for r in result.records})
        result.load_duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Loaded {result.total_rows} rows ({result.unique_countries} countries) "
            f"from {self.path} in {result.load_duration_ms:.1f}ms"
        )
        return result

    def read_frame(self) -> pd.DataFrame:
        """Read the raw CSV with every cell as a string."""
        return pd.read_csv(
            self.path,
            dtype=str,
            keep_default_na=False,
            encoding=self.encoding,
        )


# =============================================================================
# CONVERSION
# =============================================================================


def validate_columns(columns: Iterable[str]) -> None:
    """Raise DataValidationError if any required column is absent."""
    present = set(columns)
    for column in REQUIRED_COLUMNS:
        if column not in present:
            raise DataValidationError(
                f"Required column '{column}' missing from dataset",
                field=column,
                context={"columns": sorted(present)},
            )


def coerce_numeric_columns(
    frame: pd.DataFrame,
    coerced_counts: dict[str, int] | None = None,
) -> pd.DataFrame:
    """Return a copy of the frame with numeric columns converted, bad cells as NaN."""
    frame = frame.copy()
    for column in NUMERIC_COLUMNS:
        raw = frame[column]
        converted = pd.to_numeric(raw, errors="coerce")
        bad = int((converted.isna() & raw.astype(str).str.strip().ne("")).sum())
        if bad:
            logger.warning(f"{bad} non-numeric value(s) in column '{column}' coerced to NaN")
            if coerced_counts is not None:
                coerced_counts[column] = bad
        frame[column] = converted
    return frame


def frame_to_records(
    frame: pd.DataFrame,
    *,
    keep_passthrough: bool = True,
    coerced_counts: dict[str, int] | None = None,
) -> list[ContactRecord]:
    """Convert a raw string DataFrame into ContactRecords, preserving row order."""
    validate_columns(frame.columns)
    frame = coerce_numeric_columns(frame, coerced_counts)

    passthrough = [c for c in frame.columns if c not in REQUIRED_COLUMNS]
    records = []
    for row in frame.to_dict(orient="records"):
        records.append(_row_to_record(row, passthrough if keep_passthrough else []))

    missing_years = sum(1 for r in records if r.year is None)
    if missing_years:
        logger.debug(f"{missing_years} row(s) have no usable {YEAR}")

    return records


def _row_to_record(row: Mapping[str, Any], passthrough: list[str]) -> ContactRecord:
    data = {column: row[column] for column in REQUIRED_COLUMNS}
    data["extra"] = {column: row[column] for column in passthrough}
    return ContactRecord.model_validate(data)


def records_from_dicts(rows: Iterable[Mapping[str, Any]]) -> list[ContactRecord]:
    """Build records from in-memory mappings keyed by dataset column names.

    Missing optional numeric columns default to NaN; unknown keys are kept as passthrough.
    """
    records = []
    for row in rows:
        data = {k: v for k, v in row.items() if k in REQUIRED_COLUMNS}
        data["extra"] = {k: v for k, v in row.items() if k not in REQUIRED_COLUMNS}
        records.append(ContactRecord.model_validate(data))
    return records


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def load_contact_data(path: str | Path, **kwargs: Any) -> LoadResult:
    """
    Convenience function to load the dataset.

    Args:
        path: CSV file path
        **kwargs: Passed to LocalDataLoader

    Returns:
        LoadResult
    """
    return LocalDataLoader(path, **kwargs).load()


def load_records(path: str | Path) -> list[ContactRecord]:
    """
    Load only the records, raising if the file could not be read.

    Raises:
        DataLoadError: If the file is missing or unparseable
    """
    result = load_contact_data(path)
    if result.errors:
        raise DataLoadError(
            f"Failed to load contact data from {path}",
            path=str(path),
            errors=result.errors,
        )
    return result.records
