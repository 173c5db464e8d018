"""Ledger readers: load raw ledger rows and parse them into typed records."""

import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..core.exceptions import LedgerValidationError
from .models import LedgerSnapshot
from .schemas import AffiliateRecord, AttributionRecord, CommissionRecord, LedgerPayload, PayoutRecord

logger = logging.getLogger(__name__)


def _format_errors(exc: ValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "record"
        messages.append(f"{location}: {err.get('msg')}")
    return messages


class LedgerReader:
    """Read one ledger from ``{storage_path}/{filename}`` or from raw rows.

    Malformed rows are never defaulted: every rejected row is collected and
    reported together in a :class:`LedgerValidationError`.
    """

    ledger_name = ""
    filename = ""
    record_model: Type[BaseModel] = BaseModel

    def __init__(self, storage_path: str = "data/affiliates"):
        self.storage_path = storage_path

    @property
    def data_file(self) -> str:
        return f"{self.storage_path}/{self.filename}"

    def load_rows(self) -> List[Dict[str, Any]]:
        """Load raw rows from storage. A missing file is an empty ledger."""
        if not os.path.exists(self.data_file):
            logger.debug(f"No {self.ledger_name} ledger at {self.data_file}")
            return []

        with open(self.data_file, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise LedgerValidationError(
                    f"{self.data_file} is not valid JSON",
                    [{'ledger': self.ledger_name, 'index': None, 'errors': [str(e)]}]
                ) from e

        if isinstance(data, dict):
            data = data.get(self.ledger_name, [])
        if not isinstance(data, list):
            raise LedgerValidationError(
                f"{self.data_file} must contain a list of {self.ledger_name}",
                [{'ledger': self.ledger_name, 'index': None, 'errors': ['expected a list']}]
            )
        return data

    def read(self) -> list:
        """Load and parse the stored ledger."""
        return self.parse(self.load_rows())

    def collect(self, rows: Iterable[Any]):
        """Parse rows, returning ``(records, errors)`` without raising."""
        records = []
        errors = []
        seen_ids = set()

        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                errors.append({'ledger': self.ledger_name, 'index': index, 'errors': ['record must be an object']})
                continue
            try:
                record = self.record_model.model_validate(row).to_record()
            except ValidationError as e:
                errors.append({
                    'ledger': self.ledger_name,
                    'index': index,
                    'id': row.get('id'),
                    'errors': _format_errors(e),
                })
                continue

            if record.id in seen_ids:
                errors.append({
                    'ledger': self.ledger_name,
                    'index': index,
                    'id': record.id,
                    'errors': [f"duplicate id {record.id}"],
                })
                continue
            seen_ids.add(record.id)
            records.append(record)

        return records, errors

    def parse(self, rows: Iterable[Any]) -> list:
        """Parse rows into typed records, raising on any malformed row."""
        records, errors = self.collect(rows)
        if errors:
            logger.warning(f"Rejected {len(errors)} malformed {self.ledger_name} record(s)")
            raise LedgerValidationError(f"Malformed {self.ledger_name} ledger", errors)
        return records


class AffiliateLedgerReader(LedgerReader):
    """Affiliate accounts."""
    ledger_name = "affiliates"
    filename = "affiliates.json"
    record_model = AffiliateRecord


class CommissionLedgerReader(LedgerReader):
    """Commission rows written by the billing pipeline."""
    ledger_name = "commissions"
    filename = "commissions.json"
    record_model = CommissionRecord


class PayoutLedgerReader(LedgerReader):
    """Payout rows written by the payout batch job."""
    ledger_name = "payouts"
    filename = "payouts.json"
    record_model = PayoutRecord


class AttributionLedgerReader(LedgerReader):
    """Signup attributions."""
    ledger_name = "attributions"
    filename = "attributions.json"
    record_model = AttributionRecord


READERS = [AffiliateLedgerReader, CommissionLedgerReader, PayoutLedgerReader, AttributionLedgerReader]


def _build_snapshot(rows_by_ledger: Dict[str, Iterable[Any]], storage_path: str) -> LedgerSnapshot:
    parsed = {}
    errors = []
    for reader_cls in READERS:
        reader = reader_cls(storage_path)
        records, ledger_errors = reader.collect(rows_by_ledger.get(reader.ledger_name, []))
        parsed[reader.ledger_name] = records
        errors.extend(ledger_errors)

    if errors:
        logger.warning(f"Rejected ledger payload with {len(errors)} malformed record(s)")
        raise LedgerValidationError("Malformed ledger payload", errors)

    return LedgerSnapshot(**parsed)


def parse_snapshot(payload: Any) -> LedgerSnapshot:
    """Parse an aggregation input payload into a :class:`LedgerSnapshot`."""
    try:
        ledger = LedgerPayload.model_validate(payload)
    except ValidationError as e:
        raise LedgerValidationError(
            "Malformed ledger payload",
            [{'ledger': None, 'index': None, 'errors': _format_errors(e)}]
        ) from e

    return _build_snapshot({
        'affiliates': ledger.affiliates,
        'commissions': ledger.commissions,
        'payouts': ledger.payouts,
        'attributions': ledger.attributions,
    }, storage_path="")


def read_snapshot(storage_path: Optional[str] = None) -> LedgerSnapshot:
    """Read every ledger file from a storage directory."""
    storage_path = storage_path or "data/affiliates"
    rows = {}
    for reader_cls in READERS:
        reader = reader_cls(storage_path)
        rows[reader.ledger_name] = reader.load_rows()
    return _build_snapshot(rows, storage_path)
