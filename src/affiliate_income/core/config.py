"""Affiliate programme configuration: commission rates, windows and report limits."""

import json
import logging
from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Stored as strings so the JSON file never carries binary float rates
_RATE_FIELDS = {
    "user_commission_pct",
    "sub_user_commission_pct",
    "parent_user_commission_pct",
    "business_commission_pct",
    "sub_business_commission_pct",
    "parent_business_commission_pct",
    "main_min_commission_pct",
    "sub_min_commission_pct",
}


@dataclass
class ProgramConfig:
    """Commission rates and limits of the affiliate programme."""

    # User transactions: share of the platform fee, per attributed side
    user_commission_pct: Decimal = Decimal("0.25")
    sub_user_commission_pct: Decimal = Decimal("0.20")
    parent_user_commission_pct: Decimal = Decimal("0.05")

    # Business subscriptions: share of the subscription fee
    business_commission_pct: Decimal = Decimal("0.50")
    sub_business_commission_pct: Decimal = Decimal("0.40")
    parent_business_commission_pct: Decimal = Decimal("0.10")

    # Promo discounts come out of the affiliate's own share (0-100)
    main_max_discount_pct: int = 80
    sub_max_discount_pct: int = 75
    main_min_commission_pct: Decimal = Decimal("0.20")
    sub_min_commission_pct: Decimal = Decimal("0.20")

    # Hold period (days) for rows the pipeline wrote without available_at
    ledger_pending_days: int = 14

    # Payouts
    min_payout_amount_cents: int = 1000
    default_payout_period_days: int = 7

    # Reporting
    top_performers_limit: int = 10
    trend_months: int = 12
    currency_symbol: str = "€"

    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _RATE_FIELDS:
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgramConfig":
        """Build a config from stored data, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            if key in _RATE_FIELDS:
                value = Decimal(str(value))
            elif key == "updated_at":
                value = datetime.fromisoformat(value)
            kwargs[key] = value
        return cls(**kwargs)


class ProgramConfigManager:
    """Load and persist the programme configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or Path.home() / ".affiliate-income" / "program_config.json"
        self.config = self._load_config()

    def _load_config(self) -> ProgramConfig:
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    return ProgramConfig.from_dict(json.load(f))
            except (OSError, ValueError, TypeError, InvalidOperation) as e:
                logger.error(f"Error loading programme config: {e}")

        return ProgramConfig()

    def save_config(self):
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(self.config.to_dict(), f, indent=2)

    def update(self, **kwargs) -> ProgramConfig:
        """Update configuration values and persist them."""
        for key, value in kwargs.items():
            if not hasattr(self.config, key):
                raise AttributeError(f"Unknown programme setting: {key}")
            if key in _RATE_FIELDS:
                value = Decimal(str(value))
            setattr(self.config, key, value)
        self.config.updated_at = datetime.now()
        self.save_config()
        return self.config
