"""Settings consumed by the engine.

Settings are owned by the host application; the engine only reads them. They
can be loaded from a YAML (or JSON, which YAML accepts) file:

    account_options:
      - Assets:Bank:Checking
      - Expenses:Food:Groceries
    account_aliases:
      "🛒 Groceries": Expenses:Food:Groceries
    budgets:
      Food:Groceries: 400
    recurring:
      - id: rent
        label: '* "Landlord"'
        day_of_month: 1
        template: |
          Expenses:Housing:Rent   1200.00 USD
          Assets:Bank:Checking   -1200.00 USD
"""

import logging
from decimal import Decimal
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ledger_modern.accounts import DEFAULT_ACCOUNT_OPTIONS
from ledger_modern.errors import SettingsError
from ledger_modern.models import RecurringRule

logger = logging.getLogger(__name__)


class LedgerSettings(BaseModel):
    """Recognised configuration options."""
    account_options: list[str] = Field(default_factory=lambda: list(DEFAULT_ACCOUNT_OPTIONS))
    account_aliases: dict[str, str] = Field(default_factory=dict)
    budgets: dict[str, Decimal] = Field(default_factory=dict)
    default_account: str = "Assets:Checking"
    default_currency: str = "USD"
    auto_run_recurring: bool = False
    recurring: list[RecurringRule] = Field(default_factory=list)

    @field_validator("budgets", mode="before")
    @classmethod
    def validate_budgets(cls, v):
        """Coerce budget limits to Decimal without float artefacts."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        return {
            str(name): str(limit) if isinstance(limit, float) else limit
            for name, limit in v.items()
        }


def load_settings(path: str | Path) -> LedgerSettings:
    """Load settings from a YAML/JSON file.

    A missing file yields the defaults.

    Raises:
        SettingsError: The file cannot be read, is not valid YAML, or does not
            validate against LedgerSettings.
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Settings file not found, using defaults: %s", config_path)
        return LedgerSettings()

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Failed to load settings from {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise SettingsError(f"Settings in {config_path} must be a mapping")

    try:
        settings = LedgerSettings.model_validate(raw)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {config_path}: {e}") from e

    logger.info(
        "Loaded settings: %d account option(s), %d alias(es), %d budget(s), %d recurring rule(s)",
        len(settings.account_options), len(settings.account_aliases),
        len(settings.budgets), len(settings.recurring),
    )
    return settings


def dump_settings(settings: LedgerSettings) -> str:
    """Serialise settings to YAML text for the host to persist."""
    return yaml.safe_dump(
        settings.model_dump(mode="json"),
        allow_unicode=True,
        sort_keys=False,
    )
