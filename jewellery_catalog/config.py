import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

ENV_PREFIX = "CATALOG_"

DEFAULT_SETTINGS: dict[str, str] = {
    "vendor": "Primestyle.com",
    "default_base_grams": "5",
    "default_metal_price_per_gram": "2.5",
    "per_side_stone_labor": "1",
    "per_center_labor": "5",
    "polish": "25",
    "polish_bridal": "50",
    "bracelet_fee": "125",
    "pendant_fee": "80",
    "cad_fee": "20",
    "fixed_fee": "25",
    "natural_side_price_per_carat": "150",
    "lab_side_price_per_carat": "100",
    "fallback_multiplier": "2.5",
    "compare_at_multiplier": "4",
    "log_level": "INFO",
}

TEXT_SETTINGS = ("vendor", "log_level")


def load_environment(dotenv_path: Path | None = None) -> None:
    load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env")


def get_all_settings(overrides: dict[str, Any] | None = None, *, use_env: bool = True) -> dict[str, Any]:
    """
    Resolves every tunable into a typed dict.

    Precedence: explicit overrides, then `CATALOG_<KEY>` environment variables (after loading
    `.env`), then DEFAULT_SETTINGS. Numeric values that do not parse fall back to the default.
    """
    raw: dict[str, Any] = {}
    if use_env:
        load_environment()
        for key in DEFAULT_SETTINGS:
            value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
            if value is not None:
                raw[key] = value
    raw.update(overrides or {})

    def get_float(key: str) -> float:
        try:
            return float(raw.get(key, DEFAULT_SETTINGS[key]))
        except (TypeError, ValueError):
            return float(DEFAULT_SETTINGS[key])

    settings: dict[str, Any] = {key: get_float(key) for key in DEFAULT_SETTINGS if key not in TEXT_SETTINGS}
    settings["vendor"] = str(raw.get("vendor") or DEFAULT_SETTINGS["vendor"]).strip()
    settings["log_level"] = str(raw.get("log_level") or DEFAULT_SETTINGS["log_level"]).strip().upper()
    return settings
