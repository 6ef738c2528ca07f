"""
engine/storage.py
-----------------
Keyed load/save of the raw input snapshot.

The store is a single JSON object on disk:

    {
        "d2c_dashboard_v1": { "gross_sales_incl_gst": 5000000, ... }
    }

Loading never fails: a missing file, unreadable JSON, or a payload that is
not an object falls back to DEFAULT_INPUTS (the Indian D2C scenario). The
record is returned as saved, unknown keys included; resolution into an
InputRecord is the engine's job.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

STORAGE_KEY = "d2c_dashboard_v1"

# The Indian D2C scenario shown on first launch.
DEFAULT_INPUTS: dict[str, float] = {
    "gross_sales_incl_gst":        5_000_000,
    "gst_rate_percent":            18,
    "discounts_total":             200_000,
    "returns_value_ex_gst":        150_000,
    "fees_commissions":            0,

    "total_orders":                2_500,
    "orders_new_customer":         1_800,
    "units_sold":                  3_000,

    "cost_mfg_per_unit":           400,
    "packaging_consumables_total": 50_000,
    "inventory_purchased_value":   1_500_000,

    "shipping_expense_forward":    250_000,
    "rto_penalty_total":           120_000,
    "warehouse_pick_pack_total":   75_000,
    "payment_gateway_fees":        100_000,

    "ad_spend_total":              1_200_000,
    "ad_spend_prospecting":        800_000,

    "total_fixed_opex":            800_000,
    "target_profit_per_order":     200,
    "cash_on_hand":                2_500_000,
}


class InputStore:
    """JSON-file backed store for input snapshots, keyed by storage key."""

    def __init__(self, path: Path | str, key: str = STORAGE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(f"Snapshot store {self.path} is unreadable ({exc}); ignoring it.")
            return {}
        if not isinstance(payload, dict):
            logger.warning(f"Snapshot store {self.path} does not hold a JSON object; ignoring it.")
            return {}
        return payload

    def load(self) -> dict[str, Any]:
        """Return the saved record for this key, or a copy of DEFAULT_INPUTS."""
        record = self._read_all().get(self.key)
        if record is None:
            return dict(DEFAULT_INPUTS)
        if not isinstance(record, dict):
            logger.warning(f"Saved snapshot '{self.key}' is not an object; using defaults.")
            return dict(DEFAULT_INPUTS)
        return record

    def save(self, record: Mapping[str, Any]) -> None:
        """
        Persist `record` under this key, keeping other keys in the file.
        Written to a temp file first so a crash never leaves half a snapshot.
        """
        payload = self._read_all()
        payload[self.key] = dict(record)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".snapshot-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Saved snapshot '{self.key}' to {self.path}")

    def reset(self) -> dict[str, Any]:
        """Drop the saved record for this key and return the defaults."""
        payload = self._read_all()
        if payload.pop(self.key, None) is not None:
            self.path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        return dict(DEFAULT_INPUTS)
