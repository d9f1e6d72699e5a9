# trades/registry.py - trade presets via the built-in defaults table
# Contract: pure, deterministic, exhaustive.
# - resolve() never touches configuration storage; safe for repeated preview.
# - Same TradeId in -> value-equal PresetBundle out (bundles are frozen).
# - Strings are validated through the catalog (boundary input only).
# - An incomplete defaults table fails at import, not at first resolve.

from typing import Dict, Mapping

from core.catalog import load_catalog
from core.errors import PresetTableIncomplete
from core.model import PresetBundle, TradeId
from trades.defaults import DEFAULT_PRESETS


def verify_defaults(table: Mapping[TradeId, PresetBundle] = DEFAULT_PRESETS) -> None:
    """
    Start-up self-check over the defaults table:
      - every TradeId has an entry
      - each entry is keyed by its own trade
      - each entry has a non-empty plural asset label
    """
    missing = [t.value for t in TradeId if t not in table]
    if missing:
        raise PresetTableIncomplete(f"No preset defaults for: {', '.join(missing)}")
    for trade, bundle in table.items():
        if bundle.trade is not trade:
            raise PresetTableIncomplete(
                f"Preset keyed '{trade.value}' describes '{bundle.trade.value}'")
        if not (bundle.asset_plural_label or "").strip():
            raise PresetTableIncomplete(f"Preset '{trade.value}' has no plural asset label")


def resolve(trade) -> PresetBundle:
    """
    Resolve the preset bundle for a trade. Accepts a TradeId, or a string at
    the boundary (raises UnknownTrade if it is not a supported trade).
    """
    tid = load_catalog().describe(trade).trade
    return DEFAULT_PRESETS[tid]


def resolve_all() -> Dict[TradeId, PresetBundle]:
    """Every candidate bundle, in catalog order (wizard previews)."""
    return {d.trade: resolve(d.trade) for d in load_catalog().list_trades()}


verify_defaults()
