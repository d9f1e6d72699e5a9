# core/catalog.py - trade catalog + helpers
#
# Display metadata for every supported trade, in the order the wizard shows
# them. The mapping TradeId -> TradeDescriptor is total; a gap is a
# programming error and is reported at import time by self_check().

from dataclasses import dataclass
from typing import Dict, Tuple

from core.errors import CatalogIncomplete
from core.model import TradeDescriptor, TradeId

# Canonical presentation order (not alphabetical).
TRADE_DESCRIPTORS: Tuple[TradeDescriptor, ...] = (
    TradeDescriptor(TradeId.HVAC,        "HVAC",        "hvac.png",        "#1976D2",
                    "Heating, ventilation & air conditioning"),
    TradeDescriptor(TradeId.PLUMBING,    "Plumbing",    "plumbing.png",    "#0288D1",
                    "Plumbing & water systems"),
    TradeDescriptor(TradeId.ELECTRICAL,  "Electrical",  "electrical.png",  "#FFC107",
                    "Electrical systems & wiring"),
    TradeDescriptor(TradeId.LANDSCAPING, "Landscaping", "landscaping.png", "#388E3C",
                    "Lawn care, irrigation & grounds maintenance"),
    TradeDescriptor(TradeId.GENERAL,     "General Contractor", "general.png", "#795548",
                    "General home services"),
)

# ---------- simple in-process cache ----------
_CATALOG_CACHE = None


@dataclass(frozen=True)
class Catalog:
    descriptors: Tuple[TradeDescriptor, ...]

    @property
    def by_trade(self) -> Dict[TradeId, TradeDescriptor]:
        return {d.trade: d for d in self.descriptors}

    def list_trades(self) -> Tuple[TradeDescriptor, ...]:
        return self.descriptors

    def describe(self, trade) -> TradeDescriptor:
        """
        Total over TradeId. Strings are accepted at the boundary and parsed
        first; values outside the enumeration raise UnknownTrade.
        """
        tid = TradeId.parse(trade)
        for d in self.descriptors:
            if d.trade is tid:
                return d
        # parse() succeeded, so only an incomplete table lands here
        raise CatalogIncomplete(f"No descriptor for trade '{tid.value}'")

    def self_check(self) -> None:
        seen = [d.trade for d in self.descriptors]
        missing = [t.value for t in TradeId if t not in seen]
        if missing:
            raise CatalogIncomplete(f"Catalog is missing descriptors for: {', '.join(missing)}")
        dupes = sorted({t.value for t in seen if seen.count(t) > 1})
        if dupes:
            raise CatalogIncomplete(f"Catalog has duplicate descriptors for: {', '.join(dupes)}")


def load_catalog() -> Catalog:
    global _CATALOG_CACHE
    if _CATALOG_CACHE is None:
        cat = Catalog(TRADE_DESCRIPTORS)
        cat.self_check()
        _CATALOG_CACHE = cat
    return _CATALOG_CACHE


def reload_catalog() -> Catalog:
    """
    Force cache invalidation + rebuild from the descriptor table.
    """
    global _CATALOG_CACHE
    _CATALOG_CACHE = None
    return load_catalog()


def list_trades() -> Tuple[TradeDescriptor, ...]:
    return load_catalog().list_trades()


def describe(trade) -> TradeDescriptor:
    return load_catalog().describe(trade)


# fail fast at start-up rather than at first lookup
load_catalog()
