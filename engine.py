# engine.py - TradeKit setup engine
# ---------------------------------------------------------------------
# - Setup state machine: UNCONFIGURED -> TRADE_STAGED -> COMPLETED
# - select_trade previews (pure) then stages (tentative, not completed)
# - confirm commits the staged trade, re-validated against the selection
# - restart is the only way out of COMPLETED (store.reset)
# - Consumer helpers: route_for() and active_preset()

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from core.errors import NoTradeStaged, SetupAlreadyCompleted
from core.model import ConfigurationState, PresetBundle, TradeId
from core.store import ConfigurationStore
from trades import registry

logger = logging.getLogger(__name__)


class SetupPhase(Enum):
    UNCONFIGURED = "unconfigured"
    TRADE_STAGED = "trade_staged"
    COMPLETED    = "completed"


class Route(Enum):
    WIZARD = "wizard"
    MAIN   = "main"


def phase_of(state: ConfigurationState) -> SetupPhase:
    if state.setup_completed:
        return SetupPhase.COMPLETED
    if state.selected_trade is not None:
        return SetupPhase.TRADE_STAGED
    return SetupPhase.UNCONFIGURED


class SetupController:
    """
    Wizard flow over a ConfigurationStore.

    The initial phase comes from the store, so a wizard abandoned after a
    selection resumes in TRADE_STAGED with that trade. Only confirm() and
    restart() change the completion flag.
    """

    def __init__(self, store: ConfigurationStore, resolver=registry.resolve):
        self._store = store
        self._resolve = resolver
        state = store.read()
        self._phase = phase_of(state)
        self._selected: Optional[TradeId] = state.selected_trade
        self._preview: Optional[PresetBundle] = (
            resolver(state.selected_trade) if state.selected_trade is not None else None
        )

    # ---------------------------- state ------------------------------
    @property
    def phase(self) -> SetupPhase:
        return self._phase

    @property
    def selected_trade(self) -> Optional[TradeId]:
        return self._selected

    @property
    def current_preview(self) -> Optional[PresetBundle]:
        return self._preview

    @property
    def can_confirm(self) -> bool:
        """UI hint: enable the confirm action only with a staged trade."""
        return self._phase is SetupPhase.TRADE_STAGED

    # -------------------------- transitions --------------------------
    def preview(self, trade) -> PresetBundle:
        """Resolve a candidate trade without staging anything."""
        return self._resolve(trade)

    def select_trade(self, trade) -> PresetBundle:
        """
        UNCONFIGURED | TRADE_STAGED -> TRADE_STAGED.
        Resolves the preview first, then stages; re-selecting is allowed any
        number of times before confirm().
        """
        if self._phase is SetupPhase.COMPLETED:
            raise SetupAlreadyCompleted()
        bundle = self._resolve(trade)
        self._store.stage(bundle.trade)
        self._selected = bundle.trade
        self._preview = bundle
        self._phase = SetupPhase.TRADE_STAGED
        logger.debug("wizard selected %s (%d fields, %d templates)", bundle.trade.value,
                     len(bundle.custom_fields), len(bundle.estimate_templates))
        return bundle

    def confirm(self) -> ConfigurationState:
        """
        TRADE_STAGED -> COMPLETED. From UNCONFIGURED raises NoTradeStaged and
        persists nothing. On StorageUnavailable the phase stays TRADE_STAGED
        so the caller can retry.
        """
        if self._phase is SetupPhase.COMPLETED:
            return self._store.read()
        if self._phase is SetupPhase.UNCONFIGURED or self._selected is None:
            raise NoTradeStaged()
        state = self._store.commit(expected=self._selected)
        self._phase = SetupPhase.COMPLETED
        return state

    def restart(self) -> None:
        """Any phase -> UNCONFIGURED (re-run setup)."""
        self._store.reset()
        self._selected = None
        self._preview = None
        self._phase = SetupPhase.UNCONFIGURED


# ============================ CONSUMERS ============================

def route_for(store: ConfigurationStore) -> Route:
    """Wizard until setup is completed; main application afterwards."""
    return Route.MAIN if store.read().setup_completed else Route.WIZARD


def active_preset(store: ConfigurationStore, library=None) -> Optional[PresetBundle]:
    """
    Preset of the configured trade, or None before setup completes.
    With a PresetLibrary, a saved custom preset wins over the built-in one.
    """
    state = store.read()
    if not state.setup_completed:
        return None
    if library is not None:
        return library.effective(state.selected_trade)
    return registry.resolve(state.selected_trade)
