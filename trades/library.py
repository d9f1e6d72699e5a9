# trades/library.py - saved custom presets (<Trade>Preset.json) + helpers
#
# A business may tune its preset (rename fields, change template prices) and
# save it; the saved file then wins over the built-in defaults for the active
# trade. resolve() itself is untouched, so previews stay pure.

import json
import logging
import os
import tempfile
from typing import Dict, Optional, Tuple

from core.errors import ConfigurationError
from core.model import PresetBundle, TradeId
from trades.registry import resolve

logger = logging.getLogger(__name__)


class PresetLibrary:
    def __init__(self, directory: str):
        self.directory = directory
        # per-trade (mtime, bundle) cache
        self._cache: Dict[TradeId, Tuple[float, PresetBundle]] = {}

    def path_for(self, trade) -> str:
        tid = TradeId.parse(trade)
        return os.path.join(self.directory, f"{tid.name.title()}Preset.json")

    def save(self, bundle: PresetBundle) -> str:
        """Write the bundle atomically; returns the file path."""
        path = self.path_for(bundle.trade)
        os.makedirs(self.directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".preset.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(bundle.to_dict(), f, indent=2)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        self._cache.pop(bundle.trade, None)
        logger.info("saved custom preset for %s to %s", bundle.trade.value, path)
        return path

    def load(self, trade) -> Optional[PresetBundle]:
        """
        Saved preset for a trade, or None when there is none.
        Unreadable files, or files describing a different trade, are logged
        and ignored so the built-in defaults apply.
        """
        tid = TradeId.parse(trade)
        path = self.path_for(tid)
        try:
            mtime = os.path.getmtime(path)
        except OSError:
            self._cache.pop(tid, None)
            return None

        hit = self._cache.get(tid)
        if hit is not None and hit[0] == mtime:
            return hit[1]

        try:
            with open(path, "r", encoding="utf-8") as f:
                bundle = PresetBundle.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError, ConfigurationError) as e:
            logger.warning("ignoring unreadable preset %s: %s", path, e)
            return None
        if bundle.trade is not tid:
            logger.warning("ignoring preset %s: describes '%s'", path, bundle.trade.value)
            return None

        self._cache[tid] = (mtime, bundle)
        return bundle

    def effective(self, trade) -> PresetBundle:
        return self.load(trade) or resolve(trade)

    def remove(self, trade) -> bool:
        tid = TradeId.parse(trade)
        self._cache.pop(tid, None)
        try:
            os.remove(self.path_for(tid))
            return True
        except FileNotFoundError:
            return False
