# core/journal.py - setup journal (ASCII, append-only)
#
# A plain-text chronicle of setup decisions: which trade was staged, when
# setup was committed or reset, and what failed. Never rewritten; a journal
# failure is logged and never blocks setup.

import logging
import os
import traceback
from datetime import datetime

logger = logging.getLogger(__name__)

DIV = "=" * 79

HEADER = f"""{DIV}
TRADEKIT SETUP JOURNAL
{DIV}
note: append chronologically; never rewrite history
{DIV}
"""


class SetupJournal:
    def __init__(self, path: str, clock=datetime.now):
        self.path = path
        self._clock = clock

    def _ensure_header(self) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        if not os.path.exists(self.path):
            with open(self.path, "w", encoding="utf-8", newline="\n") as f:
                f.write(HEADER)

    def _append_block(self, title: str, lines: list[str]) -> None:
        ts = self._clock().strftime("%Y-%m-%d %H:%M:%S")
        block = [DIV, f"{title} - {ts}", DIV]
        block.extend(lines)
        block.append("end of entry")
        block.append(DIV)
        try:
            self._ensure_header()
            with open(self.path, "a", encoding="utf-8", newline="\n") as f:
                f.write("\n".join(block) + "\n")
        except OSError as e:
            logger.warning("setup journal unavailable (%s): %s", self.path, e)

    def record_stage(self, trade) -> None:
        self._append_block("trade staged", [f"trade: {trade.value}"])

    def record_commit(self, state) -> None:
        self._append_block("setup completed", [f"trade: {state.selected_trade.value}"])

    def record_reset(self, previous) -> None:
        if previous is None:
            self._append_block("setup reset", ["previous configuration: unreadable"])
            return
        prior = previous.selected_trade.value if previous.selected_trade else "none"
        self._append_block("setup reset", [f"previous trade: {prior}",
                                           f"previously completed: {previous.setup_completed}"])

    def record_error(self, event: str, err: BaseException) -> None:
        tb = "".join(traceback.format_exception(type(err), err, err.__traceback__))
        self._append_block("setup error", [f"error: {event}", "traceback:", tb.strip()])

    def entries(self) -> list[str]:
        """Titles of every entry, oldest first."""
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
        titles = []
        for prev, line in zip(lines, lines[1:]):
            if prev == DIV and " - " in line and not line.startswith("end of entry"):
                titles.append(line.rsplit(" - ", 1)[0])
        return titles


class NullJournal:
    """Journal that records nothing (tests, previews)."""

    def record_stage(self, trade) -> None:
        pass

    def record_commit(self, state) -> None:
        pass

    def record_reset(self, previous) -> None:
        pass

    def record_error(self, event: str, err: BaseException) -> None:
        pass
