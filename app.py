# app.py - TradeKit desktop host
#
# Routes to the setup wizard until a trade is committed, then to the main
# window. Screens here only bind engine state to widgets; all decisions live
# in engine.SetupController and core.store.ConfigurationStore.

import argparse
import json
import logging
import sys
from typing import Optional

from core.catalog import describe, list_trades
from core.errors import ConfigurationError, StorageUnavailable
from core.journal import SetupJournal
from core.settings import Settings, configure_logging, load_settings
from core.storage import open_backend
from core.store import ConfigurationStore, with_storage_retry
from engine import Route, SetupController, SetupPhase, active_preset, route_for
from trades.library import PresetLibrary

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> ConfigurationStore:
    journal = SetupJournal(settings.journal_path)
    return ConfigurationStore(open_backend(settings), timeout_s=settings.store_timeout_s, journal=journal)


# -------------------------- Setup Wizard --------------------------
def _wizard_dialog_class():
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import (QDialog, QDialogButtonBox, QFormLayout, QLabel,
                                   QListWidget, QListWidgetItem, QMessageBox, QVBoxLayout)

    class SetupWizardDialog(QDialog):
        """
        Trade list + live preview (asset label, field and template counts).
        Continue stays disabled until a trade is staged.
        """
        def __init__(self, controller: SetupController, parent=None):
            super().__init__(parent)
            self.controller = controller
            self.setWindowTitle("Set Up Your Trade")

            root = QVBoxLayout(self)
            root.setContentsMargins(20, 16, 20, 12)
            root.addWidget(QLabel("What kind of work does your business do?"))

            self.trades = QListWidget()
            for d in list_trades():
                it = QListWidgetItem(f"{d.label} - {d.description}")
                it.setData(Qt.UserRole, d.trade.value)
                self.trades.addItem(it)
            root.addWidget(self.trades, 1)

            form = QFormLayout()
            self.asset_preview = QLabel("")
            self.field_preview = QLabel("")
            self.template_preview = QLabel("")
            form.addRow("Tracks:", self.asset_preview)
            form.addRow("Custom fields:", self.field_preview)
            form.addRow("Estimate templates:", self.template_preview)
            root.addLayout(form)

            self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
            self.continue_button = self.buttons.button(QDialogButtonBox.Ok)
            self.continue_button.setText("Get Started")
            root.addWidget(self.buttons)

            self.trades.currentItemChanged.connect(self._on_trade_changed)
            self.buttons.accepted.connect(self.on_continue)
            self.buttons.rejected.connect(self.reject)

            # resume an abandoned wizard on its staged trade
            if controller.selected_trade is not None:
                for i in range(self.trades.count()):
                    if self.trades.item(i).data(Qt.UserRole) == controller.selected_trade.value:
                        self.trades.setCurrentRow(i)
                        break
            self._refresh()

        def _refresh(self):
            bundle = self.controller.current_preview
            self.continue_button.setEnabled(self.controller.can_confirm)
            if bundle is None:
                self.asset_preview.setText("")
                self.field_preview.setText("")
                self.template_preview.setText("")
                return
            self.asset_preview.setText(bundle.asset_plural_label)
            self.field_preview.setText(f"{len(bundle.custom_fields)} fields")
            self.template_preview.setText(f"{len(bundle.estimate_templates)} templates")
            self.continue_button.setStyleSheet(f"background-color: {bundle.primary_color}; color: white;")

        def _on_trade_changed(self, current, _previous):
            if current is None:
                return
            try:
                self.controller.select_trade(current.data(Qt.UserRole))
            except StorageUnavailable as e:
                QMessageBox.warning(self, "Try Again", f"Could not save your selection.\n{e}")
            self._refresh()

        def on_continue(self):
            try:
                with_storage_retry(self.controller.confirm)
            except StorageUnavailable as e:
                logger.warning("setup commit failed: %s", e)
                QMessageBox.warning(self, "Try Again", f"Setup could not be saved.\n{e}")
                return
            self.accept()

    return SetupWizardDialog


def _main_window_class():
    from PySide6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget

    class MainWindow(QMainWindow):
        """Placeholder shell showing the configured trade; screens plug in here."""
        def __init__(self, store: ConfigurationStore, library: PresetLibrary):
            super().__init__()
            self.store = store
            self.library = library
            self.setWindowTitle("TradeKit")

            cw = QWidget()
            lay = QVBoxLayout(cw)
            self.header = QLabel("")
            lay.addWidget(self.header)
            lay.addStretch(1)
            self.setCentralWidget(cw)

            menu = self.menuBar().addMenu("&Settings")
            self.rerun_action = menu.addAction("Re-run Setup...")
            self.refresh()

        def refresh(self):
            bundle = active_preset(self.store, self.library)
            if bundle is None:
                self.header.setText("Setup not completed")
                return
            self.header.setText(f"{describe(bundle.trade).label} - {bundle.asset_plural_label}")
            self.header.setStyleSheet(f"color: {bundle.primary_color}; font-weight: bold;")

    return MainWindow


# -------------------------- Entry point --------------------------
def _parse_args(argv):
    p = argparse.ArgumentParser(prog="tradekit", description="Field-service client with trade presets")
    p.add_argument("--data-dir", default=None, help="writable app data directory")
    p.add_argument("--status", action="store_true", help="print the saved trade configuration and exit")
    p.add_argument("--reset", action="store_true", help="clear the saved trade so setup runs again")
    return p.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings(data_dir=args.data_dir)
    except ValueError as e:
        print(f"tradekit: {e}", file=sys.stderr)
        return 1
    configure_logging(settings)
    store = build_store(settings)
    try:
        if args.reset:
            with_storage_retry(store.reset)
        if args.status:
            print(json.dumps(store.read().to_dict()))
            return 0
        return _run_gui(settings, store)
    except ConfigurationError as e:
        logger.error("%s", e)
        print(f"tradekit: {e}", file=sys.stderr)
        return 1
    finally:
        store.close()


def _run_gui(settings: Settings, store: ConfigurationStore) -> int:
    from PySide6.QtWidgets import QApplication, QDialog

    app = QApplication.instance() or QApplication(sys.argv[:1])
    library = PresetLibrary(settings.presets_dir)
    SetupWizardDialog = _wizard_dialog_class()
    MainWindow = _main_window_class()

    def run_wizard() -> bool:
        controller = SetupController(store)
        if controller.phase is SetupPhase.COMPLETED:
            controller.restart()
        return SetupWizardDialog(controller).exec() == QDialog.Accepted

    if route_for(store) is Route.WIZARD and not run_wizard():
        return 0

    win = MainWindow(store, library)

    def rerun():
        if run_wizard():
            win.refresh()
        else:
            win.close()

    win.rerun_action.triggered.connect(rerun)
    win.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
