# tests/test_registry.py
import dataclasses

import pytest

from core.errors import PresetTableIncomplete, UnknownTrade
from core.model import FieldType, TradeId
from trades import registry
from trades.defaults import DEFAULT_PRESETS, LABOR_RATE_PER_HR


def test_every_trade_resolves_to_a_labelled_bundle():
    for t in TradeId:
        b = registry.resolve(t)
        assert b.trade is t
        assert b.asset_plural_label.strip()
        assert b.primary_color.startswith("#")


def test_resolve_is_deterministic():
    for t in TradeId:
        assert registry.resolve(t) == registry.resolve(t)


def test_plumbing_tracks_vehicles_with_fields():
    b = registry.resolve(TradeId.PLUMBING)
    assert b.asset_plural_label == "Vehicles"
    assert len(b.custom_fields) > 0
    assert [f.name for f in b.fields_for("Job")][:2] == ["FixtureType", "PipeType"]


def test_resolve_accepts_strings_at_the_boundary():
    assert registry.resolve("hvac") == registry.resolve(TradeId.HVAC)
    with pytest.raises(UnknownTrade):
        registry.resolve("roofing")


def test_resolve_all_follows_catalog_order():
    assert list(registry.resolve_all()) == list(TradeId)


def test_choice_fields_carry_choices_and_others_do_not():
    for b in DEFAULT_PRESETS.values():
        for f in b.custom_fields:
            if f.field_type is FieldType.CHOICE:
                assert f.choices
            else:
                assert f.choices == ()


def test_templates_have_ordered_line_items_and_totals():
    b = registry.resolve(TradeId.HVAC)
    diag = b.template("System Diagnostic")
    assert [li.label for li in diag.line_items] == ["Diagnostic fee", "Labor (hr)"]
    assert diag.total == round(89.0 + LABOR_RATE_PER_HR, 2)
    assert b.template("No Such Template") is None


def test_verify_defaults_fails_fast_on_a_missing_trade():
    table = dict(DEFAULT_PRESETS)
    del table[TradeId.LANDSCAPING]
    with pytest.raises(PresetTableIncomplete, match="landscaping"):
        registry.verify_defaults(table)


def test_verify_defaults_checks_keys_and_labels():
    table = dict(DEFAULT_PRESETS)
    table[TradeId.GENERAL] = DEFAULT_PRESETS[TradeId.HVAC]
    with pytest.raises(PresetTableIncomplete, match="describes"):
        registry.verify_defaults(table)

    table = dict(DEFAULT_PRESETS)
    table[TradeId.GENERAL] = dataclasses.replace(DEFAULT_PRESETS[TradeId.GENERAL], asset_plural_label=" ")
    with pytest.raises(PresetTableIncomplete, match="plural"):
        registry.verify_defaults(table)
