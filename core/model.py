# core/model.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.errors import CorruptConfiguration, UnknownTrade


class TradeId(Enum):
    """Closed set of supported trades. Persisted by value."""
    HVAC        = "hvac"
    PLUMBING    = "plumbing"
    ELECTRICAL  = "electrical"
    LANDSCAPING = "landscaping"
    GENERAL     = "general"

    @classmethod
    def parse(cls, value: Any) -> "TradeId":
        """
        Boundary deserializer. Accepts a TradeId, its value ("plumbing")
        or its member name ("PLUMBING"), case-insensitive.
        Raises UnknownTrade for anything else.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnknownTrade(value)
        s = value.strip()
        for member in cls:
            if s.lower() == member.value or s.upper() == member.name:
                return member
        raise UnknownTrade(value)


class FieldType(Enum):
    TEXT    = "text"
    NUMBER  = "number"
    DATE    = "date"
    BOOLEAN = "boolean"
    CHOICE  = "choice"


@dataclass(frozen=True)
class TradeDescriptor:
    trade: TradeId
    label: str
    icon: str
    accent_color: str
    description: str = ""


@dataclass(frozen=True)
class CustomFieldDefinition:
    """
    One schema element attached to Asset or Job records at render time.
    Choice fields carry an ordered, non-empty tuple of allowed values;
    every other type carries none.
    """
    name: str
    field_type: FieldType
    choices: Tuple[str, ...] = ()
    display_name: str = ""
    entity_type: str = "Asset"
    required: bool = False
    default_value: Optional[str] = None
    help_text: Optional[str] = None

    def __post_init__(self):
        if self.field_type is FieldType.CHOICE and not self.choices:
            raise ValueError(f"Choice field '{self.name}' needs at least one allowed value")
        if self.field_type is not FieldType.CHOICE and self.choices:
            raise ValueError(f"Field '{self.name}' of type {self.field_type.value} cannot carry choices")
        if self.default_value is not None and self.choices and self.default_value not in self.choices:
            raise ValueError(f"Default '{self.default_value}' is not a choice of '{self.name}'")

    @property
    def label(self) -> str:
        return self.display_name or self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "fieldType": self.field_type.value,
            "choices": list(self.choices),
            "displayName": self.display_name,
            "entityType": self.entity_type,
            "required": self.required,
            "defaultValue": self.default_value,
            "helpText": self.help_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomFieldDefinition":
        return cls(
            name=str(data["name"]),
            field_type=FieldType(data.get("fieldType", "text")),
            choices=tuple(str(c) for c in (data.get("choices") or [])),
            display_name=str(data.get("displayName") or ""),
            entity_type=str(data.get("entityType") or "Asset"),
            required=bool(data.get("required", False)),
            default_value=data.get("defaultValue"),
            help_text=data.get("helpText"),
        )


@dataclass(frozen=True)
class LineItemDefault:
    label: str
    quantity: float
    unit_price: float

    def __post_init__(self):
        object.__setattr__(self, "quantity", float(self.quantity))
        object.__setattr__(self, "unit_price", float(self.unit_price))

    @property
    def extended(self) -> float:
        return round(float(self.quantity) * float(self.unit_price), 2)


@dataclass(frozen=True)
class EstimateTemplateDefinition:
    name: str
    line_items: Tuple[LineItemDefault, ...] = ()
    description: str = ""

    @property
    def total(self) -> float:
        return round(sum(li.extended for li in self.line_items), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "lineItems": [
                {"label": li.label, "quantity": li.quantity, "unitPrice": li.unit_price}
                for li in self.line_items
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimateTemplateDefinition":
        items = tuple(
            LineItemDefault(str(li["label"]), float(li.get("quantity", 1)), float(li.get("unitPrice", 0)))
            for li in (data.get("lineItems") or [])
        )
        return cls(name=str(data["name"]), line_items=items, description=str(data.get("description") or ""))


@dataclass(frozen=True)
class PresetBundle:
    """Resolved, trade-specific defaults: asset labels, fields, templates, color."""
    trade: TradeId
    asset_label: str
    asset_plural_label: str
    custom_fields: Tuple[CustomFieldDefinition, ...] = ()
    estimate_templates: Tuple[EstimateTemplateDefinition, ...] = ()
    primary_color: str = "#1976D2"

    def fields_for(self, entity_type: str) -> Tuple[CustomFieldDefinition, ...]:
        return tuple(f for f in self.custom_fields if f.entity_type == entity_type)

    def template(self, name: str) -> Optional[EstimateTemplateDefinition]:
        for t in self.estimate_templates:
            if t.name == name:
                return t
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade": self.trade.value,
            "assetLabel": self.asset_label,
            "assetPluralLabel": self.asset_plural_label,
            "primaryColor": self.primary_color,
            "customFields": [f.to_dict() for f in self.custom_fields],
            "estimateTemplates": [t.to_dict() for t in self.estimate_templates],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PresetBundle":
        """Raises CorruptConfiguration for a malformed shape, ValueError for bad values."""
        if not isinstance(data, dict):
            raise CorruptConfiguration("Preset is not an object")
        try:
            return cls(
                trade=TradeId.parse(data.get("trade")),
                asset_label=str(data["assetLabel"]),
                asset_plural_label=str(data["assetPluralLabel"]),
                custom_fields=tuple(CustomFieldDefinition.from_dict(f) for f in (data.get("customFields") or [])),
                estimate_templates=tuple(
                    EstimateTemplateDefinition.from_dict(t) for t in (data.get("estimateTemplates") or [])
                ),
                primary_color=str(data.get("primaryColor") or "#1976D2"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise CorruptConfiguration(f"Malformed preset: {e!r}") from e


@dataclass(frozen=True)
class ConfigurationState:
    """
    Process-wide persisted record. A completed state always names its trade;
    an instance violating that cannot be constructed.
    """
    selected_trade: Optional[TradeId] = None
    setup_completed: bool = False

    def __post_init__(self):
        if self.setup_completed and self.selected_trade is None:
            raise ValueError("A completed configuration must name its trade")

    @property
    def is_staged(self) -> bool:
        return self.selected_trade is not None and not self.setup_completed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectedTrade": self.selected_trade.value if self.selected_trade else None,
            "setupCompleted": bool(self.setup_completed),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ConfigurationState":
        """Parse the persistence shape { selectedTrade: str|null, setupCompleted: bool }."""
        if not isinstance(data, dict):
            raise CorruptConfiguration(f"Expected an object, got {type(data).__name__}")
        raw_trade = data.get("selectedTrade")
        completed = data.get("setupCompleted", False)
        if not isinstance(completed, bool):
            raise CorruptConfiguration(f"setupCompleted must be a bool, got {completed!r}")
        trade = TradeId.parse(raw_trade) if raw_trade is not None else None
        if completed and trade is None:
            raise CorruptConfiguration("setupCompleted is true but no trade is selected")
        return cls(selected_trade=trade, setup_completed=completed)


INITIAL_STATE = ConfigurationState()
