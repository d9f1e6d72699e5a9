# trades/defaults.py - built-in preset defaults per trade
#
# One entry per TradeId. Adding a trade to the enumeration without adding an
# entry here fails registry.verify_defaults() at import time.

from typing import Dict, Tuple

from core.model import (
    CustomFieldDefinition as Field,
    EstimateTemplateDefinition as Template,
    FieldType,
    LineItemDefault as Line,
    PresetBundle,
    TradeId,
)

# ----------------------------- LABOR --------------------------------
# Hourly labor used by the template defaults. Expand as needed.
LABOR_RATE_PER_HR: float = 95.0
DIAGNOSTIC_FEE: float = 89.0


def _labor(hours: float) -> Line:
    return Line("Labor (hr)", hours, LABOR_RATE_PER_HR)


def _choice(name: str, display: str, values: str, entity: str = "Asset", **kw) -> Field:
    # values is comma-separated, the same form the stored presets use
    return Field(name, FieldType.CHOICE, tuple(v.strip() for v in values.split(",")),
                 display_name=display, entity_type=entity, **kw)


def _field(name: str, display: str, ftype: FieldType, entity: str = "Asset", **kw) -> Field:
    return Field(name, ftype, display_name=display, entity_type=entity, **kw)


# ------------------------------ HVAC --------------------------------
HVAC_FIELDS: Tuple[Field, ...] = (
    _choice("FuelType", "Fuel Type", "NaturalGas,Propane,Electric,Oil,DualFuel"),
    _choice("RefrigerantType", "Refrigerant", "R-22,R-410A,R-32,R-454B"),
    _field("BtuRating", "BTU Rating", FieldType.NUMBER),
    _field("SeerRating", "SEER Rating", FieldType.NUMBER),
    _field("Tonnage", "Tonnage", FieldType.NUMBER),
    _field("InstallDate", "Install Date", FieldType.DATE),
    _field("UnderWarranty", "Under Warranty", FieldType.BOOLEAN, default_value="false"),
)

HVAC_TEMPLATES: Tuple[Template, ...] = (
    Template("Furnace Tune-Up", (Line("Furnace tune-up", 1, 150.0), Line("Air filter", 1, 18.0)),
             "Annual maintenance"),
    Template("AC Tune-Up", (Line("AC tune-up", 1, 150.0), Line("Condenser coil cleaning", 1, 45.0)),
             "Seasonal AC service"),
    Template("System Diagnostic", (Line("Diagnostic fee", 1, DIAGNOSTIC_FEE), _labor(1)),
             "Troubleshoot issue"),
    Template("Filter Replacement", (Line("Air filter", 2, 18.0), _labor(0.25)),
             "Replace air filters"),
)

# ---------------------------- PLUMBING ------------------------------
# Plumbing shops track their service vans; fixture details ride on the job.
PLUMBING_FIELDS: Tuple[Field, ...] = (
    _field("PlateNumber", "Plate Number", FieldType.TEXT, required=True),
    _field("CameraEquipped", "Drain Camera On Board", FieldType.BOOLEAN, default_value="false"),
    _choice("FixtureType", "Fixture Type",
            "Faucet,Toilet,Shower,Bathtub,Sink,WaterHeater,Sump,Disposal", entity="Job"),
    _choice("PipeType", "Pipe Material", "Copper,PEX,PVC,Galvanized,Cast Iron", entity="Job"),
    _field("DrainSize", "Drain Size", FieldType.TEXT, entity="Job", help_text='e.g. 1-1/2"'),
    _field("GallonCapacity", "Capacity (Gal)", FieldType.NUMBER, entity="Job"),
)

PLUMBING_TEMPLATES: Tuple[Template, ...] = (
    Template("Drain Cleaning", (Line("Drain cleaning", 1, 150.0),), "Clear clogged drain"),
    Template("Faucet Repair", (Line("Faucet repair", 1, 125.0), Line("Cartridge", 1, 28.0)),
             "Fix leaky faucet"),
    Template("Toilet Repair", (Line("Toilet service", 1, 175.0), Line("Fill valve kit", 1, 22.0)),
             "Toilet service"),
    Template("Water Heater Flush", (Line("Water heater flush", 1, 150.0),), "Annual maintenance"),
)

# --------------------------- ELECTRICAL -----------------------------
ELECTRICAL_FIELDS: Tuple[Field, ...] = (
    _choice("CircuitType", "Circuit Type", "Breaker,Fuse,GFCI,AFCI,Main Panel,Sub Panel"),
    _field("Amperage", "Amperage", FieldType.NUMBER),
    _choice("Voltage", "Voltage", "120V,240V,277V,480V", default_value="120V"),
    _field("WireGauge", "Wire Gauge", FieldType.TEXT),
    _field("PermitRequired", "Permit Required", FieldType.BOOLEAN, entity="Job"),
    _field("InspectionDate", "Inspection Date", FieldType.DATE, entity="Job"),
)

ELECTRICAL_TEMPLATES: Tuple[Template, ...] = (
    Template("Outlet Install", (Line("Outlet install", 1, 150.0),), "Install new outlet"),
    Template("Switch Replacement", (Line("Switch replacement", 1, 95.0),), "Replace switch"),
    Template("Panel Inspection", (Line("Panel inspection", 1, 175.0),), "Safety inspection"),
    Template("GFCI Install", (Line("GFCI outlet", 1, 35.0), _labor(1)), "Install GFCI outlet"),
)

# --------------------------- LANDSCAPING ----------------------------
LANDSCAPING_FIELDS: Tuple[Field, ...] = (
    _field("LotSize", "Lot Size (sq ft)", FieldType.NUMBER),
    _choice("GrassType", "Grass Type", "Bluegrass,Fescue,Bermuda,Zoysia,St. Augustine,Mixed"),
    _field("HasIrrigation", "Irrigation System", FieldType.BOOLEAN),
    _choice("ServiceFrequency", "Service Frequency", "Weekly,Biweekly,Monthly,Seasonal",
            default_value="Weekly"),
    _field("GateCode", "Gate Code", FieldType.TEXT, help_text="Access code for gated properties"),
    _field("LastAeration", "Last Aeration", FieldType.DATE, entity="Job"),
)

LANDSCAPING_TEMPLATES: Tuple[Template, ...] = (
    Template("Lawn Mowing", (Line("Mow, edge & blow", 1, 55.0),), "Per-visit lawn service"),
    Template("Spring Cleanup", (Line("Bed cleanup", 1, 180.0), Line("Yard waste disposal", 1, 40.0)),
             "Seasonal cleanup"),
    Template("Irrigation Start-Up", (Line("Irrigation start-up", 1, 85.0), Line("Sprinkler head", 2, 12.0)),
             "Charge and test irrigation"),
    Template("Mulch Installation", (Line("Mulch (cu yd)", 3, 48.0), _labor(2)), "Install bed mulch"),
)

# ----------------------------- GENERAL ------------------------------
GENERAL_FIELDS: Tuple[Field, ...] = (
    _field("ItemType", "Item Type", FieldType.TEXT),
    _field("RoomLocation", "Room/Location", FieldType.TEXT),
    _field("SquareFootage", "Sq Footage", FieldType.NUMBER),
)

GENERAL_TEMPLATES: Tuple[Template, ...] = (
    Template("Consultation", (Line("On-site consultation", 1, 75.0),), "On-site consultation"),
    Template("Minor Repair", (_labor(2),), "Small repairs"),
    Template("Major Project", (_labor(8), Line("Materials allowance", 1, 250.0)), "Large project"),
)

# ---------------------------- THE TABLE -----------------------------
DEFAULT_PRESETS: Dict[TradeId, PresetBundle] = {
    TradeId.HVAC: PresetBundle(
        TradeId.HVAC, "Equipment", "Equipment",
        HVAC_FIELDS, HVAC_TEMPLATES, "#1976D2"),
    TradeId.PLUMBING: PresetBundle(
        TradeId.PLUMBING, "Vehicle", "Vehicles",
        PLUMBING_FIELDS, PLUMBING_TEMPLATES, "#0288D1"),
    TradeId.ELECTRICAL: PresetBundle(
        TradeId.ELECTRICAL, "Panel", "Panels",
        ELECTRICAL_FIELDS, ELECTRICAL_TEMPLATES, "#FFC107"),
    TradeId.LANDSCAPING: PresetBundle(
        TradeId.LANDSCAPING, "Property", "Properties",
        LANDSCAPING_FIELDS, LANDSCAPING_TEMPLATES, "#388E3C"),
    TradeId.GENERAL: PresetBundle(
        TradeId.GENERAL, "Item", "Items",
        GENERAL_FIELDS, GENERAL_TEMPLATES, "#795548"),
}

__all__ = [
    "LABOR_RATE_PER_HR",
    "DIAGNOSTIC_FEE",
    "DEFAULT_PRESETS",
]
