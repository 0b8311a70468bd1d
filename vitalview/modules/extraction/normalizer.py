"""Map heterogeneous provider output onto the canonical vitals record."""

from collections.abc import Mapping
from typing import Any

from vitalview.modules.extraction.schemas import (
    FIELD_ATTRS,
    VITAL_FIELDS,
    VitalField,
    VitalsRecord,
    VitalsSource,
)

# Checked in order; the first alias carrying a value wins.
FIELD_ALIASES: dict[VitalField, tuple[str, ...]] = {
    VitalField.HR: ("HR", "hr", "heart_rate", "heartRate"),
    VitalField.PULSE: ("Pulse", "pulse", "PR", "pr"),
    VitalField.SPO2: ("SpO2", "spo2", "SPO2", "spO2"),
    VitalField.ABP: ("ABP", "abp", "BP", "bp"),
    VitalField.PAP: ("PAP", "pap"),
    VitalField.ETCO2: ("EtCO2", "etco2", "ETCO2", "CO2", "co2"),
    VitalField.AWRR: ("awRR", "awrr", "RR", "rr", "resp_rate"),
}

_ALIAS_LOOKUP: dict[str, VitalField] = {
    alias.lower(): field for field, aliases in FIELD_ALIASES.items() for alias in aliases
}


def canonical_field(label: str) -> VitalField | None:
    """Resolve a free-form label (``"spo2"``, ``"BP"``) to its canonical field."""
    return _ALIAS_LOOKUP.get(label.strip().lower())


def normalize(raw: Any, source: VitalsSource = VitalsSource.NONE) -> VitalsRecord:
    """
    Build a VitalsRecord from an arbitrary provider mapping.

    Values are taken as-is; the record model drops values of the wrong type.
    Range checks belong to the persistence boundary.
    """
    values: dict[str, Any] = {}
    if isinstance(raw, Mapping):
        for field in VITAL_FIELDS:
            values[FIELD_ATTRS[field]] = _first_present(raw, FIELD_ALIASES[field])
    return VitalsRecord(source=source, **values)


def _first_present(raw: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for alias in aliases:
        value = raw.get(alias)
        if value is not None:
            return value
    return None
