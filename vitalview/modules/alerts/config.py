import json
from pathlib import Path

import structlog
from pydantic import Field, field_validator, model_validator

from vitalview.modules.extraction.schemas import NUMERIC_FIELDS, VitalField
from vitalview.shared.schemas import CamelModel

log = structlog.get_logger()


class VitalRangeConfig(CamelModel):
    """Inclusive normal range for one scalar vital."""

    low: float
    high: float
    label: str
    unit: str | None = None

    @model_validator(mode="after")
    def validate_bounds(self) -> "VitalRangeConfig":
        if self.low > self.high:
            raise ValueError(f"{self.label}: low bound {self.low} exceeds high bound {self.high}")
        return self

    def describe(self) -> str:
        suffix = f" {self.unit}" if self.unit else ""
        return f"{self.low:g}-{self.high:g}{suffix}"


class AlertRulesConfig(CamelModel):
    version: str = "default-v1"
    # Transitions back into Normal are silent unless this is switched on.
    alert_on_recovery: bool = False
    ranges: dict[VitalField, VitalRangeConfig] = Field(default_factory=dict)

    @field_validator("ranges")
    @classmethod
    def only_scalar_vitals(
        cls, value: dict[VitalField, VitalRangeConfig]
    ) -> dict[VitalField, VitalRangeConfig]:
        composite = [field.value for field in value if field not in NUMERIC_FIELDS]
        if composite:
            raise ValueError(f"pressure readings cannot carry a scalar range: {composite}")
        return value

    def range_for(self, field: VitalField) -> VitalRangeConfig | None:
        return self.ranges.get(field)


DEFAULT_RULES = AlertRulesConfig(
    ranges={
        VitalField.HR: VitalRangeConfig(low=60, high=100, label="Heart Rate", unit="bpm"),
        VitalField.PULSE: VitalRangeConfig(low=60, high=100, label="Pulse", unit="bpm"),
        VitalField.SPO2: VitalRangeConfig(low=90, high=100, label="SpO2", unit="%"),
        VitalField.ETCO2: VitalRangeConfig(low=35, high=45, label="EtCO2", unit="mmHg"),
        VitalField.AWRR: VitalRangeConfig(low=12, high=20, label="Respiratory Rate", unit="rpm"),
    },
)


def load_rules(path: Path | None, alert_on_recovery: bool | None = None) -> AlertRulesConfig:
    """
    Read alert ranges from a JSON file, falling back to the defaults when the file
    is missing or invalid. Ranges in the file override the default range of the same
    vital; vitals the file leaves out keep their default range.
    ``alert_on_recovery`` overrides the file's policy when given.
    """
    rules = DEFAULT_RULES
    if path is not None:
        try:
            payload = json.loads(path.read_text())
            loaded = AlertRulesConfig.model_validate(payload)
            defaulted = [field.value for field in DEFAULT_RULES.ranges if field not in loaded.ranges]
            if defaulted:
                log.info("alert rules file omits vitals, keeping defaults", path=str(path), vitals=defaulted)
            rules = loaded.model_copy(update={"ranges": {**DEFAULT_RULES.ranges, **loaded.ranges}})
        except FileNotFoundError:
            log.info("alert rules file not found, using defaults", path=str(path))
        except Exception as exc:
            log.warning("alert rules load failed, using defaults", path=str(path), error=str(exc))

    if alert_on_recovery is not None and alert_on_recovery != rules.alert_on_recovery:
        rules = rules.model_copy(update={"alert_on_recovery": alert_on_recovery})
    return rules
