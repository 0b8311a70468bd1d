from vitalview.modules.extraction.schemas import VITAL_FIELDS, VitalsRecord


def completeness_score(record: VitalsRecord) -> int:
    """Count of legible canonical fields (0-7). Only meaningful relative to another record."""
    return sum(1 for field in VITAL_FIELDS if record.value_of(field) is not None)
