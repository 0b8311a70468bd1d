from typing import Any, Protocol

from vitalview.core.exceptions import SubjectNotFoundError
from vitalview.modules.alerts.models import SubjectContext
from vitalview.modules.patients.models import Patient


class SubjectDirectory(Protocol):
    async def get_subject_context(self, subject_id: Any) -> SubjectContext: ...


class PatientDirectory:
    """Resolves alert context from registered patients."""

    async def get_subject_context(self, subject_id: Any) -> SubjectContext:
        subject_key = str(subject_id)
        patient = await Patient.find_one({"subject_id": subject_key})
        if patient is None:
            raise SubjectNotFoundError(subject_key)
        return SubjectContext(
            name=patient.name,
            location=patient.icu_name or "Unassigned unit",
            bed_label=patient.bed_label or f"Bed {subject_key}",
        )
