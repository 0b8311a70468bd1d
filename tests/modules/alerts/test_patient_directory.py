from typing import Any

import pytest

from vitalview.core.exceptions import LookupFailure, SubjectNotFoundError
from vitalview.modules.alerts.directory import PatientDirectory


@pytest.mark.asyncio
async def test_directory_resolves_registered_patient(create_patient_func: Any) -> None:
    await create_patient_func("12", name="Grace Hopper", bed_label="Bed 3", icu_name="Cardiac ICU")

    context = await PatientDirectory().get_subject_context(12)

    assert context.name == "Grace Hopper"
    assert context.location == "Cardiac ICU"
    assert context.bed_label == "Bed 3"


@pytest.mark.asyncio
async def test_directory_fills_missing_location(create_patient_func: Any) -> None:
    await create_patient_func("5", bed_label=None, icu_name=None)

    context = await PatientDirectory().get_subject_context("5")

    assert context.location == "Unassigned unit"
    assert context.bed_label == "Bed 5"


@pytest.mark.asyncio
async def test_directory_unknown_subject(db: dict[str, Any]) -> None:
    with pytest.raises(SubjectNotFoundError) as exc_info:
        await PatientDirectory().get_subject_context("404")
    assert isinstance(exc_info.value, LookupFailure)
