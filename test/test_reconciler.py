"""
Tests for recording reconciliation into CRM call engagements.
"""

from datetime import datetime, timezone

import pytest

from callbridge.calls.reconciler import (
    CALL_TITLE,
    COMPLETED_BODY,
    RecordingCallback,
    RecordingReconciler,
    duration_ms,
    format_timestamp,
)

from helpers import CONTACT_PHONE, TWO_LEG_NUMBER, FakeCrm

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def reconciler(crm: FakeCrm) -> RecordingReconciler:
    return RecordingReconciler(crm, clock=lambda: NOW)


def _callback(**overrides: str | None) -> RecordingCallback:
    fields: dict[str, str | None] = {
        "contact_id": "123",
        "owner_id": "agent1",
        "recording_url": "https://api.twilio.com/Recordings/RE1",
        "recording_duration": "30",
        "from_number": TWO_LEG_NUMBER,
        "to_number": CONTACT_PHONE,
    }
    fields.update(overrides)
    return RecordingCallback(**fields)


class TestDuration:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("30", 30000),
            (" 7 ", 7000),
            ("0", 0),
            (None, 0),
            ("", 0),
            ("abc", 0),
            ("1.5", 1000),
            ("30s", 30000),
            ("-4", 0),
        ],
    )
    def test_duration_ms(self, raw: str | None, expected: int) -> None:
        assert duration_ms(raw) == expected


class TestFormatTimestamp:
    def test_millisecond_precision_with_z(self) -> None:
        moment = datetime(2024, 5, 1, 11, 59, 30, 250000, tzinfo=timezone.utc)

        assert format_timestamp(moment) == "2024-05-01T11:59:30.250Z"


class TestBuildProperties:
    def test_full_callback(self, reconciler: RecordingReconciler) -> None:
        properties = reconciler.build_properties(_callback())

        assert properties == {
            "hs_timestamp": "2024-05-01T11:59:30.000Z",
            "hs_call_title": CALL_TITLE,
            "hs_call_body": "Recording: https://api.twilio.com/Recordings/RE1.mp3",
            "hs_call_duration": "30000",
            "hs_call_status": "COMPLETED",
            "hs_call_direction": "OUTBOUND",
            "hs_call_from_number": TWO_LEG_NUMBER,
            "hs_call_to_number": CONTACT_PHONE,
            "hubspot_owner_id": "agent1",
        }

    @pytest.mark.parametrize("raw", [None, "0", "n/a"])
    def test_unusable_duration_means_started_now(
        self,
        reconciler: RecordingReconciler,
        raw: str | None,
    ) -> None:
        properties = reconciler.build_properties(_callback(recording_duration=raw))

        assert properties["hs_call_duration"] == "0"
        assert properties["hs_timestamp"] == "2024-05-01T12:00:00.000Z"

    def test_absent_numbers_are_omitted(self, reconciler: RecordingReconciler) -> None:
        properties = reconciler.build_properties(
            _callback(from_number=None, to_number=None, owner_id=None)
        )

        assert "hs_call_from_number" not in properties
        assert "hs_call_to_number" not in properties
        assert "hubspot_owner_id" not in properties
        assert None not in properties.values()

    def test_without_recording_url(self, reconciler: RecordingReconciler) -> None:
        properties = reconciler.build_properties(_callback(recording_url=None))

        assert properties["hs_call_body"] == COMPLETED_BODY

    def test_custom_extension(self, crm: FakeCrm) -> None:
        reconciler = RecordingReconciler(crm, recording_extension=".wav", clock=lambda: NOW)

        properties = reconciler.build_properties(_callback())

        assert properties["hs_call_body"].endswith("RE1.wav")


class TestReconcile:
    @pytest.mark.asyncio
    async def test_creates_and_associates(
        self,
        reconciler: RecordingReconciler,
        crm: FakeCrm,
    ) -> None:
        result = await reconciler.reconcile(_callback())

        assert result.engagement_id == "9001"
        assert result.associated is True
        assert result.error is None
        assert len(crm.created) == 1
        assert crm.associations == [("9001", "123")]

    @pytest.mark.asyncio
    async def test_create_failure_is_reported_not_raised(
        self,
        reconciler: RecordingReconciler,
        crm: FakeCrm,
    ) -> None:
        crm.fail_create = True

        result = await reconciler.reconcile(_callback())

        assert result.engagement_id is None
        assert result.associated is False
        assert result.error == "Failed to create call engagement"
        assert crm.associations == []

    @pytest.mark.asyncio
    async def test_association_failure_keeps_engagement_id(
        self,
        reconciler: RecordingReconciler,
        crm: FakeCrm,
    ) -> None:
        crm.fail_associate = True

        result = await reconciler.reconcile(_callback())

        assert result.engagement_id == "9001"
        assert result.associated is False
        assert result.error == "Failed to associate call engagement"
        assert len(crm.created) == 1

    @pytest.mark.asyncio
    async def test_no_contact_id_skips_association(
        self,
        reconciler: RecordingReconciler,
        crm: FakeCrm,
    ) -> None:
        result = await reconciler.reconcile(_callback(contact_id=None))

        assert result.engagement_id == "9001"
        assert result.associated is False
        assert crm.associations == []

    @pytest.mark.asyncio
    async def test_missing_engagement_id_skips_association(self) -> None:
        crm = FakeCrm(engagement_id=None)
        reconciler = RecordingReconciler(crm, clock=lambda: NOW)

        result = await reconciler.reconcile(_callback())

        assert result.engagement_id is None
        assert result.associated is False
        assert crm.associations == []
