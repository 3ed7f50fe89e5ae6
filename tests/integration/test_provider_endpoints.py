"""Integration tests for provider endpoints."""
import pytest


async def _create_pledge(app_client, patient_id="83921", **fields):
    payload = {"patient_id": patient_id, "amount": 500, "goal": "BP Stabilization"}
    payload.update(fields)
    return await app_client.post("/rpc/provider/createPledge", json=payload)


@pytest.mark.asyncio
class TestPledgeEndpoints:
    """Tests for the pledge workflow."""

    async def test_create_pledge(self, app_client, sender):
        """Test a pledge is created pending and both parties are notified."""
        response = await _create_pledge(
            app_client, "#83921", duration="10", provider_email="doctor@rdmhealth.com",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["patient_id"] == "83921"
        assert data["total_days"] == 10
        assert data["accepted"] is False
        assert [m["to"] for m in sender.sent] == [
            "michael.chen@rdmhealth.patient",
            "doctor@rdmhealth.com",
        ]

    async def test_create_pledge_replaces_unaccepted_active(self, app_client):
        """Test the seeded unaccepted active pledge is replaced."""
        await _create_pledge(app_client)

        response = await app_client.post("/rpc/provider/getPatientPledges", json={"patient_id": "83921"})
        statuses = {p["id"]: p["status"] for p in response.json()}
        assert statuses["pledge-1"] == "replaced"

    async def test_create_pledge_unknown_patient(self, app_client):
        """Test creating a pledge for an unknown patient returns 404."""
        response = await _create_pledge(app_client, "404")

        assert response.status_code == 404
        assert response.json()["detail"] == "Patient not found"

    async def test_create_pledge_invalid_duration(self, app_client):
        """Test a non-numeric duration is rejected."""
        response = await _create_pledge(app_client, duration="a week")

        assert response.status_code == 422

    async def test_accept_pledge(self, app_client):
        """Test acceptance activates the pledge and shows it to the patient."""
        pledge = (await _create_pledge(app_client)).json()

        response = await app_client.post("/rpc/provider/acceptPledge", json={"pledge_id": pledge["id"]})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "active"
        assert data["accepted"] is True
        assert data["end_date"] is not None

        mine = await app_client.post("/rpc/provider/getMyPledges", json={"user_id": "#83921"})
        assert [p["id"] for p in mine.json()] == [pledge["id"]]

    async def test_accept_unknown_pledge(self, app_client):
        """Test accepting a missing pledge returns 404."""
        response = await app_client.post("/rpc/provider/acceptPledge", json={"pledge_id": "missing"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Pledge not found"

    async def test_accept_replaced_pledge(self, app_client):
        """Test accepting a replaced pledge returns 400."""
        await _create_pledge(app_client)

        response = await app_client.post("/rpc/provider/acceptPledge", json={"pledge_id": "pledge-1"})

        assert response.status_code == 400

    async def test_complete_and_at_risk(self, app_client):
        """Test the at-risk and completion transitions."""
        pledge = (await _create_pledge(app_client)).json()
        await app_client.post("/rpc/provider/acceptPledge", json={"pledge_id": pledge["id"]})

        response = await app_client.post("/rpc/provider/markPledgeAtRisk", json={"pledge_id": pledge["id"]})
        assert response.json()["status"] == "at-risk"

        response = await app_client.post("/rpc/provider/completePledge", json={"pledge_id": pledge["id"]})
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        response = await app_client.post("/rpc/provider/completePledge", json={"pledge_id": pledge["id"]})
        assert response.status_code == 400

    async def test_my_pledges_without_user(self, app_client):
        """Test an empty list is returned without a user id."""
        response = await app_client.post("/rpc/provider/getMyPledges", json={})

        assert response.status_code == 200
        assert response.json() == []

    async def test_patient_pledges_unknown_patient(self, app_client):
        """Test listing pledges of an unknown patient returns 404."""
        response = await app_client.post("/rpc/provider/getPatientPledges", json={"patient_id": "404"})

        assert response.status_code == 404


@pytest.mark.asyncio
class TestPatientEndpoints:
    """Tests for patient status updates."""

    async def test_update_patient_status(self, app_client):
        """Test setting a patient's status."""
        response = await app_client.post(
            "/rpc/provider/updatePatientStatus",
            json={"patient_id": "#9201", "status": "stable"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "stable"
        assert response.json()["id"] == "9201"

    async def test_update_unknown_patient(self, app_client):
        """Test updating an unknown patient returns 404."""
        response = await app_client.post(
            "/rpc/provider/updatePatientStatus",
            json={"patient_id": "404", "status": "stable"},
        )

        assert response.status_code == 404

    async def test_get_patients(self, app_client):
        """Test the patient directory with search and paging."""
        response = await app_client.post(
            "/rpc/provider/getPatients",
            json={"search": "hypertension", "limit": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [p["id"] for p in data["patients"]] == ["83921"]
        assert data["limit"] == 1
        assert data["offset"] == 0

    async def test_get_patients_without_body(self, app_client):
        """Test every patient is listed without filters."""
        response = await app_client.post("/rpc/provider/getPatients")

        assert response.json()["total"] == 5

    async def test_get_patients_invalid_status(self, app_client):
        """Test unknown status filters are rejected."""
        response = await app_client.post("/rpc/provider/getPatients", json={"status": "fine"})

        assert response.status_code == 422

    async def test_get_patient_profile(self, app_client):
        """Test a profile is returned for the assigned provider."""
        response = await app_client.post(
            "/rpc/provider/getPatientProfile",
            json={"patient_id": "#1129", "provider_id": "staff-1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "David Kim"
        assert data["vitals"]["blood_pressure"] == "120/80"
        assert data["next_appointment"]["id"] == "schedule-2"

    async def test_get_patient_profile_other_provider(self, app_client):
        """Test another provider's patient returns 403."""
        response = await app_client.post(
            "/rpc/provider/getPatientProfile",
            json={"patient_id": "83921", "provider_id": "staff-404"},
        )

        assert response.status_code == 403
        assert response.json()["detail"].startswith("Access denied")

    async def test_get_patient_profile_unknown(self, app_client):
        """Test an unknown patient returns 404."""
        response = await app_client.post("/rpc/provider/getPatientProfile", json={"patient_id": "404"})

        assert response.status_code == 404


@pytest.mark.asyncio
class TestProviderViews:
    """Tests for provider dashboards and tips."""

    async def test_dashboard(self, app_client):
        """Test the dashboard for the demo provider."""
        response = await app_client.post("/rpc/provider/getDashboard", json={"provider_id": "staff-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["total_patients"] == 5
        assert data["critical_count"] == 1
        assert len(data["critical_patients"]) == 3
        assert len(data["recent_wishes"]) == 3

    async def test_earnings(self, app_client):
        """Test earnings include the demo pledges and tip total."""
        response = await app_client.post("/rpc/provider/getEarnings", json={"provider_id": "staff-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["patient_tips"] == 160
        assert {p["id"] for p in data["active_pledges"]} == {"pledge-1", "pledge-2"}

    async def test_schedule(self, app_client):
        """Test today's schedule is sorted by time."""
        response = await app_client.post("/rpc/provider/getSchedule", json={})

        assert response.status_code == 200
        assert [s["time"] for s in response.json()] == ["09:00", "10:30", "14:00", "16:30"]

    async def test_schedule_invalid_date(self, app_client):
        """Test malformed dates are rejected."""
        response = await app_client.post("/rpc/provider/getSchedule", json={"date": "tomorrow"})

        assert response.status_code == 422

    async def test_critical_alerts(self, app_client):
        """Test alerts are returned newest first."""
        response = await app_client.post("/rpc/provider/getCriticalAlerts", json={})

        assert [a["id"] for a in response.json()] == ["alert-2", "alert-1", "alert-3"]

    async def test_send_tip_and_list(self, app_client):
        """Test a sent tip appears in recent wishes and the patient's sent tips."""
        response = await app_client.post(
            "/rpc/provider/sendTip",
            json={"patient_id": "#1129", "amount": 20, "message": "Thank you!"},
        )
        assert response.status_code == 201
        tip = response.json()
        assert tip["patient_id"] == "1129"
        assert tip["type"] == "tip"

        wishes = await app_client.post("/rpc/provider/getRecentWishes", json={"limit": 1})
        assert [w["id"] for w in wishes.json()] == [tip["id"]]

        sent = await app_client.post("/rpc/provider/getMySentTips", json={"patient_id": "1129"})
        assert [t["id"] for t in sent.json()] == [tip["id"], "tip-2"]

    async def test_send_tip_unknown_patient(self, app_client):
        """Test tipping from an unknown patient returns 404."""
        response = await app_client.post(
            "/rpc/provider/sendTip",
            json={"patient_id": "404", "amount": 20},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Patient not found"

    async def test_my_sent_tips_without_patient(self, app_client):
        """Test an empty list is returned without a patient id."""
        response = await app_client.post("/rpc/provider/getMySentTips", json={})

        assert response.json() == []
