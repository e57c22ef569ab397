"""Tests for Monitoring Agent."""

import pytest

from reconops.agents.monitoring import ANOMALY_THRESHOLDS, HIGH_MTP_THRESHOLD, MonitoringAgent
from reconops.core.models import ExecutionStatus


@pytest.fixture
def monitoring_agent(agent_factory):
    return agent_factory(MonitoringAgent)


@pytest.mark.asyncio
class TestMonitoringAgent:
    """Tests for MonitoringAgent."""

    async def test_anomaly_scan(self, monitoring_agent, classify):
        """Generic requests get feature extraction and anomaly scoring."""
        text = "unusual drift in FX signals"
        response = await monitoring_agent.invoke(text, classify(text))

        assert response.status == ExecutionStatus.SUCCESS
        assert [c.operation_label for c in response.tool_calls] == [
            "Feature Extraction",
            "Anomaly Analysis",
        ]
        payload = response.payload
        assert 0.52 <= payload["anomaly_score"] <= 0.97
        assert payload["threshold"] in ANOMALY_THRESHOLDS
        assert payload["anomaly_detected"] == (payload["anomaly_score"] > payload["threshold"])
        assert "domain" not in payload

    async def test_anomaly_scan_without_profile(self, monitoring_agent):
        response = await monitoring_agent.invoke("anything")

        assert response.status == ExecutionStatus.SUCCESS
        assert "anomaly_score" in response.payload

    async def test_delayed_recons(self, monitoring_agent, classify):
        """Delayed recon requests list the instance's delayed jobs."""
        text = "Show me delayed recon jobs for INV"
        response = await monitoring_agent.invoke(text, classify(text))

        assert [c.operation_label for c in response.tool_calls] == ["Job Status Query"]
        assert response.payload == {
            "domain": "delayed_recon",
            "instance_id": "INV",
            "instance_name": "Investment Recon",
            "delayed_recons": ["goa.cash", "nyk.cash", "cen.cash"],
        }
        assert response.summary.startswith("3 delayed recon job(s) on Investment Recon")

    async def test_high_mtp_filters_by_threshold(self, monitoring_agent, classify):
        """Only accounts above the threshold are reported."""
        text = "high MTP accounts on INV"
        response = await monitoring_agent.invoke(text, classify(text))

        assert response.payload["domain"] == "high_mtp"
        assert response.payload["threshold"] == HIGH_MTP_THRESHOLD
        assert response.payload["accounts"] == [{"name": "inv.equity.blotter", "mtp": 143.0}]

    async def test_domain_request_without_instance_falls_back(self, monitoring_agent, classify):
        """An unresolved instance means a generic anomaly scan."""
        text = "any delayed recon today?"
        response = await monitoring_agent.invoke(text, classify(text))

        assert "domain" not in response.payload
        assert "anomaly_score" in response.payload
