"""Monitoring Agent - signal extraction and anomaly scoring.

Generic requests get feature extraction plus an anomaly score. Delayed-recon
and high-MTP requests read the reference catalog for the instance instead.
"""

from reconops.agents.base import BaseAgent
from reconops.core.models import AgentId, AgentResponse, IntentProfile, UseCase
from reconops.domain.catalog import ReconInstance

# Accounts above this mean time to process (minutes) are reported
HIGH_MTP_THRESHOLD = 120.0

SIGNAL_NAMES = (
    "freq_delta", "vol_spike", "latency_drift", "price_deviation",
    "msg_rate_drop", "checksum_mismatch", "position_break", "feed_timeout",
    "sequence_gap", "book_imbalance",
)

FEATURE_POOLS = (
    ("freq_delta", "vol_spike", "latency_drift"),
    ("price_deviation", "msg_rate_drop", "book_imbalance"),
    ("checksum_mismatch", "position_break", "feed_timeout"),
    ("sequence_gap", "latency_drift", "vol_spike"),
    ("freq_delta", "checksum_mismatch", "price_deviation"),
)

ANOMALY_THRESHOLDS = (0.65, 0.70, 0.72, 0.75, 0.78, 0.80)

SAMPLING_WINDOWS_MS = (500, 1000, 2000)


class MonitoringAgent(BaseAgent):
    """Watches reconciliation signals and flags anomalies."""

    failure_reason = "feed_timeout"
    failure_tool_id = "extractFeatures"
    failure_operation = "Feature Extraction"
    failure_message = "Feature extraction failed: upstream data feed unresponsive"
    failure_summary = "Monitoring Agent could not retrieve signal data. Feed timeout."
    failure_duration_ms = 810

    latency_ms = (500, 1100)

    @property
    def agent_id(self) -> str:
        return AgentId.MONITORING.value

    @property
    def display_name(self) -> str:
        return "Monitoring Agent"

    async def run(self, text: str, profile: IntentProfile | None) -> AgentResponse:
        context = self.context_of(profile)

        if context.use_case in (UseCase.DELAYED_RECON, UseCase.HIGH_MTP):
            instance = self._instance_for(text, context.instance_id)
            if instance is None:
                self.logger.info("instance_not_resolved", use_case=context.use_case.value)
            elif context.use_case == UseCase.DELAYED_RECON:
                return self._delayed_recons(instance)
            else:
                return self._high_mtp(instance)

        return self._anomaly_scan(text)

    def _instance_for(self, text: str, instance_id: str | None) -> ReconInstance | None:
        if instance_id and instance_id in self.catalog.instances:
            return self.catalog.instances[instance_id]
        return self.catalog.resolve_instance(text)

    def _anomaly_scan(self, text: str) -> AgentResponse:
        features = list(self.pick(FEATURE_POOLS))
        primary_signal = self.pick(SIGNAL_NAMES)
        anomaly_score = self.rand(0.52, 0.97)
        threshold = self.pick(ANOMALY_THRESHOLDS)
        detected = anomaly_score > threshold

        extract = self.tool_call(
            "extractFeatures",
            "Feature Extraction",
            {"text": text},
            {
                "features": features,
                "count": len(features),
                "sampling_window_ms": self.pick(SAMPLING_WINDOWS_MS),
            },
            self.duration(180, 120),
        )
        score = self.tool_call(
            "scoreAnomaly",
            "Anomaly Analysis",
            {"features": features},
            {"anomaly_score": anomaly_score, "threshold": threshold, "anomaly_detected": detected},
            self.duration(100, 100),
        )

        if detected:
            summary = (
                f"Anomaly detected: score {anomaly_score} exceeds threshold ({threshold}). "
                f"Primary signal: {primary_signal.replace('_', ' ')}."
            )
        else:
            summary = f"No anomaly detected: score {anomaly_score} within threshold ({threshold})."

        return self.success(
            [extract, score],
            summary,
            {
                "anomaly_score": anomaly_score,
                "threshold": threshold,
                "anomaly_detected": detected,
                "primary_signal": primary_signal,
                "features": features,
                "recommendation": "Escalate for trace analysis" if detected else "Continue monitoring",
            },
        )

    def _delayed_recons(self, instance: ReconInstance) -> AgentResponse:
        recons = list(instance.delayed_recons)

        query = self.tool_call(
            "queryJobStatus",
            "Job Status Query",
            {"instance_id": instance.id},
            {"delayed_recons": recons, "count": len(recons)},
            self.duration(150, 100),
        )

        if recons:
            summary = (
                f"{len(recons)} delayed recon job(s) on {instance.name}: {', '.join(recons)}."
            )
        else:
            summary = f"No delayed recon jobs on {instance.name}."

        return self.success(
            [query],
            summary,
            {
                "domain": UseCase.DELAYED_RECON.value,
                "instance_id": instance.id,
                "instance_name": instance.name,
                "delayed_recons": recons,
            },
        )

    def _high_mtp(self, instance: ReconInstance) -> AgentResponse:
        accounts = [
            account.model_dump()
            for account in instance.high_mtp_accounts
            if account.mtp > HIGH_MTP_THRESHOLD
        ]

        analysis = self.tool_call(
            "analyzeMtp",
            "MTP Analysis",
            {"instance_id": instance.id, "threshold": HIGH_MTP_THRESHOLD},
            {"accounts": accounts, "count": len(accounts)},
            self.duration(160, 120),
        )

        if accounts:
            worst = max(accounts, key=lambda a: a["mtp"])
            summary = (
                f"{len(accounts)} account(s) on {instance.name} exceed the "
                f"{HIGH_MTP_THRESHOLD:g}-minute MTP threshold; highest is "
                f"{worst['name']} at {worst['mtp']:g} min."
            )
        else:
            summary = f"All accounts on {instance.name} are within the MTP threshold."

        return self.success(
            [analysis],
            summary,
            {
                "domain": UseCase.HIGH_MTP.value,
                "instance_id": instance.id,
                "instance_name": instance.name,
                "accounts": accounts,
                "threshold": HIGH_MTP_THRESHOLD,
            },
        )
