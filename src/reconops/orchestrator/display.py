"""Rich console display for control cycles.

Prints lifecycle progress as a cycle runs and renders the final report
as panels and tables.
"""

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from reconops.agents.registry import AgentRegistry
from reconops.core.models import (
    AgentNode,
    AgentResponse,
    DelayedReconSection,
    ExecutionStatus,
    FindingStatus,
    HighMtpSection,
    IntentProfile,
    OrchestrationResult,
    ReportData,
    ServerDiagnosisSection,
)
from reconops.orchestrator.events import CycleCallbacks

FINDING_STYLES = {
    FindingStatus.OK: "green",
    FindingStatus.WARN: "yellow",
    FindingStatus.ERROR: "red",
    FindingStatus.INFO: "cyan",
}

SEVERITY_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "bold yellow",
    "critical": "bold red",
}


class CycleDisplay:
    """Console output for one control cycle."""

    def __init__(self, console: Console | None = None):
        """Initialize the display.

        Args:
            console: Rich console instance (creates new one if None)
        """
        self.console = console or Console()

    def callbacks(self) -> CycleCallbacks:
        """CycleCallbacks printing one line per lifecycle event."""
        return CycleCallbacks(
            on_planning=self.on_planning,
            on_agent_start=self.on_agent_start,
            on_agent_complete=self.on_agent_complete,
            on_synthesis=self.on_synthesis,
            on_complete=self.on_complete,
        )

    def on_planning(self, profile: IntentProfile) -> None:
        plan = " -> ".join(profile.agents_to_invoke)
        self.console.print(
            f"[bold]Planning[/bold] {profile.type.label} "
            f"[{SEVERITY_STYLES[profile.severity.value]}]({profile.severity.value})[/] "
            f"[dim]{plan}[/dim]"
        )

    def on_agent_start(self, display_name: str, agent_id: str) -> None:
        self.console.print(f"  [cyan]>[/cyan] {display_name} [dim]({agent_id})[/dim]")

    def on_agent_complete(
        self, display_name: str, response: AgentResponse, node: AgentNode
    ) -> None:
        ok = response.status == ExecutionStatus.SUCCESS
        marker = "[green]ok[/green]" if ok else "[red]error[/red]"
        self.console.print(f"    {node.order}. {marker} {response.summary}")

    def on_synthesis(self, summary: str) -> None:
        self.console.print("[bold]Synthesizing report[/bold]")

    def on_complete(self) -> None:
        self.console.print("[bold green]Cycle complete[/bold green]\n")

    def _findings_table(self, report: ReportData) -> Table:
        table = Table(title="Key Findings", show_header=True, header_style="bold magenta")
        table.add_column("Finding", style="cyan")
        table.add_column("Value")
        table.add_column("Status", width=8)

        for finding in report.key_findings:
            table.add_row(
                finding.label,
                finding.value,
                Text(finding.status.value, style=FINDING_STYLES[finding.status]),
            )
        return table

    def _domain_section(self, report: ReportData) -> Panel | None:
        section = report.domain_section
        if section is None:
            return None

        if isinstance(section, DelayedReconSection):
            body = Text("\n".join(section.recons) or "No delayed recons")
            title = f"Delayed Recons: {section.instance_name}"
        elif isinstance(section, HighMtpSection):
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("Account", style="cyan")
            table.add_column("MTP (min)", justify="right")
            for account in section.accounts:
                table.add_row(account.name, f"{account.mtp:g}")
            body = table
            title = f"High MTP Accounts (> {section.threshold:g} min): {section.instance_name}"
        elif isinstance(section, ServerDiagnosisSection):
            body = Text()
            body.append(f"CPU {section.cpu:g}%  Memory {section.memory:g}%  ")
            body.append(f"Pool {section.connection_pool:g}%  Jobs {section.active_jobs}\n")
            body.append("Upstream: ", style="bold")
            body.append(", ".join(section.dependencies) or "none")
            title = f"Server: {section.server_id}"
        else:
            return None

        return Panel(body, title=title, border_style="blue")

    def render_report(self, result: OrchestrationResult) -> Group:
        """Render the report of a completed cycle.

        Args:
            result: Completed cycle result

        Returns:
            Rich Group of panels and tables
        """
        report = result.report_data

        header = Text()
        header.append(f"{report.title}\n", style="bold")
        header.append("Severity: ", style="bold")
        header.append(f"{report.severity.value}", style=SEVERITY_STYLES[report.severity.value])
        header.append("  Domain: ", style="bold")
        header.append(report.domain, style="cyan")
        header.append(f"\nExecuted: {report.executed_at.strftime('%Y-%m-%d %H:%M:%S %Z')}", style="dim")

        parts = [
            Panel(header, border_style="green"),
            Panel(report.summary, title="Summary", border_style="blue"),
            self._findings_table(report),
        ]

        section = self._domain_section(report)
        if section is not None:
            parts.append(section)

        parts.append(
            Panel("\n".join(f"- {line}" for line in report.impact_scope), title="Impact Scope")
        )
        parts.append(
            Panel(
                "\n".join(f"{i}. {a}" for i, a in enumerate(report.recommended_actions, 1)),
                title="Recommended Actions",
                border_style="yellow",
            )
        )
        return Group(*parts)

    def print_report(self, result: OrchestrationResult) -> None:
        self.console.print(self.render_report(result))

    def print_agents(self, registry: AgentRegistry) -> None:
        """Table of registered agents."""
        table = Table(title="Registered Agents", show_header=True, header_style="bold magenta")
        table.add_column("Id", style="cyan")
        table.add_column("Name")
        table.add_column("Failure Reason", style="dim")

        for agent in registry:
            table.add_row(agent.agent_id, agent.display_name, agent.failure_reason)

        self.console.print(table)
