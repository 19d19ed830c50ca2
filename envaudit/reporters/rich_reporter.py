"""
Rich 终端报告器 - 使用 Rich 库输出彩色终端格式

扫描摘要面板 + 按来源统计 + 变量明细表
"""

from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from envaudit.core.frameworks import get_framework_config
from envaudit.core.models import Finding, ScanResult

# 默认值在表格中显示的最大长度
DEFAULT_VALUE_WIDTH = 40

SOURCE_STYLES = {
    "ast": "cyan",
    "process": "cyan",
    "importmeta": "blue",
    "dotenv": "green",
    "docker": "magenta",
    "gha": "yellow",
    "shell": "white",
}


def _truncate(value: str, width: int = DEFAULT_VALUE_WIDTH) -> str:
    return value if len(value) <= width else value[: width - 1] + "…"


class RichReporter:
    """Rich 终端报告器"""

    def __init__(self, console: Console | None = None, show_findings: bool = True):
        self.console = console or Console()
        self.show_findings = show_findings

    def report(self, result: ScanResult, target: str) -> None:
        """生成 Rich 格式报告"""
        self.console.print()
        self._print_summary_panel(result, target)
        self._print_source_counts(result)
        if self.show_findings and result.findings:
            self.console.print()
            self.print_findings_table(result.findings)
        self.console.print()

    def _print_summary_panel(self, result: ScanResult, target: str) -> None:
        """打印摘要面板"""
        stats = result.stats
        required = sum(1 for f in result.findings if f.required)
        public = sum(1 for f in result.findings if f.is_public)

        content = Text()
        content.append("Target: ", style="bold")
        content.append(f"{target}\n", style="dim")
        if result.framework:
            config = get_framework_config(result.framework)
            content.append("Framework: ", style="bold")
            content.append(f"{config.name if config else result.framework}\n", style="cyan")
        content.append("Files scanned: ", style="bold")
        content.append(f"{stats.total_files}\n")
        content.append("Variables found: ", style="bold")
        content.append(f"{stats.total_findings}", style="bold green")
        content.append(f" ({required} required, {public} public)\n", style="dim")
        content.append("Parse errors: ", style="bold")
        content.append(f"{stats.parse_errors}\n", style="red" if stats.parse_errors else "green")
        content.append("Scan time: ", style="bold")
        content.append(f"{stats.scan_time_ms}ms", style="dim")

        border = "yellow" if stats.parse_errors else "green"
        self.console.print(Panel(content, title="[bold]Environment Audit[/bold]", border_style=border))

    def _print_source_counts(self, result: ScanResult) -> None:
        """打印按来源统计（只显示非零项）"""
        counts = {k: v for k, v in result.stats.counts_by_source.items() if v > 0}
        if not counts:
            return

        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Source", width=14)
        table.add_column("Variables", justify="right", width=10)
        for source, count in counts.items():
            style = SOURCE_STYLES.get(source, "white")
            table.add_row(f"[{style}]{source}[/{style}]", str(count))

        self.console.print()
        self.console.print("[bold]◆ Variables by source[/bold]")
        self.console.print(table)

    def print_findings_table(self, findings: Sequence[Finding]) -> None:
        """打印变量明细表"""
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Variable", style="bold")
        table.add_column("Required", justify="center")
        table.add_column("Public", justify="center")
        table.add_column("Source")
        table.add_column("Default", style="dim")
        table.add_column("Files", justify="right")

        for finding in findings:
            style = SOURCE_STYLES.get(finding.source.value, "white")
            table.add_row(
                finding.name,
                "[red]✓[/red]" if finding.required else "[dim]-[/dim]",
                "[yellow]✓[/yellow]" if finding.is_public else "[dim]-[/dim]",
                f"[{style}]{finding.source.value}[/{style}]",
                _truncate(finding.default_value) if finding.default_value else "",
                str(len(finding.files)),
            )

        self.console.print(table)

    def print_check(self, required: Sequence[Finding], missing: Sequence[str], env_file: str) -> None:
        """打印 check 命令结果"""
        self.console.print(f"[dim]Checking against: {env_file}[/dim]")
        self.console.print(f"Required variables: [bold]{len(required)}[/bold]")
        self.console.print(f"Missing variables: [bold]{len(missing)}[/bold]")
        self.console.print()

        if missing:
            self.console.print(Panel(
                "\n".join(f"[red]✗[/red] {name}" for name in missing),
                title="[bold red]Missing required variables[/bold red]",
                border_style="red",
            ))
        else:
            self.console.print("[green]✓ All required variables are defined[/green]")
