"""
CLI 入口模块 - 使用 Typer 构建命令行界面

命令：
- scan: 扫描项目并生成 .env.example / schema.json / README.md
- check: 检查 .env 文件是否定义了全部必需变量
- print: 以 table / json / env / list 格式输出变量
- version: 显示版本
"""

import json
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console

from envaudit.config import ProjectConfig, load_config
from envaudit.core.errors import EnvAuditError
from envaudit.core.frameworks import FRAMEWORK_CONFIGS
from envaudit.core.models import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_PUBLIC_PREFIXES,
    Finding,
    ScanOptions,
    ScanResult,
    Source,
)
from envaudit.core.scanner import Scanner
from envaudit.logging_config import configure_logging
from envaudit.providers.base import default_registry
from envaudit.providers.dotenv import parse_dotenv_file
from envaudit.reporters import JsonReporter, RichReporter
from envaudit.reporters.writers import write_outputs

# 创建 Typer 应用实例
app = typer.Typer(
    name="envaudit",
    help="envaudit: find every environment variable your project depends on.",
    add_completion=False,
)

# Rich Console 用于输出
console = Console()
err_console = Console(stderr=True)

PRINT_FORMATS = ("table", "json", "env", "list")


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def resolve_project(target: str) -> Path:
    """校验扫描路径"""
    repo_path = Path(target).resolve()
    if not repo_path.exists():
        _fail(f"Path does not exist: {target}")
    if not repo_path.is_dir():
        _fail(f"Path is not a directory: {target}")
    return repo_path


def build_options(
    project: ProjectConfig,
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
    framework: Optional[str] = None,
    public_prefix: Optional[list[str]] = None,
    max_file_size: Optional[int] = None,
    follow_symlinks: bool = False,
    providers: Optional[list[str]] = None,
    exclude_providers: Optional[list[str]] = None,
) -> ScanOptions:
    """
    合并命令行参数、配置文件和默认值

    命令行 > 配置文件 > 默认值；--public-prefix 追加到前缀列表。
    """
    framework = framework or project.framework
    if framework and framework not in FRAMEWORK_CONFIGS:
        _fail(f"Unknown framework: {framework} (choose from {', '.join(FRAMEWORK_CONFIGS)})")

    known = set(default_registry().names())
    for name in [*(providers or []), *(exclude_providers or []),
                 *(project.include_providers or []), *(project.exclude_providers or [])]:
        if name not in known:
            _fail(f"Unknown provider: {name} (choose from {', '.join(sorted(known))})")

    prefixes = list(project.public_prefixes if project.public_prefixes is not None else DEFAULT_PUBLIC_PREFIXES)
    prefixes.extend(public_prefix or [])

    return ScanOptions(
        public_prefixes=tuple(dict.fromkeys(prefixes)),
        max_file_size=max_file_size or project.max_file_size or DEFAULT_MAX_FILE_SIZE,
        include_providers=frozenset(providers or project.include_providers or ()),
        exclude_providers=frozenset(exclude_providers or project.exclude_providers or ()),
        include=tuple(include or project.include or DEFAULT_INCLUDE_PATTERNS),
        exclude=tuple(exclude or project.exclude or DEFAULT_EXCLUDE_PATTERNS),
        follow_symlinks=follow_symlinks,
        framework=framework,
    )


def run_scan(repo_path: Path, options: ScanOptions) -> ScanResult:
    try:
        return Scanner().scan(repo_path, options)
    except EnvAuditError as e:
        _fail(e.message)


def _load_project(repo_path: Path, config: Optional[Path]) -> ProjectConfig:
    try:
        return load_config(repo_path, config)
    except EnvAuditError as e:
        _fail(e.message)


@app.command()
def scan(
    target: str = typer.Argument(".", help="Path to scan"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory for generated files (default: ./env-docs)",
    ),
    formats: Optional[list[str]] = typer.Option(
        None, "--format", "-f", help="Output formats: env, json, md, all (repeatable)",
    ),
    include: Optional[list[str]] = typer.Option(None, "--include", help="Include glob (repeatable)"),
    exclude: Optional[list[str]] = typer.Option(None, "--exclude", help="Exclude glob (repeatable)"),
    framework: Optional[str] = typer.Option(
        None, "--framework", help="Framework: nextjs, vite, astro, sveltekit, nuxt, remix",
    ),
    public_prefix: Optional[list[str]] = typer.Option(
        None, "--public-prefix", help="Additional public variable prefix (repeatable)",
    ),
    max_file_size: Optional[int] = typer.Option(None, "--max-file-size", min=1, help="Maximum file size in bytes"),
    follow_symlinks: bool = typer.Option(False, "--follow-symlinks", help="Follow symbolic links"),
    providers: Optional[list[str]] = typer.Option(
        None, "--providers", help="Enabled providers: ast, dotenv, yaml, shell (repeatable)",
    ),
    exclude_providers: Optional[list[str]] = typer.Option(
        None, "--exclude-providers", help="Excluded providers (repeatable)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to a .env-audit config file"),
    json_output: bool = typer.Option(False, "--json", help="Print the scan result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Scan a directory for environment variables and generate documentation.

    Examples:
        envaudit scan
        envaudit scan ./my-app --format all -o docs
        envaudit scan --framework vite --public-prefix APP_
    """
    configure_logging(verbose)
    repo_path = resolve_project(target)
    project = _load_project(repo_path, config)
    options = build_options(
        project, include, exclude, framework, public_prefix,
        max_file_size, follow_symlinks, providers, exclude_providers,
    )

    result = run_scan(repo_path, options)

    if json_output:
        JsonReporter().report(result, target)
    else:
        RichReporter(console).report(result, target)

    output_dir = Path(output or project.output_dir or "env-docs")
    selected = formats or project.output_formats or ["env"]
    try:
        written = write_outputs(result, output_dir, selected, root=repo_path)
    except EnvAuditError as e:
        _fail(e.message)

    if not json_output:
        console.print("[bold]Generated files:[/bold]")
        for path in written:
            console.print(f"  [green]✓[/green] {path}")


def find_missing(findings: list[Finding], env_file: Path) -> tuple[list[Finding], list[str]]:
    """返回 (必需变量, env 文件中没有真实值的必需变量名)"""
    required = [f for f in findings if f.required]
    defined = {entry.name for entry in parse_dotenv_file(env_file) if entry.has_value}
    missing = [f.name for f in required if f.name not in defined]
    return required, missing


@app.command()
def check(
    target: str = typer.Argument(".", help="Path to scan"),
    env_file: str = typer.Option(".env", "--env-file", help="Env file to check (relative to the scanned path)"),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 if any required variable is missing"),
    framework: Optional[str] = typer.Option(None, "--framework", help="Framework override"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to a .env-audit config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Check that required environment variables are defined in an env file.

    Examples:
        envaudit check
        envaudit check ./my-app --env-file .env.production --strict
    """
    configure_logging(verbose)
    repo_path = resolve_project(target)
    options = build_options(_load_project(repo_path, config), framework=framework)
    result = run_scan(repo_path, options)

    env_path = Path(env_file)
    if not env_path.is_absolute():
        env_path = repo_path / env_path
    if not env_path.is_file():
        err_console.print(f"[yellow]Warning:[/yellow] Env file not found: {env_path}")

    required, missing = find_missing(list(result.findings), env_path)
    RichReporter(console).print_check(required, missing, str(env_path))

    if strict and missing:
        raise typer.Exit(1)


def filter_findings(
    findings: list[Finding],
    source: Optional[str] = None,
    required_only: bool = False,
    public_only: bool = False,
) -> list[Finding]:
    selected = findings
    if source:
        selected = [f for f in selected if f.source.value == source]
    if required_only:
        selected = [f for f in selected if f.required]
    if public_only:
        selected = [f for f in selected if f.is_public]
    return selected


@app.command("print")
def print_findings(
    target: str = typer.Argument(".", help="Path to scan"),
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env, list"),
    source: Optional[str] = typer.Option(None, "--source", help="Filter by source tag"),
    required_only: bool = typer.Option(False, "--required-only", help="Show only required variables"),
    public_only: bool = typer.Option(False, "--public-only", help="Show only public variables"),
    framework: Optional[str] = typer.Option(None, "--framework", help="Framework override"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to a .env-audit config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Print found environment variables to stdout.

    Examples:
        envaudit print
        envaudit print --format env --required-only
        envaudit print --format json --source dotenv
    """
    configure_logging(verbose)
    if format not in PRINT_FORMATS:
        _fail(f"Unknown format: {format} (choose from {', '.join(PRINT_FORMATS)})")
    if source and source not in {s.value for s in Source}:
        _fail(f"Unknown source: {source} (choose from {', '.join(s.value for s in Source)})")

    repo_path = resolve_project(target)
    options = build_options(_load_project(repo_path, config), framework=framework)
    result = run_scan(repo_path, options)
    findings = filter_findings(list(result.findings), source, required_only, public_only)

    if format == "json":
        typer.echo(json.dumps([f.to_dict() for f in findings], indent=2, ensure_ascii=False))
    elif format == "env":
        for f in findings:
            typer.echo(f"{f.name}={f.default_value or ''}")
    elif format == "list":
        for f in findings:
            flags = "[REQUIRED]" if f.required else "[OPTIONAL]"
            if f.is_public:
                flags += "[PUBLIC]"
            typer.echo(f"{flags} {f.name}")
    else:
        RichReporter(console).print_findings_table(findings)


@app.command()
def version() -> None:
    """Show the version of envaudit."""
    from envaudit import __version__
    console.print(f"[bold]envaudit[/bold] v{__version__}")


if __name__ == "__main__":
    app()
