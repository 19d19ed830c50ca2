"""Provider base classes.

Each provider extracts environment variable findings from one family of
file formats. Providers hold no per-scan state, so the scanner can run
them in parallel threads over the same file list.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from envaudit.core.errors import ParseError
from envaudit.core.models import Finding, ScanOptions, Source
from envaudit.core.utils import read_file_safe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderOutput:
    """Findings plus bookkeeping from one provider run."""
    findings: tuple[Finding, ...] = ()
    parse_errors: int = 0
    files_scanned: int = 0


class Provider(ABC):
    """Base class for extraction providers."""

    name: str = ""
    source: Source = Source.AST
    extensions: tuple[str, ...] = ()

    def handles(self, file_path: str) -> bool:
        """Whether this provider claims the file."""
        return Path(file_path).suffix.lower() in self.extensions

    @abstractmethod
    def scan_content(self, content: str, file_path: str, options: ScanOptions) -> list[Finding]:
        """
        Extract findings from one file's text.

        Raises ParseError when the content cannot be interpreted; the
        caller skips the file and carries on with the rest.
        """

    def collect(self, files: Sequence[str], options: ScanOptions) -> ProviderOutput:
        """Scan every handled file and report findings with counters."""
        findings: list[Finding] = []
        parse_errors = 0
        handled = [f for f in files if self.handles(f)]
        logger.debug(f"{self.name} provider scanning {len(handled)} of {len(files)} files")

        for file_path in handled:
            content = read_file_safe(file_path, options.max_file_size)
            if not content:
                continue
            try:
                findings.extend(self.scan_content(content, file_path, options))
            except ParseError as e:
                parse_errors += 1
                logger.debug(f"{self.name} provider skipped {file_path}: {e}")

        logger.info(f"{self.name} provider found {len(findings)} environment variables")
        return ProviderOutput(
            findings=tuple(findings),
            parse_errors=parse_errors,
            files_scanned=len(handled),
        )

    def scan(self, files: Sequence[str], options: ScanOptions) -> tuple[Finding, ...]:
        """Scan files and return findings."""
        return self.collect(files, options).findings


class ProviderRegistry:
    """Ordered registry of providers.

    Iteration order is registration order; the merge engine relies on it
    for deterministic default/notes tie-breaks.
    """

    def __init__(self, providers: Iterable[Provider] = ()):
        self._providers: dict[str, Provider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: Provider) -> None:
        """Register a provider, replacing one with the same name in place."""
        if not provider.name:
            raise ValueError("Provider must have a non-empty name")
        self._providers[provider.name] = provider
        logger.debug(f"Registered provider: {provider.name}")

    def unregister(self, name: str) -> None:
        self._providers.pop(name, None)

    def get(self, name: str) -> Provider | None:
        return self._providers.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._providers)

    def enabled(self, options: ScanOptions) -> list[Provider]:
        """Providers left after include/exclude filters, in registration order."""
        providers = list(self._providers.values())
        if options.include_providers:
            providers = [p for p in providers if p.name in options.include_providers]
        if options.exclude_providers:
            providers = [p for p in providers if p.name not in options.exclude_providers]
        return providers

    def __iter__(self):
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)


def default_registry() -> ProviderRegistry:
    """Registry with the built-in providers in canonical order."""
    from envaudit.providers.ast_provider import AstProvider
    from envaudit.providers.dotenv import DotenvProvider
    from envaudit.providers.shell import ShellProvider
    from envaudit.providers.yaml_provider import YamlProvider

    return ProviderRegistry([AstProvider(), DotenvProvider(), YamlProvider(), ShellProvider()])
