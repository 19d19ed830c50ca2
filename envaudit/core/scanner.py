"""
扫描编排

1. 发现文件（或直接使用给定的文件列表）
2. 识别框架，补充公开前缀和扫描模式
3. 并行运行所有启用的 Provider
4. 按注册顺序拼接结果后合并去重，生成统计
"""

import dataclasses
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence, Union

from envaudit.core.discovery import discover_files
from envaudit.core.frameworks import detect_framework, get_framework_config
from envaudit.core.merge import merge_and_deduplicate
from envaudit.core.models import (
    Finding,
    ScanOptions,
    ScanResult,
    ScanStats,
    empty_source_counts,
)
from envaudit.providers.base import Provider, ProviderOutput, ProviderRegistry, default_registry

logger = logging.getLogger(__name__)

ScanTarget = Union[str, Path, Sequence[Union[str, Path]]]


def _unique(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class Scanner:
    """扫描编排器"""

    def __init__(self, registry: Optional[ProviderRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    def scan(self, target: ScanTarget, options: Optional[ScanOptions] = None) -> ScanResult:
        """
        扫描目录或文件列表

        Args:
            target: 项目目录，或要扫描的文件路径序列
            options: 扫描选项

        Returns:
            ScanResult

        Raises:
            FileSystemError: 目录不存在
        """
        options = options or ScanOptions()
        started = time.perf_counter()

        if isinstance(target, (str, Path)):
            root = Path(target).resolve()
            framework = options.framework or detect_framework(root)
            config = get_framework_config(framework)
            if config:
                logger.info(f"Using {config.name} framework configuration")
                options = dataclasses.replace(
                    options,
                    public_prefixes=_unique([*options.public_prefixes, *config.public_prefixes]),
                )
            files = discover_files(
                root,
                options,
                extra_include=config.include_patterns if config else (),
                extra_exclude=config.exclude_patterns if config else (),
            )
        else:
            framework = options.framework
            config = get_framework_config(framework)
            if config:
                options = dataclasses.replace(
                    options,
                    public_prefixes=_unique([*options.public_prefixes, *config.public_prefixes]),
                )
            files = tuple(sorted({os.path.abspath(str(f)) for f in target}))

        outputs = self._run_providers(files, options)

        # 按注册顺序拼接，保证合并时默认值/备注的取舍是确定的
        raw: list[Finding] = []
        for output in outputs.values():
            raw.extend(output.findings)
        findings = merge_and_deduplicate(raw)

        counts_by_source = empty_source_counts()
        for finding in findings:
            counts_by_source[finding.source.value] += 1

        stats = ScanStats(
            total_files=len(files),
            total_findings=len(findings),
            parse_errors=sum(output.parse_errors for output in outputs.values()),
            scan_time_ms=int((time.perf_counter() - started) * 1000),
            counts_by_source=counts_by_source,
            files_by_provider={name: output.files_scanned for name, output in outputs.items()},
            findings_by_provider={name: len(output.findings) for name, output in outputs.items()},
        )
        logger.info(
            f"Scan complete: {stats.total_findings} variables in {stats.total_files} files "
            f"({stats.scan_time_ms}ms)"
        )

        return ScanResult(
            findings=findings,
            stats=stats,
            scanned_at=datetime.now(timezone.utc).isoformat(),
            framework=framework,
        )

    def _run_providers(self, files: Sequence[str], options: ScanOptions) -> dict[str, ProviderOutput]:
        """并行运行 Provider，结果按注册顺序返回；失败的 Provider 视为空结果"""
        providers = self.registry.enabled(options)
        if not providers:
            return {}

        with ThreadPoolExecutor(max_workers=max(1, options.workers)) as executor:
            futures = [(provider, executor.submit(provider.collect, files, options)) for provider in providers]

        outputs: dict[str, ProviderOutput] = {}
        for provider, future in futures:
            outputs[provider.name] = self._result_or_empty(provider, future)
        return outputs

    @staticmethod
    def _result_or_empty(provider: Provider, future) -> ProviderOutput:
        try:
            return future.result()
        except Exception as e:
            logger.warning(f"Provider {provider.name} failed: {e}")
            return ProviderOutput()


def scan(target: ScanTarget, options: Optional[ScanOptions] = None) -> ScanResult:
    """使用默认 Provider 注册表扫描"""
    return Scanner().scan(target, options)
