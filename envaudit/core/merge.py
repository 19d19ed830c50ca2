"""
合并引擎

把所有 Provider 的原始 Finding 按变量名分组，每个变量名合并为一条：
- files: 按 (file_path, line, column) 去重，保留首次出现
- required / is_public: 组内逻辑或
- default_value: 组内第一个非空默认值（按组内顺序）
- notes: 按组内顺序拼接
- source: 按固定优先级选取
"""

import logging
from typing import Iterable, Sequence

from envaudit.core.errors import ContractError
from envaudit.core.models import FileRef, Finding, Source

logger = logging.getLogger(__name__)

# 代表性来源优先级（越靠前越优先）
SOURCE_PRIORITY: tuple[Source, ...] = (
    Source.AST,
    Source.PROCESS,
    Source.IMPORTMETA,
    Source.DOTENV,
    Source.SHELL,
    Source.DOCKER,
    Source.GHA,
)


def source_priority(source: Source) -> int:
    """返回来源在优先级表中的位置，未知来源视为约定违反"""
    try:
        return SOURCE_PRIORITY.index(source)
    except ValueError:
        raise ContractError(f"Source {source!r} is missing from the priority table") from None


def _primary_source(findings: Sequence[Finding]) -> Source:
    present = {finding.source for finding in findings}
    for source in SOURCE_PRIORITY:
        if source in present:
            return source
    return findings[0].source


def dedupe_file_refs(refs: Iterable[FileRef]) -> tuple[FileRef, ...]:
    """按位置去重，context/hint 不参与比较"""
    seen: set[tuple[str, int, int]] = set()
    unique: list[FileRef] = []
    for ref in refs:
        if ref.key in seen:
            continue
        seen.add(ref.key)
        unique.append(ref)
    return tuple(unique)


def merge_findings(findings: Sequence[Finding]) -> Finding:
    """
    合并同名 Finding

    Args:
        findings: 同一变量名的 Finding（至少一条）

    Returns:
        合并后的 Finding；单条输入原样返回

    Raises:
        ContractError: 输入为空或变量名不一致
    """
    if not findings:
        raise ContractError("Cannot merge an empty list of findings")
    if len(findings) == 1:
        return findings[0]

    name = findings[0].name
    if any(finding.name != name for finding in findings):
        raise ContractError("All findings must share the same name to be merged")

    default_value = next(
        (finding.default_value for finding in findings if finding.default_value),
        None,
    )
    notes = tuple(note for finding in findings for note in finding.notes)

    return Finding(
        name=name,
        source=_primary_source(findings),
        files=dedupe_file_refs(ref for finding in findings for ref in finding.files),
        required=any(finding.required for finding in findings),
        default_value=default_value,
        is_public=any(finding.is_public for finding in findings),
        notes=notes,
    )


def collation_key(name: str) -> tuple[str, str]:
    """
    变量名的排序键，近似 ICU 根区域的本地化排序

    - 先按忽略大小写比较
    - 下划线排在数字和字母之前
    - 仅大小写不同时小写在前
    """
    return name.casefold().replace("_", "\x00"), name.swapcase()


def sort_findings(findings: Iterable[Finding]) -> tuple[Finding, ...]:
    """按名称排序（见 collation_key）"""
    return tuple(sorted(findings, key=lambda f: collation_key(f.name)))


def merge_and_deduplicate(findings: Iterable[Finding]) -> tuple[Finding, ...]:
    """
    按变量名分组合并，返回排序后的结果

    分组保持输入顺序，因此调用方需要以固定顺序（Provider 注册顺序）传入。
    """
    groups: dict[str, list[Finding]] = {}
    for finding in findings:
        groups.setdefault(finding.name, []).append(finding)

    merged = [merge_findings(group) for group in groups.values()]
    logger.debug(f"Merged {sum(len(g) for g in groups.values())} raw findings into {len(merged)}")
    return sort_findings(merged)
