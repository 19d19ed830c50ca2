"""
前端框架识别

根据 package.json 依赖或配置文件识别框架，用于补充公开变量前缀和扫描模式。
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameworkConfig:
    """框架配置"""
    name: str
    public_prefixes: tuple[str, ...]
    include_patterns: tuple[str, ...]
    exclude_patterns: tuple[str, ...]


FRAMEWORK_CONFIGS: dict[str, FrameworkConfig] = {
    "nextjs": FrameworkConfig(
        name="Next.js",
        public_prefixes=("NEXT_PUBLIC_",),
        include_patterns=("*.js", "*.jsx", "*.ts", "*.tsx", "next.config.*"),
        exclude_patterns=(".next/",),
    ),
    "vite": FrameworkConfig(
        name="Vite",
        public_prefixes=("VITE_",),
        include_patterns=("*.js", "*.jsx", "*.ts", "*.tsx", "*.vue", "vite.config.*"),
        exclude_patterns=("dist/",),
    ),
    "astro": FrameworkConfig(
        name="Astro",
        public_prefixes=("PUBLIC_",),
        include_patterns=("*.js", "*.jsx", "*.ts", "*.tsx", "*.astro", "astro.config.*"),
        exclude_patterns=("dist/",),
    ),
    "sveltekit": FrameworkConfig(
        name="SvelteKit",
        public_prefixes=("PUBLIC_",),
        include_patterns=("*.js", "*.ts", "*.svelte", "svelte.config.*"),
        exclude_patterns=(".svelte-kit/",),
    ),
    "nuxt": FrameworkConfig(
        name="Nuxt",
        public_prefixes=("NUXT_PUBLIC_",),
        include_patterns=("*.js", "*.ts", "*.vue", "nuxt.config.*"),
        exclude_patterns=(".nuxt/", "dist/"),
    ),
    "remix": FrameworkConfig(
        name="Remix",
        public_prefixes=(),
        include_patterns=("*.js", "*.jsx", "*.ts", "*.tsx", "remix.config.*"),
        exclude_patterns=("build/",),
    ),
}

# 依赖名 -> 框架（按优先级排列）
DEPENDENCY_MARKERS: tuple[tuple[str, str], ...] = (
    ("next", "nextjs"),
    ("vite", "vite"),
    ("astro", "astro"),
    ("@sveltejs/kit", "sveltekit"),
    ("nuxt", "nuxt"),
    ("@remix-run/node", "remix"),
    ("@remix-run/react", "remix"),
)

# 配置文件前缀 -> 框架
CONFIG_FILE_MARKERS: tuple[tuple[str, str], ...] = (
    ("next.config", "nextjs"),
    ("vite.config", "vite"),
    ("astro.config", "astro"),
    ("svelte.config", "sveltekit"),
    ("nuxt.config", "nuxt"),
    ("remix.config", "remix"),
)


def detect_framework(root: Union[str, Path]) -> Optional[str]:
    """
    识别项目使用的框架

    Args:
        root: 项目根目录

    Returns:
        FRAMEWORK_CONFIGS 中的键，无法识别时返回 None
    """
    root = Path(root)
    package_json = root / "package.json"

    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to read {package_json}: {e}")
            return None
        if not isinstance(data, dict):
            return None

        dependencies: dict = {}
        for key in ("dependencies", "devDependencies"):
            section = data.get(key)
            if isinstance(section, dict):
                dependencies.update(section)

        for dependency, framework in DEPENDENCY_MARKERS:
            if dependency in dependencies:
                logger.debug(f"Detected {framework} from dependency {dependency}")
                return framework

    try:
        entries = [entry.name for entry in root.iterdir()]
    except OSError as e:
        logger.debug(f"Failed to list {root}: {e}")
        return None

    for prefix, framework in CONFIG_FILE_MARKERS:
        if any(name.startswith(prefix) for name in entries):
            logger.debug(f"Detected {framework} from {prefix}.* file")
            return framework

    return None


def get_framework_config(framework: Optional[str]) -> Optional[FrameworkConfig]:
    """按名称获取框架配置，未知名称返回 None"""
    if not framework:
        return None
    return FRAMEWORK_CONFIGS.get(framework)
