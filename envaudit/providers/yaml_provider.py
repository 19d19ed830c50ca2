"""YAML manifest provider.

Recognizes two manifest shapes by path:

- compose files (file name contains ``compose``): ``services.*.environment``
- CI workflows (a ``workflows`` directory segment): workflow, job and
  step ``env`` maps

Anything else yields no findings. PyYAML drops source positions, so line
numbers are placeholders derived from traversal order.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from envaudit.core.errors import ContractError, ParseError
from envaudit.core.models import FileRef, Finding, ScanOptions, Source
from envaudit.core.utils import is_public_variable, is_valid_env_var_name
from envaudit.providers.base import Provider

logger = logging.getLogger(__name__)

COMPOSE_ENV_ITEM = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)(?:=(.*))?$')


@dataclass(frozen=True)
class ComposeFile:
    services: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowFile:
    env: dict[str, Any] = field(default_factory=dict)
    jobs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Unrecognized:
    reason: str = ""


Manifest = ComposeFile | WorkflowFile | Unrecognized


def is_compose_path(file_path: str) -> bool:
    return "compose" in Path(file_path).name.lower()


def is_workflow_path(file_path: str) -> bool:
    return "workflows" in Path(file_path).parent.parts


def _as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def decode_manifest(file_path: str, document: Any) -> Manifest:
    """Classify by path, then decode the parsed document into a manifest variant."""
    if not isinstance(document, dict):
        return Unrecognized("document is not a mapping")
    if is_compose_path(file_path):
        return ComposeFile(services=_as_mapping(document.get("services")))
    if is_workflow_path(file_path):
        return WorkflowFile(
            env=_as_mapping(document.get("env")),
            jobs=_as_mapping(document.get("jobs")),
        )
    return Unrecognized("not a compose file or CI workflow")


def scalar_to_string(value: Any) -> str | None:
    """Render a YAML scalar the way it would appear in the environment."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class YamlProvider(Provider):
    """Provider for compose files and CI workflow files."""

    name = "yaml"
    source = Source.DOCKER
    extensions = (".yml", ".yaml")

    def scan_content(self, content: str, file_path: str, options: ScanOptions) -> list[Finding]:
        try:
            document = yaml.safe_load(content)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            raise ParseError(
                f"Failed to parse YAML: {e}",
                file_path,
                line=mark.line + 1 if mark else None,
                column=mark.column + 1 if mark else None,
            ) from e

        manifest = decode_manifest(file_path, document)
        if isinstance(manifest, ComposeFile):
            return self._scan_compose(manifest, file_path, options)
        if isinstance(manifest, WorkflowFile):
            return self._scan_workflow(manifest, file_path, options)
        if isinstance(manifest, Unrecognized):
            logger.debug(f"Skipping {file_path}: {manifest.reason}")
            return []
        raise ContractError(f"Unhandled manifest variant: {type(manifest).__name__}")

    # ------------------------------------------------------------
    # compose
    # ------------------------------------------------------------

    def _scan_compose(self, manifest: ComposeFile, file_path: str, options: ScanOptions) -> list[Finding]:
        findings: list[Finding] = []
        for service_name, service in manifest.services.items():
            if not isinstance(service, dict):
                continue
            service_findings = self._scan_compose_service(service, str(service_name), file_path, options)

            env_files = service.get("env_file")
            if env_files:
                if not isinstance(env_files, list):
                    env_files = [env_files]
                notes = tuple(f"env_file: {self._env_file_path(ref)}" for ref in env_files)
                logger.debug(f"Found env_file reference in service {service_name}: {notes}")
                if service_findings:
                    first = service_findings[0]
                    service_findings[0] = Finding(
                        name=first.name,
                        source=first.source,
                        files=first.files,
                        required=first.required,
                        default_value=first.default_value,
                        is_public=first.is_public,
                        notes=first.notes + notes,
                    )
                else:
                    # 没有 environment 条目可以挂载备注
                    logger.debug(
                        f"Service {service_name} has env_file but no environment entries; "
                        f"not recording {notes}"
                    )
            findings.extend(service_findings)
        return findings

    @staticmethod
    def _env_file_path(ref: Any) -> str:
        # long syntax: {path: ./x.env, required: false}
        if isinstance(ref, dict):
            return str(ref.get("path", ""))
        return str(ref)

    def _scan_compose_service(
        self,
        service: dict[str, Any],
        service_name: str,
        file_path: str,
        options: ScanOptions,
    ) -> list[Finding]:
        environment = service.get("environment")
        context = f"Service: {service_name}"
        entries: list[tuple[str, str | None]] = []

        if isinstance(environment, list):
            for item in environment:
                match = COMPOSE_ENV_ITEM.match(str(item).strip())
                if match:
                    entries.append((match.group(1), match.group(2)))
        elif isinstance(environment, dict):
            for name, value in environment.items():
                entries.append((str(name), scalar_to_string(value)))

        findings: list[Finding] = []
        for index, (name, value) in enumerate(entries):
            if not is_valid_env_var_name(name):
                continue
            findings.append(Finding(
                name=name,
                source=Source.DOCKER,
                files=(FileRef(file_path, index + 1, 1, context=context),),
                required=not value,
                default_value=value or None,
                is_public=is_public_variable(name, options.public_prefixes),
            ))
        return findings

    # ------------------------------------------------------------
    # CI workflows
    # ------------------------------------------------------------

    def _scan_workflow(self, manifest: WorkflowFile, file_path: str, options: ScanOptions) -> list[Finding]:
        findings = self._env_block(manifest.env, file_path, options, "Workflow environment")

        for job_name, job in manifest.jobs.items():
            if not isinstance(job, dict):
                continue
            findings.extend(self._env_block(
                _as_mapping(job.get("env")), file_path, options, f"Job: {job_name}",
            ))
            steps = job.get("steps")
            if not isinstance(steps, list):
                continue
            for step_index, step in enumerate(steps, 1):
                if not isinstance(step, dict):
                    continue
                step_name = step.get("name")
                findings.extend(self._env_block(
                    _as_mapping(step.get("env")),
                    file_path,
                    options,
                    f"Job: {job_name}, Step: {step_index}",
                    hint=str(step_name) if step_name else None,
                ))
        return findings

    def _env_block(
        self,
        env: dict[str, Any],
        file_path: str,
        options: ScanOptions,
        context: str,
        hint: str | None = None,
    ) -> list[Finding]:
        findings: list[Finding] = []
        for index, (name, value) in enumerate(env.items()):
            name = str(name)
            if not is_valid_env_var_name(name):
                continue
            default = scalar_to_string(value)
            findings.append(Finding(
                name=name,
                source=Source.GHA,
                files=(FileRef(file_path, index + 1, 1, context=context, hint=hint),),
                # workflow variables are treated as optional overrides
                required=False,
                default_value=default or None,
                is_public=is_public_variable(name, options.public_prefixes),
            ))
        return findings
