"""YAML rendering of resolved one-click templates."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from yaml.representer import SafeRepresenter

from .parser import load_template_text

logger = logging.getLogger(__name__)


class _TemplateYamlDumper(yaml.SafeDumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:  # type: ignore[override]
        # Indent sequences under mappings ("key:\n  - item") like the upstream templates.
        return super().increase_indent(flow, False)


def _represent_multiline_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    """Prefer literal block scalars for multi-line strings (instructions, descriptions)."""
    if "\n" in data or "\r" in data:
        normalized = data.replace("\r\n", "\n").replace("\r", "\n")
        return dumper.represent_scalar("tag:yaml.org,2002:str", normalized, style="|")
    return SafeRepresenter.represent_str(dumper, data)


_TemplateYamlDumper.add_representer(str, _represent_multiline_str)


def dump_yaml(data: Any) -> str:
    return yaml.dump(
        data,
        Dumper=_TemplateYamlDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=4096,
    )


def render_template_yaml(text: str) -> str:
    """Normalize substituted template text into consistently formatted YAML."""
    data: Dict[str, Any] = load_template_text(text)
    return dump_yaml(data)


def write_template_file(text: str, path: Path) -> None:
    with path.open("w", encoding="utf-8") as handle:
        handle.write(render_template_yaml(text))
    logger.info("Resolved template written to %s", path)
