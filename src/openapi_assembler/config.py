"""Builder configuration, loaded from ``.openapi-assembler.yml``."""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel

from openapi_assembler.openapi.document import OPENAPI_VERSION

DEFAULT_CONFIG_FILE = ".openapi-assembler.yml"


class AssemblerConfig(BaseModel):
    openapi_version: str = OPENAPI_VERSION
    default_content_type: str = "application/json"
    default_tag: str | None = None
    strict: bool = False  # treat every diagnostic as fatal on finalize
    output_format: Literal["json", "yaml"] = "yaml"


def load_config(path: Path) -> AssemblerConfig:
    """Load configuration from a YAML file; a missing file yields defaults."""
    if not path.exists():
        return AssemblerConfig()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return AssemblerConfig(**data)
