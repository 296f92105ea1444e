"""Model names and the on-disk location of their weights."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import List

from .errors import InvalidModelName, ModelNotFound

DEFAULT_MODELS_DIR = "./models"
DEFAULT_MODEL_TEMPLATE = "ggml-{name}.bin"


class ModelName(str, enum.Enum):
    TINY = "tiny"
    BASE = "base"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def names(cls) -> List[str]:
        return [member.value for member in cls]


def parse_model_name(value: str) -> ModelName:
    """Parse a model name without touching the filesystem.

    Matching ignores case and surrounding whitespace. Anything outside the
    closed set raises :class:`InvalidModelName` naming the accepted values.
    """

    if isinstance(value, ModelName):
        return value
    normalized = str(value or "").strip().lower()
    try:
        return ModelName(normalized)
    except ValueError:
        raise InvalidModelName(f"invalid model {ModelName.names()}: {value}") from None


def model_file_name(name: ModelName, template: str = DEFAULT_MODEL_TEMPLATE) -> str:
    return template.format(name=name.value)


def model_path(
    name: ModelName,
    models_dir: str | Path = DEFAULT_MODELS_DIR,
    template: str = DEFAULT_MODEL_TEMPLATE,
) -> Path:
    return Path(models_dir) / model_file_name(name, template)


def resolve_model_path(
    name: ModelName,
    models_dir: str | Path = DEFAULT_MODELS_DIR,
    template: str = DEFAULT_MODEL_TEMPLATE,
) -> Path:
    """Return the weight path for ``name``, failing if it does not exist."""

    path = model_path(name, models_dir, template)
    if not path.exists():
        raise ModelNotFound(
            f"model file not found at {path}, fetch the weights first "
            f"(available models: {ModelName.names()}): {name.value}"
        )
    return path


__all__ = [
    "DEFAULT_MODELS_DIR",
    "DEFAULT_MODEL_TEMPLATE",
    "ModelName",
    "parse_model_name",
    "model_file_name",
    "model_path",
    "resolve_model_path",
]
