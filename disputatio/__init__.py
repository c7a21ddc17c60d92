"""Disputatio - scripted two-sided debates generated one turn at a time."""

from importlib.metadata import version as _version, PackageNotFoundError

try:
    __version__ = _version("disputatio")
except PackageNotFoundError:
    __version__ = "dev"

from .errors import (
    BusyError,
    ConfigurationError,
    FailureKind,
    GenerationFailure,
    StorageShapeMismatch,
    StructuralError,
)

from .structure import (
    CLASSIC,
    EXTENDED,
    ResponseType,
    Side,
    StructureCatalog,
    get_catalog,
    get_task_instructions,
    load_catalog,
)

from .transcript import (
    ArgumentItem,
    TopicConfig,
    Transcript,
    create_empty,
    create_validated,
    validate,
)

from .prompts import SYSTEM_PROMPT, PromptContext, build_prompt
from .models import GenerationClient, GenerationSettings
from .engine import DebateEngine, GenerationResult
from .store import TranscriptStore
from .export import export

__all__ = [
    "DebateEngine",
    "GenerationResult",
    "GenerationClient",
    "GenerationSettings",
    "TranscriptStore",
    "export",
    "build_prompt",
    "PromptContext",
    "SYSTEM_PROMPT",
    "create_empty",
    "create_validated",
    "validate",
    "TopicConfig",
    "Transcript",
    "ArgumentItem",
    "Side",
    "ResponseType",
    "StructureCatalog",
    "CLASSIC",
    "EXTENDED",
    "get_catalog",
    "load_catalog",
    "get_task_instructions",
    "ConfigurationError",
    "StructuralError",
    "BusyError",
    "StorageShapeMismatch",
    "GenerationFailure",
    "FailureKind",
]
