"""
Rulekeeper - validation and progression rules for tabletop RPG characters.
"""

from .models import *
from .errors import (
    BackupTypeError,
    CharacterBuilderError,
    EligibilityError,
    NotFoundError,
    OperationError,
    RuleTableError,
    RulesEngineError,
    StaleExportError,
    VersionMismatchError,
)
from .config import EngineSettings, configure_logging
from .validation import LifecycleResult, ValidationEngine, ValidationResult, validate_character
from .multiclass_engine import MulticlassEngine
from .spell_progression import SpellProgressionEngine
from .character_builder import CharacterBuilder, HitPointCalculator
from .storage import CharacterStore, InMemoryCharacterStore, JsonCharacterStore
from .export import CharacterExporter, ExportEnvelope, ExportResult
from .lifecycle import BackgroundPatch, CharacterDraft, CharacterLifecycle

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("rulekeeper")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "CharacterLifecycle",
    "CharacterDraft",
    "BackgroundPatch",
    "LifecycleResult",
    "ValidationEngine",
    "ValidationResult",
    "validate_character",
    "MulticlassEngine",
    "SpellProgressionEngine",
    "CharacterBuilder",
    "HitPointCalculator",
    "CharacterStore",
    "InMemoryCharacterStore",
    "JsonCharacterStore",
    "CharacterExporter",
    "ExportEnvelope",
    "ExportResult",
    "EngineSettings",
    "configure_logging",
    "RulesEngineError",
    "OperationError",
    "NotFoundError",
    "EligibilityError",
    "VersionMismatchError",
    "StaleExportError",
    "BackupTypeError",
    "CharacterBuilderError",
    "RuleTableError",
]
