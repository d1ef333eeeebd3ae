"""
Error taxonomy for the rules engine.

Rule violations found by the validation pipeline are never raised: they are
collected as strings on a ValidationResult. The exceptions below signal that
an operation could not proceed at all (unknown character, ineligible
multiclass, incompatible or expired export, broken rule tables).
"""


class RulesEngineError(Exception):
    """Base class for every error raised by rulekeeper."""


class OperationError(RulesEngineError):
    """An operation was aborted before any rule evaluation could apply."""


class NotFoundError(OperationError):
    """Raised when no character exists for the requested id."""

    def __init__(self, character_id: str) -> None:
        super().__init__(f"Character '{character_id}' not found")
        self.character_id = character_id


class EligibilityError(OperationError):
    """Raised when a character is not eligible for the requested change."""


class VersionMismatchError(OperationError):
    """Raised when an export envelope was produced by an incompatible version."""


class StaleExportError(OperationError):
    """Raised when an export envelope is older than the accepted age."""


class BackupTypeError(OperationError):
    """Raised when restoring from an envelope that is not a full backup."""


class CharacterBuilderError(RulesEngineError):
    """Raised when starting stats cannot be generated."""


class RuleTableError(RulesEngineError):
    """Raised when the rule tables do not cover every class or race."""
