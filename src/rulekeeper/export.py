"""
Character export envelope: export, import, backup and restore.

An envelope carries a sanitized character (no id, status or campaign link)
plus the validation result at export time. Import checks the envelope
version and age before anything else, then assigns a fresh id and re-runs
the full validation pipeline.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from pydantic import BaseModel, Field, ValidationError

from .config import DEFAULT_EXPORT_VERSION, DEFAULT_MAX_EXPORT_AGE_MS
from .errors import BackupTypeError, StaleExportError, VersionMismatchError
from .models import Character, new_id
from .validation import LifecycleResult, ValidationEngine, ValidationResult

logger = logging.getLogger("rulekeeper")

# Fields never written to an envelope
SANITIZED_FIELDS = {"id", "status", "campaign_id"}
FULL_BACKUP = "full"


def _now_ms() -> int:
    return int(time.time() * 1000)


class ExportMetadata(BaseModel):
    validation_result: ValidationResult
    export_version: str
    backup_type: str | None = None


class ExportEnvelope(BaseModel):
    """Portable, versioned character payload."""
    version: str
    export_id: str = Field(default_factory=new_id)
    timestamp: int = Field(description="Creation time in epoch milliseconds")
    character: dict[str, Any]
    metadata: ExportMetadata


class ExportResult(BaseModel):
    success: bool
    envelope: ExportEnvelope | None = None
    errors: list[str] = Field(default_factory=list)


class CharacterExporter:
    """Produce and consume export envelopes.

    Args:
        validator: Validation pipeline run on export and import.
        version: Envelope version written on export and required on import.
        max_age_ms: Oldest envelope accepted on import.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        validator: ValidationEngine | None = None,
        version: str = DEFAULT_EXPORT_VERSION,
        max_age_ms: int = DEFAULT_MAX_EXPORT_AGE_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.validator = validator or ValidationEngine()
        self.version = version
        self.max_age_ms = max_age_ms
        self.clock = clock or _now_ms

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_character(self, character: Character) -> ExportResult:
        """Export a valid character. Invalid characters are refused."""
        validation = self.validator.validate_character(character)
        if not validation.is_valid:
            logger.warning(
                f"⚠️ Export of {character.name!r} refused: {len(validation.errors)} validation errors"
            )
            return ExportResult(success=False, errors=list(validation.errors))

        now = self.clock()
        payload = character.model_dump(mode="json", exclude=SANITIZED_FIELDS)
        payload["exported_at"] = now

        envelope = ExportEnvelope(
            version=self.version,
            timestamp=now,
            character=payload,
            metadata=ExportMetadata(
                validation_result=validation,
                export_version=self.version,
            ),
        )
        logger.debug(f"📦 Exported {character.name!r} as {envelope.export_id}")
        return ExportResult(success=True, envelope=envelope)

    def create_backup(self, character: Character) -> ExportResult:
        """Export with the metadata marked as a full backup."""
        result = self.export_character(character)
        if result.envelope is not None:
            result.envelope.metadata.backup_type = FULL_BACKUP
        return result

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_character(self, envelope: ExportEnvelope | dict[str, Any]) -> LifecycleResult:
        """Rebuild a character from an envelope under a fresh id.

        Returns:
            LifecycleResult carrying the imported character and the outcome
            of the validation pipeline. Nothing is persisted here.

        Raises:
            VersionMismatchError: If the envelope version differs.
            StaleExportError: If the envelope is older than max_age_ms.
        """
        if not isinstance(envelope, ExportEnvelope):
            envelope = ExportEnvelope.model_validate(envelope)

        if envelope.version != self.version:
            raise VersionMismatchError(
                f"Incompatible export version '{envelope.version}' (expected '{self.version}')"
            )
        age = self.clock() - envelope.timestamp
        if age > self.max_age_ms:
            raise StaleExportError(f"Export data is too old ({age} ms)")

        data = {k: v for k, v in envelope.character.items() if k not in SANITIZED_FIELDS}
        data.pop("exported_at", None)
        data["id"] = new_id()

        try:
            character = Character.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            logger.warning(f"⚠️ Import of {envelope.export_id} rejected: malformed character data")
            return LifecycleResult(success=False, errors=errors)

        validation = self.validator.validate_character(character)
        logger.debug(
            f"📥 Imported {character.name!r} from {envelope.export_id} as {character.id} "
            f"(valid={validation.is_valid})"
        )
        return LifecycleResult.from_validation(character, validation)

    def restore_from_backup(self, envelope: ExportEnvelope | dict[str, Any]) -> LifecycleResult:
        """Import an envelope created by create_backup.

        Raises:
            BackupTypeError: If the envelope is not a full backup.
        """
        if not isinstance(envelope, ExportEnvelope):
            envelope = ExportEnvelope.model_validate(envelope)
        if envelope.metadata.backup_type != FULL_BACKUP:
            raise BackupTypeError(f"Invalid backup type: {envelope.metadata.backup_type!r}")
        return self.import_character(envelope)
