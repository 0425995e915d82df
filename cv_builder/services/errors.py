"""Exceptions raised while persisting and rendering CVs."""

from typing import List, Optional, Sequence

from cv_builder.models.cv_models import SectionKey


class CVStoreError(Exception):
    """Base class for CV persistence errors."""


class StoreOperationError(CVStoreError):
    """A backing store primitive failed."""

    def __init__(self, table: str, operation: str, message: str):
        self.table = table
        self.operation = operation
        super().__init__(f"{operation} on {table} failed: {message}")


class PersistenceError(CVStoreError):
    """
    Saving the CV failed.

    Raised as-is when the root upsert fails, in which case nothing was
    written. ``step`` names the first step that failed.
    """

    def __init__(self, step: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.step = step
        self.cause = cause
        super().__init__(message or f"Error saving CV at step '{step}': {cause}")

    @property
    def nothing_saved(self) -> bool:
        return True


class SectionWriteError(CVStoreError):
    """Delete or insert of one section failed after the root was written."""

    def __init__(self, section: SectionKey, step: str, cause: BaseException):
        self.section = SectionKey(section)
        self.step = step
        self.cause = cause
        super().__init__(f"Failed to {step} {self.section.value}: {cause}")


class PartialSaveError(PersistenceError):
    """
    The root was written but one or more sections were not.

    Sections listed in ``saved_sections`` are persisted and are not rolled
    back. A failed section may be left empty; saving again repairs it.
    """

    def __init__(
        self,
        cv_id: str,
        section_errors: Sequence[SectionWriteError],
        saved_sections: Sequence[SectionKey],
    ):
        self.cv_id = cv_id
        self.section_errors: List[SectionWriteError] = list(section_errors)
        self.saved_sections: List[SectionKey] = list(saved_sections)
        first = self.section_errors[0]
        failed = ", ".join(error.section.value for error in self.section_errors)
        super().__init__(
            step=f"{first.section.value}.{first.step}",
            cause=first.cause,
            message=f"CV {cv_id} saved partially, failed sections: {failed}",
        )

    @property
    def nothing_saved(self) -> bool:
        return False

    @property
    def failed_sections(self) -> List[SectionKey]:
        return [error.section for error in self.section_errors]


class IncompleteDocumentError(ValueError):
    """A root-only CV was passed where a fully merged one is required."""


class ProfileNotFoundError(LookupError):
    """The profile collaborator has no profile for this professional."""
