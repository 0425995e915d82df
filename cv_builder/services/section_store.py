"""Generic repository over one CV section table."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Type

from cv_builder.models.cv_models import (
    Certification,
    Education,
    Language,
    Project,
    SectionItem,
    SectionKey,
    Skill,
    WorkExperience,
)
from cv_builder.services.backing_store import SECTION_PARENT_COLUMN, BackingStore, Row
from cv_builder.services.errors import SectionWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionDescriptor:
    """Shape of one section: its key, table, item model and display title."""

    key: SectionKey
    table: str
    item_model: Type[SectionItem]
    title: str

    @property
    def columns(self) -> List[str]:
        return [name for name in self.item_model.model_fields if name not in ("id", "display_order")]


SECTION_DESCRIPTORS: Dict[SectionKey, SectionDescriptor] = {
    descriptor.key: descriptor
    for descriptor in (
        SectionDescriptor(SectionKey.WORK_EXPERIENCE, "cv_work_experience", WorkExperience, "Work Experience"),
        SectionDescriptor(SectionKey.EDUCATION, "cv_education", Education, "Education"),
        SectionDescriptor(SectionKey.SKILLS, "cv_skills", Skill, "Skills"),
        SectionDescriptor(SectionKey.LANGUAGES, "cv_languages", Language, "Languages"),
        SectionDescriptor(SectionKey.CERTIFICATIONS, "cv_certifications", Certification, "Certifications"),
        SectionDescriptor(SectionKey.PROJECTS, "cv_projects", Project, "Projects"),
    )
}


class SectionStore:
    """
    Reads and replaces the items of one section for a CV.

    Writes use replace-on-write: every existing row for the CV is deleted and
    the current list is inserted with ``display_order`` = list position.
    """

    def __init__(self, store: BackingStore, descriptor: SectionDescriptor):
        self.store = store
        self.descriptor = descriptor

    @property
    def key(self) -> SectionKey:
        return self.descriptor.key

    def to_rows(self, cv_id: str, items: Sequence[SectionItem]) -> List[Row]:
        """Serialize items, numbering them 0..N-1 in list order."""
        rows = []
        for index, item in enumerate(items):
            item = self.descriptor.item_model.model_validate(item)
            row = item.model_dump(mode="json", include=set(self.descriptor.columns))
            row[SECTION_PARENT_COLUMN] = cv_id
            row["display_order"] = index
            rows.append(row)
        return rows

    def from_row(self, row: Row) -> SectionItem:
        fields = {name: row.get(name) for name in self.descriptor.columns if name in row}
        return self.descriptor.item_model.model_validate(
            {**fields, "id": row.get("id"), "display_order": row.get("display_order")}
        )

    async def list_by_parent(self, cv_id: str) -> List[SectionItem]:
        """
        Load the section items of a CV.

        Args:
            cv_id: Root record id

        Returns:
            List of items sorted by display order
        """
        rows = await self.store.list_by_parent(self.descriptor.table, cv_id, order_by="display_order")
        items = [self.from_row(row) for row in rows]
        items.sort(key=lambda item: item.display_order if item.display_order is not None else len(items))
        return items

    async def replace_all(self, cv_id: str, items: Sequence[SectionItem]) -> int:
        """
        Replace every stored item of this section with ``items``.

        Args:
            cv_id: Root record id
            items: Items in presentation order

        Returns:
            int: Number of rows inserted

        Raises:
            SectionWriteError: If an item is invalid (nothing is deleted), or
                the delete or the insert fails. When the insert fails the
                section stays empty.
        """
        try:
            rows = self.to_rows(cv_id, items)
        except ValueError as e:
            raise SectionWriteError(self.key, "validate", e) from e

        try:
            await self.store.delete_by_parent(self.descriptor.table, cv_id)
        except Exception as e:
            raise SectionWriteError(self.key, "delete", e) from e

        if not rows:
            return 0

        try:
            await self.store.bulk_insert(self.descriptor.table, rows)
        except Exception as e:
            raise SectionWriteError(self.key, "insert", e) from e

        logger.debug("Stored %d %s rows for CV %s", len(rows), self.key.value, cv_id)
        return len(rows)


def build_section_stores(store: BackingStore) -> Dict[SectionKey, SectionStore]:
    """One SectionStore per section, in fixed section order."""
    return {key: SectionStore(store, descriptor) for key, descriptor in SECTION_DESCRIPTORS.items()}
