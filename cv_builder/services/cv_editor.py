"""In-memory editing of a CV before it is saved."""

from typing import Any, Dict, Union

from cv_builder.models.cv_models import ROOT_FIELDS, CVData, SectionItem, SectionKey
from cv_builder.services.section_store import SECTION_DESCRIPTORS


class CVEditor:
    """
    Structural edits over a loaded or prefilled CV.

    Nothing here touches the store; call ``CVRepository.save(editor.snapshot())``
    to persist. A bad index or unknown field is a programming error and
    raises (IndexError, KeyError, or pydantic's ValidationError for bad values).
    """

    def __init__(self, cv: CVData):
        self.cv = cv.model_copy(deep=True)

    def _items(self, section: Union[SectionKey, str]) -> list:
        return self.cv.section(SectionKey(section))

    @staticmethod
    def _check_index(items: list, index: int) -> None:
        if not 0 <= index < len(items):
            raise IndexError(f"Item index {index} out of range (0..{len(items) - 1})")

    def add_item(self, section: Union[SectionKey, str], item: Union[SectionItem, Dict[str, Any]]) -> int:
        """
        Append an item to a section.

        Args:
            section: Section key
            item: Item model or field dict; any id or display order is dropped

        Returns:
            int: Index of the new item
        """
        descriptor = SECTION_DESCRIPTORS[SectionKey(section)]
        if isinstance(item, SectionItem):
            item = item.model_dump()
        data = {name: value for name, value in item.items() if name not in ("id", "display_order", "displayOrder")}
        items = self._items(section)
        items.append(descriptor.item_model.model_validate(data))
        return len(items) - 1

    def remove_item(self, section: Union[SectionKey, str], index: int) -> SectionItem:
        """Remove and return the item at ``index``; later items shift down."""
        items = self._items(section)
        self._check_index(items, index)
        return items.pop(index)

    def update_item(self, section: Union[SectionKey, str], index: int, patch: Dict[str, Any]) -> SectionItem:
        """
        Replace fields of one item.

        The patched item is validated again, so setting ``is_current`` clears
        ``end_date``.
        """
        descriptor = SECTION_DESCRIPTORS[SectionKey(section)]
        items = self._items(section)
        self._check_index(items, index)
        unknown = set(patch) - set(descriptor.item_model.model_fields)
        if unknown:
            raise KeyError(f"Unknown {descriptor.key.value} fields: {sorted(unknown)}")
        updated = descriptor.item_model.model_validate({**items[index].model_dump(), **patch})
        items[index] = updated
        return updated

    def move_item(self, section: Union[SectionKey, str], from_index: int, to_index: int) -> None:
        """Move one item to a new position, keeping the others in order."""
        items = self._items(section)
        self._check_index(items, from_index)
        self._check_index(items, to_index)
        items.insert(to_index, items.pop(from_index))

    def set_root_field(self, field: str, value: Any) -> None:
        """Set summary, citizenship, work_permit_status or has_driving_license."""
        if field not in ROOT_FIELDS:
            raise KeyError(f"Unknown CV field: {field}")
        validated = CVData.model_validate({field: value})
        setattr(self.cv, field, getattr(validated, field))

    def mark_saved(self, cv_id: str) -> None:
        """Record the id assigned by the first save."""
        self.cv.id = cv_id

    def snapshot(self) -> CVData:
        """Independent copy of the current CV, for saving or rendering."""
        return self.cv.model_copy(deep=True)
