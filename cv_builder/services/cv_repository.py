"""Repository that loads and saves a CV as one aggregate."""

import asyncio
import logging
from collections import defaultdict
from contextlib import aclosing
from typing import AsyncIterator, Dict, List, Optional

from cv_builder.models.cv_models import ROOT_FIELDS, CVData, SectionKey
from cv_builder.models.load_models import CVNotFound, LoadEvent, Merged, PartialLoadDegraded, RootOnly
from cv_builder.services.backing_store import ROOT_TABLE, BackingStore, Row
from cv_builder.services.errors import PartialSaveError, PersistenceError, SectionWriteError
from cv_builder.services.section_store import SectionStore, build_section_stores

logger = logging.getLogger(__name__)


class CVRepository:
    """
    Loads and saves a CV root together with its six sections.

    There is no cross-table transaction. A save writes the root first, then
    replaces each section independently; a concurrent reader may briefly see
    the new root next to a stale or empty section. Saves for the same
    professional are queued, so the last one to start wins.
    """

    def __init__(self, store: BackingStore):
        """
        Initialize the repository.

        Args:
            store: Backing store handle, owned by the caller
        """
        self.store = store
        self.sections: Dict[SectionKey, SectionStore] = build_section_stores(store)
        self._save_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @staticmethod
    def _root_to_cv(root: Row, sections_loaded: bool = True) -> CVData:
        fields = {name: root[name] for name in ROOT_FIELDS if root.get(name) is not None}
        return CVData(
            id=root["id"],
            professional_id=root.get("professional_id"),
            sections_loaded=sections_loaded,
            **fields,
        )

    async def load(self, professional_id: str) -> AsyncIterator[LoadEvent]:
        """
        Load a CV in two phases.

        Yields ``CVNotFound`` if the professional has no CV yet. Otherwise
        yields ``RootOnly`` as soon as the root is read, then ``Merged`` once
        all six section fetches have finished. A failed section fetch is
        reported in ``Merged.warnings`` and that section is left empty.

        Section fetches start before ``RootOnly`` is handed out. Closing the
        generator early (``aclose()`` or leaving an ``aclosing`` block)
        cancels the fetches still in flight.

        Args:
            professional_id: Owning professional's key
        """
        root = await self.store.get_by_parent(ROOT_TABLE, professional_id)
        if root is None:
            logger.info("No CV found for professional %s", professional_id)
            yield CVNotFound(professional_id=professional_id)
            return

        cv_id = root["id"]
        tasks = {
            key: asyncio.create_task(section.list_by_parent(cv_id), name=f"load-{key.value}")
            for key, section in self.sections.items()
        }
        try:
            yield RootOnly(cv=self._root_to_cv(root, sections_loaded=False))

            await asyncio.gather(*tasks.values(), return_exceptions=True)

            merged = self._root_to_cv(root)
            warnings: List[PartialLoadDegraded] = []
            for key, task in tasks.items():
                error = asyncio.CancelledError("section fetch cancelled") if task.cancelled() else task.exception()
                if error is not None:
                    logger.warning("Error loading %s for CV %s: %s", key.value, cv_id, error)
                    warnings.append(PartialLoadDegraded(section=key, message=str(error) or type(error).__name__))
                    continue
                setattr(merged, key.value, task.result())

            if warnings:
                logger.warning("CV %s loaded with %d failed sections", cv_id, len(warnings))
            else:
                logger.info("CV %s loaded with all sections", cv_id)
            yield Merged(cv=merged, warnings=warnings)
        finally:
            pending = [task for task in tasks.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                logger.info("Discarding %d in-flight section fetches for CV %s", len(pending), cv_id)
                await asyncio.gather(*pending, return_exceptions=True)

    async def load_merged(self, professional_id: str) -> Optional[Merged]:
        """
        Load a CV and return only its fully merged form.

        Returns:
            Merged event, or None if the professional has no CV yet
        """
        async with aclosing(self.load(professional_id)) as events:
            async for event in events:
                if isinstance(event, Merged):
                    return event
        return None

    async def save(self, cv: CVData, professional_id: Optional[str] = None) -> str:
        """
        Persist the whole CV.

        The CV is copied when the call starts; later edits to ``cv`` do not
        affect this save. Once started, the save runs to completion even if
        the caller is cancelled.

        Args:
            cv: Aggregate to store
            professional_id: Owner key. Defaults to ``cv.professional_id``.

        Returns:
            str: CV root id (newly assigned on first save)

        Raises:
            PersistenceError: Root upsert failed; nothing was written
            PartialSaveError: Root written, one or more sections failed
        """
        snapshot = cv.model_copy(deep=True)
        owner = professional_id or snapshot.professional_id
        if not owner:
            raise ValueError("Cannot save a CV without a professional id")
        task = asyncio.ensure_future(self._save(owner, snapshot))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(self._report_detached_save)
            raise

    @staticmethod
    def _report_detached_save(task: "asyncio.Future[str]") -> None:
        """Log the outcome of a save whose caller was cancelled."""
        if task.cancelled():
            logger.error("Detached CV save was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error("Detached CV save failed: %s", error)
        else:
            logger.info("Detached CV save finished for CV %s", task.result())

    async def _save(self, professional_id: str, snapshot: CVData) -> str:
        # One save at a time per professional; section deletes and inserts never interleave
        async with self._save_locks[professional_id]:
            return await self._write(professional_id, snapshot)

    async def _write(self, professional_id: str, snapshot: CVData) -> str:
        try:
            root = await self.store.upsert_root(professional_id, snapshot.root_fields())
        except Exception as e:
            logger.error("Error saving CV root for professional %s: %s", professional_id, e)
            raise PersistenceError("upsert_root", e) from e

        cv_id = root["id"]
        logger.info("Saved CV root %s, writing sections", cv_id)

        keys = list(self.sections)
        results = await asyncio.gather(
            *(self.sections[key].replace_all(cv_id, snapshot.section(key)) for key in keys),
            return_exceptions=True,
        )

        errors: List[SectionWriteError] = []
        saved: List[SectionKey] = []
        for key, result in zip(keys, results):
            if isinstance(result, SectionWriteError):
                errors.append(result)
            elif isinstance(result, BaseException):
                errors.append(SectionWriteError(key, "write", result))
            else:
                saved.append(key)

        for error in errors:
            logger.warning("Section write failed for CV %s: %s", cv_id, error)

        if errors:
            raise PartialSaveError(cv_id, errors, saved)

        logger.info("CV %s saved with all sections", cv_id)
        return cv_id
