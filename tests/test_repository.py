"""Tests for loading and saving CVs through the repository."""

import asyncio
import logging
from contextlib import aclosing

import pytest

from conftest import PROFESSIONAL_ID, FlakyStore, section_contents
from cv_builder.models.cv_models import CVData, SectionKey, Skill
from cv_builder.models.load_models import CVNotFound, Merged, RootOnly
from cv_builder.services.cv_editor import CVEditor
from cv_builder.services.cv_repository import CVRepository
from cv_builder.services.errors import PartialSaveError, PersistenceError

SECTION_TABLES = [
    "cv_work_experience",
    "cv_education",
    "cv_skills",
    "cv_languages",
    "cv_certifications",
    "cv_projects",
]


async def collect(repository, professional_id=PROFESSIONAL_ID):
    async with aclosing(repository.load(professional_id)) as events:
        return [event async for event in events]


@pytest.mark.asyncio
async def test_load_without_cv_signals_not_found(repository):
    """Test that a professional without a CV gets a not-found signal."""
    events = await collect(repository)
    assert len(events) == 1
    assert isinstance(events[0], CVNotFound)
    assert events[0].professional_id == PROFESSIONAL_ID
    assert await repository.load_merged(PROFESSIONAL_ID) is None


@pytest.mark.asyncio
async def test_round_trip(repository, sample_cv):
    """Test that saved sections load back identically and in order."""
    cv_id = await repository.save(sample_cv)
    merged = await repository.load_merged(PROFESSIONAL_ID)

    assert merged.cv.id == cv_id
    assert not merged.degraded
    assert merged.cv.root_fields() == sample_cv.root_fields()
    for key in SectionKey:
        assert section_contents(merged.cv.section(key)) == section_contents(sample_cv.section(key))


@pytest.mark.asyncio
async def test_first_save_assigns_id_and_later_saves_keep_it(repository, sample_cv):
    """Test that the root is created once and then updated in place."""
    first = await repository.save(sample_cv)
    sample_cv.summary = "Updated"
    second = await repository.save(sample_cv)

    assert first == second
    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert merged.cv.summary == "Updated"


@pytest.mark.asyncio
async def test_display_order_is_gapless_after_edits(repository, sample_cv):
    """Test that reordered and removed items are stored as 0..N-1."""
    editor = CVEditor(sample_cv)
    editor.add_item(SectionKey.SKILLS, {"skill_name": "Python", "category": "Programming"})
    editor.remove_item(SectionKey.SKILLS, 1)
    editor.move_item(SectionKey.SKILLS, 2, 0)

    await repository.save(editor.snapshot())
    merged = await repository.load_merged(PROFESSIONAL_ID)

    assert [skill.skill_name for skill in merged.cv.skills] == ["Python", "Go", "Rust"]
    assert [skill.display_order for skill in merged.cv.skills] == [0, 1, 2]


@pytest.mark.asyncio
async def test_save_is_idempotent(repository, store, sample_cv):
    """Test that saving twice looks the same as saving once."""
    await repository.save(sample_cv)
    once = await repository.load_merged(PROFESSIONAL_ID)
    await repository.save(sample_cv)
    twice = await repository.load_merged(PROFESSIONAL_ID)

    for key in SectionKey:
        assert section_contents(twice.cv.section(key)) == section_contents(once.cv.section(key))
    assert len(store.rows("cv_skills")) == len(sample_cv.skills)
    assert len(store.rows("professional_cvs")) == 1


@pytest.mark.asyncio
async def test_load_yields_root_before_sections(repository, store, sample_cv):
    """Test that the root-only view arrives before the merged view."""
    await repository.save(sample_cv)
    for table in SECTION_TABLES:
        store.gates[table] = asyncio.Event()

    async with aclosing(repository.load(PROFESSIONAL_ID)) as events:
        first = await events.__anext__()
        assert isinstance(first, RootOnly)
        assert first.cv.summary == sample_cv.summary
        assert not first.cv.sections_loaded
        assert all(first.cv.section(key) == [] for key in SectionKey)

        for gate in store.gates.values():
            gate.set()

        second = await events.__anext__()
        assert isinstance(second, Merged)
        assert second.cv.sections_loaded
        assert len(second.cv.skills) == 3

    # the root-only event is not modified by the merge
    assert first.cv.skills == []


@pytest.mark.asyncio
async def test_section_fetches_run_concurrently(repository, store, sample_cv):
    """Test that all six section fetches are in flight at once."""
    await repository.save(sample_cv)
    for table in SECTION_TABLES:
        store.gates[table] = asyncio.Event()
    store.calls.clear()

    async with aclosing(repository.load(PROFESSIONAL_ID)) as events:
        await events.__anext__()
        await asyncio.sleep(0)
        listed = [table for operation, table in store.calls if operation == "list"]
        assert sorted(listed) == sorted(SECTION_TABLES)
        for gate in store.gates.values():
            gate.set()
        await events.__anext__()


@pytest.mark.asyncio
async def test_abandoned_load_cancels_section_fetches(repository, store, sample_cv):
    """Test that closing the load after the root-only phase cancels pending fetches."""
    await repository.save(sample_cv)
    for table in SECTION_TABLES:
        store.gates[table] = asyncio.Event()

    events = repository.load(PROFESSIONAL_ID)
    first = await events.__anext__()
    assert isinstance(first, RootOnly)
    await asyncio.sleep(0)
    await events.aclose()

    assert sorted(store.cancelled) == sorted(SECTION_TABLES)


@pytest.mark.asyncio
async def test_failed_section_fetch_degrades_load(repository, store, sample_cv):
    """Test that one failing section is reported and shown empty."""
    await repository.save(sample_cv)
    store.fail.add(("list", "cv_projects"))

    merged = await repository.load_merged(PROFESSIONAL_ID)

    assert merged.degraded
    assert merged.failed_sections == [SectionKey.PROJECTS]
    assert "injected failure" in merged.warnings[0].message
    assert merged.cv.projects == []
    assert len(merged.cv.work_experience) == 2
    assert len(merged.cv.skills) == 3


@pytest.mark.asyncio
async def test_empty_sections_are_not_degraded(repository):
    """Test that a CV without sections loads cleanly."""
    await repository.save(CVData(professional_id=PROFESSIONAL_ID, summary="Just a summary"))
    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert not merged.degraded
    assert all(merged.cv.section(key) == [] for key in SectionKey)


@pytest.mark.asyncio
async def test_root_failure_writes_nothing(repository, store, sample_cv):
    """Test that a failed root upsert stops the save before any section write."""
    store.fail.add(("upsert", "professional_cvs"))

    with pytest.raises(PersistenceError) as exc_info:
        await repository.save(sample_cv)

    error = exc_info.value
    assert not isinstance(error, PartialSaveError)
    assert error.step == "upsert_root"
    assert error.nothing_saved
    assert not any(operation in ("delete", "insert") for operation, _ in store.calls)
    assert await repository.load_merged(PROFESSIONAL_ID) is None


@pytest.mark.asyncio
async def test_certification_insert_failure_keeps_other_sections(repository, store, sample_cv):
    """Test that a failed certifications insert is reported while other sections are saved."""
    await repository.save(sample_cv)
    store.fail.add(("insert", "cv_certifications"))
    sample_cv.skills.append(Skill(skill_name="Python", category="Programming"))

    with pytest.raises(PartialSaveError) as exc_info:
        await repository.save(sample_cv)

    error = exc_info.value
    assert not error.nothing_saved
    assert error.failed_sections == [SectionKey.CERTIFICATIONS]
    assert error.step == "certifications.insert"
    assert SectionKey.EDUCATION in error.saved_sections
    assert SectionKey.CERTIFICATIONS not in error.saved_sections

    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert merged.cv.id == error.cv_id
    assert merged.cv.certifications == []
    assert len(merged.cv.education) == 1
    assert [skill.skill_name for skill in merged.cv.skills] == ["Go", "Welding", "Rust", "Python"]

    # saving again repairs the section
    store.fail.clear()
    await repository.save(sample_cv)
    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert len(merged.cv.certifications) == 1


@pytest.mark.asyncio
async def test_multiple_section_failures_are_all_reported(repository, store, sample_cv):
    """Test that every failing section is collected and siblings still run."""
    store.fail.update({("delete", "cv_skills"), ("insert", "cv_projects")})

    with pytest.raises(PartialSaveError) as exc_info:
        await repository.save(sample_cv)

    error = exc_info.value
    assert error.failed_sections == [SectionKey.SKILLS, SectionKey.PROJECTS]
    assert error.step == "skills.delete"
    assert len(error.saved_sections) == 4


@pytest.mark.asyncio
async def test_root_written_before_sections(repository, store, sample_cv):
    """Test that the root upsert precedes every section operation."""
    await repository.save(sample_cv)
    operations = [operation for operation, _ in store.calls]
    assert operations[0] == "upsert"
    assert operations.count("upsert") == 1
    assert operations.count("delete") == 6


@pytest.mark.asyncio
async def test_save_uses_snapshot_taken_at_start(sample_cv):
    """Test that edits made while a save is in flight are not persisted."""
    repository = CVRepository(FlakyStore(latency=0.01))
    task = asyncio.create_task(repository.save(sample_cv))
    await asyncio.sleep(0)
    sample_cv.skills.append(Skill(skill_name="Late"))
    sample_cv.summary = "Changed mid-save"
    await task

    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert merged.cv.summary == "Backend engineer."
    assert [skill.skill_name for skill in merged.cv.skills] == ["Go", "Welding", "Rust"]


@pytest.mark.asyncio
async def test_cancelled_save_still_completes(sample_cv):
    """Test that cancelling the caller does not interrupt a save in flight."""
    repository = CVRepository(FlakyStore(latency=0.01))
    task = asyncio.create_task(repository.save(sample_cv))
    await asyncio.sleep(0.005)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    await asyncio.sleep(0.2)
    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert merged is not None
    assert len(merged.cv.certifications) == 1
    assert len(merged.cv.skills) == 3


@pytest.mark.asyncio
async def test_save_requires_owner(repository):
    """Test that a CV without a professional id cannot be saved."""
    with pytest.raises(ValueError, match="professional id"):
        await repository.save(CVData(summary="orphan"))


@pytest.mark.asyncio
async def test_save_with_explicit_owner(repository):
    """Test that the owner key may be given separately from the CV."""
    cv_id = await repository.save(CVData(summary="Mine"), professional_id="pro-2")
    merged = await repository.load_merged("pro-2")
    assert merged.cv.id == cv_id
    assert merged.cv.professional_id == "pro-2"


@pytest.mark.asyncio
async def test_overlapping_saves_do_not_duplicate_items(sample_cv):
    """Test that two saves in flight at once leave exactly the later CV."""
    repository = CVRepository(FlakyStore(latency=0.01))
    await repository.save(sample_cv)
    later = sample_cv.model_copy(deep=True)
    later.skills = later.skills[:2]

    await asyncio.gather(repository.save(sample_cv), repository.save(later))

    merged = await repository.load_merged(PROFESSIONAL_ID)
    assert [skill.skill_name for skill in merged.cv.skills] == ["Go", "Welding"]
    assert [skill.display_order for skill in merged.cv.skills] == [0, 1]
    assert len(merged.cv.work_experience) == 2


@pytest.mark.asyncio
async def test_cancelled_save_failure_is_logged(sample_cv, caplog):
    """Test that a save that fails after its caller went away still reports the failure."""
    store = FlakyStore(latency=0.01)
    store.fail.add(("insert", "cv_certifications"))
    repository = CVRepository(store)

    task = asyncio.create_task(repository.save(sample_cv))
    await asyncio.sleep(0.005)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    with caplog.at_level(logging.ERROR, logger="cv_builder.services.cv_repository"):
        await asyncio.sleep(0.2)

    assert any("Detached CV save failed" in record.getMessage() for record in caplog.records)
    assert "certifications" in caplog.text
