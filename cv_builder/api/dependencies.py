"""Shared dependencies for API routes."""

import logging
from typing import Optional

from cv_builder.config import settings
from cv_builder.services.backing_store import BackingStore, InMemoryStore, YamlFileStore
from cv_builder.services.cv_generator import CVGenerator
from cv_builder.services.cv_repository import CVRepository
from cv_builder.services.document_renderer import DocumentRenderer
from cv_builder.services.pdf_generator import PDFGenerator
from cv_builder.services.prefill_resolver import PrefillResolver
from cv_builder.services.profile_loader import ProfileLoader, get_profile_loader

logger = logging.getLogger(__name__)

_store: Optional[BackingStore] = None
_repository: Optional[CVRepository] = None
_cv_generator: Optional[CVGenerator] = None
_pdf_generator: Optional[PDFGenerator] = None


def get_store() -> BackingStore:
    global _store
    if _store is None:
        if settings.store_backend == "yaml":
            _store = YamlFileStore(settings.data_dir / "store")
        else:
            _store = InMemoryStore()
        logger.info("Using %s backing store", settings.store_backend)
    return _store


def get_repository() -> CVRepository:
    global _repository
    if _repository is None:
        _repository = CVRepository(get_store())
    return _repository


def get_profiles() -> ProfileLoader:
    return get_profile_loader()


def get_prefill_resolver() -> PrefillResolver:
    return PrefillResolver()


def get_document_renderer() -> DocumentRenderer:
    return DocumentRenderer()


def get_cv_generator() -> CVGenerator:
    global _cv_generator
    if _cv_generator is None:
        _cv_generator = CVGenerator()
    return _cv_generator


def get_pdf_generator() -> PDFGenerator:
    global _pdf_generator
    if _pdf_generator is None:
        _pdf_generator = PDFGenerator(get_cv_generator())
    return _pdf_generator
