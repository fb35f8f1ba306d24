"""Migration phases and the orchestrator that sequences them."""

from provider_migration.engine.creator import CreationResult, create_providers
from provider_migration.engine.extractor import ExtractionResult, extract_descriptors
from provider_migration.engine.normalizer import build_descriptor
from provider_migration.engine.orchestrator import ProviderMigrationEngine, run_migration
from provider_migration.engine.rewriter import RewriteResult, rewrite_references
from provider_migration.engine.validator import validate_integrity

__all__ = [
    "CreationResult",
    "create_providers",
    "ExtractionResult",
    "extract_descriptors",
    "build_descriptor",
    "ProviderMigrationEngine",
    "run_migration",
    "RewriteResult",
    "rewrite_references",
    "validate_integrity",
]
