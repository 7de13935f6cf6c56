from archivist.config import CleanupContext
from archivist.engine import ArchiveEngine, MoveResult, RestoreReport
from archivist.manifest import Manifest, ManifestEntry, load_manifest, parse_entry, serialize_entry

__all__ = [
    "ArchiveEngine",
    "CleanupContext",
    "Manifest",
    "ManifestEntry",
    "MoveResult",
    "RestoreReport",
    "load_manifest",
    "parse_entry",
    "serialize_entry",
]
