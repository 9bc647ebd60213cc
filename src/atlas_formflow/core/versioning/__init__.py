"""Atlas FormFlow — Versioning (core).

Histórico append-only de snapshots de schema, diff estrutural entre
versões, rollback por cópia e persistência JSON do histórico.
"""

from .diff import ChangeKind, ChangeTarget, SchemaDiff, VersionChange, diff_schemas  # noqa: F401
from .manager import VersionManager, VersionSnapshot  # noqa: F401
