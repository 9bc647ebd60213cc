# src/atlas_formflow/core/versioning/manager.py
"""
Version Manager — histórico append-only de snapshots de schema.

Este módulo mantém o histórico de versões de um schema de formulário:
cada snapshot guarda uma cópia profunda e imutável do schema, com
identidade, sequência, timestamp UTC, autor, nota, hash canônico e a lista
de mudanças em relação ao snapshot anterior.

Princípios fundamentais:
    - Snapshots são imutáveis (a cópia do schema é guardada como JSON canônico)
    - O histórico é append-only: não há edição nem poda
    - Rollback devolve uma cópia; não ativa sessão nem cria snapshot
    - O Event Log registra explicitamente snapshots e rollbacks

Invariantes:
    - `rollback(snapshot(s).id) == s`
    - `sequence` é contígua a partir de 1
    - Persistência JSON é determinística e faz round-trip

Limites explícitos:
    - Não valida o schema (responsabilidade do validador)
    - Não interage com o Data Engine
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from atlas_formflow.core.config.defaults import resolve_config
from atlas_formflow.core.errors import version_not_found
from atlas_formflow.core.exceptions import VersionNotFoundError
from atlas_formflow.core.schema.hashing import canonical_json, compute_schema_hash
from atlas_formflow.core.schema.model import FormSchema

from .diff import SchemaDiff, VersionChange, diff_schemas


HISTORY_FORMAT_VERSION = "1"


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


@dataclass(frozen=True)
class VersionSnapshot:
    """
    Snapshot imutável de um schema.

    `schema_json` guarda o schema em JSON canônico; `schema_copy` devolve
    sempre uma nova instância, de modo que alterações do chamador nunca
    atingem o histórico. `changes` é uma tupla.
    """

    id: str
    sequence: int
    schema_json: str
    timestamp: str
    author: str
    schema_hash: str
    note: str = ""
    changes: Tuple[VersionChange, ...] = ()

    @property
    def schema_copy(self) -> FormSchema:
        return FormSchema.from_dict(json.loads(self.schema_json))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sequence": self.sequence,
            "schema": json.loads(self.schema_json),
            "timestamp": self.timestamp,
            "author": self.author,
            "note": self.note,
            "schema_hash": self.schema_hash,
            "changes": [c.to_dict() for c in self.changes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionSnapshot":
        return cls(
            id=str(data["id"]),
            sequence=int(data["sequence"]),
            schema_json=canonical_json(data["schema"]),
            timestamp=str(data["timestamp"]),
            author=str(data.get("author", "")),
            note=str(data.get("note", "") or ""),
            schema_hash=str(data["schema_hash"]),
            changes=tuple(VersionChange.from_dict(c) for c in (data.get("changes", []) or [])),
        )


class VersionManager:
    """
    Histórico de versões de um schema de formulário.

    Args:
        config: Configuração parcial ou completa; usa
            `versioning.default_author` como autor padrão.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config = resolve_config(config)
        self._snapshots: List[VersionSnapshot] = []
        self._by_id: Dict[str, VersionSnapshot] = {}
        self.events: List[Dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    # -----------------------------
    # Event log
    # -----------------------------
    def add_event(self, *, event_type: str, ts: Optional[datetime] = None, payload: Optional[Dict[str, Any]] = None) -> None:
        ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts or datetime.now(timezone.utc))}
        if payload is not None:
            ev["payload"] = payload
        self.events.append(ev)

    # -----------------------------
    # Snapshots
    # -----------------------------
    def snapshot(self, schema: FormSchema, author: Optional[str] = None, note: Optional[str] = None) -> VersionSnapshot:
        """
        Registra um novo snapshot do schema.

        Args:
            schema: Schema a versionar (copiado profundamente).
            author: Autor; padrão `versioning.default_author`.
            note: Nota livre.

        Returns:
            VersionSnapshot recém-criado.
        """
        previous = self._snapshots[-1].schema_copy if self._snapshots else None
        data = schema.to_dict()

        snap = VersionSnapshot(
            id=uuid.uuid4().hex,
            sequence=len(self._snapshots) + 1,
            schema_json=canonical_json(data),
            timestamp=_iso(datetime.now(timezone.utc)),
            author=author or str(self.config["versioning"]["default_author"]),
            note=note or "",
            schema_hash=compute_schema_hash(data),
            changes=tuple(diff_schemas(previous, schema)),
        )
        self._snapshots.append(snap)
        self._by_id[snap.id] = snap

        self.add_event(
            event_type="snapshot_created",
            payload={
                "version_id": snap.id,
                "sequence": snap.sequence,
                "schema_hash": snap.schema_hash,
                "changes": len(snap.changes),
            },
        )
        return snap

    def get(self, version_id: str) -> VersionSnapshot:
        snap = self._by_id.get(version_id)
        if snap is None:
            payload = version_not_found(version_id=version_id)
            raise VersionNotFoundError(message=payload.message, details=payload.details, hint=payload.hint)
        return snap

    def history(self) -> List[VersionSnapshot]:
        return list(self._snapshots)

    def latest(self) -> Optional[VersionSnapshot]:
        return self._snapshots[-1] if self._snapshots else None

    def diff(self, v1_id: str, v2_id: str) -> SchemaDiff:
        """Mudanças do snapshot `v1_id` para o snapshot `v2_id`."""
        before = self.get(v1_id)
        after = self.get(v2_id)
        return SchemaDiff(
            from_id=before.id,
            to_id=after.id,
            changes=diff_schemas(before.schema_copy, after.schema_copy),
        )

    def rollback(self, version_id: str) -> FormSchema:
        """Devolve uma cópia do schema do snapshot; não cria snapshot novo."""
        snap = self.get(version_id)
        self.add_event(
            event_type="rollback",
            payload={"version_id": snap.id, "sequence": snap.sequence},
        )
        return snap.schema_copy

    # -----------------------------
    # Persistência
    # -----------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "format_version": HISTORY_FORMAT_VERSION,
            "snapshots": [s.to_dict() for s in self._snapshots],
            "events": [dict(e) for e in self.events],
        }

    def save_history(self, path: Union[str, Path]) -> Path:
        """
        Persiste o histórico em JSON (chaves ordenadas, indentado).

        Diretórios intermediários são criados automaticamente.
        """
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
        return p

    @classmethod
    def load_history(cls, path: Union[str, Path], config: Optional[Dict[str, Any]] = None) -> "VersionManager":
        """
        Reconstrói um VersionManager a partir de um histórico persistido.

        Raises:
            OSError: Em caso de falha de leitura do arquivo.
            json.JSONDecodeError: Em caso de JSON inválido.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        manager = cls(config=config)
        for raw in data.get("snapshots", []) or []:
            snap = VersionSnapshot.from_dict(raw)
            manager._snapshots.append(snap)
            manager._by_id[snap.id] = snap
        manager.events = [dict(e) for e in (data.get("events", []) or [])]
        return manager
