# src/atlas_formflow/core/versioning/diff.py
"""
Diferença estrutural entre duas versões de um schema de formulário.

Granularidade (v1):
    - formulário: título, descrição, versão, layout (e id, se mudar)
    - campos: comparados por chave; atributos alterados são listados
    - regras: comparadas por id; atributos alterados são listados

Invariantes:
    - `diff_schemas` é pura e determinística
    - Ordem das mudanças: formulário, campos, regras; dentro de cada grupo,
      adições/alterações na ordem do schema novo e remoções na ordem do antigo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from atlas_formflow.core.schema.model import FormSchema


class ChangeKind(str, Enum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class ChangeTarget(str, Enum):
    FORM = "form"
    FIELD = "field"
    RULE = "rule"


_FORM_ATTRIBUTES = ("id", "title", "description", "version", "layout")


@dataclass(frozen=True)
class VersionChange:
    kind: ChangeKind
    target: ChangeTarget
    target_id: str
    details: Dict[str, Any] = field(default_factory=dict)
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "target": self.target.value,
            "target_id": self.target_id,
            "details": dict(self.details),
            "before": self.before,
            "after": self.after,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionChange":
        return cls(
            kind=ChangeKind(data["kind"]),
            target=ChangeTarget(data["target"]),
            target_id=str(data.get("target_id", "")),
            details=dict(data.get("details", {}) or {}),
            before=data.get("before"),
            after=data.get("after"),
        )


@dataclass(frozen=True)
class SchemaDiff:
    from_id: str
    to_id: str
    changes: List[VersionChange] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        counts = {k.value: 0 for k in ChangeKind}
        for c in self.changes:
            counts[c.kind.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_id": self.from_id,
            "to_id": self.to_id,
            "changes": [c.to_dict() for c in self.changes],
            "summary": self.summary,
        }


def _changed_attributes(before: Dict[str, Any], after: Dict[str, Any]) -> List[str]:
    keys = list(before.keys()) + [k for k in after.keys() if k not in before]
    return [k for k in keys if before.get(k) != after.get(k)]


def _diff_items(
    target: ChangeTarget,
    old: Dict[str, Dict[str, Any]],
    new: Dict[str, Dict[str, Any]],
) -> List[VersionChange]:
    changes: List[VersionChange] = []
    for item_id, after in new.items():
        before = old.get(item_id)
        if before is None:
            changes.append(VersionChange(ChangeKind.ADDED, target, item_id, after=after))
            continue
        attrs = _changed_attributes(before, after)
        if attrs:
            changes.append(
                VersionChange(ChangeKind.CHANGED, target, item_id, {"attributes": attrs}, before=before, after=after)
            )
    for item_id, before in old.items():
        if item_id not in new:
            changes.append(VersionChange(ChangeKind.REMOVED, target, item_id, before=before))
    return changes


def diff_schemas(old: Optional[FormSchema], new: FormSchema) -> List[VersionChange]:
    """
    Lista as mudanças de `old` para `new`.

    Com `old=None` (primeiro snapshot), o formulário, cada campo e cada regra
    aparecem como "added".
    """
    new_d = new.to_dict()
    new_fields = {f["key"]: f for f in new_d["fields"]}
    new_rules = {r["id"]: r for r in new_d["rules"]}

    if old is None:
        form_after = {k: new_d[k] for k in _FORM_ATTRIBUTES}
        changes = [VersionChange(ChangeKind.ADDED, ChangeTarget.FORM, new.id, after=form_after)]
        changes.extend(VersionChange(ChangeKind.ADDED, ChangeTarget.FIELD, k, after=v) for k, v in new_fields.items())
        changes.extend(VersionChange(ChangeKind.ADDED, ChangeTarget.RULE, k, after=v) for k, v in new_rules.items())
        return changes

    old_d = old.to_dict()
    changes = []

    form_before = {k: old_d[k] for k in _FORM_ATTRIBUTES}
    form_after = {k: new_d[k] for k in _FORM_ATTRIBUTES}
    attrs = _changed_attributes(form_before, form_after)
    if attrs:
        changes.append(
            VersionChange(
                ChangeKind.CHANGED,
                ChangeTarget.FORM,
                new.id,
                {"attributes": attrs},
                before={a: form_before[a] for a in attrs},
                after={a: form_after[a] for a in attrs},
            )
        )

    changes.extend(_diff_items(ChangeTarget.FIELD, {f["key"]: f for f in old_d["fields"]}, new_fields))
    changes.extend(_diff_items(ChangeTarget.RULE, {r["id"]: r for r in old_d["rules"]}, new_rules))
    return changes
