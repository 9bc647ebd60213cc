# src/atlas_formflow/core/runtime/engine.py
"""
Data Engine — estado vivo de uma sessão de preenchimento.

O Data Engine é dono do FormData (valores por chave) e do estado derivado
(visibilidade, obrigatoriedade e erros por campo) de uma única sessão, e
mantém ambos consistentes a cada escrita.

Fluxo de uma escrita (`set_value`):
    1. Rejeição atômica de chaves desconhecidas e campos calculados
    2. Escrita do valor
    3. Settle: passada única pela ordem topológica restrita aos
       descendentes da chave alterada
         - campos calculados recalculam quando uma origem mudou
         - grupos de visibilidade/obrigatoriedade (alvo + efeito) cujo
           gatilho mudou são reavaliados por inteiro
         - efeitos `set_value` são coletados por alvo e o vencedor (regra
           declarada por último) é escrito antes de o alvo ser visitado
    4. Revalidação de campos que já tinham erro de validação
    5. Uma única notificação (ChangeSet) aos assinantes, se algo mudou

Decisões arquiteturais:
    - Ciclos são rejeitados na construção; nunca há iteração até ponto fixo
    - Falhas são isoladas por campo: uma fórmula que falha mantém o último
      valor válido e registra COMPUTATION_ERROR; regras nunca lançam
    - Erros de runtime e de validação vivem em canais separados e são
      mesclados na leitura
    - Escritor único, sem locks; cada passo lê o FormData mais recente

Invariantes:
    - Visibilidade e obrigatoriedade são função do FormData atual
    - `settle()` é idempotente: um segundo settle não produz mudanças
    - A mesma sequência de escritas produz sempre o mesmo estado
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from atlas_formflow.core.config.defaults import resolve_config
from atlas_formflow.core.config.hashing import compute_config_hash
from atlas_formflow.core.errors import (
    AtlasErrorPayload,
    computation_error,
    computed_field_read_only,
    rule_evaluation_error,
    unknown_field,
)
from atlas_formflow.core.exceptions import (
    ComputedFieldReadOnlyError,
    CyclicDependencyError,
    UnknownFieldError,
)
from atlas_formflow.core.graph.dependency import build_dependency_graph, topological_order
from atlas_formflow.core.schema.hashing import compute_schema_hash
from atlas_formflow.core.schema.model import FieldSchema, FieldType, FormSchema, RuleEffect, RuleSchema

from .compute import ComputeEngine
from .context import SessionContext
from .rules import RuleEngine
from .types import (
    ASPECT_ERRORS,
    ASPECT_REQUIRED,
    ASPECT_VALUE,
    ASPECT_VISIBILITY,
    ChangeOrigin,
    ChangeSet,
    DerivedState,
    FieldChange,
    FormValidationResult,
)
from .validation import check_field


Listener = Callable[[ChangeSet], None]
_Snapshot = Tuple[Dict[str, Any], Dict[str, bool], Dict[str, bool], Dict[str, List[Dict[str, Any]]]]


def _same(a: Any, b: Any) -> bool:
    # 1 == 1.0 == True; o tipo também conta como mudança
    return type(a) is type(b) and a == b


class DataEngine:
    """
    Motor de dados de uma sessão de formulário.

    Args:
        schema: Schema ativo (imutável durante a sessão).
        initial_data: Valores iniciais por chave; sobrepõem os defaults.
        config: Configuração parcial ou completa (ver DEFAULT_CONFIG).
        context: SessionContext opcional (um novo é criado se ausente).

    Raises:
        SchemaValidationError: Se o schema tiver referências não resolvíveis.
        CyclicDependencyError: Se o grafo de dependências tiver ciclo.
        UnknownFieldError: Se `initial_data` contiver chave desconhecida.
        ComputedFieldReadOnlyError: Se `initial_data` escrever campo calculado.
        TypeError: Se o schema contiver valores não serializáveis em JSON
            (o validador os reporta antes da ativação).
    """

    def __init__(
        self,
        schema: FormSchema,
        initial_data: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        *,
        context: Optional[SessionContext] = None,
    ) -> None:
        self.schema = schema
        self.config = resolve_config(config)
        self.ctx = context or SessionContext(config=self.config)

        self._graph = build_dependency_graph(schema, strict=True)
        try:
            self._order: List[str] = topological_order(self._graph)
        except CyclicDependencyError as e:
            self.ctx.log(level="error", message="activation rejected", event="activation_rejected", cycle=e.cycle)
            raise

        self._fields: Dict[str, FieldSchema] = {f.key: f for f in schema.fields}
        self._types: Dict[str, FieldType] = {k: f.type for k, f in self._fields.items()}
        self._groups: Dict[Tuple[str, RuleEffect], List[Tuple[int, RuleSchema]]] = {}
        for i, rule in enumerate(schema.rules):
            self._groups.setdefault((rule.target_field, rule.effect), []).append((i, rule))

        compute_cfg = self.config.get("compute", {}) or {}
        runtime_cfg = self.config.get("runtime", {}) or {}
        self._rule_engine = RuleEngine()
        self._compute_engine = ComputeEngine(
            separator=compute_cfg.get("concat_separator") or "",
            precision=compute_cfg.get("precision"),
        )
        self._notify_on_validate = bool(runtime_cfg.get("notify_on_validate", True))
        self._revalidate_on_change = bool(runtime_cfg.get("revalidate_on_change", True))
        self._listeners: List[Listener] = []

        data = {f.key: self._default_of(f) for f in schema.fields}
        for key, value in (initial_data or {}).items():
            self._require_writable(key, operation="initial_data")
            data[key] = deepcopy(value)

        self._initial: Dict[str, Any] = deepcopy(data)
        self._data: Dict[str, Any] = data
        self._visibility: Dict[str, bool] = {f.key: f.visible for f in schema.fields}
        self._required: Dict[str, bool] = {f.key: f.constraints.required for f in schema.fields}
        self._compute_errors: Dict[str, List[Dict[str, Any]]] = {}
        self._rule_errors: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._validation_errors: Dict[str, List[Dict[str, Any]]] = {}

        self._settle_full()

        self.ctx.log(
            level="info",
            message="session activated",
            event="activated",
            schema_id=schema.id,
            schema_version=schema.version,
            schema_hash=compute_schema_hash(schema),
            config_hash=compute_config_hash(self.config),
            order=list(self._order),
        )

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------
    @property
    def order(self) -> List[str]:
        """Ordem topológica de avaliação (empates pela ordem de declaração)."""
        return list(self._order)

    def get_value(self, key: str) -> Any:
        self._require_field(key, operation="get_value")
        return deepcopy(self._data.get(key))

    def get_visibility(self, key: str) -> bool:
        self._require_field(key, operation="get_visibility")
        return self._visibility[key]

    def get_required(self, key: str) -> bool:
        self._require_field(key, operation="get_required")
        return self._required[key]

    def get_errors(self, key: str) -> List[Dict[str, Any]]:
        self._require_field(key, operation="get_errors")
        return deepcopy(self._merged_errors().get(key, []))

    def get_form_data(self) -> Dict[str, Any]:
        return deepcopy(self._data)

    def get_derived_state(self) -> DerivedState:
        return DerivedState(
            visibility=dict(self._visibility),
            required=dict(self._required),
            errors=deepcopy(self._merged_errors()),
        )

    # ------------------------------------------------------------------
    # Assinaturas
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registra um assinante; retorna a função que cancela a assinatura."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, changes: ChangeSet) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            listener(changes)

    # ------------------------------------------------------------------
    # Escrita
    # ------------------------------------------------------------------
    def set_value(self, key: str, value: Any) -> ChangeSet:
        """
        Escreve um valor do usuário e propaga o efeito pelo grafo.

        Returns:
            ChangeSet da operação (vazio quando nada mudou).

        Raises:
            UnknownFieldError: Chave não declarada (nenhuma mutação ocorre).
            ComputedFieldReadOnlyError: Campo calculado (nenhuma mutação ocorre).
        """
        self._require_writable(key, operation="set_value")

        if _same(self._data.get(key), value):
            self.ctx.log(level="debug", message="value unchanged", event="write_unchanged", field=key)
            return ChangeSet(trigger=key, origin=ChangeOrigin.USER)

        before = self._snapshot()
        self._data[key] = deepcopy(value)

        dirty: Set[str] = {key}
        nodes = self._graph.descendants(key)
        written = self._propagate(dirty, (k for k in self._order if k in nodes), full=False)

        self._revalidate(before)
        changes = self._diff(
            before,
            trigger=key,
            origin=ChangeOrigin.USER,
            user_keys={key},
            written=written,
        )
        self.ctx.log(
            level="info",
            message="value written",
            event="write",
            field=key,
            changed=changes.keys(),
        )
        self._notify(changes)
        return changes

    def settle(self) -> ChangeSet:
        """Reavaliação completa (sem efeitos set_value); idempotente."""
        before = self._snapshot()
        self._settle_full()
        self._revalidate(before)
        changes = self._diff(before, trigger=None, origin=ChangeOrigin.ENGINE)
        self.ctx.log(level="debug", message="settle completed", event="settle", changed=changes.keys())
        self._notify(changes)
        return changes

    def reset(self) -> ChangeSet:
        """Restaura o FormData inicial, limpa erros de validação e notifica."""
        before = self._snapshot()
        self._data = deepcopy(self._initial)
        self._validation_errors = {}
        self._rule_errors = {}
        self._settle_full()
        user_keys = {k for k, f in self._fields.items() if not f.is_computed}
        changes = self._diff(before, trigger=None, origin=ChangeOrigin.USER, user_keys=user_keys)
        self.ctx.log(level="info", message="session reset", event="reset", changed=changes.keys())
        self._notify(changes)
        return changes

    # ------------------------------------------------------------------
    # Validação
    # ------------------------------------------------------------------
    def validate_all(self) -> FormValidationResult:
        """
        Valida todos os campos com o estado derivado atual.

        Campos ocultos são isentos (inclusive de obrigatoriedade) e campos
        calculados não são validados. O resultado substitui o canal de
        erros de validação.
        """
        before = self._snapshot()
        errors: Dict[str, List[Dict[str, Any]]] = {}
        for f in self.schema.fields:
            found = self._check(f.key)
            if found:
                errors[f.key] = found
        self._validation_errors = errors

        self.ctx.log(
            level="info" if not errors else "warning",
            message="form validated",
            event="validate",
            valid=not errors,
            invalid_fields=list(errors.keys()),
        )

        if self._notify_on_validate:
            self._notify(self._diff(before, trigger=None, origin=ChangeOrigin.ENGINE))

        return FormValidationResult(valid=not errors, errors=deepcopy(errors))

    def _check(self, key: str) -> List[Dict[str, Any]]:
        f = self._fields[key]
        if f.is_computed or not self._visibility[key]:
            return []
        return [e.to_dict() for e in check_field(f, self._data.get(key), self._required[key])]

    def _revalidate(self, before: _Snapshot) -> None:
        if not self._revalidate_on_change:
            return
        b_data, b_vis, b_req, _ = before
        for key in list(self._validation_errors.keys()):
            moved = (
                not _same(b_data.get(key), self._data.get(key))
                or b_vis.get(key) != self._visibility[key]
                or b_req.get(key) != self._required[key]
            )
            if not moved:
                continue
            found = self._check(key)
            if found:
                self._validation_errors[key] = found
            else:
                del self._validation_errors[key]

    # ------------------------------------------------------------------
    # Propagação
    # ------------------------------------------------------------------
    def _settle_full(self) -> None:
        self._propagate(set(self._order), list(self._order), full=True)

    def _propagate(self, dirty: Set[str], nodes: Iterable[str], *, full: bool) -> Dict[str, str]:
        """
        Passada única em ordem topológica.

        Args:
            dirty: Chaves cujo valor mudou (atualizado durante a passada).
            nodes: Chaves a visitar, já em ordem topológica.
            full: Reavaliação completa (sem efeitos set_value).

        Returns:
            Mapa chave → id da regra set_value que escreveu o valor.
        """
        written: Dict[str, str] = {}
        for key in nodes:
            f = self._fields[key]

            if f.computation is not None and (full or any(s in dirty for s in f.computation.source_fields)):
                if self._recompute(f):
                    dirty.add(key)

            for effect in (RuleEffect.VISIBILITY, RuleEffect.REQUIRED):
                group = self._groups.get((key, effect))
                if group and (full or any(r.trigger_field in dirty for _, r in group)):
                    self._apply_group(f, effect, group)

            if not full:
                rule_id = self._apply_set_value(f, dirty)
                if rule_id is not None:
                    written[key] = rule_id
                    dirty.add(key)

        return written

    def _recompute(self, f: FieldSchema) -> bool:
        cfg = f.computation
        sources = {s: self._data.get(s) for s in cfg.source_fields}
        try:
            result = self._compute_engine.evaluate(cfg, sources)
        except Exception as e:
            payload = computation_error(
                field=f.key,
                function=str(getattr(cfg.function, "value", cfg.function)),
                reason=str(e) or e.__class__.__name__,
                exc_type=e.__class__.__name__,
            )
            self._compute_errors[f.key] = [payload.to_dict()]
            self.ctx.log(
                level="error",
                message="computation failed",
                event="computation_failed",
                field=f.key,
                exc_type=e.__class__.__name__,
            )
            return False

        issues = [
            computation_error(
                field=f.key,
                function=cfg.function.value,
                reason=issue["reason"],
                source_field=issue.get("source_field"),
            ).to_dict()
            for issue in result.issues
        ]
        if issues:
            self._compute_errors[f.key] = issues
            self.ctx.add_warning(message=f"{len(issues)} computation issue(s)", field_key=f.key)
        else:
            self._compute_errors.pop(f.key, None)

        if _same(self._data.get(f.key), result.value):
            return False
        self._data[f.key] = result.value
        return True

    def _apply_group(self, f: FieldSchema, effect: RuleEffect, group: List[Tuple[int, RuleSchema]]) -> None:
        value = f.visible if effect == RuleEffect.VISIBILITY else f.constraints.required
        for idx, rule in group:
            satisfied, err = self._rule_engine.evaluate_rule(rule, self._data, self._types)
            self._set_rule_error(f.key, idx, err)
            if satisfied:
                value = bool(rule.effect_value)

        if effect == RuleEffect.VISIBILITY:
            self._visibility[f.key] = value
        else:
            self._required[f.key] = value

    def _apply_set_value(self, f: FieldSchema, dirty: Set[str]) -> Optional[str]:
        winner: Optional[Tuple[int, RuleSchema]] = None
        for idx, rule in self._groups.get((f.key, RuleEffect.SET_VALUE), []):
            if rule.trigger_field not in dirty:
                continue
            satisfied, err = self._rule_engine.evaluate_rule(rule, self._data, self._types)
            self._set_rule_error(f.key, idx, err)
            if satisfied:
                winner = (idx, rule)

        if winner is None:
            return None

        idx, rule = winner
        if f.is_computed:
            self._set_rule_error(
                f.key,
                idx,
                rule_evaluation_error(
                    rule_id=rule.id,
                    field=f.key,
                    reason="set_value em campo calculado ignorado",
                    operator=rule.operator.value,
                ),
            )
            self.ctx.log(level="warning", message="set_value skipped", event="set_value_skipped", field=f.key, rule_id=rule.id)
            return None

        if _same(self._data.get(f.key), rule.effect_value):
            return None

        self._data[f.key] = deepcopy(rule.effect_value)
        self.ctx.log(level="debug", message="value set by rule", event="rule_write", field=f.key, rule_id=rule.id)
        return rule.id

    def _set_rule_error(self, key: str, idx: int, payload: Optional[AtlasErrorPayload]) -> None:
        if payload is None:
            bucket = self._rule_errors.get(key)
            if bucket is not None:
                bucket.pop(idx, None)
                if not bucket:
                    del self._rule_errors[key]
            return
        self._rule_errors.setdefault(key, {})[idx] = payload.to_dict()

    # ------------------------------------------------------------------
    # Snapshots / diff
    # ------------------------------------------------------------------
    def _merged_errors(self) -> Dict[str, List[Dict[str, Any]]]:
        merged: Dict[str, List[Dict[str, Any]]] = {}
        for key in self._order:
            errs: List[Dict[str, Any]] = []
            errs.extend(self._compute_errors.get(key, []))
            bucket = self._rule_errors.get(key, {})
            errs.extend(bucket[i] for i in sorted(bucket))
            errs.extend(self._validation_errors.get(key, []))
            if errs:
                merged[key] = errs
        return merged

    def _snapshot(self) -> _Snapshot:
        return (
            deepcopy(self._data),
            dict(self._visibility),
            dict(self._required),
            deepcopy(self._merged_errors()),
        )

    def _diff(
        self,
        before: _Snapshot,
        *,
        trigger: Optional[str],
        origin: ChangeOrigin,
        user_keys: Optional[Set[str]] = None,
        written: Optional[Dict[str, str]] = None,
    ) -> ChangeSet:
        b_data, b_vis, b_req, b_err = before
        a_err = self._merged_errors()
        user_keys = user_keys or set()
        written = written or {}

        changes: Dict[str, FieldChange] = {}
        for f in self.schema.fields:
            key = f.key
            aspects: List[str] = []
            if not _same(b_data.get(key), self._data.get(key)):
                aspects.append(ASPECT_VALUE)
            if b_vis.get(key) != self._visibility[key]:
                aspects.append(ASPECT_VISIBILITY)
            if b_req.get(key) != self._required[key]:
                aspects.append(ASPECT_REQUIRED)
            if b_err.get(key, []) != a_err.get(key, []):
                aspects.append(ASPECT_ERRORS)
            if not aspects:
                continue

            by_user = key in user_keys and ASPECT_VALUE in aspects and key not in written
            changes[key] = FieldChange(
                key=key,
                aspects=aspects,
                origin=ChangeOrigin.USER if by_user else ChangeOrigin.ENGINE,
                rule_id=written.get(key),
            )

        return ChangeSet(trigger=trigger, origin=origin, changes=changes)

    # ------------------------------------------------------------------
    # Guardrails
    # ------------------------------------------------------------------
    @staticmethod
    def _default_of(f: FieldSchema) -> Any:
        if f.default_value is not None:
            return deepcopy(f.default_value)
        if f.type == FieldType.CHECKBOX:
            return []
        return None

    def _require_field(self, key: str, *, operation: str) -> FieldSchema:
        f = self._fields.get(key)
        if f is None:
            payload = unknown_field(field=key, operation=operation)
            self.ctx.log(level="warning", message="unknown field", event="unknown_field", field=key, operation=operation)
            raise UnknownFieldError(message=payload.message, details=payload.details, hint=payload.hint)
        return f

    def _require_writable(self, key: str, *, operation: str) -> FieldSchema:
        f = self._require_field(key, operation=operation)
        if f.is_computed:
            payload = computed_field_read_only(field=key)
            self.ctx.log(level="warning", message="computed field is read-only", event="write_rejected", field=key, operation=operation)
            raise ComputedFieldReadOnlyError(message=payload.message, details=payload.details, hint=payload.hint)
        return f
