"""
Compute Engine — avaliação pura das fórmulas de campos calculados.

Funções suportadas (v1): SUM, COUNT, AVG, MAX, MIN, CONCAT.
Não existe linguagem de expressão: a fórmula é sempre uma função fixa
aplicada à lista ordenada de campos de origem.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

from atlas_formflow.core.exceptions import ComputationError
from atlas_formflow.core.schema.model import ComputationConfig, ComputeFunction

from .values import is_blank, is_number


@dataclass
class ComputeResult:
    value: Any
    # avisos não fatais (ex.: valor não numérico ignorado em SUM)
    issues: List[Dict[str, Any]] = field(default_factory=list)


def _is_empty(raw: Any) -> bool:
    return is_blank(raw) or (isinstance(raw, float) and math.isnan(raw))


def _render(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    if isinstance(raw, date):
        return raw.isoformat()
    if isinstance(raw, (list, tuple)):
        return ",".join(_render(v) for v in raw)
    return str(raw)


class ComputeEngine:
    """
    Avaliador stateless de fórmulas.

    Args:
        separator: Separador padrão do CONCAT (config `compute.concat_separator`).
        precision: Arredondamento padrão de resultados numéricos
            (config `compute.precision`); None desativa.
    """

    def __init__(self, separator: str = "", precision: Optional[int] = None) -> None:
        self.separator = separator
        self.precision = precision
        self._functions: Dict[ComputeFunction, Callable[[ComputationConfig, List[tuple], List[Dict[str, Any]]], Any]] = {
            ComputeFunction.SUM: self._sum,
            ComputeFunction.COUNT: self._count,
            ComputeFunction.AVG: self._avg,
            ComputeFunction.MAX: self._max,
            ComputeFunction.MIN: self._min,
            ComputeFunction.CONCAT: self._concat,
        }

    def evaluate(self, config: ComputationConfig, source_values: Mapping[str, Any]) -> ComputeResult:
        """
        Calcula o valor derivado.

        Args:
            config: Fórmula do campo calculado.
            source_values: Valores atuais por chave de origem.

        Returns:
            ComputeResult com o valor e avisos não fatais.

        Raises:
            ComputationError: Se a função não for suportada.
        """
        fn = self._functions.get(config.function)
        if fn is None:
            raise ComputationError(
                message=f"Função de cálculo não suportada: {config.function}",
                details={"function": str(config.function)},
            )

        pairs = [(key, source_values.get(key)) for key in config.source_fields]
        issues: List[Dict[str, Any]] = []
        value = fn(config, pairs, issues)

        precision = config.precision if config.precision is not None else self.precision
        if precision is not None and is_number(value) and config.function != ComputeFunction.CONCAT:
            value = round(value, precision)

        return ComputeResult(value=value, issues=issues)

    # -----------------------------
    # Funções
    # -----------------------------
    def _numbers(self, pairs, issues, report: bool) -> List[Any]:
        out = []
        for key, raw in pairs:
            if _is_empty(raw):
                continue
            if is_number(raw):
                out.append(raw)
            elif report:
                issues.append({"source_field": key, "reason": f"valor não numérico ignorado: {raw!r}"})
        return out

    def _sum(self, config, pairs, issues):
        return sum(self._numbers(pairs, issues, report=True))

    def _count(self, config, pairs, issues):
        return sum(1 for _, raw in pairs if not _is_empty(raw))

    def _avg(self, config, pairs, issues):
        count = self._count(config, pairs, issues)
        if count == 0:
            return 0
        return self._sum(config, pairs, issues) / count

    def _max(self, config, pairs, issues):
        nums = self._numbers(pairs, issues, report=False)
        return max(nums) if nums else None

    def _min(self, config, pairs, issues):
        nums = self._numbers(pairs, issues, report=False)
        return min(nums) if nums else None

    def _concat(self, config, pairs, issues):
        sep = config.separator if config.separator is not None else self.separator
        return sep.join(_render(raw) for _, raw in pairs if not _is_empty(raw))
