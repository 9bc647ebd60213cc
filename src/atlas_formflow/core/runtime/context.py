# src/atlas_formflow/core/runtime/context.py
"""
Contexto de sessão do Data Engine.

Este módulo define o `SessionContext`, o registro estruturado de uma sessão
de preenchimento: identidade, configuração efetiva, eventos de log e
avisos não fatais.

Princípios fundamentais:
    - Isolamento por sessão (cada DataEngine possui seu próprio contexto)
    - Logs estruturados em memória, sem estado global
    - Estrutura simples e testável

Invariantes:
    - Todo evento inclui `session_id`, `level`, `message` e `timestamp` (UTC)
    - Avisos são agrupados por chave de campo (ou "form")

Limites explícitos:
    - Não avalia regras nem fórmulas
    - Não persiste eventos automaticamente
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class SessionContext:
    """
    Contexto de uma sessão de preenchimento de formulário.

    Decisões arquiteturais:
        - O Data Engine registra aqui ativação, escritas, rejeições,
          conclusão de settle, falhas isoladas, validações e resets
        - Eventos são dicionários planos (serializáveis)
    """

    config: Dict[str, Any]
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    def log(self, *, level: str, message: str, **extra: Any) -> None:
        event = {
            "session_id": self.session_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, message: str, field_key: Optional[str] = None) -> None:
        self.warnings.setdefault(field_key or "form", []).append(message)

    def events_of(self, event: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("event") == event]
