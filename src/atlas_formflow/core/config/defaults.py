# src/atlas_formflow/core/config/defaults.py
"""
Configuração padrão embutida do Atlas FormFlow.

Toda sessão do Data Engine recebe uma configuração completa: chaves
ausentes em overrides são preenchidas a partir de `DEFAULT_CONFIG`.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Optional

from .merge import deep_merge


DEFAULT_CONFIG: Dict[str, Any] = {
    "runtime": {
        # validate_all() notifica assinantes quando o mapa de erros muda
        "notify_on_validate": True,
        # campos com erro de validação são revalidados quando o valor muda
        "revalidate_on_change": True,
    },
    "compute": {
        "concat_separator": "",
        "precision": None,
    },
    "activation": {
        "block_on_errors": True,
    },
    "layout": {
        "grid_columns": 12,
    },
    "versioning": {
        "default_author": "system",
    },
}


def resolve_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva a partir de DEFAULT_CONFIG e overrides.

    Args:
        overrides: Dicionário parcial (ou None).

    Returns:
        Nova configuração completa; DEFAULT_CONFIG nunca é mutado.

    Raises:
        ConfigTypeConflictError: Se um override conflitar com o tipo do default.
    """
    if not overrides:
        return deepcopy(DEFAULT_CONFIG)
    return deep_merge(DEFAULT_CONFIG, overrides)
