# src/atlas_formflow/core/config/__init__.py
"""
Camada de configuração do Atlas FormFlow.

Este pacote resolve a configuração efetiva do motor de formulários a
partir dos defaults embutidos, de arquivos YAML/JSON opcionais e de
overrides explícitos do chamador.

A configuração no Atlas FormFlow é:
    - declarativa
    - determinística
    - separada do schema do formulário

Seções reconhecidas:
    - runtime    → políticas de notificação e revalidação do Data Engine
    - compute    → separador padrão do CONCAT e precisão numérica
    - activation → bloqueio de ativação por erros de schema
    - layout     → largura da grade usada pelo validador
    - versioning → autor padrão de snapshots

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro
"""
from .defaults import DEFAULT_CONFIG, resolve_config  # noqa: F401
from .errors import (  # noqa: F401
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash  # noqa: F401
from .loader import load_config  # noqa: F401
from .merge import deep_merge  # noqa: F401
