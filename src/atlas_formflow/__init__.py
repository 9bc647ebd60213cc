# src/atlas_formflow/__init__.py
"""
Atlas FormFlow — motor de avaliação em runtime para formulários low-code.

Este pacote raiz define o namespace público do Atlas FormFlow, o núcleo
responsável por manter consistentes, a cada edição, a visibilidade, a
obrigatoriedade, os valores calculados e o estado de validação de um
formulário descrito de forma declarativa.

Princípios centrais:
    - O schema é declarativo e validado antes da ativação
    - Dependências entre campos formam um DAG explícito
    - A propagação (settle) é determinística, síncrona e finita
    - Erros são estruturados, serializáveis e isolados por campo

Arquitetura em alto nível:
    - core.schema     → modelo de schema, loader e validador estático
    - core.graph      → grafo de dependências, ciclos e ordem topológica
    - core.runtime    → Rule Engine, Compute Engine e Data Engine
    - core.versioning → snapshots, diff e rollback de schemas
    - core.config     → carregamento, merge e hashing de configuração

Limites explícitos:
    - Não renderiza controles nem define layout visual
    - Não persiste dados de formulário
    - Não realiza autorização (o chamador é confiável)
"""
# src/atlas_formflow/__init__.py
from .core.runtime.activation import activate
from .core.runtime.engine import DataEngine
from .core.schema.model import FormSchema
from .core.schema.validator import validate_schema
from .core.versioning.manager import VersionManager

__version__ = "0.1.0"

__all__ = [
    "activate",
    "DataEngine",
    "FormSchema",
    "validate_schema",
    "VersionManager",
    "__version__",
]
