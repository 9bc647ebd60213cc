"""Atlas FormFlow — Schema (core).

Componentes canônicos do schema de formulário v1:
 - modelo tipado (campos, regras, fórmulas, layout)
 - parsing e persistência (YAML/JSON)
 - hashing canônico (versionamento)

A validação semântica (relatório de erros e avisos) vive em
`atlas_formflow.core.schema.validator`, que depende do grafo de dependências.
"""

from .errors import (  # noqa: F401
    SchemaFileError,
    SchemaPathMissingError,
    SchemaFileNotFoundError,
    SchemaParseError,
    SchemaStructureError,
    UnsupportedSchemaFormatError,
)

from .hashing import compute_schema_hash  # noqa: F401
from .loader import dump_schema, load_schema  # noqa: F401
from .model import (  # noqa: F401
    ComputationConfig,
    ComputeFunction,
    FieldConstraints,
    FieldSchema,
    FieldType,
    FormSchema,
    LayoutColumn,
    LayoutRow,
    Operator,
    OptionItem,
    RuleEffect,
    RuleSchema,
)