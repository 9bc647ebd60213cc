"""Erros canônicos de arquivo/estrutura de schema (Atlas FormFlow).

O schema do formulário é a entrada declarativa do motor.
Falhas de carregamento ou de estrutura devem produzir erros explícitos e estáveis.

Problemas semânticos (chaves duplicadas, referências quebradas, ciclos) não
são representados aqui: ficam a cargo do validador de schema.
"""


class SchemaFileError(Exception):
    """Erro base do domínio de arquivos de schema."""


class SchemaPathMissingError(SchemaFileError):
    """Caminho do schema ausente ou vazio."""


class SchemaFileNotFoundError(SchemaFileError):
    """Arquivo de schema não existe no caminho informado."""


class UnsupportedSchemaFormatError(SchemaFileError):
    """Formato de schema não suportado (v1: YAML/JSON)."""


class SchemaParseError(SchemaFileError):
    """Falha ao parsear YAML/JSON."""


class SchemaStructureError(SchemaFileError):
    """Estrutura do schema malformada (tipo de container, enum desconhecido)."""
