# src/atlas_formflow/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Atlas FormFlow.

As exceções aqui definidas representam violações estruturais de
configuração, e não erros de avaliação do formulário.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro de campo, regra ou fórmula
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Atlas FormFlow.

    Permite captura genérica de falhas de carregamento e merge, separadas
    das exceções de runtime do Data Engine.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de configuração base não encontrado no caminho informado.

    Decisões arquiteturais:
        - O arquivo de defaults, quando informado, é obrigatório
        - Não se tenta inferir ou criar defaults automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo de configuração não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Conteúdo raiz da configuração não é um dicionário (`dict`).

    Listas ou valores escalares no root são inválidos; nenhum
    encapsulamento implícito é aplicado.
    """


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"compute": {"concat_separator": ""}}
        - override: {"compute": "-"}

    Nenhum merge parcial é produzido em caso de conflito.
    """
