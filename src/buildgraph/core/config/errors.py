# src/buildgraph/core/config/errors.py
"""
Exceções canônicas da camada de configuração do buildgraph.

Este módulo define a hierarquia de exceções utilizadas durante o
carregamento, validação estrutural e resolução das configurações do
engine (diretórios de storage, política de limpeza, shared storage).

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Mensagens de erro são claras e direcionadas ao operador

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro de execução de node
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do buildgraph.

    Permite captura genérica de erros de configuração e distinção clara
    entre falhas estruturais e falhas de execução do grafo.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    O arquivo de defaults é obrigatório; o override local é opcional.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"storage": {"write_to_shared": false}}
        - override: {"storage": "/mnt/share"}

    Nenhum merge parcial é produzido em caso de conflito.
    """
