# src/ml_process/core/config/errors.py
"""
Exceções da camada de configuração do ml-process.

Todas as falhas de carregamento, merge e validação estrutural de
configuração herdam de `ConfigError`, o que permite ao chamador separar
erros de configuração de erros de planejamento ou de execução de unidades.

Limites explícitos:
    - Não executa plano
    - Não realiza fallback ou recovery
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração.

    Não representa erro de grafo, de cenário ou de unidade.
    """


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo de configuração base (defaults) não existe.

    O arquivo de defaults é obrigatório; o arquivo local de override não é.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo não é um mapa (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"engine": {"max_workers": 4}}
        - override: {"engine": "fast"}
    """


class InvalidConfigValueError(ConfigError):
    """Valor com tipo ou faixa inválida em uma chave reconhecida (ex.: engine.max_workers)."""
