# src/buildgraph/core/config/__init__.py
"""
Camada de configuração do buildgraph.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Visão tipada das configurações do engine (`EngineSettings`)
    - Hash canônico da configuração e digest de build products
    - Mapa de propriedades default entregue ao leitor de scripts

Limites explícitos:
    - Não interpreta a linguagem de descrição do grafo
    - Não executa nodes
    - Não faz parsing de linha de comando (apenas de overrides `-Set:`)
"""
