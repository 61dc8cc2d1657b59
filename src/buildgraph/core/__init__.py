# src/buildgraph/core/__init__.py
"""
Core do buildgraph.

Componentes principais:
    - config       → carregamento, merge e hashing de configuração; settings tipados
    - graph        → modelo do grafo, resolução de referências, poda e export
    - storage      → tags em execução, manifests e cache local/shared
    - tasks        → protocolo de Task e registry
    - engine       → execução sequencial, fail-fast e autocorreção de cache
    - traceability → BuildReport e Event Log

Princípios fundamentais:
    - Nenhuma decisão silenciosa: erros estruturais abortam a execução
    - Falhas de integridade do cache são corrigidas (clean + rebuild), nunca reportadas como erro
    - Estado persistido é apenas o do TempStorage
"""
