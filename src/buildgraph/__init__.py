# src/buildgraph/__init__.py
"""
buildgraph: engine de execução de grafos de build.

Um grafo de build é composto por Nodes (etapas nomeadas com tags de
input/output), agrupados em AgentGroups e opcionalmente protegidos por
ManualTriggers. O engine seleciona o subgrafo pedido, executa os nodes
em ordem topológica e mantém um cache em dois níveis (local + shared)
de manifests de outputs, permitindo builds incrementais e distribuídos.

Arquitetura em alto nível:
    - core.config       → configuração (YAML/JSON), settings e propriedades
    - core.graph        → Graph, Node, AgentGroup, ManualTrigger, export
    - core.storage      → TagFileSet, manifests e TempStorage
    - core.tasks        → protocolo Task e registry explícito
    - core.engine       → JobContext, executor e fluxo de comando
    - core.traceability → BuildReport e Event Log

Limites explícitos:
    - Não lê scripts de descrição de grafo
    - Não interpreta argumentos de linha de comando
    - Não aloca máquinas nem executa nodes em paralelo
"""

__version__ = "0.1.0"
