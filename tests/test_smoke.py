# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do buildgraph.

Garantem apenas que o ambiente de testes está funcional e que o pacote
pode ser importado. Não validam comportamento de domínio.
"""


def test_smoke():
    assert True


def test_package_imports():
    import buildgraph
    from buildgraph.core import config, engine, graph, storage, tasks, traceability  # noqa: F401

    assert buildgraph.__version__
