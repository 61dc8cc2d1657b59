# tests/core/tasks/test_registry.py
"""
Testes do TaskRegistry e do protocolo Task.

Os testes asseguram que:
- o registro de um mesmo nome duas vezes é rejeitado
- tasks desconhecidas não são instanciadas silenciosamente
- `create` repassa os parâmetros e valida o protocolo
- a ordem de registro é preservada
"""

import pytest

try:
    from buildgraph.core.tasks import Task, TaskRegistry
    from buildgraph.core.exceptions import DuplicateTaskError, UnknownTaskError
except Exception as e:  # noqa: BLE001
    Task = None
    TaskRegistry = None
    DuplicateTaskError = None
    UnknownTaskError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o registry e suas exceções estejam disponíveis para os testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing task registry. Implement:\n"
            "- src/buildgraph/core/tasks/registry.py (TaskRegistry)\n"
            "- src/buildgraph/core/tasks/task.py (Task protocol)\n"
            f"Import error: {_IMPORT_ERR}"
        )


class CopyTask:
    def __init__(self, source: str = "", target: str = ""):
        self.source = source
        self.target = target

    def execute(self, job, tag_files):
        return True


class NotATask:
    pass


def test_duck_typed_task_satisfies_protocol():
    _require_imports()

    assert isinstance(CopyTask(), Task)
    assert not isinstance(NotATask(), Task)


def test_register_and_create():
    _require_imports()

    reg = TaskRegistry()
    reg.register("Copy", CopyTask)

    task = reg.create("Copy", source="#Binaries", target="Staging")

    assert "Copy" in reg
    assert isinstance(task, CopyTask)
    assert task.source == "#Binaries"
    assert task.target == "Staging"


def test_duplicate_registration_rejected():
    """
    Dois handlers para o mesmo nome de task são um erro de configuração
    fatal; a mensagem cita o nome.
    """
    _require_imports()

    reg = TaskRegistry()
    reg.register("Copy", CopyTask)

    with pytest.raises(DuplicateTaskError) as ei:
        reg.register("Copy", CopyTask)

    assert "Copy" in str(ei.value)
    assert reg.names() == ["Copy"]


def test_unknown_task_rejected():
    _require_imports()

    reg = TaskRegistry()
    reg.register("Copy", CopyTask)

    with pytest.raises(UnknownTaskError) as ei:
        reg.create("Compile")

    assert ei.value.details == {"task": "Compile", "known": ["Copy"]}


def test_factory_must_return_task():
    _require_imports()

    reg = TaskRegistry()
    reg.register("Broken", NotATask)

    with pytest.raises(TypeError):
        reg.create("Broken")


def test_names_preserve_registration_order():
    _require_imports()

    reg = TaskRegistry()
    for name in ("Zip", "Copy", "Compile"):
        reg.register(name, CopyTask)

    assert reg.names() == ["Zip", "Copy", "Compile"]
