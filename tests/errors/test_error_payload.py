# tests/errors/test_error_payload.py
"""
Testes do mapeamento exceção → ErrorPayload.

Os testes asseguram que:
- cada exceção tipada recebe um código estável
- subclasses sem código próprio herdam o código mais próximo na MRO
- exceções não tipadas viram ENGINE_EXECUTION_ERROR sem stack trace
- o payload é serializável e carrega o node quando informado
"""

import json

import pytest

try:
    from buildgraph.core import errors
    from buildgraph.core.exceptions import (
        AmbiguousOutputError,
        GraphConfigurationError,
        MissingOutputError,
        StorageError,
        UnknownTriggerError,
    )
except Exception as e:  # noqa: BLE001
    errors = None
    AmbiguousOutputError = GraphConfigurationError = MissingOutputError = None
    StorageError = UnknownTriggerError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing error catalog. Implement:\n"
            "- src/buildgraph/core/errors.py (ErrorPayload, to_error_payload)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_typed_exception_keeps_message_details_hint():
    _require_imports()

    exc = MissingOutputError(
        "Missing output 'Binaries' from node 'Compile'",
        details={"node": "Compile", "tag": "Binaries"},
        hint="Execute o node produtor",
    )

    p = errors.to_error_payload(exc)

    assert p.type == errors.MISSING_OUTPUT
    assert p.message == "Missing output 'Binaries' from node 'Compile'"
    assert p.details == {"node": "Compile", "tag": "Binaries"}
    assert p.hint == "Execute o node produtor"


def test_node_is_added_without_overriding_details():
    _require_imports()

    p = errors.to_error_payload(
        AmbiguousOutputError("File a.obj in two outputs", details={"file": "a.obj"}),
        node="Compile",
    )
    q = errors.to_error_payload(
        MissingOutputError("missing", details={"node": "Compile"}),
        node="Package",
    )

    assert p.details == {"file": "a.obj", "node": "Compile"}
    assert q.details["node"] == "Compile"


def test_code_resolved_through_mro():
    """Subclasses sem código próprio herdam o código da base mais próxima."""
    _require_imports()

    class CustomConfigError(GraphConfigurationError):
        pass

    class CustomTriggerError(UnknownTriggerError):
        pass

    assert errors.error_code_for(CustomConfigError("x")) == errors.GRAPH_CONFIGURATION_ERROR
    assert errors.error_code_for(CustomTriggerError("x")) == errors.UNKNOWN_TRIGGER
    assert errors.error_code_for(StorageError("x")) == errors.ENGINE_EXECUTION_ERROR


def test_untyped_exception_is_engine_error():
    _require_imports()

    p = errors.to_error_payload(KeyError("boom"), node="Compile")

    assert p.type == errors.ENGINE_EXECUTION_ERROR
    assert p.details == {"exception_class": "KeyError", "node": "Compile"}
    assert "Traceback" not in p.message
    assert p.hint


def test_payload_is_json_serializable():
    _require_imports()

    p = errors.to_error_payload(UnknownTriggerError("Couldn't find trigger 'QA'", details={"trigger": "QA"}))

    data = json.loads(json.dumps(p.to_dict()))

    assert data == {
        "type": "UNKNOWN_TRIGGER",
        "message": "Couldn't find trigger 'QA'",
        "details": {"trigger": "QA"},
        "hint": None,
    }
