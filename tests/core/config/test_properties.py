# tests/core/config/test_properties.py
"""
Testes das propriedades default entregues ao leitor de scripts.
"""

import pytest

try:
    from buildgraph.core.config.properties import (
        PropertyMap,
        build_default_properties,
        parse_set_overrides,
    )
except Exception as e:  # noqa: BLE001
    PropertyMap = None
    build_default_properties = None
    parse_set_overrides = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing properties module. Import error: {_IMPORT_ERR}")


def test_property_map_is_case_insensitive():
    _require_imports()

    props = PropertyMap({"RootDir": "/ws"})

    assert props["rootdir"] == "/ws"
    assert "ROOTDIR" in props
    props["ROOTDIR"] = "/other"
    assert len(props) == 1
    assert props.to_dict() == {"ROOTDIR": "/other"}


def test_parse_set_overrides():
    """
    Apenas parâmetros `-Set:Chave=Valor` são considerados; o valor pode
    conter `=` e o prefixo não diferencia maiúsculas/minúsculas.
    """
    _require_imports()

    params = [
        "-Set:Platform=Win64",
        "-set:Flags=A=B",
        "-Target=Package",
        "-Set:NoValue",
    ]

    assert parse_set_overrides(params) == {"Platform": "Win64", "Flags": "A=B"}


def test_build_default_properties_precedence():
    """Ambiente < overrides `-Set:` < propriedades padrão do chamador."""
    _require_imports()

    props = build_default_properties(
        environ={"Platform": "Linux", "Branch": "Main"},
        params=["-Set:platform=Win64", "-Set:Branch=Release"],
        standard={"BRANCH": "Dev", "RootDir": "/ws"},
    )

    assert props["Platform"] == "Win64"
    assert props["branch"] == "Dev"
    assert props["rootdir"] == "/ws"
