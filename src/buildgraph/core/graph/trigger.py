# src/buildgraph/core/graph/trigger.py
"""
ManualTrigger: portão hierárquico de ativação de nodes.

Triggers formam uma floresta: cada trigger tem um `parent` opcional. Um
trigger está ativo quando foi solicitado explicitamente (ou quando todos
os triggers foram ativados), e ativar um trigger ativa todos os seus
ancestrais. Nodes cujo trigger de controle está inativo não executam.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Set


@dataclass(eq=False)
class ManualTrigger:
    """Trigger nomeado; identidade por instância."""

    name: str
    parent: Optional["ManualTrigger"] = None

    def ancestors(self) -> Iterator["ManualTrigger"]:
        """Itera sobre o próprio trigger e, em seguida, cada ancestral."""
        trigger: Optional[ManualTrigger] = self
        while trigger is not None:
            yield trigger
            trigger = trigger.parent

    @property
    def qualified_name(self) -> str:
        return ".".join(t.name for t in reversed(list(self.ancestors())))

    def __repr__(self) -> str:
        return f"ManualTrigger({self.qualified_name!r})"


def close_upward(triggers: Iterable[ManualTrigger]) -> Set[ManualTrigger]:
    """Conjunto dos triggers informados mais todos os seus ancestrais."""
    closed: Set[ManualTrigger] = set()
    for trigger in triggers:
        closed.update(trigger.ancestors())
    return closed


def is_active(trigger: Optional[ManualTrigger], active: Set[ManualTrigger]) -> bool:
    """Nodes sem trigger de controle estão sempre ativos."""
    return trigger is None or trigger in active
