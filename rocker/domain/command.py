from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol


class CommandBuilder(Protocol):
    def args(self) -> tuple[str, ...]: ...


@dataclass(frozen=True)
class Command:
    """Ordered arguments handed to the container tool, without the tool name."""

    args: tuple[str, ...]

    def __init__(self, args: Iterable[str]):
        object.__setattr__(self, "args", tuple(str(arg) for arg in args))

    @classmethod
    def from_builder(cls, builder: CommandBuilder) -> Command:
        return cls(builder.args())

    def render(self) -> str:
        return " ".join(self.args)
