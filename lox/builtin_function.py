from dataclasses import dataclass
from typing import Any, Callable, List

from .types import LoxCallable


@dataclass
class BuiltinFunction(LoxCallable):
    name: str
    param_count: int
    fn: Callable[[List[Any]], Any]

    def arity(self) -> int:
        return self.param_count

    def call(self, interpreter: Any, arguments: List[Any]) -> Any:
        return self.fn(arguments)

    def __repr__(self) -> str:
        return f"<native fn {self.name}>"
