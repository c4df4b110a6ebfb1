"""Native functions available to every Lox program."""

import time
from typing import Any, List

from lox.builtin_function import BuiltinFunction
from lox.environment import Environment


def populate_native_environment(env: Environment) -> Environment:
    def native_clock(args: List[Any]) -> Any:
        return time.time()

    env.define('clock', BuiltinFunction('clock', 0, native_clock))
    return env
