"""Script variables: named scalar or array values with text interpolation."""

from __future__ import annotations

import os
from typing import Dict, List, Mapping, Optional, Union

from core.exceptions import VariableExpansionError

VAR_START = "${"
VAR_END = "}"
ENV_START = "@{"
ENV_END = "}"

Value = Union[str, List[str]]


class Variables:
    """Per-run variable store.

    Only scalar (string) values take part in ``${name}`` interpolation; array
    values are consumed by name through dedicated script commands.
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        max_expansion_depth: int = 100,
    ) -> None:
        self._values: Dict[str, Value] = {}
        self._environ = environ
        self.max_expansion_depth = max_expansion_depth

    def set(self, name: str, value: Value) -> None:
        if isinstance(value, (list, tuple)):
            value = [str(v) for v in value]
        self._values[name] = value

    def get(self, name: str) -> Optional[Value]:
        value = self._values.get(name)
        if isinstance(value, list):
            return list(value)
        return value

    def remove(self, name: str) -> None:
        self._values.pop(name, None)

    def has(self, name: str) -> bool:
        return name in self._values

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._values)

    def names(self) -> List[str]:
        return sorted(self._values)

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def _expand_once(self, text: str) -> str:
        for name, value in self._values.items():
            if isinstance(value, str):
                text = text.replace(VAR_START + name + VAR_END, value)
        return text

    def expand(self, text: str) -> str:
        """Expand ``${name}`` recursively, then ``@{NAME}`` once.

        Raises
        ------
        VariableExpansionError
            If the expansion revisits an earlier result (a reference cycle)
            or exceeds ``max_expansion_depth`` passes.
        """
        seen = {text}
        result = self._expand_once(text)
        passes = 1
        while VAR_START in result and result not in seen:
            if passes >= self.max_expansion_depth:
                raise VariableExpansionError(
                    f"Variable expansion exceeded max depth ({self.max_expansion_depth}): {text}"
                )
            seen.add(result)
            expanded = self._expand_once(result)
            passes += 1
            if expanded == result:
                break
            if expanded in seen:
                raise VariableExpansionError(f"Cyclic variable reference in: {text}")
            result = expanded

        for name, value in self.environ.items():
            result = result.replace(ENV_START + name + ENV_END, value)
        return result

    def __repr__(self) -> str:
        return f"Variables({self._values})"
