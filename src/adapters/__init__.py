"""Chat adapters and the registry used to select one by name."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Callable, Dict, Union

from core.errors import UnknownAdapterError
from core.ports import AdapterPort

if TYPE_CHECKING:
    from core.robot import Robot

AdapterFactory = Callable[["Robot"], AdapterPort]

# Built-ins are referenced by import path so optional network libraries are
# only imported when their adapter is selected.
_ADAPTERS: Dict[str, Union[str, AdapterFactory]] = {
    "shell": "adapters.shell:ShellAdapter",
    "memory": "adapters.memory:MemoryAdapter",
    "telegram": "adapters.telegram:TelegramAdapter",
}


def register_adapter(name: str, factory: AdapterFactory) -> None:
    _ADAPTERS[name.strip().lower()] = factory


def available_adapters() -> list[str]:
    return sorted(_ADAPTERS)


def _resolve(entry: Union[str, AdapterFactory]) -> AdapterFactory:
    if not isinstance(entry, str):
        return entry
    module_name, _, attribute = entry.partition(":")
    return getattr(importlib.import_module(module_name), attribute)


def build_adapter(name: str, robot: "Robot") -> AdapterPort:
    """Instantiate the adapter registered under ``name`` for ``robot``."""

    entry = _ADAPTERS.get(str(name).strip().lower())
    if entry is None:
        raise UnknownAdapterError(name)
    return _resolve(entry)(robot)
