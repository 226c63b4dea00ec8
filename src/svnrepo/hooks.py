"""
Pluggable filter hooks.

Repositories are customized through hooks: a name filter, a version filter,
a package filter, a search handler and a cache handler. A hook is one of:

- ``NoopHook``: pass the first argument through unchanged
- ``FunctionHook``: call a function with all hook arguments
- ``BoundHook``: call a function with a fixed argument list, where strings
  of the form ``$arg[N]`` are replaced with the N-th hook argument

Configuration files name functions with import strings
(``"package.module:function"``).
"""

import importlib
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_ARG_PLACEHOLDER = re.compile(r"^\$arg\[(\d+)\]$")


class Hook:
    """Base class for hooks; calling a hook filters its first argument."""

    def __call__(self, value: Any, *args: Any) -> Any:
        raise NotImplementedError

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class NoopHook(Hook):
    """Hook that returns its input unchanged."""

    def __call__(self, value: Any, *args: Any) -> Any:
        return value

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class FunctionHook(Hook):
    """Hook that calls a function with every hook argument."""

    func: Callable[..., Any]

    def __call__(self, value: Any, *args: Any) -> Any:
        return self.func(value, *args)


@dataclass(frozen=True)
class BoundHook(Hook):
    """Hook that calls a function with a bound argument template."""

    func: Callable[..., Any]
    template: tuple[Any, ...] = field(default_factory=tuple)

    def __call__(self, value: Any, *args: Any) -> Any:
        hook_args = (value, *args)
        return self.func(*(self._substitute(item, hook_args) for item in self.template))

    @staticmethod
    def _substitute(item: Any, hook_args: tuple[Any, ...]) -> Any:
        if isinstance(item, str):
            match = _ARG_PLACEHOLDER.match(item)
            if match and int(match.group(1)) < len(hook_args):
                return hook_args[int(match.group(1))]
        return item


def import_callable(path: str) -> Callable[..., Any]:
    """
    Resolve an import string to a callable.

    Args:
        path: ``"package.module:attribute"`` or ``"package.module.attribute"``

    Returns:
        The referenced callable

    Raises:
        ConfigurationError: If the module or attribute cannot be found
    """
    module_name, sep, attribute = path.partition(":")
    if not sep:
        module_name, _, attribute = path.rpartition(".")
    if not module_name or not attribute:
        raise ConfigurationError(f"Invalid hook reference: {path}")

    try:
        target: Any = importlib.import_module(module_name)
        for part in attribute.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import hook {path}: {e}", hook=path) from e

    if not callable(target):
        raise ConfigurationError(f"Hook {path} is not callable", hook=path)
    return target


def as_hook(spec: Any) -> Hook:
    """
    Convert a hook definition into a ``Hook``.

    Args:
        spec: ``None``/empty, a ``Hook``, a callable, an import string, or a
            ``(callable_or_import_string, [args...])`` pair

    Returns:
        The corresponding hook
    """
    match spec:
        case None | "" | False:
            return NoopHook()
        case Hook():
            return spec
        case str():
            return FunctionHook(import_callable(spec))
        case [target, Sequence() as template] if not isinstance(template, str):
            func = import_callable(target) if isinstance(target, str) else target
            if not callable(func):
                raise ConfigurationError(f"Hook target is not callable: {target!r}")
            return BoundHook(func, tuple(template))
        case _ if callable(spec):
            return FunctionHook(spec)
        case _:
            raise ConfigurationError(f"Invalid hook definition: {spec!r}")
