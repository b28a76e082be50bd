"""Test registry and loading of test definition files."""

import importlib.util
import itertools
import logging
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

from tally.suites import SuitePath


logger = logging.getLogger(__name__)

_unit_ids = itertools.count()


@dataclass(frozen=True)
class TestRecord:
    """A registered test body and the context it was defined in."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    name: str
    body: Callable[[], Any]
    suite: SuitePath
    plugin_data: Any = None


class TestRegistry:
    """Append-only, ordered list of test records."""

    __test__ = False

    def __init__(self) -> None:
        self._records: list[TestRecord] = []

    def add(self, name: str, body: Callable[[], Any], suite: SuitePath, plugin_data: Any = None) -> TestRecord:
        record = TestRecord(name=name, body=body, suite=suite, plugin_data=plugin_data)
        self._records.append(record)
        return record

    def __iter__(self) -> Iterator[TestRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records = []


def _module_path(unit: str | Path) -> Path:
    if isinstance(unit, Path) or str(unit).endswith(".py"):
        return Path(unit)

    spec = importlib.util.find_spec(str(unit))
    if spec is None or spec.origin is None:
        msg = f"Cannot find test module {unit!r}"
        raise ImportError(msg)
    return Path(spec.origin)


def load_unit(unit: str | Path) -> ModuleType:
    """Execute a test definition unit, given as a file path or module name.

    The unit is always executed afresh, even if it was imported before, so
    its tests are registered again. It is kept in `sys.modules` under a
    private name, so a unit called e.g. ``json.py`` does not replace the
    real ``json`` module.
    """
    path = _module_path(unit).resolve()
    if not path.is_file():
        msg = f"Cannot find test file {path}"
        raise ImportError(msg)
    name = f"_tally_unit_{path.stem}_{next(_unit_ids)}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load module from {path}"
        raise ImportError(msg)

    logger.debug("loading tests from %s", path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module
