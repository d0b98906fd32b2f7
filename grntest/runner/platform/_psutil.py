from __future__ import annotations

import importlib
import importlib.util
from functools import lru_cache
from typing import Any, Optional


def load_optional_module(name: str) -> Optional[Any]:
    """Import ``name`` if it is installed, otherwise return None."""

    if importlib.util.find_spec(name) is None:
        return None
    return importlib.import_module(name)


@lru_cache(maxsize=None)
def load_psutil() -> Optional[Any]:
    """Return the psutil module if available."""

    return load_optional_module("psutil")
