from __future__ import annotations

from typing import TYPE_CHECKING

from .base import DiagnosticsWrapper, NullDiagnosticsWrapper
from .unix import GdbWrapper, LldbWrapper, RrWrapper, ValgrindWrapper

if TYPE_CHECKING:
    from grntest.runner.configuration import DiagnosticsSettings


def get_diagnostics_wrapper(settings: "DiagnosticsSettings") -> DiagnosticsWrapper:
    """Return the wrapper the testee should be launched under.

    When several wrappers are enabled the first of gdb, lldb, rr and valgrind
    wins.
    """

    if settings.gdb is not None:
        return GdbWrapper(settings.gdb)
    if settings.lldb is not None:
        return LldbWrapper(settings.lldb)
    if settings.rr is not None:
        return RrWrapper(settings.rr)
    if settings.valgrind is not None:
        return ValgrindWrapper(
            settings.valgrind,
            gen_suppressions=settings.generate_valgrind_suppressions,
        )
    return NullDiagnosticsWrapper()


__all__ = ["DiagnosticsWrapper", "get_diagnostics_wrapper"]
