"""Error taxonomy for the share allocation core.

Only :class:`FatalArithmeticError` is ever raised out of a per-period pass.
Consistency, infeasibility and configuration problems are logged and kept as
:class:`Diagnostic` records on the owning sector so the run can continue with
a best-effort allocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SectorAllocationError(Exception):
    """Base class for errors raised by the allocation core."""


class FatalArithmeticError(SectorAllocationError, ArithmeticError):
    """A division by zero that would otherwise propagate NaN into the model."""


class DiagnosticKind(str, Enum):
    """Kinds of recoverable problems found during a supply pass."""

    CONSISTENCY = "consistency"
    INFEASIBILITY = "infeasibility"
    CONFIGURATION = "configuration"


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem recorded during a per-period pass.

    Attributes:
        kind: Category of the problem.
        period: Model period in which it occurred.
        message: Human-readable description including the numeric context.
    """

    kind: DiagnosticKind
    period: int
    message: str
