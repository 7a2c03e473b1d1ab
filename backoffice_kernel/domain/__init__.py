"""Pure domain values for the kernel: clock and competency."""

from backoffice_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from backoffice_kernel.domain.competency import Competency

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Competency",
]
