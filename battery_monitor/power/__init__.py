"""Power source readers."""

from .acpi import AcpiPowerSource
from .base import PowerReadError, PowerSourceBase
from .pisugar import PisugarPowerSource

__all__ = ["AcpiPowerSource", "PisugarPowerSource", "PowerReadError", "PowerSourceBase"]
