"""
Exceptions raised by the RTD driver and temperature solver.
"""


class RTDError(Exception):
    """Base class for every error raised by rtdsense."""


class InvalidArgument(RTDError, ValueError):
    """A configuration request was malformed.
    Raised before anything is written to the device.
    """


class ConfigurationError(RTDError, ValueError):
    """Pin or driver configuration is missing or has the wrong type."""


class HardwareFault(RTDError):
    """The fault bit was set on a conversion result."""

    def __init__(self, message: str, faults: int = 0):
        super().__init__(message)
        self.faults = faults


class DeviceNotReady(RTDError):
    """A reading was requested from a device that has been closed."""


class DidNotConverge(RTDError, ArithmeticError):
    """The root finder used up its iterations without settling."""
