"""
Defines a class for one-shot RTD measurements with the MAX31865
resistance-to-digital converter by Analog Devices (Maxim).
"""

import enum
import time

from dataclasses import dataclass
from typing import Callable, Protocol

from ...errors import DeviceNotReady, HardwareFault, InvalidArgument
from ...logging import log_debug, log_info
from .device import Register


class RegisterBus(Protocol):
    def write_register(self, address: int, value: int): ...
    def read_register(self, address: int, num_bytes: int = 1) -> int: ...
    def close(self): ...


class FaultStatus(enum.IntFlag):
    """Bits of the fault status register (0x07)."""

    RTD_HIGH_THRESHOLD = 0x80
    RTD_LOW_THRESHOLD = 0x40
    REFIN_HIGH = 0x20
    REFIN_LOW_FORCE_OPEN = 0x10
    RTDIN_LOW_FORCE_OPEN = 0x08
    OVER_UNDER_VOLTAGE = 0x04


class ReadStatus(enum.Enum):
    OK = 'ok'
    FAULT = 'fault'
    DEVICE_OFF = 'device off'


@dataclass(frozen=True)
class Reading:
    """Outcome of a single acquisition. code is only set when
    status is OK; faults is only populated when status is FAULT.
    """

    status: ReadStatus
    code: int | None = None
    faults: FaultStatus = FaultStatus(0)

    @property
    def ok(self) -> bool:
        return self.status is ReadStatus.OK

    def unwrap(self) -> int:
        """Return the raw code, raising if there is none."""
        match self.status:
            case ReadStatus.OK:
                return self.code
            case ReadStatus.FAULT:
                raise HardwareFault(
                    f'RTD fault detected: {self.faults!r}', int(self.faults))
            case ReadStatus.DEVICE_OFF:
                raise DeviceNotReady('Device has been closed.')


@dataclass
class ConfigByte:
    """Shadow of the configuration register (0x00)."""

    BIAS = 0b10000000
    AUTO_CONVERT = 0b01000000  # continuous mode, never set
    ONE_SHOT = 0b00100000
    THREE_WIRE = 0b00010000
    FAULT_CYCLE_MASK = 0b00001100  # automatic fault detection, never set
    FAULT_CLEAR = 0b00000010
    FILTER_50HZ = 0b00000001

    bias: bool = False
    one_shot: bool = False
    three_wire: bool = False
    fault_clear: bool = False
    filter_50hz: bool = True

    def to_byte(self) -> int:
        value = 0
        if self.bias:
            value |= self.BIAS
        if self.one_shot:
            value |= self.ONE_SHOT
        if self.three_wire:
            value |= self.THREE_WIRE
        if self.fault_clear:
            value |= self.FAULT_CLEAR
        if self.filter_50hz:
            value |= self.FILTER_50HZ
        return value

    @classmethod
    def from_byte(cls, value: int) -> 'ConfigByte':
        return cls(
            bias=bool(value & cls.BIAS),
            one_shot=bool(value & cls.ONE_SHOT),
            three_wire=bool(value & cls.THREE_WIRE),
            fault_clear=bool(value & cls.FAULT_CLEAR),
            filter_50hz=bool(value & cls.FILTER_50HZ),
        )


class MAX31865:
    """Interface with a MAX31865 in one-shot mode.

    Every read() performs the whole acquisition cycle: clear faults,
    bias on, trigger, wait out the conversion, read, bias off.
    The bias is managed here, so callers never need to enable it.

    Calls are not thread safe. Hold one lock per instance across
    configure() and read() if the device is shared.
    """

    BIAS_SETTLE_TIME = 0.010
    CONVERSION_TIME = {50: 0.063, 60: 0.053}
    VALID_WIRES = (2, 3, 4)

    def __init__(
        self,
        bus: RegisterBus,
        wires: int = 2,
        filter_hz: int = 50,
        reference: float = 400.0,
        rtd_zero: float | None = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Configuration is written to the device immediately."""
        self.bus = bus
        self.sleep = sleep
        self.registers = {}
        self.add_register(Register('config', 0x00, 8))
        self.add_register(Register('rtd', 0x01, 16))
        self.add_register(Register('high_fault', 0x03, 16))
        self.add_register(Register('low_fault', 0x05, 16))
        self.add_register(Register('fault_status', 0x07, 8))
        self.config = ConfigByte()
        self.reference = reference
        self.rtd_zero = reference / 4
        self.closed = False
        self.configure(wires, filter_hz, reference, rtd_zero)

    def add_register(self, register: Register):
        if register.name in self.registers:
            raise ValueError(f'Register "{register.name}" already in device.')
        self.registers[register.name] = register

    @property
    def wires(self) -> int:
        """3 for a 3-wire RTD, otherwise 2 (2 and 4-wire share a setting)."""
        return 3 if self.config.three_wire else 2

    @property
    def filter_hz(self) -> int:
        return 50 if self.config.filter_50hz else 60

    @property
    def conversion_delay(self) -> float:
        """Seconds to wait for a one-shot conversion to finish."""
        return self.CONVERSION_TIME[self.filter_hz]

    def configure(
        self,
        wires: int,
        filter_hz: int,
        reference: float = 400.0,
        rtd_zero: float | None = None
    ):
        """Set the wiring and mains filter and store the calibration.

        wires must be within [2-4] and filter_hz either 50 or 60.
        rtd_zero defaults to a quarter of the reference resistance.
        Nothing is changed if an argument is invalid.
        """
        self._check_open()
        if wires not in self.VALID_WIRES:
            raise InvalidArgument(
                f'Wire count invalid:\ngave: {wires}, must be within [2-4]')
        if filter_hz not in self.CONVERSION_TIME:
            raise InvalidArgument(
                f'Filter frequency invalid:\ngave: {filter_hz}, must be 50 or 60')
        if rtd_zero is None:
            rtd_zero = reference / 4
        if not reference > 0 or not rtd_zero > 0:
            raise InvalidArgument(
                'Reference and zero-degree resistances must be positive:\n'
                f'gave: {reference}, {rtd_zero}')

        self.config.three_wire = wires == 3
        self.config.filter_50hz = filter_hz == 50
        self._flush()
        self.clear_fault()
        self.reference = reference
        self.rtd_zero = rtd_zero
        log_debug(f'MAX31865 configured: {wires}-wire, {filter_hz} Hz, '
                  f'r_ref={reference}, r0={rtd_zero}')

    def clear_fault(self):
        """Strobe the fault status clear bit."""
        self.config.fault_clear = True
        self._flush()
        self.config.fault_clear = False
        self._flush()

    def set_bias(self, enable: bool):
        """Turn the bias voltage on or off. Turning it on blocks for
        10 ms while the input filter settles.
        """
        self._check_open()
        self.config.bias = enable
        self._flush()
        if enable:
            self.sleep(self.BIAS_SETTLE_TIME)

    def read(self) -> Reading:
        """Run a one-shot conversion and return the outcome.
        Faults are reported in the Reading, never retried.
        """
        if self.closed:
            return Reading(ReadStatus.DEVICE_OFF)

        self.clear_fault()
        self.set_bias(True)
        try:
            self.config.one_shot = True
            self._flush()
            self.sleep(self.conversion_delay)
            raw = self.read_register('rtd')
        finally:
            # the device clears the one-shot bit itself when the conversion ends
            self.config.one_shot = False
            self.set_bias(False)

        if raw & 1:
            faults = self.read_fault_status()
            log_debug(f'MAX31865 fault bit set, raw={raw:#06x}, status={faults!r}')
            return Reading(ReadStatus.FAULT, faults=faults)

        return Reading(ReadStatus.OK, code=raw >> 1)

    def read_fault_status(self) -> FaultStatus:
        """Decode the fault status register."""
        return FaultStatus(self.read_register('fault_status') & 0xFC)

    @property
    def fault_thresholds(self) -> tuple[int, int]:
        """(low, high) fault thresholds as 15-bit codes."""
        return self.read_register('low_fault') >> 1, self.read_register('high_fault') >> 1

    def set_fault_thresholds(self, low: int, high: int):
        """Codes outside [low, high] raise the threshold fault bits."""
        for value in (low, high):
            if value not in range(0, 0x8000):
                raise InvalidArgument(
                    f'Threshold invalid:\ngave: {value}, must be within [0-32767]')
        if low > high:
            raise InvalidArgument(
                f'Low threshold {low} is above high threshold {high}')
        self.write_register('low_fault', low << 1)
        self.write_register('high_fault', high << 1)

    def read_register(self, register: str) -> int:
        reg = self.registers[register]
        return self.bus.read_register(reg.address, reg.num_bytes)

    def write_register(self, register: str, value: int):
        """Write value MSB first, one byte at a time."""
        reg = self.registers[register]
        for offset, byte in enumerate(value.to_bytes(reg.num_bytes, 'big')):
            self.bus.write_register(reg.address + offset, byte)

    def close(self):
        """Turn off the bias and release the bus. Further reads
        report DEVICE_OFF.
        """
        if self.closed:
            return
        self.set_bias(False)
        self.bus.close()
        self.closed = True
        log_info('MAX31865 closed')

    def _check_open(self):
        if self.closed:
            raise DeviceNotReady('Device has been closed.')

    def _flush(self):
        self.write_register('config', self.config.to_byte())
