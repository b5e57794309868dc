"""
Joins the MAX31865 driver and the temperature solver into a sensor
that reports temperatures, and describes it to the DeviceManager.
"""

import time

from dataclasses import dataclass, field
from typing import Callable

from . import __version__
from . import solver
from .config import DriverConfig
from .logging import log_info
from .spi.devices.bitbang import GPIOSPIDevice
from .spi.devices.max31865 import MAX31865


class RTDSensor:
    """Platinum RTD read through a MAX31865."""

    def __init__(self, device: MAX31865):
        self.device = device

    def read_code(self) -> int:
        """Raw 15-bit code from a fresh conversion.
        Raises HardwareFault or DeviceNotReady instead of returning a code.
        """
        return self.device.read().unwrap()

    def read_resistance(self) -> float:
        """RTD resistance in ohms."""
        return solver.rtd_resistance(self.read_code(), self.device.reference)

    def read_temperature(self, precise: bool = True) -> float:
        """Temperature in degrees Celsius. The precise conversion uses the
        configured calibration; otherwise the linear approximation is used.
        """
        code = self.read_code()
        if not precise:
            return solver.simple_temperature(code)
        return solver.precise_temperature(
            code, self.device.reference, self.device.rtd_zero)

    def close(self):
        self.device.close()


def open_sensor(
    config: DriverConfig,
    gpio=None,
    sleep: Callable[[float], None] = time.sleep
) -> RTDSensor:
    """Claim the configured pins and set up the converter."""
    bus = GPIOSPIDevice(config.clock, config.miso, config.mosi, config.cs, gpio=gpio)
    try:
        device = MAX31865(
            bus,
            wires=config.wires,
            filter_hz=config.filter_hz,
            reference=config.reference,
            rtd_zero=config.rtd_zero,
            sleep=sleep
        )
    except Exception:
        bus.close()
        raise
    log_info(f'Opened MAX31865 on pins clock={config.clock} miso={config.miso} '
             f'mosi={config.mosi} cs={config.cs}')
    return RTDSensor(device)


@dataclass(frozen=True)
class SensorProvider:
    """A named kind of sensor the DeviceManager can open.
    handlers maps a reading type onto a function of the open sensor.
    """

    name: str
    version: str
    opener: Callable[[DriverConfig], RTDSensor]
    handlers: dict[str, Callable[[RTDSensor], float]] = field(default_factory=dict)


PROVIDER = SensorProvider(
    name='max31865',
    version=__version__,
    opener=open_sensor,
    handlers={
        'temperature': lambda sensor: sensor.read_temperature(precise=True),
        'temperature_simple': lambda sensor: sensor.read_temperature(precise=False),
        'resistance': lambda sensor: sensor.read_resistance(),
    }
)
