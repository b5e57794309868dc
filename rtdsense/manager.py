import itertools
import threading

from dataclasses import dataclass, field

from prettytable import PrettyTable

from .config import DriverConfig
from .errors import RTDError
from .logging import log_info, log_warning
from .sensor import PROVIDER, RTDSensor, SensorProvider


@dataclass
class _OpenSensor:
    provider: SensorProvider
    sensor: RTDSensor
    lock: threading.Lock = field(default_factory=threading.Lock)


class DeviceManager:
    """Keeps track of sensor providers by name and of the sensors
    opened through them. Reads and closes on the same sensor are
    serialized with a per-sensor lock.
    """

    def __init__(self, providers: list[SensorProvider] | None = None):
        self.providers = {}
        self.sensors = {}
        self._handles = itertools.count(1)
        for provider in (providers if providers is not None else [PROVIDER]):
            self.register_provider(provider)

    def register_provider(self, provider: SensorProvider):
        if provider.name in self.providers:
            raise ValueError(f'Provider "{provider.name}" already registered.')
        self.providers[provider.name] = provider
        log_info(f'Registered provider [{provider.name}] version {provider.version}')

    def open(self, name: str, config: DriverConfig, **kwargs) -> int:
        """Open a sensor with the named provider. Returns a handle
        used for reads and for closing it.
        """
        provider = self.providers[name]
        try:
            sensor = provider.opener(config, **kwargs)
        except RTDError as e:
            log_warning(f'Could not open [{name}] with {config}: {e}')
            raise
        handle = next(self._handles)
        self.sensors[handle] = _OpenSensor(provider, sensor)
        return handle

    def read(self, handle: int, reading_type: str = 'temperature') -> float:
        """Take a single reading of reading_type from the sensor."""
        entry = self.sensors[handle]
        handler = entry.provider.handlers[reading_type]
        with entry.lock:
            return handler(entry.sensor)

    def close(self, handle: int):
        entry = self.sensors.pop(handle)
        with entry.lock:
            entry.sensor.close()
        log_info(f'Closed sensor {handle} ({entry.provider.name})')

    def close_all(self):
        for handle in list(self.sensors):
            self.close(handle)

    def status_table(self) -> PrettyTable:
        table = PrettyTable(['HANDLE', 'PROVIDER', 'VERSION', 'READINGS'])
        for handle, entry in self.sensors.items():
            table.add_row([
                handle,
                entry.provider.name,
                entry.provider.version,
                ', '.join(entry.provider.handlers)
            ])
        return table

    def print_status(self):
        print(self.status_table().get_string())
