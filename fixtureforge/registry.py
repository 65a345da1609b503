import threading
from typing import Dict, Optional, Union

from sqlalchemy.engine import Engine

from fixtureforge.constants import DEFAULT_DATA_SOURCE_NAME
from fixtureforge.exceptions import DataSourceNotFoundError
from fixtureforge.identifiers import DataSourceName
from fixtureforge.logging_config import get_logger

NameRef = Union[DataSourceName, str, None]


class DataSourceRegistry:
    """
    Named engines plus one default.

    Registering under a blank name or the reserved default name sets the
    default. Safe to share between threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._default: Optional[Engine] = None
        self._named: Dict[DataSourceName, Engine] = {}
        self.logger = get_logger("registry")

    def register_default(self, engine: Engine) -> None:
        if engine is None:
            raise ValueError("Engine must not be None")
        with self._lock:
            self._default = engine
        self.logger.debug("Registered default data source")

    def register(self, name: NameRef, engine: Engine) -> None:
        if engine is None:
            raise ValueError("Engine must not be None")
        key = self._key(name)
        if key is None:
            self.register_default(engine)
            return
        with self._lock:
            self._named[key] = engine
        self.logger.debug("Registered data source", extra={"data_source": key.value})

    def get_default(self) -> Engine:
        with self._lock:
            engine = self._default
        if engine is None:
            raise DataSourceNotFoundError("No default data source registered")
        return engine

    def get(self, name: NameRef = None) -> Engine:
        """Return the named engine, falling back to the default."""
        key = self._key(name)
        if key is None:
            return self.get_default()
        with self._lock:
            engine = self._named.get(key)
            if engine is None:
                engine = self._default
        if engine is None:
            raise DataSourceNotFoundError(f"No data source registered for name: {key.value}")
        return engine

    def find(self, name: NameRef) -> Optional[Engine]:
        key = self._key(name)
        with self._lock:
            if key is None:
                return self._default
            return self._named.get(key)

    def has_default(self) -> bool:
        with self._lock:
            return self._default is not None

    def has(self, name: NameRef) -> bool:
        return self.find(name) is not None

    def clear(self) -> None:
        with self._lock:
            self._default = None
            self._named.clear()
        self.logger.debug("Cleared all data sources")

    @staticmethod
    def _key(name: NameRef) -> Optional[DataSourceName]:
        if name is None:
            return None
        if isinstance(name, DataSourceName):
            value = name.value
        else:
            value = str(name).strip()
        if not value or value == DEFAULT_DATA_SOURCE_NAME:
            return None
        return DataSourceName(value)
