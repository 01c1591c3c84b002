from beartype import beartype
from beartype.typing import Optional


class InterceptionError(Exception):
    """Базовое исключение пакета"""


class MockConfigurationError(InterceptionError, ValueError):
    """Некорректная конфигурация мока"""


class ResponseWaitTimeout(InterceptionError, TimeoutError):
    """Не дождались подходящего запроса/ответа за отведённое время"""

    @beartype
    def __init__(self, message: str, pattern: Optional[str] = None, timeout: float = 0.0):
        super().__init__(message)
        self.pattern = pattern
        self.timeout = timeout


class NetworkError:
    """Класс для представления сетевых ошибок (упавших запросов)"""

    @beartype
    def __init__(self, name: str, message: str, details: dict, timestamp: str, duration: float = 0.0):
        self.name = name
        self.message = message
        self.details = details
        self.timestamp = timestamp
        self.duration = duration

    def __str__(self):
        return f"NetworkError({self.name}: {self.message})"

    def __repr__(self):
        return f"NetworkError(name='{self.name}', message='{self.message}', timestamp='{self.timestamp}')"
