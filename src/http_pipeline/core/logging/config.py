"""
Конфигурация вывода логов pipeline.

Stages всегда пишут в логгеры ``http_pipeline.*``; LoggingConfig
определяет только куда и в каком виде эти записи попадут.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Куда и как выводить записи pipeline.

    Строковые level/format приводятся к enum в __post_init__
    (регистр не важен).

    Attributes:
        level: Минимальный уровень (DEBUG ... CRITICAL)
        format: json, text или colored
        enable_console: Писать в stdout
        file_path: Путь к файлу с ротацией (None - без файла)
        max_bytes: Размер файла до ротации (10MB по умолчанию)
        backup_count: Сколько ротированных файлов хранить
        enable_correlation_id: Добавлять текущий correlation id в записи
        extra_fields: Статические поля для каждой записи (service, env, ...)

    Example:
        >>> LoggingConfig(level="debug", format="json", file_path="logs/pipeline.log")
    """

    level: Union[LogLevel, str] = LogLevel.INFO
    format: Union[LogFormat, str] = LogFormat.TEXT
    enable_console: bool = True
    file_path: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    enable_correlation_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """
        Нормализация и валидация.

        Raises:
            ValueError: Неизвестный level/format или невалидные размеры файла
        """
        if not isinstance(self.level, LogLevel):
            object.__setattr__(self, 'level', LogLevel(str(self.level).upper()))
        if not isinstance(self.format, LogFormat):
            object.__setattr__(self, 'format', LogFormat(str(self.format).lower()))

        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.backup_count < 0:
            raise ValueError("backup_count must be non-negative")

    @property
    def level_no(self) -> int:
        """Числовой уровень для logging (logging.DEBUG, ...)."""
        return logging.getLevelName(self.level.value)

    @classmethod
    def create(
        cls,
        level: str = "INFO",
        format: str = "text",
        file_path: Optional[str] = None,
        **kwargs: Any,
    ) -> "LoggingConfig":
        """
        Конструктор из строковых значений (env, CLI).

        Example:
            >>> LoggingConfig.create(level="WARNING", enable_console=False, file_path="/tmp/p.log")
        """
        return cls(level=level, format=format, file_path=file_path, **kwargs)
