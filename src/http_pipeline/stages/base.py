# src/http_pipeline/stages/base.py

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from ..core.context import RequestContext, ResponseContext

# Следующее звено цепочки: следующий stage или транспорт
Handler = Callable[[RequestContext], Awaitable[ResponseContext]]


class Stage(ABC):
    """
    Базовый класс для всех stages pipeline.

    Stage оборачивает следующее звено цепочки: может ответить сам
    (кэш, объединение запросов, 404 -> null) или передать запрос дальше
    через call_next и обработать результат на обратном пути.

    Attributes:
        name: Имя stage в STAGE_ORDER

    Example:
        >>> class TimingStage(Stage):
        ...     name = "timing"
        ...
        ...     async def handle(self, request, call_next):
        ...         response = await call_next(request)
        ...         return response
    """

    name: str = ""

    @abstractmethod
    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        """
        Обработать запрос.

        Args:
            request: Контекст запроса
            call_next: Следующее звено цепочки

        Returns:
            ResponseContext (или исключение TransportError)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
