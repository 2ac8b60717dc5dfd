# src/http_pipeline/stages/in_flight_stage.py
"""
Stage для объединения одновременных одинаковых запросов.

Реализует паттерн "singleflight": пока вызов с ключом выполняется, новые
вызовы с тем же ключом получают тот же результат вместо нового запроса.
"""

import asyncio
import logging
from typing import Dict

from ..core.config import InFlightConfig
from ..core.context import RequestContext, ResponseContext, default_request_key
from .base import Handler, Stage

logger = logging.getLogger(__name__)


class InFlightStage(Stage):
    """
    Объединяет одновременные запросы с одинаковым ключом.

    Кто первым зарегистрировал ключ, тот и выполняет запрос; остальные
    ждут его результата (успех или то же исключение). Ответ отдаётся
    каждому ожидающему копией, привязанной к его собственному запросу.
    Регистрация выполняется синхронно до первого await, поэтому два
    конкурентных вызова не могут оба пропустить таблицу.

    Запись удаляется done-callback'ом задачи при любом исходе: успех,
    ошибка или отмена.

    allow_simultaneous_duplicates=True в запросе обходит объединение:
    вызов выполняет свой запрос и становится владельцем ключа.
    """

    name = "in_flight"

    def __init__(self, config: InFlightConfig, table: Dict[str, "asyncio.Task[ResponseContext]"]):
        """
        Args:
            config: Конфигурация stage
            table: Таблица in-flight запросов (ключ -> задача), принадлежит pipeline
        """
        self.table = table
        self._key_fn = config.key_fn or default_request_key

    def _release(self, key: str, task: "asyncio.Task[ResponseContext]") -> None:
        # Удаляем только свою регистрацию: её мог заменить вызов с allow_simultaneous_duplicates
        if self.table.get(key) is task:
            del self.table[key]
        # Помечаем исключение как полученное, даже если никто не дождался задачи
        if not task.cancelled():
            task.exception()

    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        key = self._key_fn(request)
        pending = self.table.get(key)

        if pending is not None and not request.allow_simultaneous_duplicates:
            request.metadata.served_from_in_flight = True
            logger.debug(f"Returning in progress request for {key}.")
            response = await asyncio.shield(pending)
            return response.bind(request)

        # Этот проход выполняет свой запрос (флаг мог остаться от прошлого прохода retry)
        request.metadata.served_from_in_flight = False
        task = asyncio.ensure_future(call_next(request))
        self.table[key] = task
        task.add_done_callback(lambda done: self._release(key, done))

        return await asyncio.shield(task)

    def __len__(self) -> int:
        return len(self.table)
