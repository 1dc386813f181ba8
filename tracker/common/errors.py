# tracker/common/errors.py
"""
Иерархия ошибок трекера.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Базовая ошибка трекера."""
    pass


class MalformedInput(TrackerError, ValueError):
    """
    Запись журнала или источник миграции не удаётся разобрать.

    При сканировании такие записи пропускаются, при миграции ошибка фатальна.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        if position is not None:
            message = f"{message} (pos {position})"
        super().__init__(message)
        self.position = position


class IOFailure(TrackerError, OSError):
    """Файл не удалось записать ни атомарной заменой, ни копированием."""
    pass


class ValidationRejected(TrackerError, ValueError):
    """Входящий сэмпл не прошёл проверку формы или фильтры."""

    def __init__(self, message: str, reason: str = "invalid") -> None:
        super().__init__(message)
        self.reason = reason


class RoutesetNotFound(TrackerError, LookupError):
    """Снимок маршрута не найден."""
    pass


class NotEnoughPoints(TrackerError):
    """Для операции нужно минимум две точки."""
    pass


class PrivacyZoneNotFound(TrackerError, LookupError):
    """Зона приватности не найдена."""
    pass
