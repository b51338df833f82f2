class LabError(Exception):
    """Базовая ошибка лаборатории."""


class ConfigurationError(LabError, ValueError):
    """Неверные параметры генератора или настроек."""


class SchedulerError(LabError, RuntimeError):
    """Нарушение правила "один таймер за раз"."""


class ExportError(LabError, OSError):
    """Не удалось записать отчёт. Сессия в памяти при этом не меняется."""
