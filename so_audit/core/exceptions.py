"""
Exceptions raised by the consistency audit.
"""

from pathlib import Path
from typing import Optional, Union


class AuditError(Exception):
    """Базовая ошибка аудита."""
    pass


class ConfigError(AuditError):
    """Некорректная конфигурация аудита."""
    pass


class LoadError(AuditError):
    """Входной документ отсутствует или не читается."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class MalformedIdentifier(LoadError):
    """Идентификатор не соответствует ожидаемому шаблону."""

    def __init__(self, path: Union[str, Path], token: str, line_no: int, pattern: Optional[str] = None):
        self.token = token
        self.line_no = line_no
        self.pattern = pattern
        reason = f"line {line_no}: malformed identifier '{token}'"
        if pattern:
            reason += f" (expected pattern {pattern})"
        super().__init__(path, reason)


class ReportError(AuditError):
    """Отчёт не записывается, не читается или повреждён."""
    pass
