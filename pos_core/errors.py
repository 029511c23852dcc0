"""Ошибки POS-клиента"""

from typing import Optional


class PosError(Exception):
    """Базовый класс ошибок POS-клиента"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class InvalidCredentials(PosError):
    """Провайдер учётных записей отклонил логин или пароль"""

    def __init__(self, message: str = "invalid username or password"):
        super().__init__(message)


class ServiceUnavailable(PosError):
    """Бэкенд недоступен, не ответил вовремя или вернул мусор"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(f"service unavailable: {message}", cause)


class InvalidSelection(PosError):
    """Выбор компании/локации нарушает правила сессии"""


class NotFound(PosError):
    """Позиция или сущность не найдена"""


class EmptyCart(PosError):
    """Оформление пустой корзины"""

    def __init__(self, message: str = "cart is empty"):
        super().__init__(message)
