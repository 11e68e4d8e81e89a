"""
Settle-all ожидание группы корутин.

В отличие от обычного gather, ошибка одной корутины не отменяет остальные:
каждая доходит до конца, результат или ошибка сохраняются в Settled.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar('T')


@dataclass
class Settled(Generic[T]):
    """Итог одной корутины: значение либо ошибка."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(awaitables: Iterable[Awaitable[T]]) -> List[Settled[T]]:
    """
    Дождаться завершения всех корутин.

    Returns:
        Список Settled в порядке входных корутин
    """
    results: List[Any] = await asyncio.gather(*awaitables, return_exceptions=True)

    settled: List[Settled[T]] = []
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            settled.append(Settled(error=result))
        else:
            settled.append(Settled(value=result))
    return settled


__all__ = ['Settled', 'settle_all']
