"""同時実行数制限モジュール."""

from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Callable, TypeVar

from playrank.config import CONCURRENCY_FACTOR

T = TypeVar("T")


def default_concurrency() -> int:
    """CPU 数 × CONCURRENCY_FACTOR を返す。CPU 数が取れなくても 1 以上."""
    return max(1, (os.cpu_count() or 1) * CONCURRENCY_FACTOR)


class ConcurrencyLimiter:
    """実行中タスク数を limit 以下に抑える投入口.

    1 回の実行で 1 つだけ作り、取得を行う全ての呼び出し元に渡す。
    待ちタスクは投入順に実行される。
    """

    def __init__(self, limit: int | None = None) -> None:
        self.limit = max(1, limit if limit is not None else default_concurrency())
        self._semaphore = asyncio.Semaphore(self.limit)
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        """現在実行中のタスク数."""
        return self._in_flight

    @property
    def peak(self) -> int:
        """これまでの最大同時実行数."""
        return self._peak

    async def submit(self, task: Callable[[], Awaitable[T]]) -> T:
        """task() を枠が空き次第実行し、その結果を返す。例外はそのまま伝播する."""
        async with self._semaphore:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)
            try:
                return await task()
            finally:
                self._in_flight -= 1
