"""Unit-of-work abstraction.

Services open one ``atomic()`` block per use case; every repository call
made inside it commits or rolls back together.  ``on_commit`` defers side
effects (event publication) until the outermost block has committed, so
nothing is announced for work that was rolled back.

``DjangoUnitOfWork`` maps both operations onto ``django.db.transaction``.
Tests may inject any other implementation (see ``tests/fakes.py``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, ContextManager

from django.db import transaction


class IUnitOfWork(ABC):
    """Transactional boundary used by the service layer."""

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """Return a context manager wrapping an all-or-nothing block."""

    @abstractmethod
    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the surrounding block commits."""


class DjangoUnitOfWork(IUnitOfWork):
    """Unit of work backed by the default Django database connection."""

    def __init__(self, using: str | None = None) -> None:
        self._using = using

    def atomic(self) -> ContextManager[None]:
        return transaction.atomic(using=self._using)

    def on_commit(self, callback: Callable[[], None]) -> None:
        transaction.on_commit(callback, using=self._using)
