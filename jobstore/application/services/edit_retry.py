"""Retry-Update Engine — persist a single-field edit despite concurrent writers.

One loop serves every field edit. The caller describes the edit as an
EditStrategy of three operations, each receiving the snapshot explicitly:

    apply(doc)         -> snapshot with the change made
    is_satisfied(doc)  -> whether the snapshot already holds the end state
    refresh(doc)       -> (async) authoritative snapshot from the store

Only revision conflicts are retried. Transport and not-found errors propagate
on the first occurrence.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from jobstore.domain.entities import Document
from jobstore.domain.exceptions import DocumentConflictError, RetryExhaustedError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10

D = TypeVar("D", bound=Document)

Persist = Callable[[D], Awaitable[D]]


@dataclass(frozen=True)
class EditStrategy(Generic[D]):
    """The three operations that parameterize one edit."""

    apply: Callable[[D], D]
    is_satisfied: Callable[[D], bool]
    refresh: Callable[[D], Awaitable[D]]


@dataclass(frozen=True)
class EditResult(Generic[D]):
    """Outcome of an edit.

    ``document`` is the snapshot to keep using: the persisted one (revision
    advanced), the refreshed one when another writer already made the same
    change, or the untouched input when the edit was skipped as a no-op.
    """

    updated: bool
    document: D
    attempts: int = 0
    skipped: bool = False


def set_field(
    field_name: str,
    value: Any,
    refresh: Callable[[D], Awaitable[D]],
) -> EditStrategy[D]:
    """Strategy that sets ``field_name`` to ``value`` on the snapshot."""
    return EditStrategy(
        apply=lambda doc: doc.with_changes(**{field_name: value}),
        is_satisfied=lambda doc: getattr(doc, field_name) == value,
        refresh=refresh,
    )


class EditRetryEngine:
    """Applies an EditStrategy and writes the result, refreshing on every conflict.

    ``persist`` writes a snapshot under its revision and returns the stored
    snapshot (new revision); it raises DocumentConflictError on a stale one.
    """

    def __init__(self, persist: Persist, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._persist = persist
        self._max_attempts = max_attempts

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def run(
        self,
        document: D,
        strategy: EditStrategy[D],
        *,
        operation: str = "edit document",
    ) -> EditResult[D]:
        if strategy.is_satisfied(document):
            logger.debug("%s on '%s' is a no-op, skipping", operation, document.id)
            return EditResult(updated=False, document=document, skipped=True)

        current = document
        for attempt in range(1, self._max_attempts + 1):
            candidate = strategy.apply(current)
            try:
                stored = await self._persist(candidate)
            except DocumentConflictError:
                logger.warning(
                    "Conflict on %s for '%s' at rev %s (attempt %d/%d), refreshing",
                    operation,
                    candidate.id,
                    candidate.revision,
                    attempt,
                    self._max_attempts,
                )
                current = await strategy.refresh(current)
                if strategy.is_satisfied(current):
                    logger.info(
                        "%s on '%s' already applied by another writer",
                        operation,
                        current.id,
                    )
                    return EditResult(updated=True, document=current, attempts=attempt)
                continue

            logger.debug(
                "%s on '%s' stored at rev %s (attempt %d)",
                operation,
                stored.id,
                stored.revision,
                attempt,
            )
            return EditResult(updated=True, document=stored, attempts=attempt)

        raise RetryExhaustedError(operation, document.id, self._max_attempts)
