"""Optimistic mutations over a held list of view-models.

Key Responsibilities:
    - Apply create/update/delete to the held list before the store answers
    - Restore the pre-call snapshot when the store call fails
    - Run bulk operations concurrently and report per-item outcomes

Not-found Policy:
    A not-found answer is soft when the addressed id is absent from the
    held list once the optimistic change is in place (a delete that already
    removed it): the list is left as is and no error is raised. When the id
    is still held, the change is rolled back and the error propagates.

Collaborators:
    - Upstream: :class:`Telehealth_Gateway.gateway.collection.ResourceCollection`
    - Downstream: :class:`ResourceStore`, :class:`ResourceMapper`

Superseded Snapshots:
    Every :meth:`MutationDispatcher.replace_all` bumps a generation
    counter. A failed call restores its snapshot only while the generation
    is unchanged; once a newer search result has been applied, the rollback
    undoes just this call's own change on the current list.

Thread Safety:
    - Not thread-safe. Intended for a single event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic

import structlog

from Telehealth_Gateway.mappers.base import VM, ResourceMapper
from Telehealth_Gateway.models import RawResource
from Telehealth_Gateway.observability.metrics import record_rollback
from Telehealth_Gateway.transport.base import ResourceStore
from Telehealth_Gateway.utils.errors import ResourceNotFoundError, reason_for

logger = structlog.get_logger(__name__)


# ==============================================================================
# DATA MODELS
# ==============================================================================


@dataclass(frozen=True, slots=True)
class BulkFailure:
    """One failed item of a bulk operation."""

    id: str
    reason: str


@dataclass(frozen=True, slots=True)
class BulkResult:
    """Per-item outcome of a bulk operation."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


# ==============================================================================
# DISPATCHER
# ==============================================================================


class MutationDispatcher(Generic[VM]):
    """Sole writer of a held list of view-models for one resource type."""

    def __init__(
        self,
        store: ResourceStore,
        mapper: ResourceMapper[VM],
        items: Iterable[VM] = (),
    ) -> None:
        self.store = store
        self.mapper = mapper
        self.resource_type = mapper.resource_type
        self._items: list[VM] = list(items)
        self._generation = 0

    # ------------------------------------------------------------------
    # Held list access
    # ------------------------------------------------------------------
    @property
    def items(self) -> tuple[VM, ...]:
        return tuple(self._items)

    @property
    def generation(self) -> int:
        return self._generation

    def replace_all(self, items: Iterable[VM]) -> None:
        """Replace the held list wholesale (a newer search result)."""
        self._items = list(items)
        self._generation += 1

    def find(self, resource_id: str) -> VM | None:
        return next((item for item in self._items if item.id == resource_id), None)

    def _index_of(self, resource_id: str) -> int | None:
        return next(
            (index for index, item in enumerate(self._items) if item.id == resource_id), None
        )

    def _holds(self, resource_id: str) -> bool:
        return self._index_of(resource_id) is not None

    def _swap(self, placed: VM, replacement: VM | None) -> None:
        """Replace the exact object ``placed`` (or drop it when ``replacement`` is ``None``)."""
        for index, item in enumerate(self._items):
            if item is placed:
                if replacement is None:
                    del self._items[index]
                else:
                    self._items[index] = replacement
                return

    def _restore(
        self,
        snapshot: list[VM],
        generation: int,
        operation: str,
        resource_id: str | None,
        *,
        placed: VM | None = None,
        previous: VM | None = None,
    ) -> None:
        superseded = generation != self._generation
        if not superseded:
            self._items = snapshot
        elif placed is not None:
            self._swap(placed, previous)
        record_rollback(self.resource_type, operation)
        logger.warning(
            "dispatcher.rollback",
            resource_type=self.resource_type,
            resource_id=resource_id,
            operation=operation,
            superseded=superseded,
        )

    # ------------------------------------------------------------------
    # Single-item mutations
    # ------------------------------------------------------------------
    async def create_and_append(self, vm: VM) -> VM:
        """Append ``vm`` immediately, create it in the store, then swap in the stored view."""
        return await self._create(self.mapper.to_raw(vm), vm)

    async def duplicate(self, resource_id: str) -> VM:
        """Create a marked copy of a held item; the original is left untouched.

        Raises:
            ResourceNotFoundError: If ``resource_id`` is not held.
        """
        original = self.find(resource_id)
        if original is None:
            raise ResourceNotFoundError(
                f"{self.resource_type}/{resource_id} is not in the current list",
                resource_type=self.resource_type,
                resource_id=resource_id,
            )
        body = self.mapper.mark_copy(original.raw)
        return await self._create(body, self.mapper.to_view_model(body))

    async def _create(self, body: RawResource, placeholder: VM) -> VM:
        snapshot, generation = list(self._items), self._generation
        self._items.append(placeholder)
        try:
            created = await self.store.create(self.resource_type, body)
        except Exception:
            self._restore(snapshot, generation, "create", None, placed=placeholder)
            raise
        saved = self.mapper.to_view_model(created)
        position = next(
            (index for index, item in enumerate(self._items) if item is placeholder), None
        )
        if position is None:
            self._items.append(saved)
        else:
            self._items[position] = saved
        logger.info("dispatcher.created", resource_type=self.resource_type, resource_id=saved.id)
        return saved

    async def update_and_replace(self, vm: VM) -> VM | None:
        """Replace the held item with ``vm`` immediately, then persist it.

        Returns the stored view, or ``None`` when the store no longer has the
        resource and it is not held either.
        """
        current = self.find(vm.id)
        existing = current.raw if current is not None and current.raw else (vm.raw or None)
        body = self.mapper.to_raw(vm, existing=existing)
        snapshot, generation = list(self._items), self._generation
        index = self._index_of(vm.id)
        placed = None
        if index is not None:
            self._items[index] = placed = vm
        try:
            stored = await self.store.update(self.resource_type, vm.id, body)
        except ResourceNotFoundError:
            if self._holds(vm.id):
                self._restore(
                    snapshot, generation, "update", vm.id, placed=placed, previous=current
                )
                raise
            logger.info(
                "dispatcher.already_absent", resource_type=self.resource_type, resource_id=vm.id
            )
            return None
        except Exception:
            self._restore(
                snapshot, generation, "update", vm.id, placed=placed, previous=current
            )
            raise
        saved = self.mapper.to_view_model(stored)
        index = self._index_of(vm.id)
        if index is not None:
            self._items[index] = saved
        return saved

    async def delete_and_remove(self, resource_id: str) -> None:
        """Remove the held item immediately, then delete it from the store."""
        snapshot, generation = list(self._items), self._generation
        self._items = [item for item in self._items if item.id != resource_id]
        try:
            await self.store.delete(self.resource_type, resource_id)
        except ResourceNotFoundError:
            if self._holds(resource_id):
                self._restore(snapshot, generation, "delete", resource_id)
                raise
            logger.info(
                "dispatcher.already_absent",
                resource_type=self.resource_type,
                resource_id=resource_id,
            )
        except Exception:
            self._restore(snapshot, generation, "delete", resource_id)
            raise

    # ------------------------------------------------------------------
    # Bulk mutations
    # ------------------------------------------------------------------
    async def delete_many(self, ids: Sequence[str]) -> BulkResult:
        """Delete every id concurrently.

        Items whose delete fails are put back at their original positions,
        except not-found items, which stay removed and are still reported as
        failed with reason ``not-found``.
        """
        ids = _unique(ids)
        original, generation = list(self._items), self._generation
        positions = {item.id: index for index, item in enumerate(original)}
        targets = set(ids)
        self._items = [item for item in self._items if item.id not in targets]

        outcomes = await asyncio.gather(
            *(self.store.delete(self.resource_type, resource_id) for resource_id in ids),
            return_exceptions=True,
        )

        result = BulkResult()
        restore: list[str] = []
        for resource_id, outcome in zip(ids, outcomes):
            if not isinstance(outcome, BaseException):
                result.succeeded.append(resource_id)
                continue
            result.failed.append(BulkFailure(resource_id, reason_for(outcome)))
            if not isinstance(outcome, ResourceNotFoundError) and resource_id in positions:
                restore.append(resource_id)
            logger.warning(
                "dispatcher.bulk_item_failed",
                resource_type=self.resource_type,
                resource_id=resource_id,
                operation="delete",
                reason=reason_for(outcome),
            )
        if restore:
            # skipped once a newer search has replaced the list
            if generation == self._generation:
                self._reinsert(original, positions, restore)
            for resource_id in restore:
                record_rollback(self.resource_type, "delete")
        self._log_bulk("delete", result)
        return result

    def _reinsert(
        self, original: list[VM], positions: dict[str, int], restore: list[str]
    ) -> None:
        """Put restored items back where they were relative to the surviving items."""
        restored = set(restore)
        gone = sorted(
            index
            for resource_id, index in positions.items()
            if resource_id not in restored and not self._holds(resource_id)
        )
        for resource_id in sorted(restore, key=positions.__getitem__):
            index = positions[resource_id]
            shift = sum(1 for removed in gone if removed < index)
            self._items.insert(min(index - shift, len(self._items)), original[index])

    async def set_status_many(self, ids: Sequence[str], value: Any) -> BulkResult:
        """Set the status field of every held id concurrently.

        Ids that are not held are reported as ``not-found`` without a store
        call. Failed items are restored to their previous view.
        """
        ids = _unique(ids)
        result = BulkResult()
        previous: dict[str, VM] = {}
        placed: dict[str, VM] = {}
        bodies: list[tuple[str, RawResource]] = []
        for resource_id in ids:
            index = self._index_of(resource_id)
            if index is None:
                result.failed.append(BulkFailure(resource_id, ResourceNotFoundError.reason))
                continue
            current = self._items[index]
            updated = self.mapper.with_status(current, value)
            body = self.mapper.to_raw(updated, existing=current.raw or None)
            previous[resource_id] = current
            placed[resource_id] = self._items[index] = updated
            bodies.append((resource_id, body))

        outcomes = await asyncio.gather(
            *(
                self.store.update(self.resource_type, resource_id, body)
                for resource_id, body in bodies
            ),
            return_exceptions=True,
        )

        for (resource_id, _), outcome in zip(bodies, outcomes):
            index = self._index_of(resource_id)
            if isinstance(outcome, BaseException):
                result.failed.append(BulkFailure(resource_id, reason_for(outcome)))
                if index is not None and self._items[index] is placed[resource_id]:
                    self._items[index] = previous[resource_id]
                    record_rollback(self.resource_type, "update")
                logger.warning(
                    "dispatcher.bulk_item_failed",
                    resource_type=self.resource_type,
                    resource_id=resource_id,
                    operation="set_status",
                    reason=reason_for(outcome),
                )
                continue
            result.succeeded.append(resource_id)
            if index is not None:
                self._items[index] = self.mapper.to_view_model(outcome)
        self._log_bulk("set_status", result)
        return result

    def _log_bulk(self, operation: str, result: BulkResult) -> None:
        logger.info(
            "dispatcher.bulk_completed",
            resource_type=self.resource_type,
            operation=operation,
            succeeded=len(result.succeeded),
            failed=result.failure_count,
        )


__all__ = ["BulkFailure", "BulkResult", "MutationDispatcher"]
