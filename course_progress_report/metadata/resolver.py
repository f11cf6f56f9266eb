"""Resolve entity IDs to display names through the metadata service.

All four entity families go through :meth:`MetadataResolver.resolve_ids`.
Members are looked up in batches; products, courses and contents one ID at
a time. Lookup failures never abort a run: a failed member batch or entity
lookup simply leaves those IDs unresolved, and they render blank in the
report. Only a missing session (:class:`AuthRequired`) is fatal.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Mapping, TypeVar

import httpx
import structlog

from ..config import DEFAULT_MEMBER_BATCH_SIZE
from ..foundation.identifiers import IdSet
from .client import MetadataClient
from .names import (
    EntityName,
    EntityType,
    MemberProfile,
    ResolvedNames,
    entity_name_from_payload,
)
from .session import ApiSession, require_session

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def chunked(ids: Iterable[int], size: int) -> list[list[int]]:
    """Split IDs into sorted chunks of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    ordered = sorted(ids)
    return [ordered[start : start + size] for start in range(0, len(ordered), size)]


class MetadataResolver:
    """Turn raw entity IDs into display-name mappings.

    Args:
        client: Metadata endpoint wrapper.
        member_batch_size: Member IDs per batched call (default 50).
        max_concurrency: Upper bound on requests in flight at once.
    """

    def __init__(
        self,
        client: MetadataClient,
        *,
        member_batch_size: int = DEFAULT_MEMBER_BATCH_SIZE,
        max_concurrency: int = 8,
    ) -> None:
        if member_batch_size < 1:
            raise ValueError("member_batch_size must be at least 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.client = client
        self.member_batch_size = member_batch_size
        self.max_concurrency = max_concurrency

    async def resolve_all(self, session: ApiSession, ids: IdSet) -> ResolvedNames:
        """Resolve all four entity families concurrently."""
        require_session(session)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        members, products, courses, contents = await asyncio.gather(
            self._resolve(session, EntityType.MEMBER, ids.member_ids, semaphore),
            self._resolve(session, EntityType.PRODUCT, ids.product_ids, semaphore),
            self._resolve(session, EntityType.COURSE, ids.course_ids, semaphore),
            self._resolve(session, EntityType.CONTENT, ids.content_ids, semaphore),
        )
        return ResolvedNames(
            members=members, products=products, courses=courses, contents=contents
        )

    async def resolve_ids(
        self, session: ApiSession, entity_type: EntityType, ids: Iterable[int]
    ) -> dict[int, MemberProfile] | dict[int, EntityName]:
        """Resolve one entity family; batching is chosen per family."""
        require_session(session)
        return await self._resolve(
            session, entity_type, ids, asyncio.Semaphore(self.max_concurrency)
        )

    async def _resolve(
        self,
        session: ApiSession,
        entity_type: EntityType,
        ids: Iterable[int],
        semaphore: asyncio.Semaphore,
    ) -> dict:
        unique_ids = sorted({entity_id for entity_id in ids if entity_id > 0})
        if not unique_ids:
            return {}

        if entity_type is EntityType.MEMBER:
            mapping = await self._resolve_members(session, unique_ids, semaphore)
        else:
            mapping = await self._resolve_entities(
                session, entity_type, unique_ids, semaphore
            )

        logger.info(
            "entities_resolved",
            entity_type=entity_type.value,
            required=len(unique_ids),
            resolved=len(mapping),
        )
        return mapping

    async def _resolve_members(
        self,
        session: ApiSession,
        member_ids: list[int],
        semaphore: asyncio.Semaphore,
    ) -> dict[int, MemberProfile]:
        chunks = chunked(member_ids, self.member_batch_size)
        partials = await asyncio.gather(
            *(
                _limited(semaphore, self._fetch_member_chunk(session, chunk, index))
                for index, chunk in enumerate(chunks)
            )
        )
        mapping: dict[int, MemberProfile] = {}
        for partial in partials:
            mapping.update(partial)
        return mapping

    async def _fetch_member_chunk(
        self, session: ApiSession, chunk: list[int], index: int
    ) -> Mapping[int, MemberProfile]:
        try:
            return await self.client.fetch_members(session, chunk)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "member_batch_failed",
                batch_index=index,
                batch_size=len(chunk),
                error=str(e),
            )
            return {}

    async def _resolve_entities(
        self,
        session: ApiSession,
        entity_type: EntityType,
        entity_ids: list[int],
        semaphore: asyncio.Semaphore,
    ) -> dict[int, EntityName]:
        payloads = await asyncio.gather(
            *(
                _limited(semaphore, self.client.fetch_by_id(session, entity_type, entity_id))
                for entity_id in entity_ids
            )
        )
        return {
            entity_id: entity_name_from_payload(entity_type, payload)
            for entity_id, payload in zip(entity_ids, payloads)
            if payload is not None
        }


async def _limited(semaphore: asyncio.Semaphore, awaitable: Awaitable[T]) -> T:
    async with semaphore:
        return await awaitable


async def fetch_members_bulk(
    client: MetadataClient,
    session: ApiSession,
    member_ids: Iterable[int],
    batch_size: int = DEFAULT_MEMBER_BATCH_SIZE,
) -> dict[int, MemberProfile]:
    """Resolve members in batches of ``batch_size``, absorbing failed batches."""
    resolver = MetadataResolver(client, member_batch_size=batch_size)
    return await resolver.resolve_ids(session, EntityType.MEMBER, member_ids)
