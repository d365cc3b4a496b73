"""AccessKey service — issue, verify and revoke time-limited image grants."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from gallery_access.engine import tokens
from gallery_access.engine.models.base import utcnow
from gallery_access.engine.permissions import normalize_permissions, sorted_permissions
from gallery_access.errors.access_errors import (
    AccessDeniedError,
    AccessExpiredError,
    DuplicateHashError,
    ImageNotFoundError,
    InvalidAccessKeyOptionsError,
    KeyIssuanceFailedError,
    UsageLimitExceededError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from gallery_access.config.settings import AccessKeyConfig
    from gallery_access.engine.models import Image, User
    from gallery_access.engine.permissions import Permission
    from gallery_access.engine.store.interfaces import (
        AccessKeyStore,
        ImageCatalog,
        PrincipalDirectory,
    )
    from gallery_access.metrics.collector import EngineMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedAccessKey:
    """Result of a successful issuance.  ``token`` is shown exactly once."""

    token: str
    image_id: str
    expires_at: datetime
    permissions: frozenset[Permission]


@dataclass(frozen=True)
class VerifiedAccess:
    """What a valid token resolves to."""

    image: Image
    grantee: User | None
    permissions: frozenset[Permission]
    access_key_id: str
    usage_count: int
    expires_at: datetime


class AccessKeyService:
    """Business logic for image access keys.

    - Issue: random secret, hashed at rest, returned inside an opaque token
    - Verify: atomic lookup-and-count, then expiry and usage-cap policy
    - Revoke: bulk delete per image/grantee pair
    - Purge: drop records older than the retention window

    A verification that matches a record always consumes one use, even when
    it then fails on expiry or the usage cap; the attempt stays on record.
    """

    def __init__(
        self,
        store: AccessKeyStore,
        catalog: ImageCatalog,
        directory: PrincipalDirectory,
        config: AccessKeyConfig,
        *,
        metrics: EngineMetrics | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._directory = directory
        self._config = config
        self._metrics = metrics
        self._clock = clock or utcnow

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def issue(
        self,
        image_id: str,
        grantee_id: str,
        *,
        expires_in: int | None = None,
        permissions: Iterable[str | Permission] | None = None,
        max_usage: int | None = None,
    ) -> IssuedAccessKey:
        """Issue a new access key on *image_id* for *grantee_id*.

        Args:
            image_id: The image the key grants access to.
            grantee_id: The principal the key is issued to.
            expires_in: Lifetime in seconds (configured default if omitted).
            permissions: Granted permissions (configured default if omitted).
            max_usage: Optional cap on successful verifications.

        Returns:
            The public token with its expiry and effective permissions.

        Raises:
            InvalidAccessKeyOptionsError: On a bad lifetime, cap or permission.
            ImageNotFoundError: If the image does not exist.
            KeyIssuanceFailedError: If every attempt hit a hash collision.
        """
        lifetime = self._resolve_expires_in(expires_in)
        granted = self._resolve_permissions(permissions)
        if max_usage is not None and (isinstance(max_usage, bool) or max_usage < 1):
            raise InvalidAccessKeyOptionsError("max_usage must be at least 1")

        if not await self._store.exists(image_id):
            raise ImageNotFoundError

        expires_at = self._clock() + timedelta(seconds=lifetime)
        for attempt in range(1, self._config.max_issue_attempts + 1):
            secret = tokens.generate_secret()
            try:
                record = await self._store.create(
                    image_id,
                    grantee_id,
                    tokens.hash_secret(secret),
                    granted,
                    expires_at,
                    max_usage,
                )
            except DuplicateHashError:
                logger.warning(
                    "Access key hash collision for image %s (attempt %d)", image_id, attempt
                )
                continue

            if self._metrics:
                self._metrics.inc_issued()
            logger.info(
                "Issued access key %s on image %s to %s (expires %s, permissions %s)",
                record.id,
                image_id,
                grantee_id,
                expires_at.isoformat(),
                ",".join(sorted_permissions(granted)),
            )
            return IssuedAccessKey(
                token=tokens.compose_token(secret, image_id),
                image_id=image_id,
                expires_at=expires_at,
                permissions=granted,
            )

        raise KeyIssuanceFailedError

    async def verify(self, token: str) -> VerifiedAccess:
        """Resolve *token* to its image, grantee and permissions.

        Raises:
            MalformedTokenError: If the token cannot be parsed.
            AccessDeniedError: If no record matches.
            AccessExpiredError: If the record has expired.
            UsageLimitExceededError: If the record's usage cap is exceeded.
        """
        try:
            access = await self._verify(token)
        except Exception as exc:
            if self._metrics:
                self._metrics.inc_verification(getattr(exc, "code", "error"))
            raise
        if self._metrics:
            self._metrics.inc_verification("ok")
        return access

    async def revoke(self, image_id: str, grantee_id: str) -> int:
        """Delete every access key for the image/grantee pair.

        Idempotent: revoking when nothing exists is not an error.

        Returns:
            Number of keys removed.
        """
        removed = await self._store.delete_all_for(image_id, grantee_id)
        if self._metrics and removed:
            self._metrics.inc_revoked(removed)
        logger.info("Revoked %d access key(s) on image %s for %s", removed, image_id, grantee_id)
        return removed

    async def purge_stale(self, now: datetime | None = None) -> int:
        """Delete keys created before the retention window, expired or not.

        Returns:
            Number of keys removed.
        """
        cutoff = (now or self._clock()) - timedelta(days=self._config.retention_days)
        removed = await self._store.purge_created_before(cutoff)
        if removed:
            logger.info("Purged %d access key(s) created before %s", removed, cutoff.isoformat())
        return removed

    async def count(self) -> int:
        """Total number of stored access keys."""
        return await self._store.count()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _verify(self, token: str) -> VerifiedAccess:
        secret, image_id = tokens.parse_token(token)
        now = self._clock()
        record = await self._store.find_and_touch(tokens.hash_secret(secret), image_id, now)
        if record is None:
            logger.info("Access denied: no key matches token for image %s", image_id)
            raise AccessDeniedError

        # Policy checks run after the touch, against the incremented count.
        if record.is_expired(now):
            logger.info("Access key %s on image %s has expired", record.id, image_id)
            raise AccessExpiredError
        if record.is_over_limit:
            logger.info(
                "Access key %s on image %s exceeded its usage cap (%d > %d)",
                record.id,
                image_id,
                record.usage_count,
                record.max_usage,
            )
            raise UsageLimitExceededError

        image = await self._catalog.find_by_id(record.image_id)
        if image is None:
            # Image removed after the key was issued.
            raise AccessDeniedError
        grantee = await self._directory.find_by_id(record.grantee_id)

        return VerifiedAccess(
            image=image,
            grantee=grantee,
            permissions=record.permission_set,
            access_key_id=record.id,
            usage_count=record.usage_count,
            expires_at=record.expires_at,
        )

    def _resolve_expires_in(self, expires_in: int | None) -> int:
        if expires_in is None:
            return self._config.default_expires_in
        if isinstance(expires_in, bool) or not isinstance(expires_in, int) or expires_in <= 0:
            raise InvalidAccessKeyOptionsError("expires_in must be a positive number of seconds")
        if expires_in > self._config.max_expires_in:
            raise InvalidAccessKeyOptionsError(
                f"expires_in must not exceed {self._config.max_expires_in} seconds"
            )
        return expires_in

    def _resolve_permissions(
        self, permissions: Iterable[str | Permission] | None
    ) -> frozenset[Permission]:
        if permissions is None:
            return frozenset(self._config.default_permissions)
        if isinstance(permissions, str):
            permissions = [permissions]
        try:
            granted = normalize_permissions(permissions)
        except ValueError as exc:
            raise InvalidAccessKeyOptionsError(f"unknown permission: {exc}") from exc
        if not granted:
            raise InvalidAccessKeyOptionsError("permissions must not be empty")
        return granted
