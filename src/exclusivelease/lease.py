"""ExclusiveLease: a TTL-bound exclusive claim on a named resource."""

import asyncio
import logging
from typing import Any

from exclusivelease.codec import decode, encode
from exclusivelease.config import DEFAULT_CONTENTS, DEFAULT_KEY_PREFIX, LeaseOptions
from exclusivelease.events import EventRegistry, Listener
from exclusivelease.keys import build_key, normalize
from exclusivelease.store import LeaseStore, StoreSnapshot
from exclusivelease.types import Contents, LeaseEvent, LeaseState


class ExclusiveLease:
    """
    Exclusive lease on a named resource, coordinated through a shared store.

    The claim is a single atomic "set if absent with expiry" on the store.
    While held, a background task pushes the expiry forward every
    ``renewal_interval_ms``. If a renewal fails the lease gives itself up
    (deletes the key and goes idle) rather than keep running on a claim it
    can no longer extend.

    Example:
        lease = ExclusiveLease(name="nightly-report", store=store)
        if await lease.acquire():
            try:
                ...
            finally:
                await lease.release()
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        store: LeaseStore | None = None,
        ttl_ms: int | None = None,
        renewal_interval_ms: int | None = None,
        contents: Contents = DEFAULT_CONTENTS,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        auto_renew: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Validate options and build an idle lease. No store access happens here.

        Args:
            name: Resource name; normalized into the store key
            store: Shared LeaseStore (borrowed, never closed by the lease)
            ttl_ms: Expiry of the store key, default 3000
            renewal_interval_ms: Renewal period, default 1000. Must be given
                together with ttl_ms and be at least 500ms shorter
            contents: JSON-serializable payload stored with the claim
            key_prefix: Key-space prefix, default "exclusive-lock"
            auto_renew: Start the renewal task on acquire
            logger: Logger to use instead of the module logger

        Raises:
            ConfigurationError: If an option is missing or invalid
            TTLSpacingError: If the renewal interval is too close to the TTL
        """
        supplied: dict[str, Any] = {
            "name": name,
            "store": store,
            "ttl_ms": ttl_ms,
            "renewal_interval_ms": renewal_interval_ms,
            "logger": logger,
        }
        options = {option: value for option, value in supplied.items() if value is not None}
        options.update(contents=contents, key_prefix=key_prefix, auto_renew=auto_renew)
        opts = LeaseOptions.from_mapping(options)

        self.logger = opts.logger or logging.getLogger(__name__)
        self._store: LeaseStore = opts.store
        self._name = normalize(opts.name)
        self._key = build_key(opts.key_prefix, opts.name)
        self._ttl_ms = opts.ttl_ms
        self._renewal_interval_ms = opts.renewal_interval_ms
        self._contents = opts.contents
        self._auto_renew = opts.auto_renew

        self._state = LeaseState.IDLE
        self._op_lock = asyncio.Lock()
        self._renewal_task: asyncio.Task[None] | None = None
        self._events = EventRegistry(self.logger)
        # Set while a reset_expiry round trip is outstanding
        self.renewal_in_flight = False

    @classmethod
    def from_options(cls, options: LeaseOptions) -> "ExclusiveLease":
        """Build a lease from a LeaseOptions instance."""
        return cls(
            name=options.name,
            store=options.store,
            ttl_ms=options.ttl_ms,
            renewal_interval_ms=options.renewal_interval_ms,
            contents=options.contents,
            key_prefix=options.key_prefix,
            auto_renew=options.auto_renew,
            logger=options.logger,
        )

    @property
    def key(self) -> str:
        """Store key for this lease, fixed at construction."""
        return self._key

    @property
    def name(self) -> str:
        return self._name

    @property
    def store(self) -> LeaseStore:
        return self._store

    @property
    def state(self) -> LeaseState:
        return self._state

    @property
    def acquired(self) -> bool:
        return self._state is LeaseState.HELD

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    @property
    def renewal_interval_ms(self) -> int:
        return self._renewal_interval_ms

    @property
    def contents(self) -> Contents:
        return self._contents

    @property
    def auto_renew(self) -> bool:
        return self._auto_renew

    @property
    def renewal_task(self) -> "asyncio.Task[None] | None":
        """The running renewal task, or None when idle or auto_renew is off."""
        return self._renewal_task

    def on(self, event: LeaseEvent, listener: Listener) -> None:
        """
        Register a listener.

        Payloads:
            acquired: the key
            renewed: {"key": key, "ttl_ms": ttl_ms}
            renewal-failed: the exception
            released: the key
        """
        self._events.add(event, listener)

    def off(self, event: LeaseEvent, listener: Listener) -> None:
        self._events.remove(event, listener)

    async def acquire(self) -> bool:
        """
        Try to claim the lease.

        Returns:
            True if this instance holds the lease (including when it
            already did), False if another holder owns the key

        Raises:
            Any exception from the store. The claim outcome is unknown in
            that case and the lease stays idle locally.
        """
        async with self._op_lock:
            if self._state is LeaseState.HELD:
                self.logger.warning("%s lease is already acquired. Must release first.", self._key)
                return True

            created = await self._store.set_if_absent(self._key, encode(self._contents), self._ttl_ms)
            if not created:
                return False

            self._state = LeaseState.HELD
            if self._auto_renew:
                self._renewal_task = asyncio.create_task(self._renewal_loop())
            self.logger.info(
                "%s lease acquired (contents=%r, ttl_ms=%s, renewal_interval_ms=%s)",
                self._key,
                self._contents,
                self._ttl_ms,
                self._renewal_interval_ms,
            )

        await self._events.emit("acquired", self._key)
        return True

    async def renew(self) -> bool:
        """
        Run one renewal tick.

        Skipped when idle or when another renewal is still in flight. The
        store call runs under the same lock as release(), so a renewal
        never lands after the key was deleted. A failed renewal is never
        raised: it is reported through the "renewal-failed" event and the
        lease abdicates.

        Returns:
            True if the expiry was pushed forward
        """
        if self._state is not LeaseState.HELD:
            return False
        if self.renewal_in_flight:
            self.logger.debug("%s renewal skipped, previous renewal still in flight", self._key)
            return False

        renew_error: Exception | None = None
        delete_error: Exception | None = None
        self.renewal_in_flight = True
        try:
            async with self._op_lock:
                # release() or an abdication may have taken the lock first
                if self._state is not LeaseState.HELD:
                    return False
                try:
                    await self._store.reset_expiry(self._key, self._ttl_ms)
                except Exception as err:
                    self.logger.error("Could not renew %s lease: %s", self._key, err)
                    renew_error = err
                    delete_error = await self._abdicate()
        finally:
            self.renewal_in_flight = False

        if renew_error is not None:
            await self._events.emit("renewal-failed", renew_error)
            if delete_error is not None:
                await self._events.emit("renewal-failed", delete_error)
            else:
                await self._events.emit("released", self._key)
            return False

        if self._state is not LeaseState.HELD:
            return False
        self.logger.debug("%s lease renewed to %sms", self._key, self._ttl_ms)
        await self._events.emit("renewed", {"key": self._key, "ttl_ms": self._ttl_ms})
        return True

    async def release(self) -> None:
        """
        Give up the lease. A no-op when idle.

        The renewal task is stopped and any renewal in flight settles
        before the key is deleted. The lease is idle afterwards even if
        the delete fails.

        Raises:
            Any exception from the store delete. The key may then survive
            until it expires on its own.
        """
        # Cancel the scheduler first so a stuck tick cannot hold the lock
        await self._stop_renewal()
        async with self._op_lock:
            if self._state is not LeaseState.HELD:
                return
            await self._stop_renewal()
            try:
                await self._store.delete(self._key)
            except Exception as err:
                self.logger.error("Error removing lease %s: %s", self._key, err)
                raise
            finally:
                self._state = LeaseState.IDLE
            self.logger.info("%s lease removed", self._key)

        await self._events.emit("released", self._key)

    async def inspect(self) -> Contents | None:
        """
        Read the stored contents of a held lease.

        Returns None without touching the store when idle. Undecodable
        contents are returned raw.
        """
        snapshot = await self.inspect_snapshot()
        return snapshot.value

    async def inspect_snapshot(self) -> StoreSnapshot:
        """Read contents and remaining TTL of a held lease in one round trip."""
        if self._state is not LeaseState.HELD:
            return StoreSnapshot.empty()

        snapshot = await self._store.batch_read(self._key)
        if snapshot is None or snapshot.value is None:
            return snapshot or StoreSnapshot.empty()

        try:
            value = decode(snapshot.value)
        except ValueError as err:
            self.logger.error("Lease contents is corrupt: %s", err)
            value = snapshot.value
        return StoreSnapshot(value=value, ttl_ms=snapshot.ttl_ms)

    async def _abdicate(self) -> Exception | None:
        """
        Drop a lease that could not be renewed. Must be called with the op lock held.

        Returns:
            The delete error if the cleanup delete failed, else None
        """
        await self._stop_renewal()
        try:
            await self._store.delete(self._key)
        except Exception as err:
            self._state = LeaseState.IDLE
            self.logger.error("Could not remove %s after failed renewal: %s", self._key, err)
            return err
        self._state = LeaseState.IDLE
        self.logger.info("%s lease removed after failed renewal", self._key)
        return None

    async def _stop_renewal(self) -> None:
        task, self._renewal_task = self._renewal_task, None
        # Called from inside the loop: it sees it is no longer the renewal task and exits
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _renewal_loop(self) -> None:
        """Background task renewing the lease on a fixed period while held."""
        loop = asyncio.get_running_loop()
        interval = self._renewal_interval_ms / 1000
        next_tick = loop.time() + interval
        # A re-acquire from a listener starts a new task; this one must then stop
        while self._state is LeaseState.HELD and self._renewal_task is asyncio.current_task():
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            await self.renew()
            # Ticks missed during a slow renewal are dropped, not queued
            now = loop.time()
            next_tick += interval
            while next_tick <= now:
                next_tick += interval

    async def __aenter__(self) -> "ExclusiveLease":
        """Context manager entry. Check ``acquired`` to see whether the claim succeeded."""
        await self.acquire()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.release()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} key={self._key!r} state={self._state.value}>"
