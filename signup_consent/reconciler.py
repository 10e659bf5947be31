"""
Consent Reconciler

Orchestrates the signup consent flow:

    uninitialized -> identity_ready -> region_resolved -> notice_resolved
        -> served -> submitted

``start()`` walks the chain once, one network round trip per step. A step
that fails, or finds nothing applicable, halts the machine at the last state
it reached and records why; nothing is raised to the caller. ``submit()``
is accepted only once a served reference exists, and every submission of
the session cites that same reference.

Every transition publishes a new immutable ``ReconcilerSnapshot`` to
subscribers. After ``close()`` late results from calls already in flight
are dropped instead of applied.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

from signup_consent.clients.base import create_http_client
from signup_consent.clients.catalog import NoticeCatalogClient
from signup_consent.clients.preferences import PreferenceRecorder
from signup_consent.clients.region import RegionResolver
from signup_consent.clients.served import ServedRecorder
from signup_consent.core.config import ReconcilerConfig, get_config
from signup_consent.core.enums import HaltReason, ReconcilerState, UserConsentPreference
from signup_consent.core.errors import (
    ConsentSyncError,
    NotApplicable,
    SubmissionBlockedError,
)
from signup_consent.core.models import (
    DeviceIdentityRecord,
    PreferenceSubmission,
    PrivacyExperience,
    ReconcilerSnapshot,
    SubmissionResult,
)
from signup_consent.identity.storage import KeyValueStore
from signup_consent.identity.store import DeviceIdentityStore

logger = structlog.get_logger(__name__)

SnapshotListener = Callable[[ReconcilerSnapshot], None]


class ConsentReconciler:
    """
    State machine reconciling the local consent record with the remote
    notice catalog and preference store for one browsing session.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        config: ReconcilerConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        identity_store: DeviceIdentityStore | None = None,
        region_resolver: RegionResolver | None = None,
        catalog: NoticeCatalogClient | None = None,
        served_recorder: ServedRecorder | None = None,
        preference_recorder: PreferenceRecorder | None = None,
    ) -> None:
        self.config = config or get_config()

        self._owns_http_client = http_client is None
        self._http = http_client or create_http_client(self.config)

        self.identity = identity_store or DeviceIdentityStore(storage, self.config)
        self.region_resolver = region_resolver or RegionResolver(self._http, self.config)
        self.catalog = catalog or NoticeCatalogClient(self._http, self.config)
        self.served_recorder = served_recorder or ServedRecorder(self._http, self.config)
        self.preference_recorder = preference_recorder or PreferenceRecorder(
            self._http, self.config
        )

        self._snapshot = ReconcilerSnapshot()
        self._listeners: list[SnapshotListener] = []

        self._record: DeviceIdentityRecord | None = None
        self._experience: PrivacyExperience | None = None

        self._started = False
        self._closed = False
        self._active_operations = 0
        self._submit_task: asyncio.Task[SubmissionResult] | None = None

    # ───────────────────────────────────────────────────────────────
    # SNAPSHOTS
    # ───────────────────────────────────────────────────────────────

    @property
    def snapshot(self) -> ReconcilerSnapshot:
        return self._snapshot

    @property
    def state(self) -> ReconcilerState:
        return self._snapshot.state

    @property
    def can_submit(self) -> bool:
        return self._snapshot.can_submit

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def experience(self) -> PrivacyExperience | None:
        """Experience fetched for this session, if the catalog answered."""
        return self._experience

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a listener called with every new snapshot.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes: Any) -> ReconcilerSnapshot:
        if self._closed:
            return self._snapshot
        previous = self._snapshot.state
        self._snapshot = self._snapshot.model_copy(update=changes)
        if self._snapshot.state is not previous:
            logger.debug(
                "reconciler_transition",
                from_state=previous.value,
                to_state=self._snapshot.state.value,
            )
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                logger.exception("snapshot_listener_failed")
        return self._snapshot

    # ───────────────────────────────────────────────────────────────
    # STARTUP CHAIN
    # ───────────────────────────────────────────────────────────────

    async def start(self) -> ReconcilerSnapshot:
        """
        Run the startup chain once and return the resulting snapshot.

        Later calls return the current snapshot without re-running.
        """
        if self._started or self._closed:
            return self._snapshot
        self._started = True

        async with self._operation():
            record = self.identity.ensure()
            self._record = record
            with structlog.contextvars.bound_contextvars(device_id=record.device_id):
                self._publish(
                    state=ReconcilerState.IDENTITY_READY,
                    device_id=record.device_id,
                    consent=record.consented,
                )
                await self._run_chain(record)
        return self._snapshot

    async def _run_chain(self, record: DeviceIdentityRecord) -> None:
        # identity_ready -> region_resolved
        try:
            region = await self.region_resolver.resolve()
            if region is None:
                raise NotApplicable("Location lookup returned no country")
        except NotApplicable as e:
            self._halt(HaltReason.NO_REGION, e)
            return
        except ConsentSyncError as e:
            self._halt(HaltReason.REGION_UNAVAILABLE, e)
            return
        if self._discard_if_closed("region"):
            return
        self._publish(state=ReconcilerState.REGION_RESOLVED, region=region)

        # region_resolved -> notice_resolved
        try:
            experience = await self.catalog.fetch_experience(region.catalog_region)
            if experience is None:
                raise NotApplicable(f"No privacy experience for region {region.catalog_region}")
        except NotApplicable as e:
            self._halt(HaltReason.NO_EXPERIENCE, e)
            return
        except ConsentSyncError as e:
            self._halt(HaltReason.CATALOG_UNAVAILABLE, e)
            return
        if self._discard_if_closed("experience"):
            return

        self._experience = experience
        notice = self.catalog.select_notice(experience)
        if notice is None:
            self._halt(
                HaltReason.NO_MATCHING_NOTICE,
                NotApplicable(f"No notice key ends with {self.config.notice_key_suffix!r}"),
                experience_id=experience.id,
            )
            return
        self._publish(
            state=ReconcilerState.NOTICE_RESOLVED,
            experience_id=experience.id,
            notice=notice,
        )

        # notice_resolved -> served
        try:
            served = await self.served_recorder.record_served(
                experience, notice, record.device_id, region
            )
        except ConsentSyncError as e:
            self._halt(HaltReason.SERVED_RECORD_FAILED, e)
            return
        if self._discard_if_closed("served"):
            return
        self._publish(state=ReconcilerState.SERVED, served=served)
        logger.info("reconciler_ready", notice_key=notice.notice_key)

    def _halt(self, reason: HaltReason, error: Exception, **changes: Any) -> None:
        if self._discard_if_closed(reason.value):
            return
        fault = not isinstance(error, NotApplicable)
        log = logger.warning if fault else logger.info
        log(
            "reconciler_halted",
            state=self._snapshot.state.value,
            reason=reason.value,
            error=str(error),
        )
        self._publish(
            halt_reason=reason.value,
            last_error=str(error) if fault else None,
            **changes,
        )

    def _discard_if_closed(self, step: str) -> bool:
        if self._closed:
            logger.info("reconciler_result_discarded", step=step)
        return self._closed

    # ───────────────────────────────────────────────────────────────
    # SUBMISSION
    # ───────────────────────────────────────────────────────────────

    async def submit(self, consent: bool) -> SubmissionResult:
        """
        Record the user's decision locally and remotely.

        A call made while a submission is in flight returns that
        submission's result instead of sending another audit record.

        Raises:
            SubmissionBlockedError: no served reference exists, or the
                reconciler has been closed
        """
        if self._submit_task is not None and not self._submit_task.done():
            logger.info("submission_coalesced", consent=consent)
            return await asyncio.shield(self._submit_task)

        if self._closed:
            raise SubmissionBlockedError("Reconciler has been closed")
        if not self._snapshot.state.accepts_submission or self._snapshot.served is None:
            raise SubmissionBlockedError(
                f"Cannot submit a preference in state {self._snapshot.state.value}: "
                "no notice has been served this session"
            )

        record = self._require_record()
        submission = self.build_submission(consent)
        self._submit_task = asyncio.ensure_future(self._submit(record, submission, consent))
        return await asyncio.shield(self._submit_task)

    def build_submission(self, consent: bool) -> PreferenceSubmission:
        """Preference audit record for ``consent`` citing this session's served notice."""
        record = self._require_record()
        snapshot = self._snapshot
        if snapshot.served is None or snapshot.region is None:
            raise SubmissionBlockedError("No served reference to cite")
        return PreferenceSubmission(
            device_id=record.device_id,
            privacy_notice_history_id=snapshot.served.privacy_notice_history_id,
            preference=UserConsentPreference.from_consent(consent),
            served_notice_history_id=snapshot.served.served_notice_history_id,
            privacy_experience_id=snapshot.served.experience_id,
            user_geography=snapshot.region.geography,
            method=self.config.consent_method.value,
        )

    def _require_record(self) -> DeviceIdentityRecord:
        if self._record is None:
            raise SubmissionBlockedError("No device identity has been loaded")
        return self._record

    async def _submit(
        self,
        record: DeviceIdentityRecord,
        submission: PreferenceSubmission,
        consent: bool,
    ) -> SubmissionResult:
        async with self._operation():
            with structlog.contextvars.bound_contextvars(device_id=record.device_id):
                self._publish(submitting=True)
                try:
                    return await self._record_decision(record, submission, consent)
                finally:
                    # An unexpected error must not leave the session submitting.
                    if self._snapshot.submitting:
                        self._publish(submitting=False)

    async def _record_decision(
        self,
        record: DeviceIdentityRecord,
        submission: PreferenceSubmission,
        consent: bool,
    ) -> SubmissionResult:
        local_saved = True
        local_error: str | None = None
        try:
            self.identity.update_consent(record, consent)
        except Exception as e:
            # Local write is best effort; the remote record is the audit trail.
            local_saved = False
            local_error = f"Local consent record not saved: {e}"
            logger.exception("local_consent_write_failed", consent=consent)

        remote_error: str | None = None
        try:
            await self.preference_recorder.save(submission)
        except ConsentSyncError as e:
            remote_error = str(e)
            logger.warning(
                "preference_submission_failed",
                error=remote_error,
                local_saved=local_saved,
                preference=submission.preference,
            )

        result = SubmissionResult(
            submission=submission,
            remote_recorded=remote_error is None,
            local_saved=local_saved,
            error=remote_error or local_error,
        )

        if self._discard_if_closed("submission"):
            return result

        if result.remote_recorded:
            self._publish(
                state=ReconcilerState.SUBMITTED,
                submitting=False,
                consent=record.consented,
                last_submission=submission,
                last_error=local_error,
            )
        else:
            self._publish(
                submitting=False,
                consent=record.consented,
                last_error=remote_error,
            )
        return result

    # ───────────────────────────────────────────────────────────────
    # TEARDOWN
    # ───────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _operation(self) -> AsyncIterator[None]:
        self._active_operations += 1
        try:
            yield
        finally:
            self._active_operations -= 1
            if self._closed and self._active_operations == 0:
                await self._release_http_client()

    async def close(self) -> None:
        """
        Tear the session down.

        Requests already issued run to completion; their results are
        discarded. An owned HTTP client is closed once they finish.
        """
        if self._closed:
            return
        self._publish(closed=True)
        self._closed = True
        self._listeners.clear()
        logger.info("reconciler_closed", state=self._snapshot.state.value)
        if self._active_operations == 0:
            await self._release_http_client()

    async def _release_http_client(self) -> None:
        if self._owns_http_client and not self._http.is_closed:
            await self._http.aclose()

    async def __aenter__(self) -> ConsentReconciler:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
