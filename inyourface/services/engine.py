# inyourface/services/engine.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Set

from inyourface.core.config import Settings, get_settings
from inyourface.core.errors import AcquisitionFault, HostSignalFault
from inyourface.schemas.agenda import Agenda, AgendaView
from inyourface.schemas.alert import AlertSession, AlertTrigger, AlertView, JoinResult
from inyourface.schemas.engine_state import EngineState
from inyourface.schemas.meeting import RawEvent
from inyourface.services.agenda_builder import format_countdown
from inyourface.services.alert_clock import on_tick
from inyourface.services.alert_session import (
    activate,
    build_alert_view,
    deactivate,
    expire_if_due,
)
from inyourface.services.calendar_sources import CalendarSource
from inyourface.services.host_bridge import HostBridge
from inyourface.services.refresh_cycle import apply_failure, apply_refresh

logger = logging.getLogger(__name__)

AgendaListener = Callable[[Agenda], None]


def local_now() -> datetime:
    return datetime.now().astimezone()


class MeetingAlertEngine:
    """
    Owns the agenda and the single alert slot, and drives them from three
    timers on the running asyncio loop:

    - the alert clock tick (TICK_INTERVAL_SECONDS)
    - the scheduled refresh (REFRESH_INTERVAL_SECONDS, first one on start)
    - a one-shot refresh ALERT_THRESHOLD_MS after every alert activation

    State is an immutable EngineState swapped synchronously inside each
    handler, so handlers never observe a half-applied transition. Calendar
    fetches run as separate tasks and never hold up the tick; when fetches
    overlap, only the result of the most recently issued one is applied.
    """

    def __init__(
        self,
        source: CalendarSource,
        bridge: HostBridge,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._source = source
        self._bridge = bridge
        self._clock = clock

        self._threshold = timedelta(milliseconds=self._settings.ALERT_THRESHOLD_MS)
        self._expiry = timedelta(seconds=self._settings.ALERT_EXPIRY_SECONDS)

        self._state = EngineState()
        self._listeners: List[AgendaListener] = []

        self._loops: List[asyncio.Task] = []
        self._background: Set[asyncio.Task] = set()
        self._post_alert_timer: Optional[asyncio.TimerHandle] = None
        self._signal_lock = asyncio.Lock()

        self._issued_generation = 0
        self._fetches_in_flight = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def post_alert_refresh_pending(self) -> bool:
        return self._post_alert_timer is not None

    def now(self) -> datetime:
        return self._clock()

    def subscribe(self, listener: AgendaListener) -> Callable[[], None]:
        """
        Register a listener for "agenda changed" events. Returns a callable
        that removes it again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def agenda_view(self, now: Optional[datetime] = None) -> AgendaView:
        now = now or self.now()
        state = self._state
        up_next = state.agenda.up_next
        countdown = None
        if up_next is not None and up_next.start is not None:
            countdown = format_countdown(up_next.start, now)

        return AgendaView(
            up_next=up_next,
            countdown=countdown,
            later=list(state.agenda.later),
            meetings=list(state.agenda.meetings),
            loading=state.loading,
            permission_error=state.permission_error,
            last_refreshed_at=state.last_refreshed_at,
        )

    def alert_view(self, now: Optional[datetime] = None) -> AlertView:
        return build_alert_view(self._state, now or self.now())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        if self._loops:
            return
        self._loops = [
            asyncio.create_task(self._tick_loop(), name="alert-clock"),
            asyncio.create_task(self._refresh_loop(), name="refresh-cycle"),
        ]
        logger.info(
            "Alert engine started (threshold=%sms, refresh every %ss)",
            self._settings.ALERT_THRESHOLD_MS,
            self._settings.REFRESH_INTERVAL_SECONDS,
        )

    async def stop(self) -> None:
        self._cancel_post_alert_timer()
        tasks = self._loops + list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loops = []
        self._background.clear()

        if self._state.alert is not None:
            # Leave the host in its normal window mode.
            await self._deliver_signal(
                "exit_alert_presentation", self._bridge.exit_alert_presentation
            )
        logger.info("Alert engine stopped")

    async def _tick_loop(self) -> None:
        interval = self._settings.TICK_INTERVAL_SECONDS
        while True:
            self.tick()
            await asyncio.sleep(interval)

    async def _refresh_loop(self) -> None:
        interval = self._settings.REFRESH_INTERVAL_SECONDS
        while True:
            self.request_refresh("scheduled")
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Alert transitions
    # ------------------------------------------------------------------
    def tick(self, now: Optional[datetime] = None) -> Optional[AlertSession]:
        """
        One alert-clock tick. Expires an overdue alert, otherwise looks for a
        meeting entering the threshold window. Returns the session started by
        this tick, if any.
        """
        now = now or self.now()

        state, expired = expire_if_due(self._state, now)
        if expired is not None:
            self._state = state
            self._after_deactivate("expired")
            return None

        state, started = on_tick(state, now, threshold=self._threshold, expiry=self._expiry)
        if started is not None:
            self._state = state
            self._after_activate()
        return started

    def check_alert_now(self, now: Optional[datetime] = None) -> Optional[AlertSession]:
        """
        Manually raise the alert for the current up-next meeting. No-op when
        there is no such meeting or an alert is already active.
        """
        meeting = self._state.agenda.up_next
        if meeting is None:
            return None

        state, started = activate(
            self._state,
            meeting,
            now or self.now(),
            expiry=self._expiry,
            trigger=AlertTrigger.MANUAL,
        )
        if started is not None:
            self._state = state
            self._after_activate()
        return started

    def dismiss(self) -> Optional[asyncio.Task]:
        """
        Close the active alert. Returns the refresh task it triggered, or None
        if no alert was active.
        """
        state, closed = deactivate(self._state)
        if closed is None:
            return None
        self._state = state
        logger.info("Alert for %r dismissed", closed.meeting.title)
        return self._after_deactivate("dismissed")

    def join(self) -> JoinResult:
        """
        Dismiss the active alert, then ask the host to open its call link.
        With no active alert the up-next meeting's link is used.
        """
        session = self._state.alert
        meeting = session.meeting if session is not None else self._state.agenda.up_next
        link = meeting.link if meeting is not None else None

        dismissed = self.dismiss() is not None
        if link:
            self._fire_signal("open_external", self._bridge.open_external, link)

        return JoinResult(link=link, dismissed=dismissed)

    def _after_activate(self) -> None:
        self._fire_signal("enter_alert_presentation", self._bridge.enter_alert_presentation)

        self._cancel_post_alert_timer()
        loop = asyncio.get_running_loop()
        self._post_alert_timer = loop.call_later(
            self._threshold.total_seconds(),
            self._on_post_alert_timer,
        )

    def _after_deactivate(self, reason: str) -> asyncio.Task:
        self._cancel_post_alert_timer()
        self._fire_signal("exit_alert_presentation", self._bridge.exit_alert_presentation)
        return self.request_refresh(f"alert {reason}")

    def _on_post_alert_timer(self) -> None:
        self._post_alert_timer = None
        self.request_refresh("post-alert")

    def _cancel_post_alert_timer(self) -> None:
        if self._post_alert_timer is not None:
            self._post_alert_timer.cancel()
            self._post_alert_timer = None

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------
    def request_refresh(self, reason: str = "manual") -> asyncio.Task:
        """
        Start a calendar refresh in the background and return its task. The
        task resolves to True if its result was published.
        """
        self._issued_generation += 1
        generation = self._issued_generation

        self._fetches_in_flight += 1
        self._state = self._state.model_copy(update={"loading": True})

        task = asyncio.create_task(self._run_refresh(generation, reason))
        self._track(task)
        return task

    async def refresh(self, reason: str = "manual") -> bool:
        return await self.request_refresh(reason)

    async def _acquire(self) -> List[RawEvent]:
        timeout = self._settings.FETCH_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(self._source.fetch_events(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise AcquisitionFault(f"Calendar fetch timed out after {timeout}s") from exc

    async def _run_refresh(self, generation: int, reason: str) -> bool:
        try:
            raw_events = await self._acquire()
        except AcquisitionFault as exc:
            return self._refresh_failed(generation, reason, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while fetching calendar events")
            return self._refresh_failed(generation, reason, repr(exc))
        finally:
            self._fetches_in_flight -= 1
            if self._fetches_in_flight == 0:
                self._state = self._state.model_copy(update={"loading": False})

        if generation != self._issued_generation:
            logger.debug("Discarding superseded refresh result (%s)", reason)
            return False

        previous = self._state.agenda
        self._state = apply_refresh(self._state, raw_events, self.now())
        agenda = self._state.agenda
        logger.info(
            "Agenda refreshed (%s): %d of %d events remaining today",
            reason,
            len(agenda.meetings),
            len(raw_events),
        )

        if not agenda.same_meetings(previous):
            self._publish_agenda(agenda)
        return True

    def _refresh_failed(self, generation: int, reason: str, detail: str) -> bool:
        if generation != self._issued_generation:
            logger.debug("Ignoring failure of superseded refresh (%s)", reason)
            return False
        logger.warning("Calendar refresh (%s) failed: %s", reason, detail)
        self._state = apply_failure(self._state)
        return False

    def _publish_agenda(self, agenda: Agenda) -> None:
        for listener in list(self._listeners):
            try:
                listener(agenda)
            except Exception:
                logger.exception("Agenda listener %r failed", listener)

    # ------------------------------------------------------------------
    # Host signalling
    # ------------------------------------------------------------------
    def _fire_signal(self, name: str, call: Callable[..., Awaitable[None]], *args: str) -> None:
        self._track(asyncio.create_task(self._deliver_signal(name, call, *args)))

    async def _deliver_signal(
        self, name: str, call: Callable[..., Awaitable[None]], *args: str
    ) -> None:
        # Serialised so enter/exit reach the host in transition order.
        async with self._signal_lock:
            try:
                await call(*args)
            except HostSignalFault as exc:
                logger.warning("Host signal %s failed: %s", name, exc)
            except Exception:
                logger.exception("Host signal %s failed", name)

    def _track(self, task: asyncio.Task) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)
