"""Capture session - the aggregate the host drives.

Owns the timeline, transaction tracker and classifier for one recording
run against one tab. Every method is synchronous; callers deliver
notifications one at a time (see ``channels.SessionActor`` for an async
front end that guarantees this).
"""

import json
import time
from typing import Callable, Optional

import structlog

from src.config import Settings, get_settings

from .classifier import ClassifierConfig, SessionClassifier
from .correlator import CorrelationResult, Correlator
from .errors import DuplicateStart, NotRecording, UnknownTransaction
from .locator import generate_locator
from .models import (
    CaptureTarget,
    Completed,
    Errored,
    FieldDescription,
    Header,
    Interaction,
    InteractionEvent,
    InteractionSubtype,
    Milestone,
    Navigation,
    RecordingState,
    TimelineEntry,
    TransactionEntry,
    TransactionInitiation,
    TransactionOutcome,
)
from .normalizer import classify_sensitivity, normalize, normalize_form_data
from .serializer import reconstruct_command
from .timeline import TimelineStore
from .tracker import TransactionTracker

logger = structlog.get_logger()


def _now_ms() -> float:
    return time.time() * 1000


class CaptureSession:
    """One recording run: timeline, in-flight transactions, classifier state.

    Example:
        session = CaptureSession()
        session.start(CaptureTarget(tab_id=7, domain="site.example", initial_url=url))
        session.record_interaction(event)
        session.on_request_started(initiation)
        session.on_completed("42", status=200, end_timestamp=t)
        session.stop()
        document = session.export_json()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        classifier_config: Optional[ClassifierConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize an idle session.

        Args:
            settings: Settings override (defaults to environment settings)
            classifier_config: Classifier heuristics override
            clock: Millisecond clock used to stamp the initial navigation
        """
        self.settings = settings or get_settings()
        self.clock = clock or _now_ms
        self.log = logger.bind(component="capture_session")

        self.target: Optional[CaptureTarget] = None
        self.timeline = TimelineStore()
        self.tracker = TransactionTracker(
            scope=self._in_scope,
            stripped_header_prefixes=self.settings.stripped_header_prefixes,
        )
        self.correlator = Correlator(window_ms=self.settings.correlation_window_ms)
        self.classifier = SessionClassifier(
            classifier_config
            or ClassifierConfig(
                verification_ttl_ms=self.settings.email_verification_ttl_ms,
                weak_min_entries=self.settings.profile_weak_min_entries,
            )
        )

    # =========================================================================
    # SESSION CONTROL
    # =========================================================================

    @property
    def is_recording(self) -> bool:
        return self.target is not None

    def start(self, target: CaptureTarget, timestamp: Optional[float] = None) -> int:
        """Start recording ``target``.

        Seeds a fresh timeline with a navigation to the target's initial URL.

        Returns:
            Index of the initial navigation entry

        Raises:
            DuplicateStart: If a session is already recording
        """
        if self.is_recording:
            raise DuplicateStart(f"Already recording tab {self.target.tab_id}")

        self.target = target
        self.timeline = TimelineStore()
        self.tracker.clear()
        self.classifier.reset()

        index = self.timeline.append(
            Navigation(
                url=target.initial_url,
                timestamp=timestamp if timestamp is not None else self.clock(),
            )
        )
        self.log.info("Recording started", tab_id=target.tab_id, domain=target.domain)
        return index

    def stop(self) -> tuple[TimelineEntry, ...]:
        """Stop recording.

        In-flight transactions and classifier state are dropped. The
        timeline stays readable for export until the next start.

        Raises:
            NotRecording: If no session is recording
        """
        if not self.is_recording:
            raise NotRecording("Not recording")

        dropped = self.tracker.clear()
        self.classifier.reset()
        tab_id = self.target.tab_id
        self.target = None

        self.log.info(
            "Recording stopped",
            tab_id=tab_id,
            entry_count=len(self.timeline),
            dropped_transactions=dropped,
        )
        return self.timeline.snapshot()

    def state(self) -> RecordingState:
        if self.target is None:
            return RecordingState(is_recording=False)
        return RecordingState(
            is_recording=True,
            tab_id=self.target.tab_id,
            domain=self.target.domain,
        )

    def _accepts(self, tab_id: Optional[int], kind: str) -> bool:
        if self.target is None:
            self.log.warning("Event received while not recording", kind=kind)
            return False
        if tab_id is not None and tab_id != self.target.tab_id:
            self.log.warning(
                "Event from unexpected tab",
                kind=kind,
                tab_id=tab_id,
                expected_tab_id=self.target.tab_id,
            )
            return False
        return True

    # =========================================================================
    # PAGE EVENTS
    # =========================================================================

    def record_interaction(self, event: InteractionEvent) -> Optional[int]:
        """Record a user interaction.

        Returns:
            Timeline index, or None if the event was discarded
        """
        if not self._accepts(event.tab_id, "interaction"):
            return None

        interaction = self._build_interaction(event)
        index = self.timeline.append(interaction)
        self.classifier.observe_interaction(interaction)

        self.log.debug(
            "Interaction recorded",
            subtype=interaction.subtype.value,
            locator=interaction.locator,
            index=index,
        )
        return index

    def _build_interaction(self, event: InteractionEvent) -> Interaction:
        element = event.element
        control = FieldDescription.from_element(element)
        sensitivity = classify_sensitivity(control)
        subtype = event.subtype

        value = None
        if subtype in (InteractionSubtype.INPUT, InteractionSubtype.SELECT_CHANGE):
            value = normalize(control, event.value, subtype)

        form_data = None
        potential_email = False
        if subtype == InteractionSubtype.FORM_SUBMISSION:
            form_data, potential_email = normalize_form_data(event.form_fields)

        return Interaction(
            subtype=subtype,
            url=event.url,
            timestamp=event.timestamp,
            locator=generate_locator(element),
            tag_name=element.tag_name,
            element_id=element.element_id,
            class_names=" ".join(element.class_names),
            text_snippet=element.text[: self.settings.text_snippet_length],
            aria_label=element.aria_label,
            name_attribute=element.name or "",
            html_snippet=element.outer_html[: self.settings.html_snippet_length],
            is_sensitive=sensitivity.sensitive
            or (sensitivity.email_like and subtype == InteractionSubtype.INPUT),
            value=value,
            option_text=event.option_text if subtype == InteractionSubtype.SELECT_CHANGE else None,
            form_action=event.form_action,
            form_method=event.form_method,
            form_data=form_data,
            potential_email_submission=potential_email,
        )

    def record_navigation(
        self,
        url: str,
        timestamp: float,
        tab_id: Optional[int] = None,
    ) -> list[Milestone]:
        """Record an address change and run milestone detection.

        Returns:
            Milestones emitted for this navigation
        """
        if not self._accepts(tab_id, "navigation"):
            return []

        navigation = Navigation(url=url, timestamp=timestamp)
        self.timeline.append(navigation)
        return self.classifier.observe_navigation(navigation, self.timeline)

    # =========================================================================
    # NETWORK EVENTS
    # =========================================================================

    def _in_scope(self, initiation: TransactionInitiation) -> bool:
        if self.target is None:
            return False
        return initiation.tab_id is None or initiation.tab_id == self.target.tab_id

    def on_request_started(self, initiation: TransactionInitiation) -> bool:
        """Start tracking a request unless its resource kind is excluded."""
        if initiation.resource_type in self.settings.excluded_resource_types:
            return False
        return self.tracker.begin(initiation.transaction_id, initiation)

    def on_headers_sent(self, transaction_id: str, headers: list[Header]) -> bool:
        return self.tracker.attach_headers(transaction_id, headers)

    def on_completed(
        self,
        transaction_id: str,
        status: int,
        end_timestamp: float,
        headers: Optional[list[Header]] = None,
    ) -> Optional[CorrelationResult]:
        return self._finish(
            transaction_id,
            Completed(status=status, end_timestamp=end_timestamp, headers=headers or []),
        )

    def on_error(
        self,
        transaction_id: str,
        error: str,
        end_timestamp: float,
    ) -> Optional[CorrelationResult]:
        return self._finish(transaction_id, Errored(error=error, end_timestamp=end_timestamp))

    def _finish(self, transaction_id: str, outcome: TransactionOutcome) -> Optional[CorrelationResult]:
        try:
            transaction = self.tracker.finish(transaction_id, outcome)
        except UnknownTransaction:
            self.log.debug("Terminal signal for untracked transaction", transaction_id=transaction_id)
            return None

        entry = TransactionEntry.from_tracked(
            transaction,
            reconstruct_command(transaction),
            self.settings.main_request_types,
        )
        if entry.error is not None:
            self.log.info("Network error", transaction_id=transaction_id, error=entry.error)
        return self.correlator.correlate(entry, self.timeline)

    # =========================================================================
    # EXPORT
    # =========================================================================

    def snapshot(self) -> tuple[TimelineEntry, ...]:
        return self.timeline.snapshot()

    def to_dicts(self) -> list[dict]:
        return self.timeline.to_dicts()

    def export_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the timeline as a JSON document."""
        return json.dumps(self.to_dicts(), indent=indent)
