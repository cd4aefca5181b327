"""Data models for session capture.

Timeline entries (what gets exported), inbound event shapes (what the page
and network collaborators deliver), and the intermediate state owned by the
tracker and classifier. All timestamps are milliseconds since the Unix epoch.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional, Union

RESPONSE_BODY_STUB = (
    "Response body not captured: network lifecycle notifications carry no body."
)


class InteractionSubtype(str, Enum):
    """User interactions recorded from the page."""

    CLICK = "click"
    INPUT = "input"
    SELECT_CHANGE = "selectChange"
    FORM_SUBMISSION = "formSubmission"


class MilestoneKind(str, Enum):
    """Session-level events synthesized by the classifier."""

    EMAIL_VERIFICATION = "emailVerification"
    FINAL_URL_CANDIDATE = "finalUrlCandidate"


class EntryType(str, Enum):
    """Export tags for entries that are not interactions or milestones."""

    NAVIGATION = "navigate"
    NETWORK_REQUEST = "networkRequest"
    NETWORK_ERROR = "networkError"


class TransactionState(str, Enum):
    """Lifecycle of a tracked network transaction."""

    INITIATED = "initiated"
    HEADERS_ATTACHED = "headers_attached"
    COMPLETED = "completed"
    ERRORED = "errored"


def to_iso(timestamp_ms: float) -> str:
    """Render epoch milliseconds as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).isoformat()


# =============================================================================
# Network shapes
# =============================================================================


@dataclass
class Header:
    """A single HTTP header."""

    name: str
    value: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Header":
        return cls(name=data.get("name", ""), value=str(data.get("value", "")))

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


def _coerce_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, dict):
        chunk = chunk.get("bytes", b"")
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk or b"")


@dataclass
class RequestBody:
    """Request payload as reported at initiation.

    Either multi-part form fields (each key may repeat) or raw byte chunks.
    """

    form_data: Optional[dict[str, list[str]]] = None
    raw: Optional[list[bytes]] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["RequestBody"]:
        if not data:
            return None
        form_data = data.get("formData")
        raw = data.get("raw")
        return cls(
            form_data={k: [str(v) for v in values] for k, values in form_data.items()} if form_data else None,
            raw=[_coerce_bytes(chunk) for chunk in raw] if raw else None,
        )

    def to_dict(self) -> dict:
        result: dict[str, Any] = {}
        if self.form_data is not None:
            result["formData"] = {k: list(v) for k, v in self.form_data.items()}
        if self.raw is not None:
            result["raw"] = [{"byteLength": len(chunk)} for chunk in self.raw]
        return result


@dataclass
class TransactionInitiation:
    """First lifecycle signal for a network transaction."""

    transaction_id: str
    url: str
    method: str = "GET"
    resource_type: str = "other"
    timestamp: float = 0
    body: Optional[RequestBody] = None
    tab_id: Optional[int] = None
    initiator: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TransactionInitiation":
        return cls(
            transaction_id=str(data.get("requestId", "")),
            url=data.get("url", ""),
            method=data.get("method", "GET"),
            resource_type=data.get("type", "other"),
            timestamp=data.get("timeStamp", 0),
            body=RequestBody.from_dict(data.get("requestBody")),
            tab_id=data.get("tabId"),
            initiator=data.get("initiator"),
        )


@dataclass
class Completed:
    """Terminal outcome: a response was received."""

    status: int
    end_timestamp: float
    headers: list[Header] = field(default_factory=list)


@dataclass
class Errored:
    """Terminal outcome: the transaction failed."""

    error: str
    end_timestamp: float


TransactionOutcome = Union[Completed, Errored]


@dataclass
class TrackedTransaction:
    """A network transaction assembled from partial lifecycle updates."""

    transaction_id: str
    url: str
    method: str
    resource_type: str
    start_timestamp: float
    request_body: Optional[RequestBody] = None
    initiator: Optional[str] = None
    request_headers: list[Header] = field(default_factory=list)
    state: TransactionState = TransactionState.INITIATED
    response_status: Optional[int] = None
    response_headers: list[Header] = field(default_factory=list)
    error: Optional[str] = None
    end_timestamp: Optional[float] = None

    @classmethod
    def from_initiation(cls, initiation: TransactionInitiation) -> "TrackedTransaction":
        return cls(
            transaction_id=initiation.transaction_id,
            url=initiation.url,
            method=initiation.method,
            resource_type=initiation.resource_type,
            start_timestamp=initiation.timestamp,
            request_body=initiation.body,
            initiator=initiation.initiator,
        )

    @property
    def is_terminal(self) -> bool:
        return self.state in (TransactionState.COMPLETED, TransactionState.ERRORED)


# =============================================================================
# Page shapes
# =============================================================================


@dataclass
class ElementDescription:
    """Static description of a DOM element and its ancestor chain.

    Positions are 1-based. ``id_occurrences`` is how many elements in the
    document carry ``element_id``; the page collaborator computes it.
    """

    tag_name: str
    element_id: str = ""
    id_occurrences: int = 1
    class_names: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    child_index: int = 1
    same_tag_index: int = 1
    sibling_count: int = 1
    text: str = ""
    outer_html: str = ""
    parent: Optional["ElementDescription"] = None

    @property
    def tag(self) -> str:
        return self.tag_name.lower()

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get("name")

    @property
    def input_type(self) -> Optional[str]:
        return self.attributes.get("type")

    @property
    def aria_label(self) -> str:
        return self.attributes.get("aria-label", "")

    @property
    def is_document_boundary(self) -> bool:
        return self.tag in ("body", "html")

    @classmethod
    def from_dict(cls, data: dict) -> "ElementDescription":
        """Create from the page collaborator's camelCase payload."""
        class_list = data.get("classList", [])
        if isinstance(class_list, str):
            class_list = class_list.split()
        parent = data.get("parent")
        return cls(
            tag_name=data.get("tagName", ""),
            element_id=data.get("id", "") or "",
            id_occurrences=data.get("idCount", 1),
            class_names=list(class_list),
            attributes=dict(data.get("attributes", {})),
            child_index=data.get("childIndex", 1),
            same_tag_index=data.get("sameTagIndex", 1),
            sibling_count=data.get("siblingCount", 1),
            text=data.get("innerText", "") or "",
            outer_html=data.get("outerHTML", "") or "",
            parent=cls.from_dict(parent) if parent else None,
        )


@dataclass
class FieldDescription:
    """The parts of a form control that drive masking decisions."""

    field_type: str = ""
    name: str = ""
    element_id: str = ""
    sensitive_marker: bool = False

    @classmethod
    def from_element(cls, element: ElementDescription) -> "FieldDescription":
        return cls(
            field_type=(element.input_type or "").lower(),
            name=element.name or "",
            element_id=element.element_id,
            sensitive_marker="data-sensitive" in element.attributes,
        )


@dataclass
class FormField:
    """One entry of a submitted form, in declaration order."""

    name: str
    value: str
    control: Optional[FieldDescription] = None

    @classmethod
    def from_dict(cls, data: dict) -> "FormField":
        return cls(
            name=data.get("name", ""),
            value=data.get("value", ""),
            control=FieldDescription(
                field_type=(data.get("type") or "").lower(),
                name=data.get("name", ""),
                element_id=data.get("id", "") or "",
                sensitive_marker=bool(data.get("sensitive", False)),
            ),
        )


@dataclass
class InteractionEvent:
    """Raw user interaction as delivered by the page collaborator."""

    subtype: InteractionSubtype
    url: str
    timestamp: float
    element: ElementDescription
    tab_id: Optional[int] = None
    value: Optional[str] = None
    option_text: Optional[str] = None
    form_action: Optional[str] = None
    form_method: Optional[str] = None
    form_fields: list[FormField] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "InteractionEvent":
        return cls(
            subtype=InteractionSubtype(data["type"]),
            url=data.get("url", ""),
            timestamp=data.get("timestamp", 0),
            element=ElementDescription.from_dict(data.get("element", {})),
            tab_id=data.get("tabId"),
            value=data.get("value"),
            option_text=data.get("text"),
            form_action=data.get("action"),
            form_method=data.get("method"),
            form_fields=[FormField.from_dict(f) for f in data.get("formFields", [])],
        )


# =============================================================================
# Timeline entries
# =============================================================================


@dataclass
class Navigation:
    """Address change in the observed context."""

    url: str
    timestamp: float

    def to_dict(self) -> dict:
        return {
            "type": EntryType.NAVIGATION.value,
            "url": self.url,
            "timestamp": to_iso(self.timestamp),
        }


@dataclass
class TransactionEntry:
    """A finished network transaction as it appears in the timeline."""

    transaction_id: str
    url: str
    method: str
    resource_type: str
    start_timestamp: float
    end_timestamp: Optional[float]
    reconstructed_command: str
    is_main_request: bool = False
    request_headers: list[Header] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    response_status: Optional[int] = None
    response_headers: list[Header] = field(default_factory=list)
    error: Optional[str] = None
    initiator: Optional[str] = None

    @property
    def entry_type(self) -> EntryType:
        return EntryType.NETWORK_ERROR if self.error is not None else EntryType.NETWORK_REQUEST

    @classmethod
    def from_tracked(
        cls,
        transaction: TrackedTransaction,
        command: str,
        main_request_types: list[str],
    ) -> "TransactionEntry":
        return cls(
            transaction_id=transaction.transaction_id,
            url=transaction.url,
            method=transaction.method,
            resource_type=transaction.resource_type,
            start_timestamp=transaction.start_timestamp,
            end_timestamp=transaction.end_timestamp,
            reconstructed_command=command,
            is_main_request=transaction.resource_type in main_request_types,
            request_headers=list(transaction.request_headers),
            request_body=transaction.request_body,
            response_status=transaction.response_status,
            response_headers=list(transaction.response_headers),
            error=transaction.error,
            initiator=transaction.initiator,
        )

    def to_dict(self) -> dict:
        result = {
            "type": self.entry_type.value,
            "transactionId": self.transaction_id,
            "url": self.url,
            "method": self.method,
            "resourceType": self.resource_type,
            "initiator": self.initiator,
            "requestHeaders": [h.to_dict() for h in self.request_headers],
            "requestBody": self.request_body.to_dict() if self.request_body else None,
            "responseStatus": self.response_status,
            "responseHeaders": [h.to_dict() for h in self.response_headers],
            "startTimestamp": self.start_timestamp,
            "endTimestamp": self.end_timestamp,
            "reconstructedCommand": self.reconstructed_command,
            "isMainRequest": self.is_main_request,
        }
        if self.error is not None:
            result["error"] = self.error
        else:
            result["responseBodySnippet"] = RESPONSE_BODY_STUB
        return result


@dataclass
class Interaction:
    """A recorded user interaction with its masked values."""

    subtype: InteractionSubtype
    url: str
    timestamp: float
    locator: str
    tag_name: str = ""
    element_id: str = ""
    class_names: str = ""
    text_snippet: str = ""
    aria_label: str = ""
    name_attribute: str = ""
    html_snippet: str = ""
    is_sensitive: bool = False
    value: Optional[str] = None
    option_text: Optional[str] = None
    form_action: Optional[str] = None
    form_method: Optional[str] = None
    form_data: Optional[dict[str, str]] = None
    potential_email_submission: bool = False
    associated_transactions: list[TransactionEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = {
            "type": self.subtype.value,
            "url": self.url,
            "timestamp": to_iso(self.timestamp),
            "locator": self.locator,
            "tagName": self.tag_name,
            "elementId": self.element_id,
            "classNames": self.class_names,
            "textSnippet": self.text_snippet,
            "ariaLabel": self.aria_label,
            "nameAttribute": self.name_attribute,
            "htmlSnippet": self.html_snippet,
            "isSensitive": self.is_sensitive,
        }
        if self.value is not None:
            result["value"] = self.value
        if self.subtype == InteractionSubtype.SELECT_CHANGE:
            result["optionText"] = self.option_text or ""
        if self.subtype == InteractionSubtype.FORM_SUBMISSION:
            result["formAction"] = self.form_action
            result["formMethod"] = self.form_method
            result["formData"] = dict(self.form_data or {})
            result["potentialEmailSubmission"] = self.potential_email_submission
        result["associatedTransactions"] = [t.to_dict() for t in self.associated_transactions]
        return result


@dataclass
class Milestone:
    """A session-level event inferred from weak signals."""

    kind: MilestoneKind
    url: str
    timestamp: float
    detection_method: str
    matched_pattern: Optional[str] = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "url": self.url,
            "timestamp": to_iso(self.timestamp),
            "detectionMethod": self.detection_method,
            "matchedPattern": self.matched_pattern,
            "message": self.message,
        }


TimelineEntry = Union[Navigation, Interaction, TransactionEntry, Milestone]


# =============================================================================
# Session state
# =============================================================================


@dataclass(frozen=True)
class LastInteractionCursor:
    """Position and time of the most recent interaction entry."""

    index: int
    timestamp: float


@dataclass
class ClassifierState:
    """Mutable state of the session classifier."""

    awaiting_email_verification: bool = False
    email_submission_timestamp: Optional[float] = None
    last_captured_identity_token: Optional[str] = None

    def reset(self) -> None:
        self.awaiting_email_verification = False
        self.email_submission_timestamp = None
        self.last_captured_identity_token = None


@dataclass
class CaptureTarget:
    """The tab a session records, and where it started."""

    tab_id: int
    domain: str = ""
    initial_url: str = ""


@dataclass
class RecordingState:
    """Snapshot of session status for the host UI."""

    is_recording: bool
    tab_id: Optional[int] = None
    domain: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "isRecording": self.is_recording,
            "tabId": self.tab_id,
            "domain": self.domain,
        }
