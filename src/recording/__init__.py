"""Session capture module - timeline, network correlation and milestones.

Records a user's session in one tab:
- Interactions with stable locators and masked values
- Network transactions nested under the interaction that triggered them
- Milestones (email verification, profile arrival) inferred over time
"""

from .channels import (
    HeadersSent,
    NavigationSignal,
    RequestCompleted,
    RequestFailed,
    RequestStarted,
    SessionActor,
)
from .classifier import ClassifierConfig, SessionClassifier, UrlPattern
from .correlator import CorrelationResult, Correlator
from .errors import (
    BodyDecodeFailure,
    CaptureError,
    DuplicateStart,
    IndexOutOfRange,
    MalformedLocatorInput,
    NotRecording,
    UnknownTransaction,
)
from .locator import generate_locator
from .models import (
    CaptureTarget,
    ElementDescription,
    FieldDescription,
    FormField,
    Header,
    Interaction,
    InteractionEvent,
    InteractionSubtype,
    Milestone,
    MilestoneKind,
    Navigation,
    RequestBody,
    TransactionEntry,
    TransactionInitiation,
)
from .normalizer import classify_sensitivity, normalize, normalize_form_data
from .serializer import reconstruct_command
from .session import CaptureSession
from .timeline import TimelineStore
from .tracker import TransactionTracker

__all__ = [
    # Models
    "CaptureTarget",
    "ElementDescription",
    "FieldDescription",
    "FormField",
    "Header",
    "Interaction",
    "InteractionEvent",
    "InteractionSubtype",
    "Milestone",
    "MilestoneKind",
    "Navigation",
    "RequestBody",
    "TransactionEntry",
    "TransactionInitiation",
    # Errors
    "CaptureError",
    "DuplicateStart",
    "NotRecording",
    "UnknownTransaction",
    "IndexOutOfRange",
    "MalformedLocatorInput",
    "BodyDecodeFailure",
    # Components
    "TimelineStore",
    "TransactionTracker",
    "Correlator",
    "CorrelationResult",
    "SessionClassifier",
    "ClassifierConfig",
    "UrlPattern",
    "generate_locator",
    "classify_sensitivity",
    "normalize",
    "normalize_form_data",
    "reconstruct_command",
    # Session
    "CaptureSession",
    "SessionActor",
    "NavigationSignal",
    "RequestStarted",
    "HeadersSent",
    "RequestCompleted",
    "RequestFailed",
]
