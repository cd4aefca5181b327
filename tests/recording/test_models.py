"""Tests for capture models."""

from factories import T0

from src.recording.models import (
    RESPONSE_BODY_STUB,
    ClassifierState,
    ElementDescription,
    EntryType,
    FieldDescription,
    FormField,
    Header,
    Interaction,
    InteractionEvent,
    InteractionSubtype,
    Milestone,
    MilestoneKind,
    Navigation,
    RecordingState,
    RequestBody,
    TrackedTransaction,
    TransactionEntry,
    TransactionInitiation,
    TransactionState,
    to_iso,
)

# =============================================================================
# Inbound shapes
# =============================================================================


class TestRequestBody:
    """Tests for RequestBody."""

    def test_from_dict_form_data(self):
        """Test form data values are coerced to strings."""
        body = RequestBody.from_dict({"formData": {"a": [1, "x"]}})

        assert body.form_data == {"a": ["1", "x"]}
        assert body.raw is None

    def test_from_dict_raw(self):
        """Test raw chunks accept bytes, strings and byte dicts."""
        body = RequestBody.from_dict({"raw": [b"ab", "cd", {"bytes": b"ef"}]})

        assert body.raw == [b"ab", b"cd", b"ef"]

    def test_from_dict_empty(self):
        """Test missing bodies map to None."""
        assert RequestBody.from_dict(None) is None
        assert RequestBody.from_dict({}) is None

    def test_to_dict_hides_raw_bytes(self):
        """Test raw chunks are exported as lengths only."""
        assert RequestBody(raw=[b"secret"]).to_dict() == {"raw": [{"byteLength": 6}]}


class TestTransactionInitiation:
    """Tests for TransactionInitiation."""

    def test_from_dict(self):
        """Test the browser-style payload is mapped."""
        initiation = TransactionInitiation.from_dict(
            {
                "requestId": 42,
                "url": "https://site.example/api",
                "method": "POST",
                "type": "xmlhttprequest",
                "timeStamp": T0,
                "tabId": 7,
                "initiator": "https://site.example",
                "requestBody": {"formData": {"q": ["1"]}},
            }
        )

        assert initiation.transaction_id == "42"
        assert initiation.resource_type == "xmlhttprequest"
        assert initiation.timestamp == T0
        assert initiation.tab_id == 7
        assert initiation.body.form_data == {"q": ["1"]}

    def test_tracked_from_initiation(self):
        """Test tracking starts in the initiated state."""
        tracked = TrackedTransaction.from_initiation(
            TransactionInitiation(transaction_id="1", url="https://a.example/", timestamp=T0)
        )

        assert tracked.state == TransactionState.INITIATED
        assert tracked.is_terminal is False
        assert tracked.start_timestamp == T0


class TestElementDescription:
    """Tests for ElementDescription."""

    def test_from_dict_nested(self):
        """Test parents and class strings are parsed."""
        element = ElementDescription.from_dict(
            {
                "tagName": "A",
                "classList": "nav link",
                "attributes": {"aria-label": "Home", "name": "home"},
                "innerText": "Home",
                "parent": {"tagName": "NAV", "parent": {"tagName": "BODY"}},
            }
        )

        assert element.tag == "a"
        assert element.class_names == ["nav", "link"]
        assert element.aria_label == "Home"
        assert element.name == "home"
        assert element.parent.tag == "nav"
        assert element.parent.parent.is_document_boundary is True

    def test_defaults(self):
        """Test defaults for a bare element."""
        element = ElementDescription(tag_name="DIV")

        assert element.name is None
        assert element.input_type is None
        assert element.aria_label == ""
        assert element.id_occurrences == 1


class TestFieldDescription:
    """Tests for FieldDescription."""

    def test_from_element(self):
        """Test masking inputs are derived from the element."""
        field = FieldDescription.from_element(
            ElementDescription(
                tag_name="input",
                element_id="pw",
                attributes={"type": "PASSWORD", "name": "secret", "data-sensitive": ""},
            )
        )

        assert field.field_type == "password"
        assert field.name == "secret"
        assert field.element_id == "pw"
        assert field.sensitive_marker is True

    def test_form_field_from_dict(self):
        """Test form fields carry their control description."""
        form_field = FormField.from_dict({"name": "email", "value": "a@b.example", "type": "Email"})

        assert form_field.control.field_type == "email"
        assert form_field.control.name == "email"
        assert form_field.control.sensitive_marker is False


class TestInteractionEvent:
    """Tests for InteractionEvent."""

    def test_from_dict(self):
        """Test page payloads map to events."""
        event = InteractionEvent.from_dict(
            {
                "type": "formSubmission",
                "url": "https://site.example/signup",
                "timestamp": T0,
                "tabId": 3,
                "element": {"tagName": "FORM", "id": "signup"},
                "action": "/api/signup",
                "method": "post",
                "formFields": [{"name": "username", "value": "alice", "type": "text"}],
            }
        )

        assert event.subtype == InteractionSubtype.FORM_SUBMISSION
        assert event.tab_id == 3
        assert event.element.element_id == "signup"
        assert event.form_method == "post"
        assert [f.name for f in event.form_fields] == ["username"]


# =============================================================================
# Timeline entries
# =============================================================================


class TestToIso:
    """Tests for to_iso."""

    def test_epoch_millis(self):
        """Test milliseconds are rendered in UTC."""
        assert to_iso(T0) == "2023-11-14T22:13:20+00:00"
        assert to_iso(T0 + 250) == "2023-11-14T22:13:20.250000+00:00"


class TestNavigation:
    """Tests for Navigation."""

    def test_to_dict(self):
        """Test navigation export shape."""
        assert Navigation("https://site.example/", T0).to_dict() == {
            "type": "navigate",
            "url": "https://site.example/",
            "timestamp": "2023-11-14T22:13:20+00:00",
        }


def _entry(**kwargs):
    defaults = {
        "transaction_id": "9",
        "url": "https://site.example/api",
        "method": "GET",
        "resource_type": "xmlhttprequest",
        "start_timestamp": T0,
        "end_timestamp": T0 + 30,
        "reconstructed_command": "curl 'https://site.example/api'",
    }
    defaults.update(kwargs)
    return TransactionEntry(**defaults)


class TestTransactionEntry:
    """Tests for TransactionEntry."""

    def test_completed_to_dict(self):
        """Test completed transactions carry the body stub."""
        data = _entry(response_status=200, request_headers=[Header("Accept", "*/*")]).to_dict()

        assert data["type"] == EntryType.NETWORK_REQUEST.value
        assert data["responseStatus"] == 200
        assert data["requestHeaders"] == [{"name": "Accept", "value": "*/*"}]
        assert data["requestBody"] is None
        assert data["startTimestamp"] == T0
        assert data["responseBodySnippet"] == RESPONSE_BODY_STUB
        assert "error" not in data

    def test_errored_to_dict(self):
        """Test errored transactions carry the error instead."""
        data = _entry(error="net::ERR_FAILED").to_dict()

        assert data["type"] == "networkError"
        assert data["error"] == "net::ERR_FAILED"
        assert "responseBodySnippet" not in data

    def test_from_tracked_main_request(self):
        """Test main request flagging follows the resource type."""
        tracked = TrackedTransaction(
            transaction_id="1",
            url="https://site.example/",
            method="GET",
            resource_type="main_frame",
            start_timestamp=T0,
            response_status=200,
            end_timestamp=T0 + 5,
        )

        entry = TransactionEntry.from_tracked(tracked, "curl 'https://site.example/'", ["main_frame"])

        assert entry.is_main_request is True
        assert entry.end_timestamp == T0 + 5


class TestInteraction:
    """Tests for Interaction."""

    def test_click_to_dict(self):
        """Test clicks omit value and form fields."""
        data = Interaction(
            subtype=InteractionSubtype.CLICK,
            url="https://site.example/",
            timestamp=T0,
            locator="#go",
        ).to_dict()

        assert data["type"] == "click"
        assert "value" not in data
        assert "formData" not in data
        assert "optionText" not in data
        assert data["associatedTransactions"] == []

    def test_select_to_dict(self):
        """Test select changes export option text."""
        data = Interaction(
            subtype=InteractionSubtype.SELECT_CHANGE,
            url="https://site.example/",
            timestamp=T0,
            locator="#country",
            value="pt",
            option_text="Portugal",
        ).to_dict()

        assert data["value"] == "pt"
        assert data["optionText"] == "Portugal"

    def test_submission_to_dict(self):
        """Test submissions export form fields."""
        data = Interaction(
            subtype=InteractionSubtype.FORM_SUBMISSION,
            url="https://site.example/",
            timestamp=T0,
            locator="#signup",
            form_action="/api/signup",
            form_method="post",
            form_data={"username": "alice"},
            potential_email_submission=False,
            associated_transactions=[_entry(response_status=201)],
        ).to_dict()

        assert data["formData"] == {"username": "alice"}
        assert data["formAction"] == "/api/signup"
        assert data["potentialEmailSubmission"] is False
        assert data["associatedTransactions"][0]["responseStatus"] == 201


class TestMilestone:
    """Tests for Milestone."""

    def test_to_dict(self):
        """Test milestone export shape."""
        data = Milestone(
            kind=MilestoneKind.FINAL_URL_CANDIDATE,
            url="https://site.example/profile/alice",
            timestamp=T0,
            detection_method="Pattern match (username match in URL)",
            matched_pattern="profile",
            message="Potential final URL detected.",
        ).to_dict()

        assert data == {
            "type": "finalUrlCandidate",
            "url": "https://site.example/profile/alice",
            "timestamp": "2023-11-14T22:13:20+00:00",
            "detectionMethod": "Pattern match (username match in URL)",
            "matchedPattern": "profile",
            "message": "Potential final URL detected.",
        }


# =============================================================================
# Session state
# =============================================================================


class TestSessionState:
    """Tests for session state models."""

    def test_classifier_state_reset(self):
        """Test reset clears every field."""
        state = ClassifierState(True, T0, "alice")

        state.reset()

        assert state == ClassifierState()

    def test_recording_state_to_dict(self):
        """Test idle state export."""
        assert RecordingState(is_recording=False).to_dict() == {
            "isRecording": False,
            "tabId": None,
            "domain": None,
        }
