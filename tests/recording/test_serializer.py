"""Tests for request serialization."""

from src.recording.models import Header, RequestBody, TrackedTransaction
from src.recording.serializer import BINARY_BODY_PLACEHOLDER, reconstruct_command


def _transaction(**kwargs):
    defaults = {
        "transaction_id": "1",
        "url": "https://site.example/api/items",
        "method": "GET",
        "resource_type": "xmlhttprequest",
        "start_timestamp": 0,
    }
    defaults.update(kwargs)
    return TrackedTransaction(**defaults)


class TestReconstructCommand:
    """Tests for reconstruct_command."""

    def test_plain_get(self):
        """Test a GET has no method flag."""
        assert reconstruct_command(_transaction()) == "curl 'https://site.example/api/items'"

    def test_method_and_headers(self):
        """Test method flag is upper-cased and headers keep their order."""
        transaction = _transaction(
            method="post",
            request_headers=[Header("Accept", "*/*"), Header("X-Trace", "abc")],
        )

        assert reconstruct_command(transaction) == (
            "curl 'https://site.example/api/items' -X POST"
            " -H 'Accept: */*' -H 'X-Trace: abc'"
        )

    def test_form_body(self):
        """Test each form value becomes its own clause."""
        transaction = _transaction(
            method="POST",
            request_body=RequestBody(form_data={"tag": ["a", "b"], "q": ["x"]}),
        )

        assert reconstruct_command(transaction).endswith(
            " --form 'tag=a' --form 'tag=b' --form 'q=x'"
        )

    def test_text_body_quotes_escaped(self):
        """Test single quotes in a raw body are shell-escaped."""
        transaction = _transaction(
            method="PUT",
            request_body=RequestBody(raw=[b'{"note": "it\'s"}']),
        )

        assert reconstruct_command(transaction).endswith(
            """ --data-binary '{"note": "it'\\''s"}'"""
        )

    def test_quotes_escaped_everywhere(self):
        """Test single quotes in the URL, headers and form fields are shell-escaped."""
        transaction = _transaction(
            url="https://site.example/search?q=it's",
            method="POST",
            request_headers=[Header("X-Note", "don't")],
            request_body=RequestBody(form_data={"o'k": ["a'b"]}),
        )

        assert reconstruct_command(transaction) == (
            "curl 'https://site.example/search?q=it'\\''s' -X POST"
            " -H 'X-Note: don'\\''t'"
            " --form 'o'\\''k=a'\\''b'"
        )

    def test_binary_body_placeholder(self):
        """Test undecodable bodies fall back to a placeholder."""
        transaction = _transaction(method="POST", request_body=RequestBody(raw=[b"\xff\xfe\x00"]))

        assert reconstruct_command(transaction).endswith(
            f" --data-binary '{BINARY_BODY_PLACEHOLDER}'"
        )

    def test_errored_transaction(self):
        """Test errored transactions serialize the same way."""
        transaction = _transaction(error="net::ERR_FAILED")

        assert reconstruct_command(transaction) == "curl 'https://site.example/api/items'"

    def test_deterministic(self):
        """Test repeated serialization is identical."""
        transaction = _transaction(method="POST", request_body=RequestBody(form_data={"a": ["1"]}))

        assert reconstruct_command(transaction) == reconstruct_command(transaction)
