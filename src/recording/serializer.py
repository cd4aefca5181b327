"""Request serializer - rebuilds a curl command from a tracked transaction."""

from .errors import BodyDecodeFailure
from .models import RequestBody, TrackedTransaction

BINARY_BODY_PLACEHOLDER = "@[binary_data_not_shown]"


def _quote(text: str) -> str:
    return text.replace("'", "'\\''")


def _decode_body(chunk: bytes) -> str:
    try:
        return chunk.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BodyDecodeFailure(str(e)) from e


def _body_clause(body: RequestBody) -> str:
    if body.form_data:
        return "".join(
            f" --form '{_quote(key)}={_quote(value)}'"
            for key, values in body.form_data.items()
            for value in values
        )
    if body.raw and body.raw[0]:
        try:
            return f" --data-binary '{_quote(_decode_body(body.raw[0]))}'"
        except BodyDecodeFailure:
            return f" --data-binary '{BINARY_BODY_PLACEHOLDER}'"
    return ""


def reconstruct_command(transaction: TrackedTransaction) -> str:
    """Render a transaction as a curl command line.

    Deterministic for a given transaction: headers keep their recorded
    order and form fields keep their key and value order.
    """
    command = f"curl '{_quote(transaction.url)}'"

    method = (transaction.method or "").upper()
    if method and method != "GET":
        command += f" -X {method}"

    for header in transaction.request_headers:
        command += f" -H '{_quote(header.name)}: {_quote(header.value)}'"

    if transaction.request_body:
        command += _body_clause(transaction.request_body)

    return command
