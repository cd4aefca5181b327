"""Value normalization - masks sensitive field values before they are recorded."""

from dataclasses import dataclass
from typing import Optional

from .models import FieldDescription, FormField, InteractionSubtype

PASSWORD_PLACEHOLDER = "***PASSWORD_PLACEHOLDER***"
EMAIL_PLACEHOLDER = "***EMAIL_PLACEHOLDER***"
PLACEHOLDER_PREFIX = "***"


@dataclass(frozen=True)
class Sensitivity:
    """How a field's value must be treated."""

    sensitive: bool = False
    email_like: bool = False


def classify_sensitivity(field: Optional[FieldDescription]) -> Sensitivity:
    """Classify a field from its type, name/id and explicit marker."""
    if field is None:
        return Sensitivity()

    name = field.name.lower()
    element_id = field.element_id.lower()

    sensitive = (
        field.field_type == "password"
        or field.sensitive_marker
        or "password" in name
        or "password" in element_id
    )
    email_like = field.field_type == "email" or any(
        token in name or token in element_id for token in ("email", "e-mail")
    )
    return Sensitivity(sensitive=sensitive, email_like=email_like)


def normalize(
    field: Optional[FieldDescription],
    raw_value: Optional[str],
    subtype: InteractionSubtype,
) -> Optional[str]:
    """Mask a value when its field calls for it.

    Email fields are only masked on text entry; a click on an already
    filled email field keeps its value.
    """
    sensitivity = classify_sensitivity(field)
    if sensitivity.sensitive:
        return PASSWORD_PLACEHOLDER
    if sensitivity.email_like and subtype == InteractionSubtype.INPUT:
        return EMAIL_PLACEHOLDER
    return raw_value


def normalize_form_data(fields: list[FormField]) -> tuple[dict[str, str], bool]:
    """Normalize every field of a submitted form.

    Each value is treated as entered text. Repeated names keep the position
    of their first occurrence and the value of their last.

    Returns:
        (field map in declaration order, whether any field was email-like)
    """
    form_data: dict[str, str] = {}
    contains_email = False

    for form_field in fields:
        if classify_sensitivity(form_field.control).email_like:
            contains_email = True
        form_data[form_field.name] = normalize(
            form_field.control, form_field.value, InteractionSubtype.INPUT
        )

    return form_data, contains_email


def is_placeholder(value: str) -> bool:
    """True for values that were replaced by a mask token."""
    return value.startswith(PLACEHOLDER_PREFIX)
