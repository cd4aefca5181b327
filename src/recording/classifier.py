"""Session classifier - infers session milestones from weak signals.

Two independent concerns share the classifier state:

1. Email verification: an email-bearing form submission arms a one-shot
   watch for a verification-looking URL within a TTL.
2. Final URL: navigation to a profile-looking URL is a candidate when it
   contains the identity token last submitted in a form, or when the
   session has accumulated enough activity.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

import structlog

from .models import (
    ClassifierState,
    Interaction,
    InteractionSubtype,
    Milestone,
    MilestoneKind,
    Navigation,
)
from .normalizer import is_placeholder
from .timeline import TimelineStore

logger = structlog.get_logger()

USERNAME_MATCH_METHOD = "Pattern match (username match in URL)"
SESSION_ACTIVITY_METHOD = "Pattern match (session activity)"
EMAIL_VERIFICATION_METHOD = "Pattern match after email form submission"


@dataclass(frozen=True)
class UrlPattern:
    """A named, case-insensitive URL predicate."""

    name: str
    regex: re.Pattern

    @classmethod
    def compile(cls, pattern: str) -> "UrlPattern":
        return cls(name=pattern, regex=re.compile(pattern, re.IGNORECASE))

    def matches(self, url: str) -> bool:
        return self.regex.search(url) is not None


PatternSpec = Union[str, UrlPattern]


def compile_patterns(patterns: Iterable[PatternSpec]) -> list[UrlPattern]:
    """Compile pattern strings, keeping their order."""
    return [p if isinstance(p, UrlPattern) else UrlPattern.compile(p) for p in patterns]


DEFAULT_VERIFICATION_PATTERNS = (
    "verify",
    "confirm",
    "activate",
    "token=",
    "email_verified=",
    "validation",
)
DEFAULT_PROFILE_PATTERNS = (
    "profile",
    "user",
    "account",
    "author",
    "dashboard",
    "settings",
)
DEFAULT_IDENTITY_FIELD_KEYWORDS = ("user", "name", "login")


@dataclass
class ClassifierConfig:
    """Tunable heuristics of the session classifier.

    Patterns are compiled on construction.

    Raises:
        re.error: If a pattern string is not a valid regular expression
    """

    verification_patterns: Sequence[PatternSpec] = DEFAULT_VERIFICATION_PATTERNS
    profile_patterns: Sequence[PatternSpec] = DEFAULT_PROFILE_PATTERNS
    identity_field_keywords: Sequence[str] = DEFAULT_IDENTITY_FIELD_KEYWORDS
    verification_ttl_ms: int = 300000
    weak_min_entries: int = 5
    min_identity_length: int = 3
    _verification: list[UrlPattern] = field(default_factory=list, init=False, repr=False)
    _profile: list[UrlPattern] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        self._verification = compile_patterns(self.verification_patterns)
        self._profile = compile_patterns(self.profile_patterns)

    def compiled_verification(self) -> list[UrlPattern]:
        return self._verification

    def compiled_profile(self) -> list[UrlPattern]:
        return self._profile


class SessionClassifier:
    """Stateful heuristic engine emitting milestone entries.

    Example:
        classifier = SessionClassifier()
        classifier.observe_interaction(form_submission)
        timeline.append(navigation)
        milestones = classifier.observe_navigation(navigation, timeline)
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()
        self.state = ClassifierState()
        self.log = logger.bind(component="session_classifier")

    def reset(self) -> None:
        self.state.reset()

    # =========================================================================
    # INTERACTIONS
    # =========================================================================

    def observe_interaction(self, interaction: Interaction) -> None:
        """Update state from a recorded interaction."""
        if interaction.subtype != InteractionSubtype.FORM_SUBMISSION:
            return

        if interaction.potential_email_submission:
            self.state.awaiting_email_verification = True
            self.state.email_submission_timestamp = interaction.timestamp
            self.log.info("Email submission detected, awaiting verification URL")

        token = self._identity_token(interaction.form_data or {})
        if token is not None:
            self.state.last_captured_identity_token = token
            self.log.info("Captured identity token", length=len(token))

    def _identity_token(self, form_data: dict[str, str]) -> Optional[str]:
        """First identity-like field value, in field declaration order."""
        for key, value in form_data.items():
            lowered = key.lower()
            if not any(keyword in lowered for keyword in self.config.identity_field_keywords):
                continue
            if isinstance(value, str) and not is_placeholder(value) and len(value) >= self.config.min_identity_length:
                return value
        return None

    # =========================================================================
    # NAVIGATIONS
    # =========================================================================

    def observe_navigation(self, navigation: Navigation, timeline: TimelineStore) -> list[Milestone]:
        """Evaluate a navigation already appended to ``timeline``.

        Milestones are appended to the timeline and returned.
        """
        milestones = []

        verification = self._check_email_verification(navigation)
        if verification is not None:
            timeline.append(verification)
            milestones.append(verification)

        candidate = self._check_final_url(navigation, len(timeline))
        if candidate is not None:
            timeline.append(candidate)
            milestones.append(candidate)

        return milestones

    def _check_email_verification(self, navigation: Navigation) -> Optional[Milestone]:
        state = self.state
        if not state.awaiting_email_verification or state.email_submission_timestamp is None:
            return None

        if navigation.timestamp - state.email_submission_timestamp >= self.config.verification_ttl_ms:
            self.log.debug("Email verification window expired")
            state.awaiting_email_verification = False
            state.email_submission_timestamp = None
            return None

        pattern = self._first_match(self.config.compiled_verification(), navigation.url)
        if pattern is None:
            return None

        state.awaiting_email_verification = False
        state.email_submission_timestamp = None
        self.log.info("Email verification URL detected", url=navigation.url)
        return Milestone(
            kind=MilestoneKind.EMAIL_VERIFICATION,
            url=navigation.url,
            timestamp=navigation.timestamp,
            detection_method=EMAIL_VERIFICATION_METHOD,
            matched_pattern=pattern.name,
            message="Automatically detected email verification URL.",
        )

    def _check_final_url(self, navigation: Navigation, timeline_length: int) -> Optional[Milestone]:
        pattern = self._first_match(self.config.compiled_profile(), navigation.url)
        if pattern is None:
            return None

        token = self.state.last_captured_identity_token
        if token and token.lower() in navigation.url.lower():
            method = USERNAME_MATCH_METHOD
        elif timeline_length > self.config.weak_min_entries:
            method = SESSION_ACTIVITY_METHOD
        else:
            return None

        self.log.info("Final URL candidate detected", url=navigation.url, detection_method=method)
        return Milestone(
            kind=MilestoneKind.FINAL_URL_CANDIDATE,
            url=navigation.url,
            timestamp=navigation.timestamp,
            detection_method=method,
            matched_pattern=pattern.name,
            message="Profile-like URL; page context may need confirmation.",
        )

    @staticmethod
    def _first_match(patterns: list[UrlPattern], url: str) -> Optional[UrlPattern]:
        return next((p for p in patterns if p.matches(url)), None)
