"""Onboarding answers: validation, completion gating, interactive questionnaire."""

import os
import re
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from .schema import ValidationResult

logger = structlog.get_logger()

RESPONSE_STYLES = ("concise", "balanced", "detailed")
EXTERNAL_ACTION_POLICIES = ("always-ask", "ask-risky-only")
PROACTIVE_CADENCE_PRESETS = ("off", "light", "standard")

# Static fallbacks; default_answers() swaps in the host timezone
DEFAULT_ANSWERS = {
    "name": "User",
    "timezone": "UTC",
    "style": "balanced",
    "externalActionPolicy": "ask-risky-only",
    "codingTaskFirst": False,
    "quietHours": None,
    "proactiveCadence": "off",
}

NAME_MAX_LENGTH = 80

_QUIET_HOURS = re.compile(r"^([01]\d|2[0-3]):[0-5]\d-([01]\d|2[0-3]):[0-5]\d$")

LOCALTIME_PATH = Path("/etc/localtime")


class OnboardingValidationError(ValueError):
    """Onboarding answers failed validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid onboarding answers: " + "; ".join(self.errors))


def is_valid_timezone(value: str) -> bool:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def default_timezone() -> str:
    """Host IANA zone from $TZ or the /etc/localtime link, else UTC."""
    candidates = [os.environ.get("TZ", "").lstrip(":")]
    try:
        target = str(LOCALTIME_PATH.resolve())
    except (OSError, RuntimeError):
        target = ""
    if "zoneinfo/" in target:
        candidates.append(target.split("zoneinfo/", 1)[1])

    for name in candidates:
        if name and is_valid_timezone(name):
            return name
    return "UTC"


def default_answers() -> dict:
    return {**DEFAULT_ANSWERS, "timezone": default_timezone()}


def is_quiet_hours(value: str) -> bool:
    """HH:mm-HH:mm; overnight ranges are allowed."""
    return bool(_QUIET_HOURS.match(value))


def _trimmed(answers: dict, name: str) -> str:
    value = answers.get(name)
    return value.strip() if isinstance(value, str) else ""


def validate_onboarding_answers(answers) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(answers, dict):
        result.errors.append("answers must be an object")
        return result

    name = _trimmed(answers, "name")
    timezone = _trimmed(answers, "timezone")
    style = _trimmed(answers, "style")
    policy = _trimmed(answers, "externalActionPolicy")

    if not name:
        result.errors.append("name is required")
    elif len(name) > NAME_MAX_LENGTH:
        result.errors.append(f"name must be <= {NAME_MAX_LENGTH} characters")

    if not timezone:
        result.errors.append("timezone is required")
    elif not is_valid_timezone(timezone):
        result.errors.append(f"invalid timezone: {timezone}")

    if not style:
        result.errors.append("style is required")
    elif style not in RESPONSE_STYLES:
        result.errors.append(f"style must be one of: {', '.join(RESPONSE_STYLES)}")

    if not policy:
        result.errors.append("externalActionPolicy is required")
    elif policy not in EXTERNAL_ACTION_POLICIES:
        result.errors.append(
            f"externalActionPolicy must be one of: {', '.join(EXTERNAL_ACTION_POLICIES)}"
        )

    coding = answers.get("codingTaskFirst")
    if coding is not None and not isinstance(coding, bool):
        result.errors.append("codingTaskFirst must be boolean when provided")

    quiet = answers.get("quietHours")
    if quiet is not None:
        if not isinstance(quiet, str) or not is_quiet_hours(quiet.strip()):
            result.errors.append("quietHours must match HH:mm-HH:mm when provided")

    cadence = answers.get("proactiveCadence")
    if cadence is not None and cadence not in PROACTIVE_CADENCE_PRESETS:
        result.errors.append(
            f"proactiveCadence must be one of: {', '.join(PROACTIVE_CADENCE_PRESETS)}"
        )

    return result


def require_valid_answers(answers: dict) -> dict:
    """Return ``answers`` or raise OnboardingValidationError."""
    validation = validate_onboarding_answers(answers)
    if not validation.ok:
        raise OnboardingValidationError(validation.errors)
    return answers


def should_mark_bootstrap_complete(state: str) -> bool:
    return state.strip().lower() in ("applied", "complete", "completed")


def _yes(raw: str) -> bool:
    return raw.strip().lower() in ("yes", "y", "true")


class OnboardingQuestionnaire:
    """Asks the onboarding questions one at a time. Blank answers keep the default."""

    def __init__(self, input_fn=None, output_fn=None):
        self.input_fn = input_fn or input
        self.output_fn = output_fn or print

    def _ask(self, question: str, default: str) -> str:
        answer = self.input_fn(f"{question} [{default}] ")
        return answer.strip() or default

    def run(self, initial: dict | None = None) -> dict:
        defaults = {**default_answers(), **{k: v for k, v in (initial or {}).items() if v is not None}}
        self.output_fn("Let's set up your assistant profile.")

        name = self._ask("What should I call you?", defaults["name"])
        timezone = self._ask("Timezone (IANA)?", defaults["timezone"])
        style = self._ask(f"Response style ({'|'.join(RESPONSE_STYLES)})", defaults["style"])
        policy = self._ask(
            f"External action policy ({'|'.join(EXTERNAL_ACTION_POLICIES)})",
            defaults["externalActionPolicy"],
        )
        coding = self._ask(
            "Require code-task proposal before implementation? (yes|no)",
            "yes" if defaults["codingTaskFirst"] else "no",
        )
        quiet = self.input_fn(
            f"Quiet hours (HH:mm-HH:mm, blank to skip) [{defaults['quietHours'] or ''}] "
        ).strip()
        cadence = self._ask(
            f"Proactive cadence ({'|'.join(PROACTIVE_CADENCE_PRESETS)})",
            defaults["proactiveCadence"],
        )

        answers = {
            "name": name,
            "timezone": timezone,
            "style": style,
            "externalActionPolicy": policy,
            "codingTaskFirst": _yes(coding),
            "quietHours": quiet or defaults["quietHours"] or None,
            "proactiveCadence": cadence,
        }
        logger.debug("onboarding_answers_collected", fields=sorted(answers))
        return answers
