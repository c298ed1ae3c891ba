"""Parser for free-text billing line descriptions."""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from core.constants import (
    FAST_PREMIUM_LABEL,
    MID_MONTH_PAYMENT_MARKER,
    TOOL_CALLS_LABEL,
    UNKNOWN_MODEL,
)
from core.log import get_logger
from core.models.domain.usage import (
    CreditLine,
    LineResult,
    ParsedLine,
    SkippedLine,
    UsageLineItem,
)

logger = get_logger(__name__)

# "<N> token-based usage calls to <MODEL>, totalling: $<X>"
TOKEN_BASED_PATTERN = re.compile(
    r"^(\d+) token-based usage calls to ([\w.-]+), totalling: \$(?:[\d.]+)"
)

# "<N> <free text> request|calls ..."
GENERIC_PATTERN = re.compile(
    r"^(\d+)\s+(.+?)(?: request| calls)?(?: beyond|\*| per|$)", re.IGNORECASE
)

LEADING_INTEGER_PATTERN = re.compile(r"^(\d+)")
FIRST_WORD_PATTERN = re.compile(r"^(\d+)\s+([\w.-]+)")

KNOWN_MODEL_PATTERN = re.compile(
    r"\b(?:discounted\s+)?("
    r"claude-(?:3-(?:opus|sonnet|haiku)|3\.[57]-sonnet(?:-[\w-]+)?(?:-max)?"
    r"|4-sonnet(?:-thinking)?)"
    r"|gpt-(?:4(?:\.\d+|o-128k|-preview)?|3\.5-turbo)"
    r"|gemini-(?:1\.5-flash-500k|2[\.-]5-pro-(?:exp-\d{2}-\d{2}|preview-\d{2}-\d{2}"
    r"|exp-max))"
    r"|o[134](?:-mini)?"
    r")\b",
    re.IGNORECASE,
)

EXTRA_FAST_PATTERN = re.compile(
    r"extra fast premium requests?(?: \(([^)]+)\))?", re.IGNORECASE
)

# Words stripped from a description before it is reported as an unknown model
FRAGMENT_NOISE_PATTERN = re.compile(
    r"\b(?:requests?|calls?|beyond|per)\b|\*|,$", re.IGNORECASE
)


@dataclass(frozen=True)
class ModelRule:
    """One entry in the ordered model-resolution table.

    Attributes:
        name: Rule name used in debug logs
        pattern: Pattern searched in the full description
        extract: Maps a match to the resolved model name
        marker: Case-sensitive literal the description must contain first
    """

    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], str]
    marker: str | None = None

    def resolve(self, description: str) -> str | None:
        """Return the model name if this rule applies to the description."""
        if self.marker is not None and self.marker not in description:
            return None
        match = self.pattern.search(description)
        if match is None:
            return None
        return self.extract(match)


DEFAULT_MODEL_RULES: tuple[ModelRule, ...] = (
    ModelRule(
        name="tool_calls",
        pattern=re.compile(r"tool calls"),
        extract=lambda _: TOOL_CALLS_LABEL,
    ),
    ModelRule(
        name="known_model",
        pattern=KNOWN_MODEL_PATTERN,
        extract=lambda match: match.group(1),
    ),
    ModelRule(
        name="extra_fast_premium",
        pattern=EXTRA_FAST_PATTERN,
        extract=lambda match: match.group(1) or FAST_PREMIUM_LABEL,
        marker="extra fast premium request",
    ),
)


@dataclass(frozen=True)
class _Resolution:
    request_count: int
    model_name: str
    is_token_based: bool = False
    unknown_fragment: str | None = None


def clean_unknown_fragment(text: str) -> str | None:
    """Reduce free description text to a candidate model name.

    Args:
        text: Text following the request count

    Returns:
        Cleaned fragment, or None when nothing meaningful remains
    """
    fragment = text.strip()
    if fragment.lower().startswith("discounted "):
        fragment = fragment[len("discounted ") :].strip()

    fragment = FRAGMENT_NOISE_PATTERN.sub("", fragment).strip()
    fragment = re.sub(r"\s{2,}", " ", fragment)
    if fragment.lower().endswith(" usage"):
        fragment = fragment[: -len(" usage")].strip()

    if len(fragment) <= 1 or fragment.lower() in ("token-based", "discounted"):
        return None
    return fragment


class BillingItemParser:
    """Convert raw billing lines into structured usage items."""

    def __init__(self, rules: Sequence[ModelRule] = DEFAULT_MODEL_RULES):
        """Initialize the parser.

        Args:
            rules: Model-resolution rules, evaluated in order; first match wins
        """
        self.rules = tuple(rules)

    def parse(self, description: str, cents: float | None) -> LineResult:
        """Parse one billing line.

        Args:
            description: Free-text description of the line
            cents: Line cost in cents, None when the line bills nothing

        Returns:
            SkippedLine, CreditLine or ParsedLine
        """
        if cents is None:
            logger.debug(f"Skipping line without cost: {description}")
            return SkippedLine(reason="missing cents")

        if MID_MONTH_PAYMENT_MARKER in description:
            return CreditLine(amount_cents=abs(cents))

        resolution = self._resolve(description)
        if resolution is None:
            logger.debug(f"Skipping line without request count: {description}")
            return SkippedLine(reason="no request count")

        if resolution.request_count == 0:
            logger.debug(f"Skipping line with zero requests: {description}")
            return SkippedLine(reason="zero requests")

        item = UsageLineItem(
            model_name=resolution.model_name,
            request_count=resolution.request_count,
            unit_cost_cents=cents / resolution.request_count,
            total_cost_cents=cents,
            is_discounted="discounted" in description.lower(),
            is_token_based=resolution.is_token_based,
        )
        return ParsedLine(item=item, unknown_fragment=resolution.unknown_fragment)

    def _resolve(self, description: str) -> _Resolution | None:
        token_match = TOKEN_BASED_PATTERN.match(description)
        if token_match:
            return _Resolution(
                request_count=int(token_match.group(1)),
                model_name=token_match.group(2),
                is_token_based=True,
            )

        generic_match = GENERIC_PATTERN.match(description)
        if generic_match:
            request_count = int(generic_match.group(1))
            for rule in self.rules:
                model_name = rule.resolve(description)
                if model_name is not None:
                    logger.debug(f"Rule {rule.name} resolved {model_name!r}")
                    return _Resolution(request_count, model_name)

            logger.info(f"Could not determine model for: {description}")
            return _Resolution(
                request_count,
                UNKNOWN_MODEL,
                unknown_fragment=clean_unknown_fragment(generic_match.group(2)),
            )

        leading_match = LEADING_INTEGER_PATTERN.match(description)
        if leading_match:
            logger.info(f"Could not extract model info from: {description}")
            word_match = FIRST_WORD_PATTERN.match(description)
            return _Resolution(
                int(leading_match.group(1)),
                UNKNOWN_MODEL,
                unknown_fragment=(
                    clean_unknown_fragment(word_match.group(2)) if word_match else None
                ),
            )

        return None
