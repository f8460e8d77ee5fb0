"""Categorization domain service.

Rules are tried first, highest priority first. When none matches, a keyword
agent may suggest a category, which is applied only when its confidence
reaches the acceptance threshold.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional, Union

from ledgerkit.config import Settings
from ledgerkit.database.base import Database
from ledgerkit.domain.entities import CategorizationResult, EntryAggregate, EntryCategory, Rule
from ledgerkit.domain.errors import ValidationError, invalid
from ledgerkit.domain.matchers import evaluate
from ledgerkit.domain.money import Number, to_decimal
from ledgerkit.logging_setup import get_logger

logger = get_logger(__name__)

SOURCE_RULE = "rule"
SOURCE_AGENT = "agent"
SOURCE_NONE = "none"


@dataclass(frozen=True)
class AgentSuggestion:
    """A category suggested by the keyword agent."""

    category_id: str
    confidence: Decimal


class KeywordAgent:
    """Suggests categories from keywords found in the entry description.

    Keywords are matched case-insensitively as substrings, in the order of the
    keyword map; the first hit wins.
    """

    def __init__(self, keyword_map: Mapping[str, Union[AgentSuggestion, tuple[str, Number]]]):
        """Build the agent from a keyword map.

        Raises:
            ValidationError: If a keyword is empty or a confidence is not in 0..1
        """
        self.keywords: list[tuple[str, AgentSuggestion]] = []
        violations = []
        for keyword, suggestion in keyword_map.items():
            if isinstance(suggestion, AgentSuggestion):
                category_id, confidence = suggestion.category_id, suggestion.confidence
            else:
                category_id, confidence = suggestion
            if not keyword:
                violations.append("keyword must be non-empty")
                continue
            try:
                confidence = to_decimal(confidence)
            except ValueError:
                violations.append(f"{keyword}: confidence must be a number")
                continue
            if not Decimal(0) <= confidence <= Decimal(1):
                violations.append(f"{keyword}: confidence must be between 0 and 1")
                continue
            self.keywords.append((keyword.lower(), AgentSuggestion(category_id, confidence)))
        if violations:
            raise ValidationError(invalid("keyword agent", violations), violations)

    def suggest(self, description: Optional[str]) -> Optional[AgentSuggestion]:
        if not description:
            return None
        haystack = description.lower()
        for keyword, suggestion in self.keywords:
            if keyword in haystack:
                return suggestion
        return None


class CategorizationService:
    """Assigns categories to entries from rules or agent suggestions."""

    def __init__(
        self,
        db: Database,
        agent: Optional[KeywordAgent] = None,
        threshold: Optional[Number] = None,
    ):
        """Initialize categorization service.

        Args:
            db: Database instance
            agent: Keyword agent consulted when no rule matches
            threshold: Minimum agent confidence to apply; defaults to settings
        """
        self.db = db
        self.agent = agent if agent is not None else KeywordAgent({})
        self.threshold = (
            to_decimal(threshold) if threshold is not None else Settings.from_env().agent_threshold
        )

    def categorize(
        self, owner_id: str, aggregate: EntryAggregate, persist: bool = True
    ) -> CategorizationResult:
        """Categorize an entry.

        Args:
            owner_id: Owner whose rules are evaluated
            aggregate: Entry with its lines
            persist: Store an applied result as the entry's category link

        Returns:
            CategorizationResult
        """
        result = self._decide(owner_id, aggregate)
        entry_id = aggregate.entry.id
        logger.info(
            "Categorized entry %s: source=%s category=%s confidence=%s applied=%s",
            entry_id, result.source, result.category_id, result.confidence, result.applied,
        )
        if result.applied and persist:
            self.db.upsert_entry_category(
                EntryCategory(
                    entry_id=entry_id,
                    category_id=result.category_id,
                    confidence=result.confidence,
                    source=result.source,
                )
            )
        return result

    def _decide(self, owner_id: str, aggregate: EntryAggregate) -> CategorizationResult:
        rule = self._find_rule(owner_id, aggregate)
        if rule is not None:
            return CategorizationResult(
                applied=True,
                source=SOURCE_RULE,
                confidence=rule.action.confidence,
                needs_review=False,
                category_id=rule.action.category_id,
            )

        suggestion = self.agent.suggest(aggregate.entry.description)
        if suggestion is None:
            return CategorizationResult(
                applied=False, source=SOURCE_NONE, confidence=Decimal("0"), needs_review=False
            )

        accepted = suggestion.confidence >= self.threshold
        return CategorizationResult(
            applied=accepted,
            source=SOURCE_AGENT,
            confidence=suggestion.confidence,
            needs_review=not accepted,
            category_id=suggestion.category_id,
        )

    def _find_rule(self, owner_id: str, aggregate: EntryAggregate) -> Optional[Rule]:
        for rule in self.db.list_rules(owner_id):
            if rule.active and evaluate(rule.matcher, aggregate):
                return rule
        return None
