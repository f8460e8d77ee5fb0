"""Categorization rule domain service."""

from typing import Any

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Rule, RuleAction
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.matchers import parse_matcher
from ledgerkit.domain.money import Number, to_decimal
from ledgerkit.logging_setup import get_logger

logger = get_logger(__name__)


class RuleService:
    """Service for managing categorization rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        rule_id: str,
        owner_id: str,
        priority: int,
        matcher: Any,
        category_id: str,
        confidence: Number = 1,
        active: bool = True,
    ) -> Rule:
        """Create a rule.

        Args:
            rule_id: Caller-chosen rule ID
            owner_id: Owner whose entries the rule applies to
            priority: Higher priorities are evaluated first
            matcher: Matcher tree or its dict form
            category_id: Category assigned when the rule matches
            confidence: Confidence of the assignment, 0 to 1
            active: Inactive rules are never evaluated

        Raises:
            ValidationError: If the matcher or any field is malformed
            DuplicateError: If the rule ID is taken
        """
        try:
            confidence = to_decimal(confidence)
        except ValueError as e:
            raise ValidationError(f"confidence: {e}")

        rule = self.db.create_rule(
            Rule(
                id=rule_id,
                owner_id=owner_id,
                priority=priority,
                matcher=parse_matcher(matcher),
                action=RuleAction(category_id=category_id, confidence=confidence),
                active=active,
            )
        )
        logger.info("Created rule %s for %s (priority %d)", rule.id, rule.owner_id, rule.priority)
        return rule

    def get_rule(self, rule_id: str) -> Rule:
        """Get rule by ID.

        Raises:
            NotFoundError: If the rule does not exist
        """
        return self.db.get_rule(rule_id)

    def list_rules(self, owner_id: str, active_only: bool = False) -> list[Rule]:
        """List an owner's rules in evaluation order."""
        rules = self.db.list_rules(owner_id)
        if active_only:
            rules = [rule for rule in rules if rule.active]
        return rules
