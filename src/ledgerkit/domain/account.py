"""Account domain service."""

from dataclasses import replace
from typing import Optional, Union

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, AccountNature
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.money import is_valid_currency, normalize_currency
from ledgerkit.logging_setup import get_logger

logger = get_logger(__name__)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        account_id: str,
        owner_id: str,
        name: str,
        nature: Union[AccountNature, str],
        currency: str,
        active: bool = True,
    ) -> Account:
        """Create a new account.

        Args:
            account_id: Caller-chosen account ID
            owner_id: Owner (user) ID
            name: Account name
            nature: asset, liability, income, expense or equity
            currency: Currency code, fixed for the life of the account
            active: Whether the account accepts new lines

        Returns:
            The stored account

        Raises:
            ValidationError: If any field is malformed
            DuplicateError: If the account ID is taken
        """
        try:
            nature = AccountNature(nature)
        except ValueError:
            raise ValidationError(
                f"Invalid account nature '{nature}'. "
                f"Must be one of: {', '.join(n.value for n in AccountNature)}"
            )
        if is_valid_currency(currency):
            currency = normalize_currency(currency)

        account = self.db.create_account(
            Account(
                id=account_id,
                owner_id=owner_id,
                name=name,
                nature=nature,
                currency=currency,
                active=active,
            )
        )
        logger.info("Created account %s (%s, %s)", account.id, account.nature.value, account.currency)
        return account

    def get_account(self, account_id: str) -> Account:
        """Get account by ID.

        Raises:
            NotFoundError: If the account does not exist
        """
        return self.db.get_account(account_id)

    def list_accounts(self, owner_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally only those of one owner."""
        return self.db.list_accounts(owner_id=owner_id)

    def deactivate_account(self, account_id: str) -> Account:
        """Stop an account from accepting new entry lines.

        Existing lines and statement lines are untouched.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.db.get_account(account_id)
        if not account.active:
            return account
        logger.info("Deactivating account %s", account_id)
        return self.db.upsert_account(replace(account, active=False))
