"""Reference data gateway interface.

The ledger engine reads accounts, platforms, games and operators only through
this interface. Implementations return typed models (never raw rows) and raise
``ReferenceDataUnavailableError`` on transient store failures so the engine can
tell "unavailable" apart from "not found".
"""

from abc import ABC, abstractmethod

from cashbook.models.account import Account
from cashbook.models.game import Game
from cashbook.models.operator import Operator
from cashbook.models.platform import Platform


class ReferenceDataGateway(ABC):
    """Abstract read access to reference data."""

    @abstractmethod
    async def get_account(self, account_id: str, for_update: bool = False) -> Account | None:
        """Get an account by ID, including inactive and soft-deleted ones.

        Args:
            account_id: Account ID
            for_update: Lock the account row until the current transaction ends

        Returns:
            Account or None
        """
        pass

    @abstractmethod
    async def lock_account(self, account_id: str) -> None:
        """Take the account's write lock for the rest of the current transaction.

        Must be the first statement of the transaction: every later read then
        sees writes committed by whoever held the lock before. Unknown IDs are
        a no-op.
        """
        pass

    @abstractmethod
    async def get_platform(self, platform_id: str) -> Platform | None:
        """Get a platform by ID, including inactive and soft-deleted ones."""
        pass

    @abstractmethod
    async def get_game(self, game_id: str) -> Game | None:
        """Get a game by ID."""
        pass

    @abstractmethod
    async def get_operator(self, operator_id: str) -> Operator | None:
        """Get an operator by ID."""
        pass

    @abstractmethod
    async def resolve_operator(self, auth_user_id: str) -> str | None:
        """Map an external identity to an active operator ID.

        Args:
            auth_user_id: User ID issued by the identity provider

        Returns:
            Operator ID or None if no active operator matches
        """
        pass
