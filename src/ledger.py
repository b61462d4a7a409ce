from typing import Dict, Optional

from models import ClientAccount


class Ledger:
    """
    Owns every client account for the lifetime of a run.
    Accounts are created on first valid deposit and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the client's account, or None if it was never opened."""
        return self._accounts.get(client_id)

    def open_account(self, client_id: int) -> ClientAccount:
        """Create a zeroed, unlocked account for a client seen for the first time."""
        if client_id in self._accounts:
            raise ValueError(f"account already exists for client {client_id}")
        account = ClientAccount(client_id=client_id)
        self._accounts[client_id] = account
        return account

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)
