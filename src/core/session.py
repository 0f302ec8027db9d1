import logging
from typing import Optional

from src.core.config import config_manager
from src.core.errors import AuthorizationError

logger = logging.getLogger(__name__)

class AccountSession:
    """Holds the identity every zone/container/item read and write is scoped to."""

    def __init__(self, account_id: Optional[str] = None):
        self._account_id = account_id

    @property
    def is_signed_in(self) -> bool:
        return bool(self._account_id)

    @property
    def user_id(self) -> str:
        if not self._account_id:
            raise AuthorizationError("You must be signed in to access your inventory")
        return self._account_id

    def sign_in(self, account_id: str):
        logger.info(f"Signed in as account {account_id}")
        self._account_id = account_id

    def sign_out(self):
        logger.info("Signed out")
        self._account_id = None

session = AccountSession(config_manager.get_current_account())
