from dataclasses import dataclass
from typing import Optional

import bcrypt

from nutribot.logging_config import get_logger, mask_phone
from nutribot.services.collaborator import CollaboratorClient, CollaboratorError
from nutribot.services.intent_service import normalize_email

logger = get_logger("account_service")


@dataclass
class Account:
    id: str
    email: Optional[str] = None


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


class AccountClient(CollaboratorClient):
    """Account lookup, phone linking and registration on the app host."""

    service_name = "account_service"

    async def _lookup(self, query: dict) -> Optional[Account]:
        response = await self._request("POST", "/api/auth/lookup", json=query)
        data = self._json(response)
        if not isinstance(data, dict):
            raise CollaboratorError(self.service_name, "lookup response is not an object")
        if not data.get("found"):
            return None
        account_id = data.get("id")
        if not account_id:
            raise CollaboratorError(self.service_name, "lookup found an account without an id")
        email = data.get("email")
        return Account(id=str(account_id), email=normalize_email(email) if email else None)

    async def find_by_email(self, email: str) -> Optional[Account]:
        return await self._lookup({"email": normalize_email(email)})

    async def find_by_phone(self, phone: str) -> Optional[Account]:
        return await self._lookup({"phone": phone})

    async def link_phone(self, account_id: str, phone: str) -> None:
        await self._request("POST", "/api/users/link-phone", json={"userId": account_id, "phone": phone})
        logger.info("Linked phone to account", extra={"context": {"user_id": account_id, "phone": mask_phone(phone)}})

    async def create_account(self, email: str, password: str, phone: str) -> Account:
        """
        Register a new account for the phone.

        If an account with this email appeared since the email step (another
        channel registered it), link the phone to it instead of creating a duplicate.
        """
        email = normalize_email(email)

        existing = await self.find_by_email(email)
        if existing is not None:
            await self.link_phone(existing.id, phone)
            return Account(id=existing.id, email=email)

        response = await self._request(
            "POST",
            "/api/users/register",
            json={"email": email, "phone": phone, "passwordHash": hash_password(password)},
        )
        data = self._json(response)
        account_id = data.get("id") if isinstance(data, dict) else None
        if not account_id:
            raise CollaboratorError(self.service_name, "register response has no id")

        logger.info("Account created", extra={"context": {"user_id": str(account_id), "phone": mask_phone(phone)}})
        return Account(id=str(account_id), email=email)
