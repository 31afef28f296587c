"""
Account flows: register, login and who-am-i.
Register and login both answer {id, name, email, token}.
"""

import re

from .auth import TokenService
from .errors import InvalidCredentials, NotFound, ValidationError
from .users import CredentialStore, hash_password, normalize_email, public_profile, verify_password

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AccountService:
    def __init__(self, users: CredentialStore, tokens: TokenService, bcrypt_rounds: int = 10):
        self.users = users
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def register(self, name: str | None, email: str | None, password: str | None) -> dict:
        name = (name or "").strip()
        email = normalize_email(email or "")
        if not name or not email or not password:
            raise ValidationError("Name, email and password are required")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Email address is not valid")
        user = self.users.create(name, email, hash_password(password, self.bcrypt_rounds))
        return {**public_profile(user), "token": self.tokens.issue(user.id)}

    def login(self, email: str | None, password: str | None) -> dict:
        # Same error for missing fields, unknown email and wrong password
        if not email or not password:
            raise InvalidCredentials()
        user = self.users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return {**public_profile(user), "token": self.tokens.issue(user.id)}

    def whoami(self, user_id: str) -> dict:
        user = self.users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return public_profile(user)
