import asyncio
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.application.interfaces import PasswordHasher, TokenService
from app.domain.exceptions import InvalidCredentialError, ValidationError
from app.domain.models import TokenPayload, User

logger = logging.getLogger(__name__)

# bcrypt учитывает только первые 72 байта
MAX_PASSWORD_BYTES = 72


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 10):
        self._rounds = rounds

    async def hash(self, password: str) -> str:
        encoded = self._encode(password)
        # bcrypt блокирует поток, выносим из event loop
        hashed = await asyncio.to_thread(bcrypt.hashpw, encoded, bcrypt.gensalt(rounds=self._rounds))
        return hashed.decode("utf-8")

    async def verify(self, password: str, password_hash: str) -> bool:
        encoded = self._encode(password)
        return await asyncio.to_thread(bcrypt.checkpw, encoded, password_hash.encode("utf-8"))

    def _encode(self, password: str) -> bytes:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Пароль длиннее {MAX_PASSWORD_BYTES} байт")
        return encoded


class JWTTokenService(TokenService):
    """Подписанный токен с {id, email}, живет expire_minutes"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret_key:
            raise ValueError("Пустой ключ подписи токенов")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire = timedelta(minutes=expire_minutes)

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id": user.id,
            "email": user.email,
            "iat": now,
            "exp": now + self._expire
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenPayload:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "id", "email"]}
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidCredentialError("Срок действия токена истек") from e
        except jwt.InvalidTokenError as e:
            logger.warning(f"Невалидный токен: {e}")
            raise InvalidCredentialError("Невалидный токен") from e

        if not isinstance(payload["id"], int) or not isinstance(payload["email"], str):
            raise InvalidCredentialError("Невалидный токен")
        return TokenPayload(user_id=payload["id"], email=payload["email"])
