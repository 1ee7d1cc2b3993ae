import logging
from typing import Tuple
from pydantic import BaseModel

from app.application.interfaces import PasswordHasher, TokenService
from app.domain.models import User
from app.domain.exceptions import InvalidPasswordError, UserNotFoundError


logger = logging.getLogger(__name__)


class LoginDTO(BaseModel):
    email: str
    password: str


class LoginUserUseCase:
    def __init__(self, unit_of_work, password_hasher: PasswordHasher, token_service: TokenService):
        self._uow = unit_of_work
        self._hasher = password_hasher
        self._tokens = token_service

    async def __call__(self, dto: LoginDTO) -> Tuple[str, User]:
        email = dto.email.strip().lower()
        async with self._uow() as uow:
            user = await uow.users.get_by_email(email)
        if not user:
            raise UserNotFoundError("Пользователь не найден")

        if not await self._hasher.verify(dto.password, user.password_hash):
            logger.info(f"Неверный пароль для пользователя {user.id}")
            raise InvalidPasswordError("Неверный пароль")

        logger.info(f"Пользователь {user.id} вошел в систему")
        return self._tokens.issue(user), user
