import logging
from pydantic import BaseModel

from app.application.interfaces import PasswordHasher
from app.domain.models import User
from app.domain.exceptions import UserAlreadyExistsError


logger = logging.getLogger(__name__)


class RegisterUserDTO(BaseModel):
    name: str
    email: str
    password: str


class RegisterUserUseCase:
    def __init__(self, unit_of_work, password_hasher: PasswordHasher):
        self._uow = unit_of_work
        self._hasher = password_hasher

    async def __call__(self, dto: RegisterUserDTO) -> User:
        email = dto.email.strip().lower()
        logger.info(f"Регистрация пользователя {email}")

        password_hash = await self._hasher.hash(dto.password)

        async with self._uow() as uow:
            if await uow.users.get_by_email(email):
                raise UserAlreadyExistsError(f"Пользователь {email} уже существует")
            user = await uow.users.create(name=dto.name, email=email, password_hash=password_hash)
            await uow.commit()

        logger.info(f"Пользователь создан: {user.id}")
        return user
