import logging
from fastapi import APIRouter, Depends, Path, status

from userpanel.api.deps import get_user_repository
from userpanel.api.errors import (
    MissingFieldsError,
    RecordNotFoundError,
    UsernameTakenError,
    StoreError
)
from userpanel.api.schemas import (
    UserCreate,
    UserUpdate,
    PasswordReset,
    UserPublic,
    SuccessResponse,
    ListResponse,
    MessageResponse
)
from userpanel.db.database import StoreOperationError, DuplicateRecordError
from userpanel.db.repositories import UserRepository
from userpanel.models import User
from userpanel.services import hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _public(user: User) -> UserPublic:
    return UserPublic(**user.to_public_dict())


@router.get("", response_model=ListResponse[UserPublic])
async def list_users(repo: UserRepository = Depends(get_user_repository)):
    """List all users, newest first, without password hashes"""
    try:
        users = await repo.list()
    except StoreOperationError as e:
        logger.error(f"Store error listing users: {e}")
        raise StoreError("Erro ao buscar usuários", str(e))

    logger.info(f"{len(users)} users found")
    data = [_public(u) for u in users]
    return ListResponse[UserPublic](data=data, total=len(data))


@router.get("/{user_id}", response_model=SuccessResponse[UserPublic])
async def get_user(
    user_id: int = Path(..., description="User ID"),
    repo: UserRepository = Depends(get_user_repository)
):
    """Get a specific user"""
    try:
        user = await repo.get_by_id(user_id)
    except StoreOperationError as e:
        logger.error(f"Store error fetching user {user_id}: {e}")
        raise StoreError("Erro ao buscar usuário", str(e))

    if not user:
        raise RecordNotFoundError()

    return SuccessResponse[UserPublic](message="Usuário encontrado", data=_public(user))


@router.post("", response_model=SuccessResponse[UserPublic], status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    repo: UserRepository = Depends(get_user_repository)
):
    """Create a new active user"""
    username = (payload.username or "").strip()
    name = (payload.name or "").strip()
    if not username or not payload.password or not name:
        raise MissingFieldsError(["username", "password", "name"])

    try:
        if await repo.username_taken(username):
            raise UsernameTakenError()

        user = await repo.create(
            username=username,
            password_hash=hash_password(payload.password),
            name=name,
            is_admin=bool(payload.is_admin)
        )
    except DuplicateRecordError:
        raise UsernameTakenError()
    except StoreOperationError as e:
        logger.error(f"Store error creating user {username}: {e}")
        raise StoreError("Erro ao criar usuário", str(e))

    logger.info(f"Created user {user.username} (id={user.id})")
    return SuccessResponse[UserPublic](message="Usuário criado com sucesso", data=_public(user))


@router.put("/{user_id}", response_model=SuccessResponse[UserPublic])
async def update_user(
    payload: UserUpdate,
    user_id: int = Path(..., description="User ID"),
    repo: UserRepository = Depends(get_user_repository)
):
    """Update a user; a blank password leaves the stored hash untouched"""
    values = payload.model_dump(exclude_none=True, exclude={"password"})
    if "username" in values:
        values["username"] = values["username"].strip()
        if not values["username"]:
            raise MissingFieldsError(["username"], error="Nome de usuário não pode ser vazio")
    if "name" in values:
        values["name"] = values["name"].strip()
        if not values["name"]:
            raise MissingFieldsError(["name"], error="Nome não pode ser vazio")

    if payload.password and payload.password.strip():
        values["password"] = hash_password(payload.password)

    try:
        if "username" in values and await repo.username_taken(values["username"], exclude_id=user_id):
            raise UsernameTakenError()

        user = await repo.update(user_id, values)
    except DuplicateRecordError:
        raise UsernameTakenError()
    except StoreOperationError as e:
        logger.error(f"Store error updating user {user_id}: {e}")
        raise StoreError("Erro ao atualizar usuário", str(e))

    if not user:
        raise RecordNotFoundError()

    return SuccessResponse[UserPublic](message="Usuário atualizado com sucesso", data=_public(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int = Path(..., description="User ID"),
    repo: UserRepository = Depends(get_user_repository)
):
    """Delete a user"""
    try:
        await repo.delete(user_id)
    except StoreOperationError as e:
        logger.error(f"Store error deleting user {user_id}: {e}")
        raise StoreError("Erro ao deletar usuário", str(e))

    return MessageResponse(message="Usuário removido com sucesso")


@router.patch("/{user_id}/toggle-status", response_model=SuccessResponse[UserPublic])
async def toggle_user_status(
    user_id: int = Path(..., description="User ID"),
    repo: UserRepository = Depends(get_user_repository)
):
    """
    Flip the active flag.

    Read-then-write, not a compare-and-swap: two concurrent toggles can
    lose an update and the last writer wins.
    """
    try:
        current = await repo.get_by_id(user_id)
        if not current:
            raise RecordNotFoundError()

        user = await repo.update(user_id, {"is_active": not current.is_active})
    except StoreOperationError as e:
        logger.error(f"Store error toggling user {user_id}: {e}")
        raise StoreError("Erro ao alterar status", str(e))

    if not user:
        raise RecordNotFoundError()

    state = "ativado" if user.is_active else "desativado"
    return SuccessResponse[UserPublic](message=f"Usuário {state} com sucesso", data=_public(user))


@router.patch("/{user_id}/reset-password", response_model=SuccessResponse[UserPublic])
async def reset_password(
    payload: PasswordReset,
    user_id: int = Path(..., description="User ID"),
    repo: UserRepository = Depends(get_user_repository)
):
    """Replace the password hash"""
    if not payload.password or not payload.password.strip():
        raise MissingFieldsError(["password"], error="Senha não pode ser vazia")

    try:
        user = await repo.update(user_id, {"password": hash_password(payload.password)})
    except StoreOperationError as e:
        logger.error(f"Store error resetting password for user {user_id}: {e}")
        raise StoreError("Erro ao resetar senha", str(e))

    if not user:
        raise RecordNotFoundError()

    return SuccessResponse[UserPublic](message="Senha resetada com sucesso", data=_public(user))
