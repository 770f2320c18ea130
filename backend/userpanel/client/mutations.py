"""
Optimistic mutations as commands.

Each mutation knows how to apply itself to the local state, how to undo
that change, which proxy call makes it real, and how to fold the server's
answer back in. `SyncEngine.execute` drives them.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .api_client import PanelApiClient
from .exceptions import PanelValidationError
from .state import Collection, PanelState, TEMP_ID_PREFIX, is_temporary_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_temporary_id() -> str:
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


class Mutation(ABC):
    view = "users"
    success_message = "Operação concluída com sucesso"
    failure_message = "Erro ao sincronizar com o servidor"

    record_id: Any = None

    def validate(self, state: PanelState):
        """Local pre-check; raises PanelValidationError before anything changes"""
        pass

    @abstractmethod
    def apply(self, state: PanelState):
        ...

    @abstractmethod
    def revert(self, state: PanelState) -> bool:
        """Undo `apply`; a second call is a no-op and returns False"""
        ...

    @abstractmethod
    async def remote_call(self, client: PanelApiClient) -> Optional[Dict[str, Any]]:
        ...

    def confirm(self, state: PanelState, server_record: Optional[Dict[str, Any]]):
        """Fold the server-confirmed record into the collection"""
        if server_record:
            state.collection(self.view).replace(self.record_id, server_record)

    @property
    def is_local_only(self) -> bool:
        """Targets a record the server has never seen"""
        return is_temporary_id(self.record_id)

    def _collection(self, state: PanelState) -> Collection:
        return state.collection(self.view)


def _check_username(collection: Collection, username: str, exclude_id: Any = None):
    for record in collection:
        if record.get("id") != exclude_id and (record.get("username") or "").lower() == username:
            raise PanelValidationError("Nome de usuário já existe", status_code=409)


class CreateUser(Mutation):
    success_message = "Usuário criado com sucesso"
    failure_message = "Erro ao criar usuário"

    def __init__(self, username: str, password: str, name: str, is_admin: bool = False):
        self.username = (username or "").strip().lower()
        self.password = password or ""
        self.name = (name or "").strip()
        self.is_admin = bool(is_admin)
        self.record_id = new_temporary_id()
        self._applied = False

    @property
    def is_local_only(self) -> bool:
        return False

    def validate(self, state: PanelState):
        if not self.username or not self.password.strip() or not self.name:
            raise PanelValidationError("Campos obrigatórios faltando")
        _check_username(self._collection(state), self.username)

    def apply(self, state: PanelState):
        now = _now()
        self._collection(state).insert({
            "id": self.record_id,
            "username": self.username,
            "name": self.name,
            "is_admin": self.is_admin,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        })
        self._applied = True

    def revert(self, state: PanelState) -> bool:
        if not self._applied:
            return False
        self._applied = False
        return self._collection(state).remove(self.record_id) is not None

    async def remote_call(self, client: PanelApiClient):
        return await client.create_user({
            "username": self.username,
            "password": self.password,
            "name": self.name,
            "is_admin": self.is_admin,
        })

    def confirm(self, state: PanelState, server_record):
        self._applied = False
        super().confirm(state, server_record)


class PatchRecord(Mutation):
    """Splices new field values into one record, remembering the old ones"""

    def __init__(self, record_id: Any):
        self.record_id = record_id
        self._previous: Optional[Dict[str, Any]] = None

    def changes(self, record: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    def validate(self, state: PanelState):
        if self._collection(state).find(self.record_id) is None:
            raise PanelValidationError("Registro não encontrado", status_code=404)

    def apply(self, state: PanelState):
        collection = self._collection(state)
        record = collection.find(self.record_id)
        if record is None:
            return
        self._previous = dict(record)
        collection.patch(self.record_id, self.changes(record))

    def revert(self, state: PanelState) -> bool:
        if self._previous is None:
            return False
        previous, self._previous = self._previous, None
        return self._collection(state).replace(self.record_id, previous)

    def confirm(self, state: PanelState, server_record):
        self._previous = None
        super().confirm(state, server_record)


class UpdateUser(PatchRecord):
    success_message = "Usuário atualizado com sucesso"
    failure_message = "Erro ao atualizar usuário"

    def __init__(self, record_id: Any, username: Optional[str] = None, name: Optional[str] = None,
                 password: Optional[str] = None, is_admin: Optional[bool] = None,
                 is_active: Optional[bool] = None):
        super().__init__(record_id)
        self.values: Dict[str, Any] = {}
        if username is not None:
            self.values["username"] = username.strip().lower()
        if name is not None:
            self.values["name"] = name.strip()
        if is_admin is not None:
            self.values["is_admin"] = bool(is_admin)
        if is_active is not None:
            self.values["is_active"] = bool(is_active)
        self.password = password if password and password.strip() else None

    def validate(self, state: PanelState):
        super().validate(state)
        if self.values.get("username") == "" or self.values.get("name") == "":
            raise PanelValidationError("Campos obrigatórios faltando")
        if "username" in self.values:
            _check_username(self._collection(state), self.values["username"], exclude_id=self.record_id)

    def changes(self, record):
        return dict(self.values, updated_at=_now())

    async def remote_call(self, client: PanelApiClient):
        payload = dict(self.values)
        if self.password:
            payload["password"] = self.password
        return await client.update_user(self.record_id, payload)


class ToggleUserStatus(PatchRecord):
    failure_message = "Erro ao alterar status"

    def changes(self, record):
        return {"is_active": not record.get("is_active"), "updated_at": _now()}

    def apply(self, state: PanelState):
        super().apply(state)
        record = self._collection(state).find(self.record_id)
        active = bool(record and record.get("is_active"))
        self.success_message = f"Usuário {'ativado' if active else 'desativado'} com sucesso"

    async def remote_call(self, client: PanelApiClient):
        return await client.toggle_user_status(self.record_id)


class ToggleAdmin(PatchRecord):
    success_message = "Permissões atualizadas com sucesso"
    failure_message = "Erro ao alterar permissões"

    def __init__(self, record_id: Any):
        super().__init__(record_id)
        self._target: Optional[bool] = None

    def changes(self, record):
        self._target = not record.get("is_admin")
        return {"is_admin": self._target, "updated_at": _now()}

    async def remote_call(self, client: PanelApiClient):
        return await client.update_user(self.record_id, {"is_admin": self._target})


class ResetPassword(Mutation):
    """No visible local change: the password never lives on the client"""
    success_message = "Senha resetada com sucesso"
    failure_message = "Erro ao resetar senha"

    def __init__(self, record_id: Any, password: str):
        self.record_id = record_id
        self.password = password or ""

    def validate(self, state: PanelState):
        if not self.password.strip():
            raise PanelValidationError("Senha não pode ser vazia")

    def apply(self, state: PanelState):
        pass

    def revert(self, state: PanelState) -> bool:
        return False

    async def remote_call(self, client: PanelApiClient):
        return await client.reset_password(self.record_id, self.password)


class RemoveRecord(Mutation):
    """Removes one record, remembering where it sat"""

    def __init__(self, record_id: Any):
        self.record_id = record_id
        self._removed: Optional[Dict[str, Any]] = None
        self._index = 0

    def apply(self, state: PanelState):
        collection = self._collection(state)
        index = collection.index_of(self.record_id)
        if index is None:
            return
        self._index = index
        self._removed = collection.remove(self.record_id)

    def revert(self, state: PanelState) -> bool:
        if self._removed is None:
            return False
        removed, self._removed = self._removed, None
        collection = self._collection(state)
        if collection.find(self.record_id) is not None:
            return False
        collection.insert(removed, min(self._index, len(collection)))
        return True

    def confirm(self, state: PanelState, server_record):
        self._removed = None


class DeleteUser(RemoveRecord):
    success_message = "Usuário removido com sucesso"
    failure_message = "Erro ao deletar usuário"

    async def remote_call(self, client: PanelApiClient):
        return await client.delete_user(self.record_id)


class RevokeDevice(RemoveRecord):
    view = "devices"
    success_message = "Dispositivo removido com sucesso"
    failure_message = "Erro ao remover dispositivo"

    async def remote_call(self, client: PanelApiClient):
        return await client.revoke_device(self.record_id)


class MarkAlertRead(PatchRecord):
    view = "alerts"
    success_message = "Alerta marcado como lido"
    failure_message = "Erro ao marcar alerta"

    def changes(self, record):
        return {"is_read": True, "read_at": _now()}

    async def remote_call(self, client: PanelApiClient):
        return await client.mark_alert_read(self.record_id)


class DeleteAlert(RemoveRecord):
    view = "alerts"
    success_message = "Alerta removido com sucesso"
    failure_message = "Erro ao remover alerta"

    async def remote_call(self, client: PanelApiClient):
        return await client.delete_alert(self.record_id)
