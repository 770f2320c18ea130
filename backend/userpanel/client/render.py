"""
Render layer: pure projections from records to view descriptions.

A view description is a plain dict holding raw text; `to_html` is the one
place that turns it into markup and escapes every text node and attribute.
"""

import html
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .state import is_temporary_id

STATUS_FILTERS = ("all", "active", "inactive")
ROLE_FILTERS = ("all", "admin", "user")

EMPTY_USERS = "Nenhum usuário cadastrado"
NO_MATCHING_USERS = "Nenhum usuário encontrado"


@dataclass(frozen=True)
class UserFilter:
    search: str = ""
    status: str = "all"
    role: str = "all"

    def __post_init__(self):
        if self.status not in STATUS_FILTERS:
            raise ValueError(f"status must be one of {STATUS_FILTERS}")
        if self.role not in ROLE_FILTERS:
            raise ValueError(f"role must be one of {ROLE_FILTERS}")

    def matches(self, user: Dict[str, Any]) -> bool:
        term = self.search.strip().lower()
        if term and term not in (user.get("name") or "").lower() \
                and term not in (user.get("username") or "").lower():
            return False
        if self.status == "active" and not user.get("is_active"):
            return False
        if self.status == "inactive" and user.get("is_active"):
            return False
        if self.role == "admin" and not user.get("is_admin"):
            return False
        if self.role == "user" and user.get("is_admin"):
            return False
        return True


def filter_users(users: Iterable[Dict[str, Any]], flt: Optional[UserFilter] = None,
                 sort: bool = False) -> List[Dict[str, Any]]:
    flt = flt or UserFilter()
    result = [u for u in users if flt.matches(u)]
    if sort:
        result.sort(key=lambda u: (u.get("name") or "").lower())
    return result


def format_date(value: Optional[str]) -> str:
    """ISO timestamp as dd/mm/yyyy; '-' when missing or unreadable"""
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return "-"
    return parsed.strftime("%d/%m/%Y")


def format_datetime(value: Optional[str]) -> str:
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return "-"
    return parsed.strftime("%d/%m/%Y %H:%M:%S")


def _text(value: Any) -> Dict[str, Any]:
    return {"text": "" if value is None else str(value)}


def _badge(text: str, css: str) -> Dict[str, Any]:
    return {"text": text, "badge": css}


def _status_badge(user: Dict[str, Any]) -> Dict[str, Any]:
    return _badge("Ativo", "ativo") if user.get("is_active") else _badge("Inativo", "inativo")


def _role_badge(user: Dict[str, Any], admin_label: str = "Admin") -> Dict[str, Any]:
    return _badge(admin_label, "admin") if user.get("is_admin") else _badge("Usuário", "")


def _table(view: str, columns: List[str], rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "table", "view": view, "columns": columns, "rows": rows}


def _empty(view: str, message: str) -> Dict[str, Any]:
    return {"type": "empty", "view": view, "message": message}


def render_users(users: List[Dict[str, Any]], flt: Optional[UserFilter] = None,
                 sort: bool = False) -> Dict[str, Any]:
    if not users:
        return _empty("users", EMPTY_USERS)

    visible = filter_users(users, flt, sort=sort)
    if not visible:
        return _empty("users", NO_MATCHING_USERS)

    rows = []
    for user in visible:
        rows.append({
            "id": user.get("id"),
            "provisional": is_temporary_id(user.get("id")),
            "cells": [
                _text(user.get("name")),
                _text(user.get("username")),
                _status_badge(user),
                _role_badge(user),
                _text(format_date(user.get("created_at"))),
            ],
            "actions": [
                {"action": "view", "label": "Ver", "target": user.get("id")},
                {"action": "edit", "label": "Editar", "target": user.get("id")},
                {"action": "toggle", "label": "Desativar" if user.get("is_active") else "Ativar",
                 "target": user.get("id")},
                {"action": "delete", "label": "Excluir", "target": user.get("id")},
            ]
        })

    return _table("users", ["Nome", "Usuário", "Status", "Tipo", "Criado em", "Ações"], rows)


def render_user_details(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "details",
        "view": "user",
        "items": [
            dict(label="Nome Completo", **_text(user.get("name"))),
            dict(label="Nome de Usuário", **_text(user.get("username"))),
            dict(label="Status", **_status_badge(user)),
            dict(label="Tipo", **_role_badge(user, admin_label="Administrador")),
            dict(label="Criado em", **_text(format_date(user.get("created_at")))),
            dict(label="Atualizado em", **_text(format_date(user.get("updated_at")))),
        ]
    }


def render_login_attempts(attempts: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not attempts:
        return _empty("login_attempts", "Nenhuma tentativa de login registrada")

    rows = [{
        "id": a.get("id"),
        "cells": [
            _text(format_datetime(a.get("timestamp"))),
            _text(a.get("username")),
            _text(a.get("ip_address") or "-"),
            _badge("Sucesso", "ativo") if a.get("success") else _badge("Falha", "inativo"),
            _text(a.get("failure_reason") or "-"),
        ],
        "actions": []
    } for a in attempts]

    return _table("login_attempts", ["Data/Hora", "Usuário", "IP", "Resultado", "Motivo"], rows)


def render_devices(devices: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not devices:
        return _empty("devices", "Nenhum dispositivo autorizado")

    rows = [{
        "id": d.get("id"),
        "cells": [
            _text(d.get("username")),
            _text(d.get("device_name") or "-"),
            _text(d.get("ip_address") or "-"),
            _text(d.get("user_agent") or "-"),
            _text(format_date(d.get("timestamp"))),
        ],
        "actions": [{"action": "revoke", "label": "Remover", "target": d.get("id")}]
    } for d in devices]

    return _table("devices", ["Usuário", "Dispositivo", "IP", "Navegador", "Autorizado em", "Ações"], rows)


def render_alerts(alerts: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not alerts:
        return _empty("alerts", "Nenhum alerta de segurança")

    rows = []
    for alert in alerts:
        actions = []
        if not alert.get("is_read"):
            actions.append({"action": "mark_read", "label": "Marcar como lido", "target": alert.get("id")})
        actions.append({"action": "delete", "label": "Excluir", "target": alert.get("id")})
        rows.append({
            "id": alert.get("id"),
            "cells": [
                _text(format_datetime(alert.get("created_at"))),
                _badge(str(alert.get("severity") or "medium"), f"severity-{alert.get('severity') or 'medium'}"),
                _text(alert.get("alert_type")),
                _text(alert.get("username") or "-"),
                _text(alert.get("ip_address") or "-"),
                _text(alert.get("message") or ""),
                _badge("Lido", "lido") if alert.get("is_read") else _badge("Novo", "novo"),
            ],
            "actions": actions
        })

    return _table("alerts", ["Data/Hora", "Severidade", "Tipo", "Usuário", "IP", "Mensagem", "Status", "Ações"], rows)


DASHBOARD_LABELS = [
    ("total_users", "Total de usuários"),
    ("active_users", "Usuários ativos"),
    ("inactive_users", "Usuários inativos"),
    ("admin_users", "Administradores"),
    ("login_attempts_24h", "Tentativas de login (24h)"),
    ("successful_logins_24h", "Logins com sucesso (24h)"),
    ("failed_logins_24h", "Logins com falha (24h)"),
    ("unread_alerts", "Alertas não lidos"),
]


def render_dashboard(stats: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "stats",
        "view": "dashboard",
        "items": [{"label": label, "text": str(stats.get(key, 0))} for key, label in DASHBOARD_LABELS]
    }


def render_access_denied(portal_url: str) -> Dict[str, Any]:
    return {
        "type": "access_denied",
        "view": "denied",
        "title": "Acesso Negado",
        "message": "Sua sessão não é válida ou expirou. Acesse novamente pelo portal.",
        "link": {"label": "Voltar para o Portal", "href": portal_url}
    }


# Markup

def _e(value: Any) -> str:
    return html.escape("" if value is None else str(value), quote=True)


def _cell_html(cell: Dict[str, Any]) -> str:
    if "badge" in cell:
        return f'<span class="badge {_e(cell["badge"])}">{_e(cell["text"])}</span>'
    return _e(cell["text"])


def _action_html(action: Dict[str, Any]) -> str:
    return (
        f'<button class="btn-{_e(action["action"])}" data-action="{_e(action["action"])}" '
        f'data-id="{_e(action["target"])}">{_e(action["label"])}</button>'
    )


def to_html(view: Dict[str, Any]) -> str:
    """Markup for a view description; every piece of text is escaped"""
    kind = view.get("type")

    if kind == "empty":
        return f'<div class="empty-message">{_e(view["message"])}</div>'

    if kind == "table":
        head = "".join(f"<th>{_e(c)}</th>" for c in view["columns"])
        body = []
        for row in view["rows"]:
            cells = "".join(f"<td>{_cell_html(c)}</td>" for c in row["cells"])
            if row.get("actions"):
                buttons = "".join(_action_html(a) for a in row["actions"])
                cells += f'<td><div class="user-actions">{buttons}</div></td>'
            css = ' class="provisional"' if row.get("provisional") else ""
            body.append(f'<tr data-id="{_e(row["id"])}"{css}>{cells}</tr>')
        return f"<table><thead><tr>{head}</tr></thead><tbody>{''.join(body)}</tbody></table>"

    if kind in ("details", "stats"):
        items = "".join(
            f'<div class="detail-item"><label>{_e(item["label"])}</label>'
            f'<div class="value">{_cell_html(item)}</div></div>'
            for item in view["items"]
        )
        css = "user-details" if kind == "details" else "dashboard-stats"
        return f'<div class="{css}">{items}</div>'

    if kind == "access_denied":
        link = view["link"]
        return (
            f'<div class="access-denied"><h2>{_e(view["title"])}</h2>'
            f'<p>{_e(view["message"])}</p>'
            f'<a href="{_e(link["href"])}">{_e(link["label"])}</a></div>'
        )

    raise ValueError(f"Unknown view type: {kind!r}")
