"""Headless panel client: session gate, sync engine and render layer"""

from .api_client import PanelApiClient
from .exceptions import (
    PanelClientError,
    PanelApiError,
    PanelConnectionError,
    PanelValidationError,
    SessionRejectedError
)
from .session_gate import SessionGate, GateState, TabStorage
from .state import PanelState, Collection, Notification, fingerprint
from .mutations import (
    Mutation,
    CreateUser,
    UpdateUser,
    ToggleUserStatus,
    ToggleAdmin,
    ResetPassword,
    DeleteUser,
    RevokeDevice,
    MarkAlertRead,
    DeleteAlert
)
from .sync_engine import SyncEngine, MutationOutcome
from .render import (
    UserFilter,
    filter_users,
    render_users,
    render_user_details,
    render_login_attempts,
    render_devices,
    render_alerts,
    render_dashboard,
    render_access_denied,
    to_html
)
