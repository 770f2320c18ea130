from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

from userpanel.models import AlertType, AlertSeverity


class LoginAttemptCreate(BaseModel):
    username: Optional[str] = None
    ip_address: Optional[str] = None
    device_token: Optional[str] = None
    success: bool = False
    failure_reason: Optional[str] = None


class LoginAttemptResponse(BaseModel):
    id: int
    username: str
    ip_address: Optional[str] = None
    device_token: Optional[str] = None
    success: bool
    failure_reason: Optional[str] = None
    timestamp: Optional[str] = None

    class Config:
        from_attributes = True


class DeviceResponse(BaseModel):
    id: int
    username: str
    ip_address: Optional[str] = None
    device_name: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[str] = None

    class Config:
        from_attributes = True


class AlertCreate(BaseModel):
    """Schema for alerts raised by external detectors"""
    alert_type: Optional[AlertType] = Field(None, description="Alert category")
    severity: AlertSeverity = AlertSeverity.MEDIUM
    ip_address: Optional[str] = None
    username: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "alert_type": "repeated_failure",
                "severity": "high",
                "ip_address": "10.0.0.7",
                "username": "ana",
                "message": "5 tentativas falhas em 2 minutos",
                "details": {"attempts": 5}
            }
        }


class AlertResponse(BaseModel):
    id: int
    alert_type: str
    severity: str
    ip_address: Optional[str] = None
    username: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: Optional[str] = None
    read_at: Optional[str] = None

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_users: int = 0
    active_users: int = 0
    inactive_users: int = 0
    admin_users: int = 0
    login_attempts_24h: int = 0
    successful_logins_24h: int = 0
    failed_logins_24h: int = 0
    unread_alerts: int = 0
