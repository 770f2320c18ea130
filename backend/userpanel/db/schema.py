"""Database schema definitions"""

# Users table; username uniqueness is case-insensitive
USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE COLLATE NOCASE,
    password TEXT NOT NULL,          -- bcrypt hash
    name TEXT NOT NULL,
    is_admin BOOLEAN NOT NULL DEFAULT 0,
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
)
"""

# Login attempts table (append-only)
LOGIN_ATTEMPTS_TABLE = """
CREATE TABLE IF NOT EXISTS login_attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL,
    ip_address TEXT,
    device_token TEXT,
    success BOOLEAN NOT NULL DEFAULT 0,
    failure_reason TEXT,
    timestamp DATETIME NOT NULL
)
"""

# Authorized devices table
AUTHORIZED_DEVICES_TABLE = """
CREATE TABLE IF NOT EXISTS authorized_devices (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL,
    ip_address TEXT,
    device_name TEXT,
    user_agent TEXT,
    timestamp DATETIME NOT NULL
)
"""

# Security alerts table
SECURITY_ALERTS_TABLE = """
CREATE TABLE IF NOT EXISTS security_alerts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    alert_type TEXT NOT NULL,  -- 'unauthorized_access', 'after_hours_access', 'repeated_failure', 'suspicious_activity'
    severity TEXT NOT NULL DEFAULT 'medium',
    ip_address TEXT,
    username TEXT,
    message TEXT,
    details TEXT,  -- JSON object
    is_read BOOLEAN NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL,
    read_at DATETIME
)
"""

ALL_TABLES = [
    USERS_TABLE,
    LOGIN_ATTEMPTS_TABLE,
    AUTHORIZED_DEVICES_TABLE,
    SECURITY_ALERTS_TABLE,
]

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_users_created_at ON users(created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_login_attempts_username ON login_attempts(username)",
    "CREATE INDEX IF NOT EXISTS idx_login_attempts_timestamp ON login_attempts(timestamp DESC)",
    "CREATE INDEX IF NOT EXISTS idx_authorized_devices_username ON authorized_devices(username)",
    "CREATE INDEX IF NOT EXISTS idx_security_alerts_is_read ON security_alerts(is_read)",
    "CREATE INDEX IF NOT EXISTS idx_security_alerts_created_at ON security_alerts(created_at DESC)",
]
