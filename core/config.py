"""
Centralized configuration for the exam notification service.

All settings come from environment variables (loaded from .env / .env.local
by main.py). Accessors are functions so tests can patch the environment.
"""

import os


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_frontend_url() -> str:
    """Landing surface the browser is sent back to after OAuth."""
    return os.environ.get("FRONTEND_URL", "http://localhost:5173").rstrip("/")


def get_allowed_origins() -> list[str]:
    """CORS origins: local frontend variants plus FRONTEND_URL."""
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        f"http://localhost:{get_api_port()}",
    ]
    frontend_url = get_frontend_url()
    if frontend_url not in origins:
        origins.append(frontend_url)
    return origins


def get_google_redirect_uri() -> str:
    """OAuth callback URL registered with Google."""
    return os.environ.get(
        "GOOGLE_REDIRECT_URI", f"http://localhost:{get_api_port()}/oauth2callback"
    )


def _get_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_channel_send_timeout() -> float:
    """Upper bound (seconds) for a single channel send."""
    return _get_float("CHANNEL_SEND_TIMEOUT_SECONDS", 10.0)


def get_calendar_timeout() -> float:
    """Upper bound (seconds) for a single calendar or token call."""
    return _get_float("CALENDAR_TIMEOUT_SECONDS", 15.0)


def get_oauth_state_ttl_minutes() -> int:
    """How long a calendar authorization URL stays valid."""
    return int(_get_float("OAUTH_STATE_TTL_MINUTES", 30))


def get_sweep_interval_minutes() -> int | None:
    """Interval for the in-process reminder sweep, or None when disabled."""
    value = os.environ.get("NOTIFICATION_SWEEP_MINUTES")
    if not value:
        return None
    try:
        minutes = int(value)
    except ValueError:
        return None
    return minutes if minutes > 0 else None


# Required environment variables
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("JWT_SECRET", "Secret key for session and OAuth state tokens", True),
    ("GOOGLE_CLIENT_ID", "Google OAuth client ID for calendar sync", False),
    ("GOOGLE_CLIENT_SECRET", "Google OAuth client secret", False),
    ("SENDGRID_API_KEY", "SendGrid key for the email channel", False),
    ("TWILIO_ACCOUNT_SID", "Twilio account for the SMS channel", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        if os.environ.get(name):
            continue
        if required_in_dev and not in_dev:
            errors.append(f"  ✗ {name}: Not set ({description})")
        else:
            warnings.append(f"  ⚠ {name}: Not set ({description})")

    return not errors, errors + warnings
