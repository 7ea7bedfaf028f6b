"""HTTP binding of the blind box services (Flask)."""

from blindbox_api.app import create_app, status_for, system_from_settings

__all__ = ["create_app", "status_for", "system_from_settings"]
