from __future__ import annotations

from .models import ScoringSettings, SettingsUpdate

_settings: ScoringSettings = ScoringSettings()


def get_settings() -> ScoringSettings:
    """Return a copy of the current scoring settings."""
    return _settings.model_copy()


def update_settings(update: SettingsUpdate) -> ScoringSettings:
    """Apply the non-null fields of *update* and return the new settings."""
    global _settings
    changes = update.model_dump(exclude_none=True)
    _settings = _settings.model_copy(update=changes)
    return get_settings()


def reset_settings() -> ScoringSettings:
    global _settings
    _settings = ScoringSettings()
    return get_settings()
