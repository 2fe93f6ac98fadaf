from core.settings import Settings
from payments.plugin import PayPalPlugin

# Singletons, set up by the app lifespan
_settings = None
_plugin = None
_store = None


def get_settings() -> Settings:
    """Dependency that provides application settings."""
    assert (
        _settings is not None
    ), "Settings not initialized. Make sure startup() was called."
    return _settings


def init_settings():
    """Initialize settings singleton."""
    global _settings
    _settings = Settings()


def get_store():
    """Dependency that provides the host payment store."""
    assert _store is not None, "Payment store not initialized."
    return _store


def get_plugin():
    """Dependency that provides the PayPal plugin."""
    assert _plugin is not None, "PayPal plugin not initialized."
    return _plugin


def init_plugin(settings: Settings, store):
    """Validate the PayPal configuration and build the plugin once."""
    global _plugin, _store
    _store = store
    _plugin = PayPalPlugin.from_settings(settings, store)
    return _plugin


def clear_settings():
    """Clear the singletons."""
    global _settings, _plugin, _store
    _settings = None
    _plugin = None
    _store = None
