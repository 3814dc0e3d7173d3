"""Configuration package for the Razorpay provider."""
from .settings import ProviderSettings, get_settings, load_settings, validate_options

__all__ = ["ProviderSettings", "get_settings", "load_settings", "validate_options"]
