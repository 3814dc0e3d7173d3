"""
Unit tests for provider settings.
"""
import pytest
from pydantic import SecretStr

from payment_razorpay.config import ProviderSettings, load_settings, validate_options
from payment_razorpay.core.exceptions import ConfigurationError
from payment_razorpay.core.reconciler import PaymentSessionReconciler


class TestValidateOptions:
    """Test suite for option validation."""

    @pytest.mark.unit
    def test_valid_options(self) -> None:
        """Test options with both credentials pass."""
        validate_options({"key_id": "rzp_test_abc", "key_secret": "secret"})

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "options, missing",
        [
            ({"key_secret": "secret"}, "key_id"),
            ({"key_id": "rzp_test_abc"}, "key_secret"),
            ({"key_id": "", "key_secret": "secret"}, "key_id"),
            ({"key_id": "rzp_test_abc", "key_secret": SecretStr("")}, "key_secret"),
        ],
    )
    def test_missing_credentials(self, options: dict, missing: str) -> None:
        """Test each missing credential is named in the error."""
        with pytest.raises(ConfigurationError, match=f"{missing} is required for Razorpay provider"):
            validate_options(options)

    @pytest.mark.unit
    def test_available_on_reconciler(self) -> None:
        """Test the reconciler exposes option validation without an instance."""
        with pytest.raises(ConfigurationError, match="key_id is required"):
            PaymentSessionReconciler.validate_options({})


class TestLoadSettings:
    """Test suite for settings loading."""

    @pytest.mark.unit
    def test_load_from_options(self) -> None:
        """Test explicit options build settings."""
        settings = load_settings(
            {"key_id": "rzp_live_abc", "key_secret": "secret", "webhook_secret": "whsec"}
        )

        assert settings.key_id == "rzp_live_abc"
        assert settings.key_secret.get_secret_value() == "secret"
        assert settings.webhook_secret_configured
        assert not settings.is_test_mode
        assert settings.receipt_prefix == "session"

    @pytest.mark.unit
    def test_invalid_key_id_format(self) -> None:
        """Test a key id without the Razorpay prefix is rejected."""
        with pytest.raises(ConfigurationError, match="key_id"):
            load_settings({"key_id": "sk_test_abc", "key_secret": "secret"})

    @pytest.mark.unit
    def test_load_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test RAZORPAY_* environment variables are read."""
        monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test_env")
        monkeypatch.setenv("RAZORPAY_KEY_SECRET", "env_secret")
        monkeypatch.setenv("RAZORPAY_RECEIPT_PREFIX", "cart")
        monkeypatch.setenv("RAZORPAY_LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.key_id == "rzp_test_env"
        assert settings.receipt_prefix == "cart"
        assert settings.log_level == "DEBUG"

    @pytest.mark.unit
    def test_blank_webhook_secret_is_unset(self) -> None:
        """Test an empty webhook secret disables webhook verification."""
        settings = ProviderSettings(key_id="rzp_test_abc", key_secret="secret", webhook_secret="")
        assert settings.webhook_secret is None
        assert not settings.webhook_secret_configured

    @pytest.mark.unit
    def test_secrets_hidden_in_repr(self) -> None:
        """Test secrets never appear in the settings repr."""
        settings = ProviderSettings(
            key_id="rzp_test_abc", key_secret="super_secret", webhook_secret="hook_secret"
        )
        assert "super_secret" not in repr(settings)
        assert "hook_secret" not in repr(settings)
