"""
Basic Tests for Core Functionality
Signature verification and configuration validation
"""
import pytest

from crm.core.config import Settings
from crm.core.signature import compute_signature, verify_signature
from crm.core.validation import ConfigValidator, Severity, validate_config_on_startup


class TestSignature:
    
    BODY = b'{"type":"call.completed","data":{}}'
    
    def test_digest_is_keyed_hex(self):
        digest = compute_signature(self.BODY, "secret")
        assert len(digest) == 64
        assert digest == compute_signature(self.BODY, "secret")
        assert digest != compute_signature(self.BODY, "other")
    
    def test_valid_signature(self):
        signature = compute_signature(self.BODY, "secret")
        assert verify_signature(self.BODY, signature, "secret") is True
    
    def test_uppercase_hex_accepted(self):
        signature = compute_signature(self.BODY, "secret").upper()
        assert verify_signature(self.BODY, signature, "secret") is True
    
    def test_tampered_body(self):
        signature = compute_signature(self.BODY, "secret")
        assert verify_signature(self.BODY + b" ", signature, "secret") is False
    
    def test_missing_signature_with_secret(self):
        assert verify_signature(self.BODY, None, "secret") is False
    
    @pytest.mark.parametrize("secret", [None, ""])
    def test_no_secret_accepts_anything(self, secret):
        assert verify_signature(self.BODY, None, secret) is True
        assert verify_signature(self.BODY, "garbage", secret) is True


class TestConfigValidator:
    
    def test_missing_secret_is_degraded(self, caplog):
        settings = Settings(openphone_webhook_secret=None)
        validator = ConfigValidator(settings)
        
        can_start, results = validator.validate_all()
        validator.log_results()
        
        assert can_start is True
        assert "signature verification is DISABLED" in caplog.text
        webhook = [r for r in results if r.setting == "OPENPHONE_WEBHOOK_SECRET"][0]
        assert webhook.severity == Severity.DEGRADED
    
    def test_production_starts_without_secret(self, caplog):
        settings = Settings(
            environment="production",
            database_url="postgresql://crm@db/crm",
            openphone_webhook_secret=None,
            public_base_url="https://crm.example.com",
        )
        
        validate_config_on_startup(settings, strict=True)
        
        assert "signature verification is DISABLED" in caplog.text
    
    def test_strict_mode_fails_on_warnings(self):
        settings = Settings(
            environment="production",
            database_url="sqlite:///./crm.db",
            openphone_webhook_secret="s",
            public_base_url="https://crm.example.com",
        )
        
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            validate_config_on_startup(settings, strict=True)
    
    def test_warnings_not_fatal_outside_strict_mode(self):
        settings = Settings(environment="production", database_url="sqlite:///./crm.db")
        
        validate_config_on_startup(settings, strict=False)
    
    def test_fully_configured(self):
        settings = Settings(
            environment="production",
            database_url="postgresql://crm@db/crm",
            openphone_webhook_secret="s",
            public_base_url="https://crm.example.com",
        )
        
        validate_config_on_startup(settings, strict=True)
    
    def test_signature_flag(self):
        assert Settings(openphone_webhook_secret="s").signature_verification_enabled is True
        assert Settings(openphone_webhook_secret="").signature_verification_enabled is False
    
    def test_reads_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("OPENPHONE_WEBHOOK_SECRET", raising=False)
        monkeypatch.delenv("PENDING_CALL_TTL_MINUTES", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("OPENPHONE_WEBHOOK_SECRET=from-file\nPENDING_CALL_TTL_MINUTES=30\n")
        
        settings = Settings(_env_file=env_file)
        
        assert settings.openphone_webhook_secret == "from-file"
        assert settings.pending_call_ttl_minutes == 30
