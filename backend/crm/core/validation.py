"""
Configuration Validation Module
Validates database and OpenPhone settings on startup
"""
import logging
from enum import Enum
from typing import List, Optional, Tuple
from dataclasses import dataclass

from crm.core.config import Settings

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    OK = "ok"
    # Degraded mode the service supports on purpose; reported, never fatal
    DEGRADED = "degraded"
    # Likely misconfiguration; fatal in strict mode
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""
    component: str
    setting: str
    severity: Severity
    message: str
    
    def is_fatal(self, strict: bool) -> bool:
        if self.severity == Severity.ERROR:
            return True
        return strict and self.severity == Severity.WARNING


class ConfigValidator:
    """
    Validates service configuration at startup.
    
    A missing webhook secret is reported as degraded and is never fatal,
    not even in strict mode: the ingress endpoint then accepts unsigned
    payloads, and the operator is told so here.
    """
    
    def __init__(self, settings: Settings, strict: bool = False):
        """
        Initialize validator.
        
        Args:
            settings: Loaded application settings
            strict: If True, warnings are fatal
        """
        self.settings = settings
        self.strict = strict
        self.results: List[ValidationResult] = []
    
    def validate_all(self) -> Tuple[bool, List[ValidationResult]]:
        """
        Validate all configuration.
        
        Returns:
            Tuple of (startup may proceed, list of results)
        """
        self.results = []
        
        self._validate_database()
        self._validate_webhook()
        self._validate_public_url()
        
        return not self.fatal_results(), self.results
    
    def _validate_database(self) -> None:
        url = self.settings.database_url
        if not url:
            self._add(Severity.ERROR, "database", "DATABASE_URL",
                "Database requires DATABASE_URL to be set")
        elif url.startswith("sqlite") and self.settings.is_production:
            self._add(Severity.WARNING, "database", "DATABASE_URL",
                "SQLite database configured in production")
        else:
            self._add(Severity.OK, "database", "DATABASE_URL", "Database configured")
    
    def _validate_webhook(self) -> None:
        if not self.settings.signature_verification_enabled:
            self._add(Severity.DEGRADED, "openphone", "OPENPHONE_WEBHOOK_SECRET",
                "Webhook secret not configured: signature verification is DISABLED "
                "and any payload posted to the webhook endpoint will be accepted")
        else:
            self._add(Severity.OK, "openphone", "OPENPHONE_WEBHOOK_SECRET",
                "Webhook signature verification enabled")
    
    def _validate_public_url(self) -> None:
        if "localhost" in self.settings.public_base_url and self.settings.is_production:
            self._add(Severity.WARNING, "api", "PUBLIC_BASE_URL",
                "PUBLIC_BASE_URL points at localhost; webhook registration will not be reachable")
        else:
            self._add(Severity.OK, "api", "PUBLIC_BASE_URL", "Public base URL configured")
    
    def _add(self, severity: Severity, component: str, setting: str, message: str) -> None:
        self.results.append(ValidationResult(component, setting, severity, message))
    
    def fatal_results(self) -> List[ValidationResult]:
        return [r for r in self.results if r.is_fatal(self.strict)]
    
    def log_results(self) -> None:
        """Log each result at the level matching its severity and mode."""
        for r in self.results:
            line = f"[{r.component}] {r.setting}: {r.message}"
            if r.is_fatal(self.strict):
                logger.error(line)
            elif r.severity == Severity.OK:
                logger.info(line)
            else:
                logger.warning(line)
    
    def get_error_summary(self) -> Optional[str]:
        fatal = self.fatal_results()
        if not fatal:
            return None
        return "Configuration errors: " + "; ".join(
            f"{r.setting} ({r.severity.value}): {r.message}" for r in fatal
        )


def validate_config_on_startup(settings: Settings, strict: bool = False) -> None:
    """
    Validate configuration at startup.
    
    Raises:
        RuntimeError: If a check is fatal for the chosen mode
    """
    validator = ConfigValidator(settings, strict=strict)
    can_start, _ = validator.validate_all()
    validator.log_results()
    
    if not can_start:
        raise RuntimeError(validator.get_error_summary())
    
    logger.info("Configuration validated successfully")
