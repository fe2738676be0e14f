# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_base.py

Base de configuración (Pydantic v2) para el backend de créditos de comedores.
- Esta clase NO instancia singletons; eso lo hace quien arranca la app
  (config_loader.load_settings + create_app).
- Es la base para settings_dev.py, settings_testing.py y settings_prod.py.
- billing_config() agrupa los parámetros de facturación en un objeto
  inmutable que se inyecta a cada componente.

Autor: MessCredit
Fecha: 2026-03-02
"""

from typing import Literal, Optional
from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .settings_billing import BillingConfig, BillingPeriod


# Tipos de entorno soportados
EnvName = Literal["development", "test", "production"]


class BaseAppSettings(BaseSettings):
    # =========================
    # Núcleo de la aplicación
    # =========================
    python_env: EnvName = Field(default="development", validation_alias="PYTHON_ENV")
    app_name: str = Field(default="MessCredit", validation_alias="APP_NAME")
    app_version: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    app_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # =========================
    # Base de datos (PostgreSQL)
    # =========================
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: SecretStr = Field(default=SecretStr("postgres"), validation_alias="DB_PASSWORD")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="messcredit", validation_alias="DB_NAME")
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, validation_alias="DB_MAX_OVERFLOW")
    db_pool_timeout: int = Field(default=5, validation_alias="DB_POOL_TIMEOUT")
    db_pool_recycle: int = Field(default=1800, validation_alias="DB_POOL_RECYCLE")
    db_echo_sql: bool = Field(default=False, validation_alias="DB_ECHO_SQL")
    db_url: Optional[str] = Field(default=None, validation_alias="DB_URL")
    db_create_all: bool = Field(default=False, validation_alias="DB_CREATE_ALL")

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """
        Genera la URL de conexión completa para SQLAlchemy.
        Prioriza DB_URL si existe (incluye sqlite+aiosqlite para desarrollo),
        sino construye una URL asyncpg desde componentes individuales.
        """
        from urllib.parse import quote_plus

        if self.db_url:
            url = self.db_url
            if url.startswith("sqlite"):
                return url
            return (
                url.replace("postgres://", "postgresql+asyncpg://")
                   .replace("postgresql://", "postgresql+asyncpg://")
            )

        pw = quote_plus(self.db_password.get_secret_value())
        return (
            f"postgresql+asyncpg://{self.db_user}:{pw}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================
    # CORS / Frontend
    # =========================
    allowed_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

    # =========================
    # Auth / JWT
    # =========================
    jwt_secret_key: SecretStr = Field(default=SecretStr("please-change-me"), validation_alias="JWT_SECRET_KEY")
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # =========================
    # Internal Service Auth
    # =========================
    internal_service_token: Optional[SecretStr] = Field(default=None, validation_alias="APP_SERVICE_TOKEN")

    # =========================
    # Facturación por créditos
    # =========================
    billing_period: BillingPeriod = Field(default="month", validation_alias="BILLING_PERIOD")
    bill_due_days: int = Field(default=7, ge=0, validation_alias="BILL_DUE_DAYS")
    trial_enabled: bool = Field(default=True, validation_alias="TRIAL_ENABLED")
    trial_credits: int = Field(default=100, gt=0, validation_alias="TRIAL_CREDITS")
    trial_duration_days: int = Field(default=7, gt=0, validation_alias="TRIAL_DURATION_DAYS")
    overdraft_reasons: str = Field(default="leave_refund", validation_alias="LEDGER_OVERDRAFT_REASONS")
    default_low_balance_threshold: int = Field(default=100, ge=0, validation_alias="LOW_BALANCE_THRESHOLD")
    waive_bills_during_trial: bool = Field(default=True, validation_alias="WAIVE_BILLS_DURING_TRIAL")
    default_max_leave_days_per_cycle: int = Field(default=10, ge=0, validation_alias="MAX_LEAVE_DAYS_PER_CYCLE")
    ledger_max_cas_retries: int = Field(default=5, ge=1, validation_alias="LEDGER_MAX_CAS_RETRIES")

    # =========================
    # Pasarela de pagos
    # =========================
    payment_order_ttl_minutes: int = Field(default=30, gt=0, validation_alias="PAYMENT_ORDER_TTL_MINUTES")
    price_per_credit_cents: int = Field(default=100, gt=0, validation_alias="PRICE_PER_CREDIT_CENTS")
    currency: str = Field(default="INR", validation_alias="BILLING_CURRENCY")
    gateway_api_url: Optional[str] = Field(default=None, validation_alias="GATEWAY_API_URL")
    gateway_key_id: Optional[str] = Field(default=None, validation_alias="GATEWAY_KEY_ID")
    gateway_key_secret: Optional[SecretStr] = Field(default=None, validation_alias="GATEWAY_KEY_SECRET")
    gateway_webhook_secret: SecretStr = Field(default=SecretStr(""), validation_alias="GATEWAY_WEBHOOK_SECRET")
    gateway_timeout_sec: float = Field(default=10.0, validation_alias="GATEWAY_TIMEOUT_SEC")

    # =========================
    # Scheduler
    # =========================
    scheduler_enabled: bool = Field(default=True, validation_alias="SCHEDULER_ENABLED")
    overdue_sweep_cron: str = Field(default="15 0 * * *", validation_alias="OVERDUE_SWEEP_CRON")
    cycle_generation_cron: str = Field(default="30 0 * * *", validation_alias="CYCLE_GENERATION_CRON")
    order_expiry_interval_minutes: int = Field(default=5, gt=0, validation_alias="ORDER_EXPIRY_INTERVAL_MINUTES")
    trial_expiry_interval_minutes: int = Field(default=60, gt=0, validation_alias="TRIAL_EXPIRY_INTERVAL_MINUTES")

    # =========================
    # Observabilidad / Logging
    # =========================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "pretty", "plain"] = Field(default="pretty", validation_alias="LOG_FORMAT")
    http_metrics_enabled: bool = Field(default=True, validation_alias="HTTP_METRICS_ENABLED")

    # ===== Helpers de entorno =====
    @computed_field  # type: ignore[misc]
    @property
    def is_dev(self) -> bool:
        return self.python_env == "development"

    @computed_field  # type: ignore[misc]
    @property
    def is_test(self) -> bool:
        return self.python_env == "test"

    @computed_field  # type: ignore[misc]
    @property
    def is_prod(self) -> bool:
        return self.python_env == "production"

    # ===== Utilidad para normalizar CORS =====
    def get_cors_origins(self) -> list[str]:
        """Convierte allowed_origins en lista procesable para CORS middleware."""
        if not self.allowed_origins or self.allowed_origins == "*":
            return ["*"]
        return [o.strip().strip('"').strip("'") for o in self.allowed_origins.split(",") if o.strip()]

    def get_overdraft_reasons(self) -> list[str]:
        """Razones del ledger que pueden dejar el saldo en negativo (lista separada por comas)."""
        return [r.strip() for r in self.overdraft_reasons.split(",") if r.strip()]

    def billing_config(self) -> BillingConfig:
        """Construye el objeto de configuración que reciben los servicios de facturación."""
        return BillingConfig(
            billing_period=self.billing_period,
            bill_due_days=self.bill_due_days,
            trial_enabled=self.trial_enabled,
            trial_credits=self.trial_credits,
            trial_duration_days=self.trial_duration_days,
            overdraft_reasons=frozenset(self.get_overdraft_reasons()),
            default_low_balance_threshold=self.default_low_balance_threshold,
            waive_bills_during_trial=self.waive_bills_during_trial,
            default_max_leave_days_per_cycle=self.default_max_leave_days_per_cycle,
            ledger_max_cas_retries=self.ledger_max_cas_retries,
            payment_order_ttl_minutes=self.payment_order_ttl_minutes,
            price_per_credit_cents=self.price_per_credit_cents,
            currency=self.currency,
            gateway_webhook_secret=self.gateway_webhook_secret.get_secret_value(),
        )

    def _security_and_payments_checks(self) -> None:
        """
        Validaciones mínimas de seguridad y coherencia.
        Se invoca desde config_loader tras instanciar el settings.
        """
        import logging
        logger = logging.getLogger(__name__)

        if self.is_prod:
            jwt_key = self.jwt_secret_key.get_secret_value()
            if not jwt_key or jwt_key == "please-change-me" or len(jwt_key) < 32:
                raise ValueError("JWT_SECRET_KEY debe tener ≥32 caracteres en producción")
            if len(self.gateway_webhook_secret.get_secret_value()) < 16:
                raise ValueError("GATEWAY_WEBHOOK_SECRET es requerido en producción")
            if not self.internal_service_token:
                raise ValueError("APP_SERVICE_TOKEN es requerido en producción")
            if self.database_url.startswith("sqlite"):
                raise ValueError("SQLite no está soportado en producción")

        if self.is_dev:
            jwt_key = self.jwt_secret_key.get_secret_value()
            if not jwt_key or jwt_key == "please-change-me" or len(jwt_key) < 32:
                logger.info("JWT_SECRET_KEY es débil o usa valor por defecto - considera usar una clave más segura en desarrollo")
            if not self.gateway_webhook_secret.get_secret_value():
                logger.info("GATEWAY_WEBHOOK_SECRET vacío - los webhooks de la pasarela serán rechazados")

        unknown = set(self.get_overdraft_reasons()) - {
            "purchase", "bill_debit", "leave_refund", "trial_grant", "adjustment",
        }
        if unknown:
            raise ValueError(f"LEDGER_OVERDRAFT_REASONS contiene razones desconocidas: {sorted(unknown)}")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


__all__ = ["BaseAppSettings", "EnvName"]
# Fin del archivo backend/app/shared/config/settings_base.py
