"""HealthPath Vitals MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from healthpath.core.auth.identity import AuthService, IdentityProvider
from healthpath.core.auth.local_provider import LocalIdentityProvider
from healthpath.core.config.settings import get_settings
from healthpath.core.llm.client import LLMClient
from healthpath.core.llm.provider import LLMProvider, create_provider
from healthpath.core.storage.database import HealthDatabase
from healthpath.core.storage.encryption import RecordCipher
from healthpath.core.storage.repository import VitalsRepository
from healthpath.domains.vitals.connectors import HeartRateTransport
from healthpath.domains.vitals.connectors.ble_heart_rate import (
    BleakHeartRateTransport,
    HeartRateSession,
)
from healthpath.domains.vitals.connectors.document_extraction import DocumentExtractor
from healthpath.domains.vitals.domain_logic.insights import InsightsService
from healthpath.domains.vitals.domain_logic.trend_analyzer import VitalTrendAnalyzer
from healthpath.domains.vitals.prompts.health_prompts import register_health_prompts
from healthpath.domains.vitals.tools.auth_tools import register_auth_tools
from healthpath.domains.vitals.tools.device_tools import register_device_tools
from healthpath.domains.vitals.tools.export_tools import register_export_tools
from healthpath.domains.vitals.tools.import_tools import register_import_tools
from healthpath.domains.vitals.tools.insights_tools import register_insights_tools
from healthpath.domains.vitals.tools.vitals_tools import register_vitals_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "HealthPath Vitals"
SERVER_VERSION = "0.1.0"


def _build_llm_provider(settings) -> LLMProvider:
    if settings.llm_provider == "mock":
        provider_name, api_key, model = "mock", "", ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )
    return create_provider(provider_name=provider_name, api_key=api_key, model=model)


def _build_repository(settings) -> VitalsRepository:
    if settings.encryption_key:
        cipher = RecordCipher(settings.encryption_key)
        db_path = settings.db_path
    else:
        logger.warning(
            "No ENCRYPTION_KEY configured; using an in-memory store with a throwaway key. "
            "Set ENCRYPTION_KEY to keep vitals between restarts."
        )
        cipher = RecordCipher(RecordCipher.generate_key())
        db_path = ":memory:"

    database = HealthDatabase(db_path)
    database.initialize()
    logger.info(
        "Vitals store initialized: %s (schema v%d)", db_path, database.get_schema_version()
    )
    repository = VitalsRepository(database, cipher)
    if cipher.key_count > 1:
        # Older keys are listed after the primary; re-seal under the primary.
        repository.rotate_encryption()
    return repository


def create_app(
    *,
    repository_override: VitalsRepository | None = None,
    llm_provider_override: LLMProvider | None = None,
    ble_transport_override: HeartRateTransport | None = None,
    identity_provider_override: IdentityProvider | None = None,
) -> FastMCP:
    """Create and configure the HealthPath vitals MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Initializes the encrypted vitals store
    3. Creates the LLM client for document extraction and insights
    4. Sets up the BLE heart-rate session
    5. Sets up the identity service
    6. Registers all tools and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "HealthPath personal vitals tracker. Record vital signs manually, "
            "import them from photographed medical documents, or stream heart "
            "rate from a Bluetooth monitor; view a status dashboard, history, "
            "AI insights and CSV/JSON exports."
        ),
    )

    # --- Storage ---
    repository = repository_override or _build_repository(settings)

    # --- LLM ---
    provider = llm_provider_override or _build_llm_provider(settings)
    llm_client = LLMClient(provider=provider, default_timeout_s=settings.extraction_timeout_s)
    extractor = DocumentExtractor(llm_client, timeout_s=settings.extraction_timeout_s)
    insights = InsightsService(llm_client, timeout_s=settings.insights_timeout_s)

    # --- BLE heart-rate session ---
    transport = ble_transport_override or BleakHeartRateTransport()
    session = HeartRateSession(
        transport,
        queue_size=settings.ble_queue_size,
        connect_timeout_s=settings.ble_connect_timeout_s,
        scan_timeout_s=settings.ble_scan_timeout_s,
    )

    # --- Identity ---
    identity = identity_provider_override or LocalIdentityProvider(
        repository.database,
        max_failed_attempts=settings.auth_max_failed_attempts,
        lockout_s=settings.auth_lockout_s,
    )
    auth = AuthService(identity)

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "llm_provider": type(provider).__name__,
            "device_connected": session.is_connected,
        }

    # --- Register tools ---
    register_vitals_tools(server, repository, settings.history_default_limit)
    register_import_tools(server, extractor, repository)
    register_insights_tools(
        server,
        insights,
        repository,
        VitalTrendAnalyzer(repository),
        settings.history_default_limit,
    )
    register_export_tools(server, repository, settings.export_limit)
    register_device_tools(server, session, repository)
    register_auth_tools(server, auth)
    logger.info("Vitals, import, insights, export, device and auth tools registered")

    # --- Register prompts ---
    register_health_prompts(server)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
