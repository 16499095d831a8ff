"""
Domain handlers package
"""
from command_center.config import Settings
from command_center.handlers.base import BaseHandler, HandlerResult
from command_center.handlers.registry import HandlerRegistry, builtin_handlers
from command_center.handlers.help_handler import HelpHandler
from command_center.handlers.supabase_handler import SupabaseTableHandler, SupabaseReportHandler
import structlog

logger = structlog.get_logger()

# target module -> Supabase table
SUPABASE_TABLES = {
    "donations": "donations",
    "beneficiaries": "beneficiaries",
    "tasks": "tasks",
    "messages": "outgoing_messages",
}


def build_handler_registry(settings: Settings) -> HandlerRegistry:
    """
    Build the registry used by the dispatcher.
    Table-backed modules are only available when Supabase is configured.
    """
    registry = HandlerRegistry()
    registry.include(builtin_handlers)

    api_key = settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_ANON_KEY
    if not settings.SUPABASE_URL or not api_key:
        logger.warning("Supabase not configured, domain modules are unavailable")
        return registry

    timeout = settings.HANDLER_TIMEOUT_SECONDS
    for module, table in SUPABASE_TABLES.items():
        registry.add(SupabaseTableHandler(module=module, table=table, url=settings.SUPABASE_URL, api_key=api_key, timeout=timeout))
    registry.add(SupabaseReportHandler(url=settings.SUPABASE_URL, api_key=api_key, timeout=timeout))
    return registry


__all__ = [
    "BaseHandler",
    "HandlerResult",
    "HandlerRegistry",
    "HelpHandler",
    "SupabaseTableHandler",
    "SupabaseReportHandler",
    "build_handler_registry",
]
