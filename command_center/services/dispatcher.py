"""
Execution Dispatcher - Runs a structured command through its domain handler
"""
from typing import Optional
from datetime import datetime, timezone
import asyncio
import structlog

from command_center.handlers.registry import HandlerRegistry
from command_center.schemas.command import ExecutionResult, StructuredCommand
from command_center.services.policy_service import PolicyService

logger = structlog.get_logger()


class ExecutionDispatcher:
    """
    Routes commands to the handler registered for their target module.

    Every failure (missing handler, handler exception, timeout) comes back
    as an error ExecutionResult; execute() never raises. No retries.
    """

    def __init__(self, registry: HandlerRegistry, timeout_seconds: float = 15.0):
        self.registry = registry
        self.timeout_seconds = timeout_seconds

    async def execute(self, command: StructuredCommand, user_id: Optional[str] = None) -> ExecutionResult:
        handler = self.registry.get(command.target_module)
        if handler is None:
            logger.warning("No handler for module", target_module=command.target_module, intent=command.intent)
            return ExecutionResult.error(f"unsupported module: {command.target_module}")

        start_time = datetime.now(timezone.utc)
        logger.info(
            "Command execution started",
            command_id=command.id,
            intent=command.intent,
            target_module=command.target_module,
            user_id=user_id,
        )

        try:
            handler_result = await asyncio.wait_for(
                handler.handle(command.action_type, dict(command.parameters)),
                timeout=self.timeout_seconds,
            )
            result = ExecutionResult.ok(
                message=handler_result.message,
                data=handler_result.data,
                next_steps=handler_result.next_steps or list(command.next_steps),
            )
        except asyncio.TimeoutError:
            execution_time_ms = self._elapsed_ms(start_time)
            logger.error(
                "Command execution timed out",
                command_id=command.id,
                target_module=command.target_module,
                timeout_seconds=self.timeout_seconds,
                execution_time_ms=execution_time_ms,
            )
            return ExecutionResult.error(f"{command.target_module} did not respond within {self.timeout_seconds:g} seconds")
        except Exception as e:
            sanitized_error = PolicyService.sanitize_error_message(e)
            logger.error(
                "Command execution failed",
                command_id=command.id,
                target_module=command.target_module,
                error=sanitized_error,
                execution_time_ms=self._elapsed_ms(start_time),
                exc_info=True,
            )
            return ExecutionResult.error(sanitized_error)

        logger.info(
            "Command execution completed",
            command_id=command.id,
            target_module=command.target_module,
            execution_time_ms=self._elapsed_ms(start_time),
        )
        return result

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> float:
        return (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
