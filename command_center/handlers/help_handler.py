"""
Help Handler - Lists the commands the assistant understands
"""
from typing import Dict, Any
from command_center.catalog import COMMAND_CATALOG
from command_center.handlers.base import BaseHandler, HandlerResult
from command_center.handlers.registry import builtin_handlers


@builtin_handlers.register("assistant", "Help", "Lists available commands with examples")
class HelpHandler(BaseHandler):

    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        commands = [
            {
                "intent": spec.intent,
                "module": spec.module,
                "description": spec.description,
                "risk_level": spec.risk_level.value,
                "examples": list(spec.examples),
            }
            for spec in COMMAND_CATALOG
            if spec.module != self.module
        ]
        return HandlerResult(
            message=f"{len(commands)} komut kullanılabilir",
            data={"commands": commands},
            next_steps=[spec.examples[0] for spec in COMMAND_CATALOG if spec.examples][:3],
        )
