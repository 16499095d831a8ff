"""
Base domain handler and HandlerResult dataclass
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List


@dataclass
class HandlerResult:
    """What a domain handler reports back after doing its work"""
    message: str
    data: Optional[Any] = None
    next_steps: List[str] = field(default_factory=list)


class BaseHandler(ABC):
    """
    Base class for domain handlers.

    A handler owns one target module (donations, tasks, ...) and performs
    the requested action with the resolved parameters. Handlers signal
    failure by raising; the dispatcher turns that into an error result.
    """

    def __init__(self, module: str, name: str, description: str = ""):
        self.module = module
        self.name = name
        self.description = description

    @abstractmethod
    async def handle(self, action: str, parameters: Dict[str, Any]) -> HandlerResult:
        """
        Perform `action` on the module.
        Must be implemented by subclasses.
        """
        pass

    def get_metadata(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "name": self.name,
            "description": self.description,
        }
