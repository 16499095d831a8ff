"""
Handler Registry for looking up domain handlers by target module
"""
from typing import Dict, Type, List, Optional, Any
from command_center.handlers.base import BaseHandler
import structlog

logger = structlog.get_logger()


class HandlerRegistry:
    """Registry of handler classes and instances, keyed by target module"""

    def __init__(self):
        self._handler_classes: Dict[str, Type[BaseHandler]] = {}
        self._handlers: Dict[str, BaseHandler] = {}

    def register(self, module: str, name: str, description: str = ""):
        """
        Decorator to register a handler class that can be built without arguments.

        Usage:
            @registry.register("assistant", "Help", "Lists available commands")
            class HelpHandler(BaseHandler):
                ...
        """
        def decorator(handler_class: Type[BaseHandler]):
            handler_class._registry_metadata = {
                "module": module,
                "name": name,
                "description": description,
            }
            self._handler_classes[module] = handler_class
            logger.info("Handler class registered", module=module, name=name)
            return handler_class
        return decorator

    def include(self, other: "HandlerRegistry") -> None:
        """Copy another registry's handler classes into this one"""
        self._handler_classes.update(other._handler_classes)

    def add(self, handler: BaseHandler) -> BaseHandler:
        """Register an already configured handler instance"""
        self._handlers[handler.module] = handler
        logger.info("Handler registered", module=handler.module, name=handler.name)
        return handler

    def get(self, module: str) -> Optional[BaseHandler]:
        """
        Get the handler for a module.
        Instantiates registered classes on first use.
        """
        if module in self._handlers:
            return self._handlers[module]

        if module in self._handler_classes:
            handler_class = self._handler_classes[module]
            metadata = handler_class._registry_metadata
            instance = handler_class(module=module, name=metadata["name"], description=metadata["description"])
            self._handlers[module] = instance
            return instance

        logger.warning("Handler not found", module=module)
        return None

    def list_all(self) -> List[Dict[str, Any]]:
        """List all registered handlers with metadata"""
        handlers = {module: handler.get_metadata() for module, handler in self._handlers.items()}
        for module, handler_class in self._handler_classes.items():
            handlers.setdefault(module, dict(handler_class._registry_metadata))
        return list(handlers.values())

    def is_registered(self, module: str) -> bool:
        return module in self._handlers or module in self._handler_classes


# Handlers that need no configuration register here via the decorator
builtin_handlers = HandlerRegistry()
