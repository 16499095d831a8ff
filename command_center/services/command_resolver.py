"""
Command Resolver - Maps an Analysis onto a concrete StructuredCommand
"""
from typing import Dict, Any, Optional, List
import structlog

from command_center.catalog import COMMAND_CATALOG, CommandSpec, Slot, build_catalog_index
from command_center.schemas.analysis import Analysis, Entities
from command_center.schemas.command import (
    Resolution,
    ResolutionKind,
    RiskLevel,
    SessionContext,
    StructuredCommand,
)

logger = structlog.get_logger()

NEEDS_CLARIFICATION = "needs clarification"
UNRECOGNIZED = "unrecognized"


class CommandResolver:
    """
    Pure mapping from (analysis, context) to a command.

    Business rules:
    - intents below the confidence floor are unrecognized
    - a missing required slot asks for clarification
    - anything risky, or resolved with low overall confidence, needs confirmation
    """

    def __init__(
        self,
        catalog: Optional[List[CommandSpec]] = None,
        confidence_floor: float = 0.35,
        confirmation_threshold: float = 0.6,
        duration_per_parameter: float = 0.5,
    ):
        self.catalog = build_catalog_index(catalog if catalog is not None else COMMAND_CATALOG)
        self.confidence_floor = confidence_floor
        self.confirmation_threshold = confirmation_threshold
        self.duration_per_parameter = duration_per_parameter

    def resolve(self, analysis: Analysis, context: Optional[SessionContext] = None, user_id: Optional[str] = None) -> Resolution:
        context = context or SessionContext()
        intent = analysis.intent

        spec = self.catalog.get(intent.primary)
        if spec is None or intent.confidence < self.confidence_floor:
            logger.info("Intent not recognized", intent=intent.primary, confidence=intent.confidence)
            return Resolution(kind=ResolutionKind.UNRECOGNIZED, intent=intent.primary, reason=UNRECOGNIZED)

        parameters: Dict[str, Any] = {}
        missing: List[str] = []
        for slot in spec.slots:
            value = self._fill_slot(slot, analysis.entities)
            if value is None and not slot.required:
                value = context.defaults.get(slot.name)
            if value is None:
                if slot.required:
                    missing.append(slot.name)
                continue
            parameters[slot.name] = value

        if missing:
            logger.info("Command needs clarification", intent=spec.intent, missing_slots=missing)
            return Resolution(
                kind=ResolutionKind.NEEDS_CLARIFICATION,
                intent=spec.intent,
                missing_slots=missing,
                reason=NEEDS_CLARIFICATION,
            )

        filled = len(parameters)
        acting_user = context.acting_user or user_id
        if acting_user:
            parameters["acting_user"] = acting_user

        requires_confirmation = (
            spec.risk_level != RiskLevel.NONE
            or analysis.overall_confidence < self.confirmation_threshold
        )

        command = StructuredCommand(
            intent=spec.intent,
            action_type=spec.action_type,
            target_module=spec.module,
            parameters=parameters,
            requires_confirmation=requires_confirmation,
            estimated_duration_seconds=round(spec.base_duration_seconds + self.duration_per_parameter * filled, 2),
            risk_level=spec.risk_level,
            description=spec.description,
            next_steps=list(spec.next_steps),
            source_text=analysis.text,
        )
        logger.info(
            "Command resolved",
            intent=spec.intent,
            target_module=spec.module,
            risk_level=spec.risk_level.value,
            requires_confirmation=requires_confirmation,
        )
        return Resolution(kind=ResolutionKind.RESOLVED, intent=spec.intent, command=command)

    @staticmethod
    def _fill_slot(slot: Slot, entities: Entities) -> Optional[Any]:
        """First entity of an accepted kind, in the slot's kind order"""
        for kind in slot.kinds:
            values = getattr(entities, kind)
            if values:
                value = values[0]
                return value.model_dump() if hasattr(value, "model_dump") else value
        return None
