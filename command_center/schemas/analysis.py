"""
Text analysis schemas
"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List


UNKNOWN_INTENT = "unknown"


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class Formality(str, Enum):
    FORMAL = "formal"
    NEUTRAL = "neutral"
    INFORMAL = "informal"


class IntentAlternative(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class Intent(BaseModel):
    """Classified intent with the runner-up candidates"""
    model_config = ConfigDict(frozen=True)

    primary: str = Field(..., description="Intent label, 'unknown' when nothing matched")
    confidence: float = Field(..., ge=0.0, le=1.0)
    alternatives: List[IntentAlternative] = Field(default_factory=list)


class Sentiment(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: SentimentLabel = SentimentLabel.NEUTRAL
    score: float = Field(0.0, ge=-1.0, le=1.0)


class MoneyEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float
    currency: str


class PersonEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str = ""
    full_name: str


class Entities(BaseModel):
    """Entities pulled out of the text, de-duplicated in order of appearance"""
    model_config = ConfigDict(frozen=True)

    money: List[MoneyEntity] = Field(default_factory=list)
    persons: List[PersonEntity] = Field(default_factory=list)
    phones: List[str] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)

    def distinct_count(self) -> int:
        return len(self.money) + len(self.persons) + len(self.phones) + len(self.emails)


class ContextSignals(BaseModel):
    model_config = ConfigDict(frozen=True)

    urgency: Urgency = Urgency.LOW
    complexity: Complexity = Complexity.SIMPLE
    formality: Formality = Formality.NEUTRAL


class Analysis(BaseModel):
    """Immutable result of analyzing one piece of user text"""
    model_config = ConfigDict(frozen=True)

    text: str = Field("", description="Normalized text the analysis was computed on")
    intent: Intent
    sentiment: Sentiment = Field(default_factory=Sentiment)
    entities: Entities = Field(default_factory=Entities)
    context_signals: ContextSignals = Field(default_factory=ContextSignals)
    overall_confidence: float = Field(0.0, ge=0.0, le=1.0)
    suggestions: List[str] = Field(default_factory=list)

    @property
    def is_unknown(self) -> bool:
        return self.intent.primary == UNKNOWN_INTENT
