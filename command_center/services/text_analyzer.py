"""
Text Analyzer - Deterministic, rule-based interpretation of free text.

Produces an immutable Analysis: intent with confidence, sentiment,
entities (money, persons, phones, emails) and context signals. Rules are
Turkish-first with English fallbacks.
"""
from typing import Dict, Any, Optional, List, Tuple
import re
import structlog

from command_center.catalog import COMMAND_CATALOG, CommandSpec
from command_center.schemas.command import RiskLevel
from command_center.schemas.analysis import (
    UNKNOWN_INTENT,
    Analysis,
    Complexity,
    ContextSignals,
    Entities,
    Formality,
    Intent,
    IntentAlternative,
    MoneyEntity,
    PersonEntity,
    Sentiment,
    SentimentLabel,
    Urgency,
)

logger = structlog.get_logger()

UNKNOWN_CONFIDENCE = 0.1
PHRASE_CONFIDENCE = 0.9
KEYWORD_BASE_CONFIDENCE = 0.35
KEYWORD_SPAN_CONFIDENCE = 0.35
SENTIMENT_THRESHOLD = 0.1
MAX_ALTERNATIVES = 3
MAX_ANALYSIS_SUGGESTIONS = 5
RISK_RANK = {RiskLevel.NONE: 0, RiskLevel.LOW: 1, RiskLevel.HIGH: 2}

TURKISH_STOP_WORDS = {
    "ve", "ile", "bir", "bu", "şu", "o", "da", "de", "ki", "mi", "mu", "mı", "mü",
    "için", "gibi", "kadar", "daha", "çok", "en", "ne", "ama", "fakat", "veya",
    "ya", "hem", "her", "ben", "sen", "biz", "siz", "onlar", "bana", "beni",
    "the", "a", "an", "and", "or", "to", "of", "for", "in", "on", "is", "are",
}

POSITIVE_WORDS = {
    "iyi", "güzel", "harika", "mükemmel", "süper", "başarılı", "olumlu", "çözüldü",
    "tamamlandı", "teşekkür", "sağol", "memnun",
    "good", "great", "excellent", "perfect", "thanks", "thank", "awesome",
}

NEGATIVE_WORDS = {
    "kötü", "sorun", "problem", "hata", "başarısız", "olumsuz", "berbat", "şikayet",
    "yanlış", "gecikme",
    "bad", "error", "fail", "failed", "terrible", "wrong", "broken",
}

HIGH_URGENCY_PATTERN = re.compile(
    r"\b(?:acil\w*|hemen|derhal|şimdi|bugün\w*|kritik\w*|çok\s+önemli|"
    r"now|today|urgent\w*|asap|immediately)\b"
)
MEDIUM_URGENCY_PATTERN = re.compile(
    r"\b(?:yakında|kısa\s+sürede|bu\s+hafta\w*|yarın\w*|soon|this\s+week|tomorrow)\b"
)
FORMAL_PATTERN = re.compile(r"\b(?:sayın|lütfen|rica\s+eder\w*|arz\s+eder\w*|please|kindly|dear)\b")
INFORMAL_PATTERN = re.compile(r"\b(?:hey|selam|naber|abi|kanka|hi|yo)\b")

NUMBER_WORDS: Dict[str, int] = {
    "sıfır": 0, "bir": 1, "iki": 2, "üç": 3, "dört": 4, "beş": 5, "altı": 6,
    "yedi": 7, "sekiz": 8, "dokuz": 9, "on": 10, "yirmi": 20, "otuz": 30,
    "kırk": 40, "elli": 50, "altmış": 60, "yetmiş": 70, "seksen": 80,
    "doksan": 90, "yüz": 100, "bin": 1000, "milyon": 1000000, "milyar": 1000000000,
}

_NUMBER = r"\d{1,3}(?:[.,]\d{3})+(?:[.,]\d{1,2})?|\d+(?:[.,]\d{1,2})?"
_CURRENCY_WORD = r"(?i:tl\b|lira\w*|try\b|usd\b|dolar\w*|dollars?\b|eur\b|euro\w*|gbp\b|sterlin\w*)"
_CURRENCY_SYMBOL = r"[$€£₺]"
_CURRENCY_CODE = r"(?:TRY|USD|EUR|GBP|CHF|JPY|CAD|AUD|SAR|AED|RUB|CNY)\b"
MONEY_SUFFIX_PATTERN = re.compile(
    rf"(?<![\w.,])(?P<amount>{_NUMBER})\s*(?P<currency>{_CURRENCY_WORD}|{_CURRENCY_SYMBOL}|{_CURRENCY_CODE})"
)
MONEY_PREFIX_PATTERN = re.compile(rf"(?P<currency>{_CURRENCY_SYMBOL})\s*(?P<amount>{_NUMBER})(?![\d])")
_NUMBER_WORD_ALT = "|".join(sorted(NUMBER_WORDS, key=len, reverse=True))
MONEY_WORDS_PATTERN = re.compile(
    rf"(?P<lead>(?<![\w.,])\d+(?:[.,]\d+)?\s+)?"
    rf"(?P<words>(?i:\b(?:{_NUMBER_WORD_ALT})\b)(?:\s+(?i:\b(?:{_NUMBER_WORD_ALT})\b))*)\s+(?P<currency>{_CURRENCY_WORD})"
)

PERSON_TITLES = {"bay", "bayan", "sayın", "dr", "doktor", "prof", "mühendis", "mr", "mrs", "ms"}
_NAME_TOKEN = r"[A-ZÇĞİÖŞÜ][a-zçğıöşü]+"
_NAME = rf"{_NAME_TOKEN}(?:\s+{_NAME_TOKEN}){{0,2}}"
PERSON_PATTERNS = [
    re.compile(rf"(?i:\b(?:{'|'.join(sorted(PERSON_TITLES, key=len, reverse=True))})\b)\.?\s+(?P<name>{_NAME})"),
    re.compile(rf"(?i:\b(?:ad|adı|isim|ismi|name|bağışçı|donor)\b)\s*[:=]\s*(?P<name>{_NAME})"),
    re.compile(rf"(?P<name>{_NAME})(?:'\w+)?\s+(?i:bey|hanım|beye|hanıma)\b"),
]
# A lone capitalized word before these cues is only a name mid-sentence;
# at sentence start it is usually a capitalized noun ("Toplantı için")
CUE_PERSON_PATTERN = re.compile(rf"(?P<name>{_NAME})(?:'\w+)?\s+(?i:adlı|isimli|için)\b")
SENTENCE_START = re.compile(r"(?:^|[.!?:;])\s*$")

PHONE_PATTERNS = [
    # Turkish mobile and landline
    re.compile(r"(?<![\d+])(?:\+90[\s-]?|0)?\(?[2-5]\d{2}\)?[\s-]?\d{3}[\s-]?\d{2}[\s-]?\d{2}(?!\d)"),
    # International
    re.compile(r"(?<![\d+])\+\d{1,3}[\s-]?\(?\d{2,4}\)?[\s-]?\d{3,4}[\s-]?\d{2,4}(?!\d)"),
]
MIN_PHONE_DIGITS = 10

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

SENTENCE_SPLIT = re.compile(r"[.!?]+")


def normalize_text(text: str) -> str:
    """Lower-case (folding the Turkish dotted capital I) and collapse whitespace"""
    text = text.replace("İ", "i")
    return " ".join(text.lower().split())


def tokenize(text: str) -> List[str]:
    """Split normalized text into word tokens, dropping stop words"""
    return [token for token in re.findall(r"\w+", text) if token not in TURKISH_STOP_WORDS]


def parse_amount(raw: str) -> float:
    """Parse a number written with Turkish or English separators"""
    if "." in raw and "," in raw:
        decimal_sep = "." if raw.rfind(".") > raw.rfind(",") else ","
        thousands_sep = "," if decimal_sep == "." else "."
        return float(raw.replace(thousands_sep, "").replace(decimal_sep, "."))
    for sep in (".", ","):
        if sep in raw:
            parts = raw.split(sep)
            if len(parts) > 2 or len(parts[-1]) == 3:
                return float(raw.replace(sep, ""))
            return float(raw.replace(sep, "."))
    return float(raw)


def words_to_number(words: List[str], lead: float = 0) -> float:
    """Convert Turkish number words ('beş bin iki yüz', or '5 bin' with a numeric lead)"""
    total = 0
    current = lead
    for word in words:
        value = NUMBER_WORDS[word]
        if value == 100:
            current = (current or 1) * 100
        elif value >= 1000:
            total += (current or 1) * value
            current = 0
        else:
            current += value
    return total + current


def normalize_currency(raw: str) -> str:
    key = raw.lower()
    if key in ("tl", "₺") or key.startswith("lira"):
        return "TL"
    if key == "$" or key.startswith("dolar") or key.startswith("dollar"):
        return "USD"
    if key == "€" or key.startswith("euro"):
        return "EUR"
    if key == "£" or key.startswith("sterlin"):
        return "GBP"
    return raw.upper()


def _keyword_hit(keyword: str, tokens: List[str], text: str) -> bool:
    if not keyword.isalnum():
        return keyword in text
    if len(keyword) < 4:
        return keyword in tokens
    return any(token.startswith(keyword) for token in tokens)


def _lexicon_hit(token: str, lexicon: set) -> bool:
    if token in lexicon:
        return True
    return any(len(word) >= 4 and token.startswith(word) for word in lexicon)


class TextAnalyzer:
    """Rule-based analyzer over the command catalog"""

    def __init__(self, catalog: Optional[List[CommandSpec]] = None, max_input_length: int = 1000):
        self.catalog = catalog if catalog is not None else COMMAND_CATALOG
        self.max_input_length = max_input_length
        self._phrases = [
            (spec, [re.compile(phrase) for phrase in spec.phrases])
            for spec in self.catalog
        ]

    def analyze(self, text: str) -> Analysis:
        """
        Analyze user text. Never raises: empty or unmatched input yields
        intent 'unknown' with a low confidence and no entities.
        """
        try:
            return self._analyze(text or "")
        except Exception as e:
            logger.error("Text analysis failed", error=str(e), exc_info=True)
            return self._unknown(normalize_text(text or "")[: self.max_input_length])

    def _analyze(self, text: str) -> Analysis:
        if len(text) > self.max_input_length:
            logger.warning("Input truncated for analysis", original_length=len(text), max_length=self.max_input_length)
            text = text[: self.max_input_length]

        normalized = normalize_text(text)
        if not normalized:
            return self._unknown(normalized)

        tokens = tokenize(normalized)
        intent, spec = self.classify_intent(normalized, tokens)
        if spec is None:
            return self._unknown(normalized)

        entities = self.extract_entities(text)
        signals = self.context_signals(normalized, entities)
        sentiment = self.sentiment(tokens)
        overall = min(intent.confidence, self.completeness(spec, entities))

        analysis = Analysis(
            text=normalized,
            intent=intent,
            sentiment=sentiment,
            entities=entities,
            context_signals=signals,
            overall_confidence=round(overall, 4),
            suggestions=self.suggestions(spec, entities),
        )
        logger.debug(
            "Text analyzed",
            intent=intent.primary,
            confidence=intent.confidence,
            overall_confidence=analysis.overall_confidence,
        )
        return analysis

    def _unknown(self, normalized: str) -> Analysis:
        return Analysis(
            text=normalized,
            intent=Intent(primary=UNKNOWN_INTENT, confidence=UNKNOWN_CONFIDENCE),
            overall_confidence=0.0,
            suggestions=self.suggestions(None, Entities()),
        )

    # Intent

    def classify_intent(self, normalized: str, tokens: List[str]) -> Tuple[Intent, Optional[CommandSpec]]:
        """
        Phrase rules win in catalog order. Without a phrase hit, keyword
        rules are scored and the best score wins, ties going to the
        less risky command and then to the earlier catalog entry.
        """
        phrase_hit: Optional[CommandSpec] = None
        for spec, patterns in self._phrases:
            if any(pattern.search(normalized) for pattern in patterns):
                phrase_hit = spec
                break

        scored: List[Tuple[float, int, CommandSpec]] = []
        for position, spec in enumerate(self.catalog):
            if spec is phrase_hit:
                continue
            score = self._keyword_score(spec, tokens, normalized)
            if score > 0:
                scored.append((score, position, spec))
        scored.sort(key=lambda item: (-item[0], RISK_RANK[item[2].risk_level], item[1]))

        if phrase_hit is not None:
            primary, confidence = phrase_hit, min(1.0, PHRASE_CONFIDENCE * phrase_hit.weight)
        elif scored:
            confidence, _, primary = scored.pop(0)
        else:
            return Intent(primary=UNKNOWN_INTENT, confidence=UNKNOWN_CONFIDENCE), None

        alternatives = [
            IntentAlternative(label=spec.intent, confidence=round(score, 4))
            for score, _, spec in scored[:MAX_ALTERNATIVES]
        ]
        return Intent(primary=primary.intent, confidence=round(confidence, 4), alternatives=alternatives), primary

    def _keyword_score(self, spec: CommandSpec, tokens: List[str], normalized: str) -> float:
        if not spec.keywords:
            return 0.0
        subject, *rest = spec.keywords
        if not any(_keyword_hit(keyword, tokens, normalized) for keyword in subject):
            return 0.0
        matched = 1 + sum(
            1 for group in rest if any(_keyword_hit(keyword, tokens, normalized) for keyword in group)
        )
        span = matched / len(spec.keywords)
        return min(1.0, (KEYWORD_BASE_CONFIDENCE + KEYWORD_SPAN_CONFIDENCE * span) * spec.weight)

    # Sentiment

    def sentiment(self, tokens: List[str]) -> Sentiment:
        if not tokens:
            return Sentiment()
        positive = sum(1 for token in tokens if _lexicon_hit(token, POSITIVE_WORDS))
        negative = sum(1 for token in tokens if _lexicon_hit(token, NEGATIVE_WORDS))
        if positive == 0 and negative == 0:
            return Sentiment()
        score = (positive - negative) / len(tokens)
        if score > SENTIMENT_THRESHOLD:
            label = SentimentLabel.POSITIVE
        elif score < -SENTIMENT_THRESHOLD:
            label = SentimentLabel.NEGATIVE
        else:
            label = SentimentLabel.NEUTRAL
        return Sentiment(label=label, score=round(score, 4))

    # Entities

    def extract_entities(self, text: str) -> Entities:
        """Extract entities from the original-case text"""
        return Entities(
            money=self.extract_money(text),
            persons=self.extract_persons(text),
            phones=self.extract_phones(text),
            emails=self.extract_emails(text),
        )

    def extract_money(self, text: str) -> List[MoneyEntity]:
        found: List[Tuple[int, MoneyEntity]] = []
        for pattern in (MONEY_SUFFIX_PATTERN, MONEY_PREFIX_PATTERN):
            for match in pattern.finditer(text):
                try:
                    amount = parse_amount(match.group("amount"))
                except ValueError:
                    continue
                found.append((match.start(), MoneyEntity(amount=amount, currency=normalize_currency(match.group("currency")))))
        for match in MONEY_WORDS_PATTERN.finditer(text):
            words = [normalize_text(word) for word in match.group("words").split()]
            if not all(word in NUMBER_WORDS for word in words):
                continue
            lead = parse_amount(match.group("lead").strip()) if match.group("lead") else 0
            amount = float(words_to_number(words, lead))
            if amount > 0:
                found.append((match.start(), MoneyEntity(amount=amount, currency=normalize_currency(match.group("currency")))))
        found.sort(key=lambda item: item[0])
        return _dedupe([entity for _, entity in found], key=lambda entity: (entity.amount, entity.currency))

    def extract_persons(self, text: str) -> List[PersonEntity]:
        non_name_words = self._non_name_words()
        found: List[Tuple[int, PersonEntity]] = []
        patterns = [(pattern, False) for pattern in PERSON_PATTERNS] + [(CUE_PERSON_PATTERN, True)]
        for pattern, guard_start in patterns:
            for match in pattern.finditer(text):
                tokens = match.group("name").split()
                if guard_start and len(tokens) == 1 and SENTENCE_START.search(text[: match.start("name")]):
                    continue
                while tokens and normalize_text(tokens[0]) in non_name_words:
                    tokens.pop(0)
                if not tokens:
                    continue
                found.append((
                    match.start("name"),
                    PersonEntity(
                        first_name=tokens[0],
                        last_name=" ".join(tokens[1:]),
                        full_name=" ".join(tokens),
                    ),
                ))
        found.sort(key=lambda item: item[0])
        return _dedupe([person for _, person in found], key=lambda person: person.full_name)

    def extract_phones(self, text: str) -> List[str]:
        spans: List[Tuple[int, int, str]] = []
        for pattern in PHONE_PATTERNS:
            for match in pattern.finditer(text):
                digits = re.sub(r"\D", "", match.group(0))
                if len(digits) >= MIN_PHONE_DIGITS:
                    spans.append((match.start(), match.end(), digits))
        # Longest match wins where patterns overlap
        spans.sort(key=lambda item: (item[0], -(item[1] - item[0])))
        phones: List[str] = []
        last_end = -1
        for start, end, digits in spans:
            if start < last_end:
                continue
            phones.append(digits)
            last_end = end
        return _dedupe(phones, key=lambda phone: phone[-10:])

    def extract_emails(self, text: str) -> List[str]:
        return _dedupe([email.lower() for email in EMAIL_PATTERN.findall(text)], key=lambda email: email)

    def _non_name_words(self) -> set:
        words = set(TURKISH_STOP_WORDS) | PERSON_TITLES
        for spec in self.catalog:
            for group in spec.keywords:
                words.update(group)
        return words

    # Context

    def context_signals(self, normalized: str, entities: Entities) -> ContextSignals:
        if HIGH_URGENCY_PATTERN.search(normalized):
            urgency = Urgency.HIGH
        elif MEDIUM_URGENCY_PATTERN.search(normalized):
            urgency = Urgency.MEDIUM
        else:
            urgency = Urgency.LOW

        words = len(normalized.split())
        sentences = len([part for part in SENTENCE_SPLIT.split(normalized) if part.strip()])
        distinct = entities.distinct_count()
        if words > 20 or sentences > 3 or distinct >= 3:
            complexity = Complexity.COMPLEX
        elif words > 10 or sentences > 1 or distinct >= 2:
            complexity = Complexity.MODERATE
        else:
            complexity = Complexity.SIMPLE

        formal = len(FORMAL_PATTERN.findall(normalized))
        informal = len(INFORMAL_PATTERN.findall(normalized))
        if formal > informal:
            formality = Formality.FORMAL
        elif informal > formal:
            formality = Formality.INFORMAL
        else:
            formality = Formality.NEUTRAL

        return ContextSignals(urgency=urgency, complexity=complexity, formality=formality)

    @staticmethod
    def completeness(spec: CommandSpec, entities: Entities) -> float:
        """Fraction of the intent's required slots that entities can fill"""
        required = spec.required_slots
        if not required:
            return 1.0
        filled = sum(1 for slot in required if any(getattr(entities, kind) for kind in slot.kinds))
        return filled / len(required)

    def suggestions(self, spec: Optional[CommandSpec], entities: Entities) -> List[str]:
        """Follow-up phrases for the caller to offer"""
        if spec is None:
            examples = [example for entry in self.catalog for example in entry.examples[:1]]
            return examples[:MAX_ANALYSIS_SUGGESTIONS]

        suggestions: List[str] = []
        for slot in spec.required_slots:
            if not any(getattr(entities, kind) for kind in slot.kinds):
                suggestions.append(f"Eksik bilgi: {slot.name}")
        suggestions.extend(spec.next_steps)
        return suggestions[:MAX_ANALYSIS_SUGGESTIONS]


def _dedupe(items: List[Any], key) -> List[Any]:
    seen = set()
    unique = []
    for item in items:
        marker = key(item)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(item)
    return unique
