"""
Tests for the command resolver business rules
"""
import pytest

from command_center.schemas.command import ResolutionKind, RiskLevel, SessionContext
from command_center.services.command_resolver import CommandResolver
from command_center.services.text_analyzer import TextAnalyzer


@pytest.fixture
def analyzer():
    return TextAnalyzer()


@pytest.fixture
def resolver():
    return CommandResolver()


def test_resolve_add_donation(analyzer, resolver):
    """Test that a complete donation command resolves and needs confirmation"""
    resolution = resolver.resolve(analyzer.analyze("Yeni bağış ekle: 1000 TL"), user_id="u1")

    assert resolution.kind == ResolutionKind.RESOLVED
    command = resolution.command
    assert command.intent == "add_donation"
    assert command.target_module == "donations"
    assert command.action_type == "create"
    assert command.parameters == {
        "amount": {"amount": 1000.0, "currency": "TL"},
        "acting_user": "u1",
    }
    assert command.requires_confirmation is True
    assert command.risk_level == RiskLevel.HIGH
    assert command.estimated_duration_seconds == 2.5
    assert command.source_text == "yeni bağış ekle: 1000 tl"
    assert command.pattern == "donations.create"
    assert command.next_steps


def test_missing_required_slot_needs_clarification(analyzer, resolver):
    resolution = resolver.resolve(analyzer.analyze("Yeni bağış ekle"))

    assert resolution.kind == ResolutionKind.NEEDS_CLARIFICATION
    assert resolution.intent == "add_donation"
    assert resolution.missing_slots == ["amount"]
    assert resolution.command is None


def test_unknown_intent_is_unrecognized(analyzer, resolver):
    resolution = resolver.resolve(analyzer.analyze("asdkjasd"))

    assert resolution.kind == ResolutionKind.UNRECOGNIZED
    assert resolution.command is None


def test_confidence_below_floor_is_unrecognized(analyzer):
    resolver = CommandResolver(confidence_floor=0.6)
    resolution = resolver.resolve(analyzer.analyze("bağış"))

    assert resolution.kind == ResolutionKind.UNRECOGNIZED
    assert resolution.intent == "list_donations"


def test_safe_command_runs_without_confirmation(analyzer, resolver):
    resolution = resolver.resolve(analyzer.analyze("Yardım"), user_id="u1")

    assert resolution.kind == ResolutionKind.RESOLVED
    assert resolution.command.requires_confirmation is False
    assert resolution.command.risk_level == RiskLevel.NONE
    assert resolution.command.estimated_duration_seconds == 0.5
    assert resolution.command.parameters == {"acting_user": "u1"}


def test_low_confidence_safe_command_needs_confirmation(analyzer, resolver):
    """A read-only command guessed from a single keyword still asks first"""
    resolution = resolver.resolve(analyzer.analyze("bağış"))

    assert resolution.kind == ResolutionKind.RESOLVED
    assert resolution.command.risk_level == RiskLevel.NONE
    assert resolution.command.requires_confirmation is True


def test_optional_slots_fall_back_to_context(analyzer, resolver):
    context = SessionContext(acting_user="Operatör Ayşe", defaults={"donor": "Anonim"})
    resolution = resolver.resolve(analyzer.analyze("Yeni bağış ekle: 1000 TL"), context, user_id="u1")

    parameters = resolution.command.parameters
    assert parameters["donor"] == "Anonim"
    assert parameters["acting_user"] == "Operatör Ayşe"
    assert resolution.command.estimated_duration_seconds == 3.0


def test_extracted_entities_beat_context_defaults(analyzer, resolver):
    context = SessionContext(defaults={"donor": "Anonim"})
    resolution = resolver.resolve(
        analyzer.analyze("Bay Ahmet Yılmaz için 500 TL bağış kaydet"),
        context,
    )

    assert resolution.command.parameters["donor"]["full_name"] == "Ahmet Yılmaz"
    assert "acting_user" not in resolution.command.parameters


def test_recipient_accepts_phone_or_email(analyzer, resolver):
    by_phone = resolver.resolve(analyzer.analyze("0532 123 45 67 numarasına SMS gönder"))
    by_email = resolver.resolve(analyzer.analyze("ali@ornek.org adresine e-posta gönder"))

    assert by_phone.command.parameters["recipient"] == "05321234567"
    assert by_email.command.parameters["recipient"] == "ali@ornek.org"
    assert by_phone.command.requires_confirmation is True
