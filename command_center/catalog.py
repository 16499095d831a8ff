"""
Command catalog: the prioritized table of intents the assistant understands.

Each entry carries the matching rules used by the text analyzer and the
execution metadata used by the resolver (target module, risk, slots).
Entries are checked in list order, so destructive commands come first.
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple
from command_center.schemas.command import RiskLevel

# Entity kinds a slot can be filled from (attribute names on Entities)
MONEY = "money"
PERSONS = "persons"
PHONES = "phones"
EMAILS = "emails"


@dataclass(frozen=True)
class Slot:
    """A named parameter of a command, filled from extracted entities"""
    name: str
    kinds: Tuple[str, ...]
    required: bool = True


@dataclass(frozen=True)
class CommandSpec:
    """Catalog entry for one intent"""
    intent: str
    module: str
    action_type: str
    risk_level: RiskLevel
    description: str
    # Regexes matched against the normalized (lower-cased) text
    phrases: Tuple[str, ...] = ()
    # Keyword groups; the first group names the subject and must match
    keywords: Tuple[Tuple[str, ...], ...] = ()
    slots: Tuple[Slot, ...] = ()
    base_duration_seconds: float = 1.0
    weight: float = 1.0
    next_steps: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()

    @property
    def required_slots(self) -> List[Slot]:
        return [slot for slot in self.slots if slot.required]

    @property
    def optional_slots(self) -> List[Slot]:
        return [slot for slot in self.slots if not slot.required]


_DELETE_VERBS = ("sil", "kaldır", "iptal", "sonlandır", "delete", "remove", "cancel")
_CREATE_VERBS = ("ekle", "oluştur", "kaydet", "yeni", "tanımla", "gir", "add", "create", "new", "record")
_LIST_VERBS = ("listele", "göster", "getir", "bul", "ara", "list", "show", "find")

# Closes a verb alternation: bare or polite imperative ("sil", "silin", "ekleyiniz"), never a longer word
_END = r"(?:y?[iıuü]n(?:[iıuü]z)?)?\b"

DONATION_WORDS = ("bağış", "donation")
BENEFICIARY_WORDS = ("hak sahibi", "ihtiyaç sahibi", "beneficiary", "beneficiaries")
TASK_WORDS = ("görev", "task")
MESSAGE_WORDS = ("mesaj", "sms", "e-posta", "eposta", "mail", "message", "email")
REPORT_WORDS = ("rapor", "özet", "analiz", "istatistik", "report", "summary", "statistics")

_CONTACT_SLOTS = (
    Slot("phone", (PHONES,), required=False),
    Slot("email", (EMAILS,), required=False),
)


COMMAND_CATALOG: List[CommandSpec] = [
    # Destructive commands first
    CommandSpec(
        intent="delete_donation",
        module="donations",
        action_type="delete",
        risk_level=RiskLevel.HIGH,
        description="Bağış kaydını sil",
        phrases=(
            rf"\bbağış\w*\s+(?:kayd\w*\s+)?(?:sil|kaldır|iptal){_END}",
            r"\b(?:delete|remove|cancel)\s+(?:the\s+)?donation",
        ),
        keywords=(DONATION_WORDS, _DELETE_VERBS),
        slots=(Slot("amount", (MONEY,), required=False), Slot("donor", (PERSONS,), required=False)),
        base_duration_seconds=1.5,
        next_steps=("Bağışları listele",),
        examples=("Ahmet Yılmaz bağışını sil",),
    ),
    CommandSpec(
        intent="delete_beneficiary",
        module="beneficiaries",
        action_type="delete",
        risk_level=RiskLevel.HIGH,
        description="Hak sahibi kaydını sil",
        phrases=(
            rf"\b(?:hak|ihtiyaç)\s+sahib\w*\s+(?:kayd\w*\s+)?(?:sil|kaldır){_END}",
            r"\b(?:delete|remove)\s+(?:the\s+)?beneficiary",
        ),
        keywords=(BENEFICIARY_WORDS, _DELETE_VERBS),
        slots=(Slot("name", (PERSONS,)),),
        base_duration_seconds=1.5,
        next_steps=("Hak sahiplerini listele",),
        examples=("Bay Ali Demir hak sahibi kaydını sil",),
    ),
    CommandSpec(
        intent="delete_task",
        module="tasks",
        action_type="delete",
        risk_level=RiskLevel.HIGH,
        description="Görevi sil",
        phrases=(
            rf"\bgörev\w*\s+(?:sil|kaldır|iptal){_END}",
            r"\b(?:delete|remove|cancel)\s+(?:the\s+)?task",
        ),
        keywords=(TASK_WORDS, _DELETE_VERBS),
        slots=(Slot("assignee", (PERSONS,), required=False),),
        next_steps=("Görevleri listele",),
        examples=("Tamamlanan görevleri sil",),
    ),
    # External side effects
    CommandSpec(
        intent="send_message",
        module="messages",
        action_type="send",
        risk_level=RiskLevel.HIGH,
        description="Mesaj gönder",
        phrases=(
            rf"\b(?:sms|mesaj|e-?posta|mail)\w*\s+(?:gönder|at|yolla){_END}",
            r"\bsend\s+(?:an?\s+)?(?:sms|message|email|e-mail)",
        ),
        keywords=(MESSAGE_WORDS, ("gönder", "yolla", "send")),
        slots=(
            Slot("recipient", (PHONES, EMAILS)),
            Slot("recipient_name", (PERSONS,), required=False),
        ),
        base_duration_seconds=2.0,
        next_steps=("Gönderim durumunu kontrol et",),
        examples=("0532 123 45 67 numarasına SMS gönder", "ali@ornek.org adresine e-posta gönder"),
    ),
    # Writes
    CommandSpec(
        intent="add_donation",
        module="donations",
        action_type="create",
        risk_level=RiskLevel.HIGH,
        description="Yeni bağış kaydı oluştur",
        phrases=(
            rf"\bbağış\w*\s+(?:ekle|kaydet|gir|oluştur){_END}",
            r"\byeni\s+(?:bir\s+)?bağış",
            r"\b(?:add|record|new)\s+(?:a\s+)?donation",
        ),
        keywords=(DONATION_WORDS, _CREATE_VERBS),
        slots=(Slot("amount", (MONEY,)), Slot("donor", (PERSONS,), required=False)) + _CONTACT_SLOTS,
        base_duration_seconds=2.0,
        next_steps=("Bağış makbuzu gönder", "Bağış raporunu görüntüle"),
        examples=("Yeni bağış ekle: 1000 TL", "Bay Ahmet Yılmaz için 500 TL bağış kaydet"),
    ),
    CommandSpec(
        intent="add_beneficiary",
        module="beneficiaries",
        action_type="create",
        risk_level=RiskLevel.LOW,
        description="Yeni hak sahibi ekle",
        phrases=(
            rf"\b(?:hak|ihtiyaç)\s+sahib\w*\s+(?:ekle|kaydet|oluştur){_END}",
            r"\byeni\s+(?:bir\s+)?(?:hak|ihtiyaç)\s+sahibi",
            r"\badd\s+(?:a\s+)?beneficiary",
        ),
        keywords=(BENEFICIARY_WORDS, _CREATE_VERBS),
        slots=(Slot("name", (PERSONS,)),) + _CONTACT_SLOTS,
        base_duration_seconds=1.5,
        next_steps=("Hak sahibi için yardım talebi oluştur",),
        examples=("Yeni hak sahibi ekle: Bayan Ayşe Kaya 0532 123 45 67",),
    ),
    CommandSpec(
        intent="complete_task",
        module="tasks",
        action_type="update",
        risk_level=RiskLevel.LOW,
        description="Görevi tamamlandı olarak işaretle",
        phrases=(
            rf"\bgörev\w*\s+(?:tamamla|bitir|kapat){_END}",
            r"\b(?:complete|finish|close)\s+(?:the\s+)?task",
            r"\bmark\s+(?:the\s+)?task\s+(?:as\s+)?done",
        ),
        keywords=(TASK_WORDS, ("tamamla", "bitir", "kapat", "güncelle", "complete", "finish", "done", "update")),
        slots=(Slot("assignee", (PERSONS,), required=False),),
        next_steps=("Görevleri listele",),
        examples=("Toplantı görevini tamamla",),
    ),
    CommandSpec(
        intent="create_task",
        module="tasks",
        action_type="create",
        risk_level=RiskLevel.LOW,
        description="Yeni görev oluştur",
        phrases=(
            rf"\bgörev\w*\s+(?:ekle|oluştur|ata|tanımla){_END}",
            r"\byeni\s+(?:bir\s+)?görev",
            r"\b(?:create|add|new)\s+(?:a\s+)?task",
        ),
        keywords=(TASK_WORDS, _CREATE_VERBS + ("ata", "assign")),
        slots=(Slot("assignee", (PERSONS,), required=False),),
        next_steps=("Görev için hatırlatıcı kur",),
        examples=("Yeni görev oluştur: toplantı hazırlığı", "Dr. Mehmet Öz için görev ata"),
    ),
    # Reads
    CommandSpec(
        intent="list_donations",
        module="donations",
        action_type="list",
        risk_level=RiskLevel.NONE,
        description="Bağışları listele",
        phrases=(
            rf"\bbağış\w*\s+(?:listele|göster|getir|bul){_END}",
            r"\b(?:list|show)\s+(?:all\s+|the\s+)?donations",
        ),
        keywords=(DONATION_WORDS, _LIST_VERBS),
        next_steps=("Bağış raporu oluştur",),
        examples=("Bağışları listele", "Bu ayki bağışları göster"),
    ),
    CommandSpec(
        intent="list_beneficiaries",
        module="beneficiaries",
        action_type="list",
        risk_level=RiskLevel.NONE,
        description="Hak sahiplerini listele",
        phrases=(
            rf"\b(?:hak|ihtiyaç)\s+sahip\w*\s+(?:listele|göster|getir|bul){_END}",
            r"\b(?:list|show)\s+(?:all\s+|the\s+)?beneficiaries",
        ),
        keywords=(BENEFICIARY_WORDS, _LIST_VERBS),
        examples=("Hak sahiplerini listele",),
    ),
    CommandSpec(
        intent="list_tasks",
        module="tasks",
        action_type="list",
        risk_level=RiskLevel.NONE,
        description="Görevleri listele",
        phrases=(
            rf"\bgörev\w*\s+(?:listele|göster|getir){_END}",
            r"\b(?:list|show)\s+(?:all\s+|my\s+|the\s+)?tasks",
        ),
        keywords=(TASK_WORDS, _LIST_VERBS),
        examples=("Görevleri listele", "Bugünkü görevleri göster"),
    ),
    CommandSpec(
        intent="generate_report",
        module="reports",
        action_type="report",
        risk_level=RiskLevel.NONE,
        description="Rapor oluştur",
        phrases=(
            rf"\brapor\w*\s+(?:oluştur|hazırla|al|çıkar|göster){_END}",
            r"\b(?:günlük|haftalık|aylık)\s+(?:rapor|özet)",
            r"\b(?:generate|create|show)\s+(?:a\s+|the\s+)?(?:report|summary)",
        ),
        keywords=(REPORT_WORDS,),
        base_duration_seconds=5.0,
        weight=0.9,
        next_steps=("Raporu dışa aktar",),
        examples=("Aylık bağış raporu oluştur", "Günlük özet al"),
    ),
    CommandSpec(
        intent="help",
        module="assistant",
        action_type="help",
        risk_level=RiskLevel.NONE,
        description="Kullanılabilir komutları göster",
        phrases=(
            r"\b(?:yardım|help)\b",
            r"\bneler?\s+yapabilirsin",
            r"\bwhat\s+can\s+you\s+do",
        ),
        keywords=(("yardım", "help", "komutlar", "commands"),),
        base_duration_seconds=0.5,
        weight=0.8,
        examples=("Yardım",),
    ),
]


def build_catalog_index(catalog: List[CommandSpec]) -> Dict[str, CommandSpec]:
    """Index catalog entries by intent label"""
    return {spec.intent: spec for spec in catalog}
