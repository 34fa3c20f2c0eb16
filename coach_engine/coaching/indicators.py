# FILE: coach_engine/coaching/indicators.py
"""
German indicator tables for the coaching classifiers.

Every table is plain data (category -> ordered phrase list). Tables are
normalized and de-duplicated once at import and compiled into word-bounded
regexes, so "weiß nicht" and "weiss nicht" are the same indicator.

Phrase conventions:
  - whitespace inside a phrase matches any run of whitespace
  - a trailing "*" marks a stem: "moeglichkeit*" also matches
    "moeglichkeiten" but never matches inside another word
  - overlapping phrases in one table each count

Bump INDICATOR_TABLE_VERSION whenever a table changes; it is stored on
state snapshots so stored metrics can be traced back to the lexicon that
produced them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Pattern, Tuple

from .schemas import Emotion, GROWPhase, LimitingBeliefType, Stage

INDICATOR_TABLE_VERSION = "2026.10-2"


# =============================================================================
# NORMALIZATION
# =============================================================================

_FOLDS = (
    ("ä", "ae"),
    ("ö", "oe"),
    ("ü", "ue"),
    ("ß", "ss"),
)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Case-fold, fold German diacritics and collapse whitespace."""
    if not text:
        return ""
    folded = text.casefold()
    for src, dst in _FOLDS:
        folded = folded.replace(src, dst)
    return _WHITESPACE.sub(" ", folded).strip()


@dataclass(frozen=True)
class CompiledPhrase:
    phrase: str  # normalized, without the stem marker
    pattern: Pattern[str]


def _phrase_regex(phrase: str) -> Pattern[str]:
    stem = phrase.endswith("*")
    body = phrase[:-1] if stem else phrase
    escaped = r"\s+".join(re.escape(part) for part in body.split(" "))
    tail = "" if stem else r"(?!\w)"
    return re.compile(r"(?<!\w)" + escaped + tail)


def compile_phrases(phrases: Iterable[str]) -> Tuple[CompiledPhrase, ...]:
    """Normalize, de-duplicate (first occurrence wins) and compile."""
    seen = set()
    compiled: List[CompiledPhrase] = []
    for raw in phrases:
        stem = raw.rstrip().endswith("*")
        norm = normalize_text(raw.rstrip().rstrip("*"))
        if not norm:
            continue
        key = norm + ("*" if stem else "")
        if key in seen:
            continue
        seen.add(key)
        compiled.append(CompiledPhrase(phrase=norm, pattern=_phrase_regex(key)))
    return tuple(compiled)


def find_matches(normalized: str, phrases: Tuple[CompiledPhrase, ...]) -> List[str]:
    """One entry per occurrence of any phrase in already-normalized text."""
    hits: List[str] = []
    if not normalized:
        return hits
    for entry in phrases:
        hits.extend(entry.phrase for _ in entry.pattern.finditer(normalized))
    return hits


def count_matches(normalized: str, phrases: Tuple[CompiledPhrase, ...]) -> int:
    return len(find_matches(normalized, phrases))


# =============================================================================
# TTM STAGE INDICATORS
# =============================================================================

STAGE_INDICATORS: Dict[Stage, List[str]] = {
    Stage.PRECONTEMPLATION: [
        "weiß nicht",
        "unsicher",
        "vielleicht",
        "keine ahnung",
        "bin mir nicht sicher",
    ],
    Stage.CONTEMPLATION: [
        "einerseits",
        "andererseits",
        "aber",
        "angst",
        "risiko",
        "könnte",
        "würde",
    ],
    Stage.PREPARATION: [
        "ich plane",
        "nächsten monat",
        "konkret",
        "erste schritte",
        "habe vor",
    ],
    Stage.ACTION: [
        "ich habe schon",
        "bin dabei",
        "läuft bereits",
        "mache gerade",
    ],
    Stage.MAINTENANCE: [
        "seit monaten",
        "routinemäßig",
        "etabliert",
    ],
}


# =============================================================================
# GROW PHASE INDICATORS
# =============================================================================

GROW_KEYWORDS: Dict[GROWPhase, List[str]] = {
    GROWPhase.GOAL: [
        "ziel", "ziele", "erreichen", "schaffen", "wollen", "möchte", "vorhaben",
        "anstreben", "bezwecken", "plan", "vision", "wunsch", "absicht",
        "erfolg", "ergebnis", "outcome", "result",
    ],
    GROWPhase.REALITY: [
        "aktuell", "derzeit", "momentan", "jetzt", "heute", "bereits", "schon",
        "haben", "besitze", "kann", "bin", "status", "situation", "stand",
        "erfahrung*", "qualifikation*", "ressource*", "gegenwart",
    ],
    GROWPhase.OPTIONS: [
        "möglichkeit*", "option*", "weg", "wege", "methode*", "ansatz", "ansätze",
        "lösung*", "alternative*", "variante*", "könnte", "würde", "denkbar",
        "möglich", "verschiedene", "mehrere", "auswahl", "entscheidung",
    ],
    GROWPhase.WILL: [
        "werde", "mache", "tue", "plane", "entscheide", "nehme", "vor",
        "verpflichte", "zusage", "konkret", "definitiv", "sicher", "fest",
        "schritt*", "aktion", "handlung", "umsetzung", "anfangen", "beginnen",
    ],
}

# Regexes over normalized text (umlauts already folded)
GROW_PATTERNS: Dict[GROWPhase, List[str]] = {
    GROWPhase.GOAL: [
        r"was\s+(willst|moechtest|planst)\s+du",
        r"welche[sr]?\s+ziel",
        r"was\s+soll\s+erreicht",
        r"wo\s+soll\s+es\s+hingehen",
        r"was\s+ist\s+(dein|das)\s+ziel",
    ],
    GROWPhase.REALITY: [
        r"wo\s+stehst\s+du",
        r"was\s+hast\s+du\s+(bereits|schon)",
        r"wie\s+ist\s+(deine|die)\s+situation",
        r"was\s+kannst\s+du\s+(bereits|schon)",
        r"was\s+bringst\s+du\s+mit",
    ],
    GROWPhase.OPTIONS: [
        r"welche\s+moeglichkeiten",
        r"was\s+koenntest\s+du",
        r"welche\s+(wege|optionen|alternativen)",
        r"wie\s+koenntest\s+du",
        r"was\s+waere\s+wenn",
        r"verschiedene\s+(ansaetze|methoden)",
    ],
    GROWPhase.WILL: [
        r"was\s+(wirst|machst)\s+du",
        r"was\s+nimmst\s+du\s+dir\s+vor",
        r"welchen\s+schritt",
        r"wann\s+(faengst|beginnst)\s+du\s+an",
        r"wie\s+setzt\s+du\s+um",
        r"was\s+ist\s+(dein|der)\s+(erste|naechste)\s+schritt",
    ],
}

GROW_NEGATIVE_KEYWORDS: Dict[GROWPhase, List[str]] = {
    GROWPhase.GOAL: ["haben", "bin", "kann", "mache", "derzeit", "aktuell"],
    GROWPhase.REALITY: ["will", "möchte", "könnte", "würde", "plane"],
    GROWPhase.OPTIONS: ["will", "werde", "mache", "definitiv", "sicher"],
    GROWPhase.WILL: ["könnte", "würde", "möglich", "vielleicht", "eventuell"],
}


# =============================================================================
# CONVERSATION QUALITY LEXICON
# =============================================================================

QUESTION_STARTERS: Dict[str, List[str]] = {
    "open": [
        "was", "wie", "welche*", "wann", "warum", "woher", "wofür", "wozu",
        "weshalb", "wieso", "woran", "worauf", "womit", "wovon", "wer", "wo",
        "inwiefern",
    ],
    "closed": [
        "hast du", "bist du", "kannst du", "willst du", "möchtest du",
        "wirst du", "hattest du", "warst du", "konntest du", "wolltest du",
        "ist das", "war das", "gibt es", "gab es", "hättest du", "würdest du",
    ],
}

QUALITY_PATTERNS: Dict[str, List[str]] = {
    "empathy": [
        "verstehe",
        "nachvollziehbar",
        "verständlich",
        "geht vielen so",
        "völlig normal",
        "kann ich verstehen",
        "das klingt",
        "ich höre",
        "verständlicherweise",
        "das macht sinn",
        "ich kann mir vorstellen",
    ],
    "autonomy": [
        "du entscheidest",
        "deine wahl",
        "was möchtest du",
        "wie siehst du das",
        "was denkst du",
        "es liegt bei dir",
        "du hast die wahl",
        "ganz wie du möchtest",
        "was ist dir wichtig",
        "was wäre für dich",
        "wie würdest du",
        "was passt für dich",
    ],
    "competence": [
        "du kannst",
        "du hast bereits",
        "deine erfahrung",
        "du weißt",
        "du hast gezeigt",
        "das zeigt",
        "du bist fähig",
        "du hast bewiesen",
        "deine fähigkeit*",
        "deine stärke*",
        "du hast schon",
        "das hast du gut gemacht",
    ],
    "relatedness": [
        "gemeinsam",
        "zusammen",
        "wir",
        "lass uns",
        "ich begleite",
        "ich bin hier",
        "an deiner seite",
        "nicht allein",
        "ich unterstütze",
    ],
    "advice": [
        "du solltest",
        "du musst",
        "am besten",
        "ich empfehle",
        "mach lieber",
        "du könntest besser",
        "versuch mal",
        "probier doch",
        "an deiner stelle würde ich",
        "mein rat",
        "mein tipp",
        "du brauchst",
    ],
    "leading": [
        "findest du nicht auch",
        "meinst du nicht",
        "denkst du nicht",
        "ist es nicht so",
        "wäre es nicht besser",
        "solltest du nicht",
        "hast du schon mal daran gedacht",
        "wäre es nicht sinnvoll",
    ],
    "reflective_summary": [
        "lass mich kurz zusammenfassen",
        "lass mich zusammenfassen",
        "zusammenfassend",
        "wenn ich dich richtig verstehe",
        "wenn ich dich richtig verstanden habe",
        "stimmt das so",
    ],
    "change_talk": [
        "ich will",
        "ich möchte",
        "ich werde",
        "ich kann",
        "ich muss",
        "ich brauche",
        "ich bin bereit",
        "ich habe beschlossen",
        "ich habe vor",
        "ich plane",
        "ich wünsche",
    ],
    "sustain_talk": [
        "kann nicht",
        "unmöglich",
        "zu schwer",
        "nicht bereit",
        "vielleicht später",
        "ich weiß nicht",
        "bin mir nicht sicher",
        "habe angst",
        "zu riskant",
        "keine zeit",
        "kein geld",
        "schaffe ich nicht",
    ],
}


# =============================================================================
# EMOTION SIGNALS (regex over normalized text, weight, label)
# =============================================================================

EMOTION_SIGNALS: Dict[Emotion, List[Tuple[str, int, str]]] = {
    Emotion.UNCERTAINTY: [
        (r"weiss\s+nicht", 3, "weiß nicht"),
        (r"unsicher", 3, "unsicher"),
        (r"vielleicht", 2, "vielleicht"),
        (r"keine\s+ahnung", 3, "keine Ahnung"),
        (r"bin\s+mir\s+nicht\s+sicher", 3, "bin mir nicht sicher"),
        (r"wuesste\s+nicht", 3, "wüsste nicht"),
        (r"kann\s+sein", 1, "kann sein"),
        (r"moeglicherweise", 2, "möglicherweise"),
        (r"eventuell", 2, "eventuell"),
        (r"unklar", 2, "unklar"),
    ],
    Emotion.AMBIVALENCE: [
        (r"einerseits", 3, "einerseits"),
        (r"andererseits", 3, "andererseits"),
        (r"aber", 1, "aber"),
        (r"obwohl", 2, "obwohl"),
        (r"jedoch", 2, "jedoch"),
        (r"hin-?\s*und\s*her", 3, "hin und her"),
        (r"zwei\s+seelen", 3, "zwei Seelen"),
        (r"gespalten", 3, "gespalten"),
        (r"auf\s+der\s+einen\s+seite", 3, "auf der einen Seite"),
        (r"auf\s+der\s+anderen\s+seite", 3, "auf der anderen Seite"),
        (r"teil\s+von\s+mir", 2, "Teil von mir"),
    ],
    Emotion.ANXIETY: [
        (r"angst", 3, "Angst"),
        (r"sorgen?", 3, "Sorge"),
        (r"befuerchte", 3, "befürchte"),
        (r"nervoes", 3, "nervös"),
        (r"risiko", 2, "Risiko"),
        (r"scheitern", 3, "scheitern"),
        (r"fuerchte", 3, "fürchte"),
        (r"bange", 2, "bange"),
        (r"unruhig", 2, "unruhig"),
        (r"macht\s+mir\s+(angst|sorgen)", 3, "macht mir Angst/Sorgen"),
        (r"was\s+ist,?\s+wenn", 2, "was ist wenn"),
        (r"schlimmstenfalls", 2, "schlimmstenfalls"),
        (r"schief\s*gehen", 3, "schief gehen"),
    ],
    Emotion.FRUSTRATION: [
        (r"frustriert", 3, "frustriert"),
        (r"genervt", 3, "genervt"),
        (r"schwierig", 2, "schwierig"),
        (r"kompliziert", 2, "kompliziert"),
        (r"verstehe\s+nicht", 3, "verstehe nicht"),
        (r"frustrierend", 3, "frustrierend"),
        (r"nervig", 3, "nervig"),
        (r"aetzend", 3, "ätzend"),
        (r"genug", 1, "genug"),
        (r"klappt\s+nicht", 3, "klappt nicht"),
        (r"funktioniert\s+nicht", 3, "funktioniert nicht"),
        (r"stecke\s+fest", 3, "stecke fest"),
        (r"komme\s+nicht\s+weiter", 3, "komme nicht weiter"),
        (r"muehsam", 2, "mühsam"),
    ],
    Emotion.EXCITEMENT: [
        (r"freue\s+mich", 3, "freue mich"),
        (r"begeistert", 3, "begeistert"),
        (r"motiviert", 3, "motiviert"),
        (r"kann\s+es\s+kaum\s+erwarten", 3, "kann es kaum erwarten"),
        (r"toll", 2, "toll"),
        (r"super", 2, "super"),
        (r"genial", 3, "genial"),
        (r"aufgeregt", 2, "aufgeregt"),
        (r"gespannt", 2, "gespannt"),
        (r"fantastisch", 3, "fantastisch"),
        (r"wunderbar", 2, "wunderbar"),
        (r"endlich", 2, "endlich"),
        (r"lust\s+(auf|darauf)", 2, "Lust auf"),
    ],
    Emotion.CONFIDENCE: [
        (r"(?<!nicht )sicher", 2, "sicher"),
        (r"ueberzeugt", 3, "überzeugt"),
        (r"weiss\s+genau", 3, "weiß genau"),
        (r"klar", 2, "klar"),
        (r"definitiv", 3, "definitiv"),
        (r"auf\s+jeden\s+fall", 3, "auf jeden Fall"),
        (r"ganz\s+sicher", 3, "ganz sicher"),
        (r"keine\s+frage", 3, "keine Frage"),
        (r"steht\s+fest", 3, "steht fest"),
        (r"ich\s+weiss(?!\s+nicht)", 2, "ich weiß"),
        (r"selbstverstaendlich", 2, "selbstverständlich"),
    ],
}

# Applied to the raw (non-normalized) message: (regex, label, boost)
INTENSITY_MARKERS: List[Tuple[str, str, float]] = [
    (r"!{2,}", "multiple !", 1.0),
    (r"!(?!\?)", "exclamation", 0.5),
    (r"\?{2,}", "multiple ?", 1.0),
    (r"[A-ZÄÖÜ]{3,}", "CAPS", 1.0),
    (r"(?i)\b(\w+)\b(\s+\1\b)+", "repetition", 1.0),
    (r"(?i)\b(sehr|wirklich|echt|total|absolut|extrem|richtig)\b", "intensifier", 0.5),
    (r"\.\.\.", "ellipsis", 0.3),
]


# =============================================================================
# LIMITING BELIEF TRIGGERS
# =============================================================================

LIMITING_BELIEF_TRIGGERS: Dict[LimitingBeliefType, List[str]] = {
    LimitingBeliefType.NOT_QUALIFIED: [
        "nicht qualifiziert",
        "fehlt erfahrung",
        "fehlt mir die erfahrung",
        "nicht gut genug",
        "wer bin ich",
        "bin kein experte",
    ],
    LimitingBeliefType.NOT_SALESPERSON: [
        "kein verkäufer",
        "kann nicht verkaufen",
        "verkaufen liegt mir nicht",
        "verkaufen ist nicht meine stärke",
        "hasse verkauf*",
        "kaltakquise ist nichts für mich",
        "bin nicht gut im verkauf",
        "verkauf fällt mir schwer",
        "zu aufdringlich",
        "kann mich nicht selbst vermarkten",
    ],
    LimitingBeliefType.MARKET_SATURATED: [
        "markt ist zu gesättigt",
        "markt ist gesättigt",
        "markt gesättigt",
        "zu viele wettbewerber",
        "zu viel konkurrenz",
        "markt ist überfüllt",
        "keine chance gegen die großen",
        "da gibt es schon so viele",
        "der markt ist voll",
        "alles ist schon da",
        "das machen schon andere",
        "gibt es schon",
    ],
    LimitingBeliefType.NEED_MORE_PREP: [
        "ich brauche erst",
        "ich muss erst",
        "erst wenn ich",
        "bevor ich anfangen kann",
        "ich warte noch auf",
        "wenn ich erstmal",
        "noch nicht bereit",
        "erst noch",
        "brauche vorher",
        "erst perfekt",
        "erst mehr erfahrung",
        "erst mehr geld",
        "erst mehr kunden",
        "erstmal alles vorbereiten",
    ],
    LimitingBeliefType.FAILURE_IS_END: [
        "wenn ich scheitere",
        "alles verloren",
        "alles aufs spiel",
        "existenzielle angst",
        "ich verliere alles",
        "wenn ich versage",
        "ende meiner karriere",
        "nie wieder",
        "dann war alles umsonst",
        "dann stehe ich vor dem nichts",
        "ruiniert",
    ],
    LimitingBeliefType.NOT_NUMBERS_PERSON: [
        "kein zahlenmensch",
        "mathe schlecht",
        "schlecht in mathe",
        "finanzen nicht",
        "zahlen liegen mir nicht",
        "kann nicht mit zahlen",
    ],
    LimitingBeliefType.TOO_OLD_YOUNG: [
        "zu alt",
        "zu jung",
        "in meinem alter",
        "mein alter",
    ],
    LimitingBeliefType.NO_NETWORK: [
        "keine kontakte",
        "kenne niemanden",
        "kein netzwerk",
        "ganz alleine",
        "niemand unterstützt mich",
    ],
}


# =============================================================================
# STRENGTH INDICATORS (appreciative inquiry, DISCOVER answers)
# =============================================================================

# Categories are disjoint; a strength belongs to the first category listing it
STRENGTH_INDICATORS: Dict[str, List[str]] = {
    "organization": [
        "organisiert", "organisation", "strukturiert", "strukturieren",
        "zuverlässig", "zuverlässigkeit", "verantwortungsbewusst", "verantwortung",
    ],
    "communication": [
        "kommunikativ", "kommunikation", "überzeugt", "überzeugen",
        "empathisch", "empathie", "teamfähig", "teamarbeit",
    ],
    "problem_solving": [
        "analytisch", "analyse", "problemlösung", "lösungsorientiert",
        "lösung gefunden", "problem gelöst", "herausforderung gemeistert",
        "schwierigkeit überwunden",
    ],
    "creativity": ["kreativ", "kreativität", "innovativ", "innovation"],
    "leadership": [
        "führungsstark", "führung", "leadership", "motiviert", "motivieren",
        "inspiriert", "inspirieren", "durchsetzungsfähig", "durchsetzungsstark",
    ],
    "resilience": [
        "belastbar", "belastbarkeit", "ausdauer", "durchhaltevermögen",
        "hartnäckig", "geduldig", "geduld", "flexibel", "flexibilität",
    ],
    "achievement": [
        "geschafft", "erreicht", "erfolgreich", "erfolg", "gewonnen",
        "verbessert", "verbesserung", "gesteigert", "optimiert",
        "aufgebaut", "umgesetzt", "implementiert", "entwickelt",
    ],
    "expertise": [
        "fachkompetenz", "fachwissen", "expertise", "spezialisiert",
        "qualifiziert", "kompetent", "erfahren", "erfahrung",
    ],
    "network": ["netzwerk", "kontakte", "kundenbeziehung", "kundenkontakt"],
    "drive": [
        "selbstständig", "selbständig", "eigeninitiative", "initiative",
        "zielstrebig", "fokussiert", "engagiert", "engagement", "leidenschaft",
        "leidenschaftlich", "begeistert", "begeisterung", "motivation",
    ],
    "learning": ["gelernt", "weiterentwickelt", "angeeignet", "fortgebildet"],
}


# =============================================================================
# COMPILED TABLES
# =============================================================================

_COMPILED_STAGES: Dict[Stage, Tuple[CompiledPhrase, ...]] = {
    stage: compile_phrases(phrases) for stage, phrases in STAGE_INDICATORS.items()
}
_COMPILED_GROW_KEYWORDS: Dict[GROWPhase, Tuple[CompiledPhrase, ...]] = {
    phase: compile_phrases(words) for phase, words in GROW_KEYWORDS.items()
}
_COMPILED_GROW_NEGATIVE: Dict[GROWPhase, Tuple[CompiledPhrase, ...]] = {
    phase: compile_phrases(words) for phase, words in GROW_NEGATIVE_KEYWORDS.items()
}
_COMPILED_GROW_PATTERNS: Dict[GROWPhase, Tuple[Pattern[str], ...]] = {
    phase: tuple(re.compile(r"(?<!\w)" + p) for p in patterns)
    for phase, patterns in GROW_PATTERNS.items()
}
_COMPILED_STARTERS: Dict[str, Tuple[CompiledPhrase, ...]] = {
    kind: compile_phrases(words) for kind, words in QUESTION_STARTERS.items()
}
_COMPILED_QUALITY: Dict[str, Tuple[CompiledPhrase, ...]] = {
    name: compile_phrases(phrases) for name, phrases in QUALITY_PATTERNS.items()
}
_COMPILED_EMOTIONS: Dict[Emotion, Tuple[Tuple[Pattern[str], int, str], ...]] = {
    emotion: tuple(
        (re.compile(r"(?<!\w)" + p + r"(?!\w)"), weight, label) for p, weight, label in signals
    )
    for emotion, signals in EMOTION_SIGNALS.items()
}
_COMPILED_INTENSITY: Tuple[Tuple[Pattern[str], str, float], ...] = tuple(
    (re.compile(p), label, boost) for p, label, boost in INTENSITY_MARKERS
)
_COMPILED_BELIEFS: Dict[LimitingBeliefType, Tuple[CompiledPhrase, ...]] = {
    belief: compile_phrases(phrases) for belief, phrases in LIMITING_BELIEF_TRIGGERS.items()
}
_COMPILED_STRENGTHS: Dict[str, Tuple[CompiledPhrase, ...]] = {
    category: compile_phrases(phrases) for category, phrases in STRENGTH_INDICATORS.items()
}


def stage_phrases(stage: Stage) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_STAGES.get(stage, ())


def grow_keywords(phase: GROWPhase) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_GROW_KEYWORDS.get(phase, ())


def grow_negative_keywords(phase: GROWPhase) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_GROW_NEGATIVE.get(phase, ())


def grow_patterns(phase: GROWPhase) -> Tuple[Pattern[str], ...]:
    return _COMPILED_GROW_PATTERNS.get(phase, ())


def question_starters(kind: str) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_STARTERS.get(kind, ())


def quality_phrases(name: str) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_QUALITY.get(name, ())


def emotion_signals(emotion: Emotion) -> Tuple[Tuple[Pattern[str], int, str], ...]:
    return _COMPILED_EMOTIONS.get(emotion, ())


def intensity_markers() -> Tuple[Tuple[Pattern[str], str, float], ...]:
    return _COMPILED_INTENSITY


def belief_triggers(belief: LimitingBeliefType) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_BELIEFS.get(belief, ())


def strength_phrases(category: str) -> Tuple[CompiledPhrase, ...]:
    return _COMPILED_STRENGTHS.get(category, ())
