"""Heuristic extraction of action items and decisions.

Extractors are small strategy objects with a single ``extract(text)`` method,
so a backend can swap one for another without the result shaping changing.
"""
import re
from typing import Optional, Protocol, Sequence

# Abbreviations that should NOT be treated as sentence boundaries
_ABBREVIATIONS = re.compile(
    r"\b(?:Mr|Mrs|Ms|Dr|Prof|Sr|Jr|St|Inc|Corp|Ltd|Co|vs|etc|approx|dept|est"
    r"|U\.S|U\.K|E\.U|e\.g|i\.e)\.$",
    re.IGNORECASE,
)

# Sentence-ending punctuation followed by space or end-of-string
_SENTENCE_END = re.compile(r"([.?!])(?:\s|$)")

# "Name (Role): text" or "Speaker 2: text" at the start of a sentence
_SPEAKER_PREFIX = re.compile(r"^(?P<speaker>[^:\n]{1,80}):\s+(?P<text>.+)$", re.DOTALL)

_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(?P<item>.+)$")
# "## Title", "**Title**" or "Title:"; a bare short line is not a heading
_HEADING = re.compile(
    r"^\s*(?:#+\s*(?P<hashed>.+?)|\*\*(?P<bold>[^*]+?)\*\*:?|(?P<plain>[^\s:][^:]{0,60}):(?:\*\*)?)\s*$"
)

TASK_PATTERNS = [
    r"\b(?:i'll|i will|we'll|we will|you'll|he'll|she'll|they'll)\b",
    r"\bwill (?:handle|finish|complete|send|prepare|review|schedule|update|follow)\b",
    r"\bneeds? to\b",
    r"\b(?:should|must|have to|has to)\b",
    r"\bassign(?:ed|ing)?\b",
    r"\btasks?\b",
    r"\baction(?: item)?s?\b",
    r"\bto-?do\b",
    r"\bfollow[- ]up\b",
    r"\bdeadline\b",
    r"\bnext steps?\b",
]

DECISION_PATTERNS = [
    r"\bdecided\b",
    r"\bdecision\b",
    r"\bagreed\b",
    r"\bapproved?\b",
    r"\bresolved\b",
    r"\bconclu(?:ded|sion)\b",
    r"\bdetermined\b",
    r"\bsettled on\b",
    r"\bsigned off\b",
    r"\bgo(?:ing)? with\b",
]

# Markers of discussion that did not end in a resolution
_UNRESOLVED = re.compile(r"\b(?:undecided|not (?:yet )?decided|tbd|still discussing|revisit)\b", re.IGNORECASE)

_DUE = re.compile(
    r"\b(?:by|before|on|until|due)\s+(?P<due>(?:next |this |end of )?"
    r"(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday|tomorrow|today|"
    r"week|month|quarter|eod|eow|\d{1,2}(?:st|nd|rd|th)?(?: of)? [a-z]+|[a-z]+ \d{1,2}(?:st|nd|rd|th)?))\b",
    re.IGNORECASE,
)
_NEXT_WEEK = re.compile(r"\b(?P<due>next (?:week|month|quarter|monday|tuesday|wednesday|thursday|friday))\b", re.IGNORECASE)


class ActionItemExtractor(Protocol):
    def extract(self, text: str) -> list[str]: ...


def split_sentences(text: str, min_chunk_len: int = 10) -> list[str]:
    """Split text into sentences at . ? ! boundaries.

    Skips common abbreviations and merges tiny fragments into the previous
    sentence.
    """
    if not text or not text.strip():
        return []

    sentences: list[str] = []
    start = 0

    for m in _SENTENCE_END.finditer(text):
        end = m.end()
        candidate = text[start:end].strip()

        if _ABBREVIATIONS.search(candidate):
            continue

        if candidate:
            if len(candidate) < min_chunk_len and sentences:
                sentences[-1] = sentences[-1] + " " + candidate
            else:
                sentences.append(candidate)
            start = end

    remainder = text[start:].strip()
    if remainder:
        if len(remainder) < min_chunk_len and sentences:
            sentences[-1] = sentences[-1] + " " + remainder
        else:
            sentences.append(remainder)

    return sentences if sentences else [text.strip()]


def find_due_marker(sentence: str) -> Optional[str]:
    """Deadline or next-step phrase stated in a sentence, if any."""
    m = _DUE.search(sentence) or _NEXT_WEEK.search(sentence)
    return m.group("due") if m else None


class KeywordSentenceExtractor:
    """Picks transcript sentences that contain any of the given patterns.

    Speaker prefixes are tracked across sentences so each item can name its
    owner. Used where no model output exists to parse.
    """

    def __init__(
        self,
        patterns: Sequence[str],
        exclude: Optional[re.Pattern] = None,
        with_due_marker: bool = False,
        limit: int = 10,
    ):
        self._pattern = re.compile("|".join(patterns), re.IGNORECASE)
        self._exclude = exclude
        self._with_due_marker = with_due_marker
        self._limit = limit

    def extract(self, text: str) -> list[str]:
        items: list[str] = []
        speaker: Optional[str] = None

        for raw_line in text.splitlines():
            for sentence in split_sentences(raw_line):
                prefix = _SPEAKER_PREFIX.match(sentence)
                if prefix:
                    speaker = prefix.group("speaker").strip()
                    sentence = prefix.group("text").strip()

                if sentence.endswith("?") or not self._pattern.search(sentence):
                    continue
                if self._exclude and self._exclude.search(sentence):
                    continue

                item = f"{speaker}: {sentence}" if speaker else sentence
                if self._with_due_marker:
                    due = find_due_marker(sentence)
                    if due:
                        item += f" [Due: {due}]"
                if item not in items:
                    items.append(item)
                if len(items) >= self._limit:
                    return items
        return items


class SectionBulletExtractor:
    """Reads bullets out of model output.

    Prefers bullets under a heading containing ``section_keyword``; with no
    headings at all, every bullet counts; otherwise falls back to keyword
    sentence matching.
    """

    def __init__(self, section_keyword: str, fallback: ActionItemExtractor):
        self._keyword = section_keyword.lower()
        self._fallback = fallback

    def extract(self, text: str) -> list[str]:
        section_items: list[str] = []
        all_bullets: list[str] = []
        saw_heading = False
        in_section = False

        for line in text.splitlines():
            if not line.strip():
                continue
            bullet = _BULLET.match(line)
            if bullet:
                item = bullet.group("item").strip().strip("*").strip()
                if not item:
                    continue
                all_bullets.append(item)
                if in_section:
                    section_items.append(item)
                continue

            heading = _HEADING.match(line)
            if heading:
                saw_heading = True
                title = heading.group("hashed") or heading.group("bold") or heading.group("plain")
                in_section = self._keyword in title.lower()

        if section_items:
            return section_items
        if all_bullets and not saw_heading:
            return all_bullets
        return self._fallback.extract(text)


def transcript_action_extractor() -> KeywordSentenceExtractor:
    return KeywordSentenceExtractor(TASK_PATTERNS, with_due_marker=True)


def transcript_decision_extractor() -> KeywordSentenceExtractor:
    return KeywordSentenceExtractor(DECISION_PATTERNS, exclude=_UNRESOLVED)


def output_action_extractor() -> SectionBulletExtractor:
    return SectionBulletExtractor("action", KeywordSentenceExtractor(TASK_PATTERNS))


def output_decision_extractor() -> SectionBulletExtractor:
    return SectionBulletExtractor("decision", KeywordSentenceExtractor(DECISION_PATTERNS, exclude=_UNRESOLVED))
