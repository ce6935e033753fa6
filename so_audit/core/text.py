"""
Text normalisation shared by the consistency rules.

Key terms are lower-cased word tokens with stop words and negations removed,
reduced by a light suffix-stripping stemmer so that "refunds", "refund" and
"refunding" compare equal.
"""

import re
from typing import AbstractSet, FrozenSet, Iterable, Tuple

WORD_RE = re.compile(r"[a-z0-9]+")
CONTRACTION_RE = re.compile(r"n't\b")
# Identifiers such as BR-03 or OBJ-01 carry no meaning for term matching
IDENTIFIER_RE = re.compile(r"\b[A-Za-z]{2,5}-\d+\b")

NEGATIONS = frozenset({
    "no", "not", "never", "without", "cannot", "none", "nor", "neither", "prohibited", "forbidden",
})

STOP_WORDS = frozenset({
    # articles, pronouns, conjunctions
    "a", "an", "the", "and", "or", "but", "if", "so", "than", "then", "also", "only",
    "this", "that", "these", "those", "it", "its", "they", "them", "their", "we", "our", "us",
    "you", "your", "he", "she", "his", "her", "which", "who", "whom", "whose", "what", "when",
    "where", "all", "any", "each", "every", "some", "such", "other", "own", "etc",
    # prepositions
    "of", "to", "for", "in", "on", "at", "by", "with", "from", "into", "onto", "as", "via",
    "per", "about", "within", "across", "through", "over", "under", "between", "after", "before",
    # auxiliaries and modals
    "is", "are", "was", "were", "be", "been", "being", "am", "has", "have", "had", "do", "does",
    "did", "must", "shall", "should", "will", "would", "can", "could", "may", "might",
    # requirement boilerplate
    "system", "solution", "able", "support", "supports", "supported", "provide", "provides",
    "allow", "allows", "enable", "enables", "ensure", "ensures",
})

# Clause boundaries for negation scope
CLAUSE_RE = re.compile(r"[,;:.!?()]|\b(?:so|but|because|while|although|whereas|unless)\b")
NEGATION_WINDOW = 3
# "are not", "will never", "can't" (after contraction: "ca not")
AUXILIARIES = frozenset({
    "is", "are", "was", "were", "be", "been", "do", "does", "did", "will", "shall", "should",
    "would", "must", "can", "could", "may", "might", "ca", "wo", "has", "have", "had",
})

# Longest first; a suffix is only removed when at least 3 characters remain
SUFFIXES = ("ation", "ment", "ing", "age", "ed")
VOWELS = frozenset("aeiou")


def stem(word: str) -> str:
    """Облегчённый стеммер: множественное число, суффиксы, конечная e, удвоенная согласная."""
    if len(word) <= 3 or word.isdigit():
        return word

    if word.endswith("ies") and len(word) > 4:
        word = word[:-3] + "y"
    elif word.endswith(("sses", "shes", "ches", "xes", "zes")):
        word = word[:-2]
    elif word.endswith("s") and not word.endswith(("ss", "us", "is")):
        word = word[:-1]

    for suffix in SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            word = word[:-len(suffix)]
            break

    if len(word) >= 4 and word.endswith("e"):
        word = word[:-1]
    if len(word) >= 4 and word[-1] == word[-2] and word[-1] not in VOWELS:
        word = word[:-1]
    return word


def tokenize(text: str) -> Tuple[str, ...]:
    """Разбить текст на слова в нижнем регистре."""
    lowered = CONTRACTION_RE.sub(" not", text.lower())
    return tuple(WORD_RE.findall(lowered))


def key_terms(text: str) -> Tuple[str, ...]:
    """Значимые термины текста в порядке первого появления, без повторов."""
    seen = []
    for token in tokenize(IDENTIFIER_RE.sub(" ", text)):
        if token in STOP_WORDS or token in NEGATIONS:
            continue
        term = stem(token)
        if term not in seen:
            seen.append(term)
    return tuple(seen)


def term_set(text: str) -> FrozenSet[str]:
    return frozenset(key_terms(text))


def is_negated(text: str) -> bool:
    """Содержит ли текст отрицание (no, not, never, without...)."""
    return any(token in NEGATIONS for token in tokenize(text))


def negates(text: str, terms: AbstractSet[str]) -> bool:
    """
    Относится ли отрицание в тексте к фразе с терминами terms.

    Текст режется на клаузы по знакам препинания и союзам (so, but...).
    В клаузе с первым совпавшим термином отрицание засчитывается, если
    стоит не дальше NEGATION_WINDOW слов перед ним ("no card storage")
    или после него сразу за вспомогательным глаголом ("refunds are not
    handled"). "Refunds without a receipt" отрицанием фразы не является.
    """
    lowered = CONTRACTION_RE.sub(" not", IDENTIFIER_RE.sub(" ", text).lower())
    for clause in CLAUSE_RE.split(lowered):
        tokens = WORD_RE.findall(clause)
        hits = [i for i, token in enumerate(tokens) if token not in STOP_WORDS and stem(token) in terms]
        if not hits:
            continue
        first = hits[0]
        if any(token in NEGATIONS for token in tokens[max(0, first - NEGATION_WINDOW):first]):
            return True
        for i in range(first + 1, len(tokens)):
            if tokens[i] in NEGATIONS and (tokens[i] == "cannot" or tokens[i - 1] in AUXILIARIES):
                return True
    return False


def phrase_matches(phrase: str, text: str) -> bool:
    """Все термины фразы встречаются в тексте."""
    terms = term_set(phrase)
    return bool(terms) and terms <= term_set(text)


def coverage(terms: Iterable[str], found: Iterable[str]) -> float:
    """Доля терминов terms, присутствующих в found (0.0 для пустого набора)."""
    wanted = frozenset(terms)
    if not wanted:
        return 0.0
    return len(wanted & frozenset(found)) / len(wanted)
