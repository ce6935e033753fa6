"""
Document loader for objectives, requirements and glossary markdown.

Formats:
- Objectives: "## OBJ-01: Title" headings with "### In scope", "### Out of scope",
  "### Success criteria", "### Assumptions", "### Constraints" bullet lists.
- Requirements: "- BR-01: body" list items or "## BR-01: Title" headings
  followed by body lines. A list item ends at a blank line unless the next
  line is indented under it; a heading entry runs to the next heading or entry.
- Glossary: "- **Term**: definition" items or "| Term | Definition |" table rows,
  either in a separate file or in a "## Glossary" section of any document.

Document-level "## Assumptions" and "## Constraints" sections apply to all
objectives.

Identifier-shaped tokens in text ("Traces to OBJ-1") that use a known prefix
but do not match the configured pattern are recorded as malformed references.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple

from .config import AuditConfig
from .core.exceptions import LoadError, MalformedIdentifier
from .core.models import (
    DocumentKind,
    DocumentSet,
    GlossaryEntry,
    Objective,
    Rejection,
    RejectionKind,
    Requirement,
    SourceLine,
    Statement,
)

logger = logging.getLogger(__name__)

HEADING_RE = re.compile(r"^(?P<level>#{1,6})\s+(?P<title>.+?)\s*#*$")
BULLET_RE = re.compile(r"^(?:[-*+]|\d+[.)])\s+(?P<content>.+)$")
# "BR-01: body", "**BR-01**: body", "BR-01 — body"
ENTRY_RE = re.compile(r"^(?:\*\*|`)?(?P<token>[^\s:*`]+)(?:\*\*|`)?\s*[:–—]\s*(?P<body>.*)$")
# Tokens that look like identifiers: contain a separator or a digit
CANDIDATE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_.][A-Za-z0-9]*)+$|^[A-Za-z]+\d[A-Za-z0-9]*$")
GLOSSARY_ENTRY_RE = re.compile(r"^(?:\*\*)?(?P<term>[^:*|]+?)(?:\*\*)?\s*:\s*(?P<definition>.+)$")
TABLE_ROW_RE = re.compile(r"^\|(?P<cells>.+)\|$")
# Identifier-shaped tokens in prose: "OBJ-1", "(BR-7)"
REFERENCE_CANDIDATE_RE = re.compile(r"\b(?P<prefix>[A-Z]{2,5})-\d+\b")

OBJECTIVE_SECTIONS = ("in_scope", "out_of_scope", "success_criteria", "assumptions", "constraints")
GLOBAL_SECTIONS = ("glossary", "assumptions", "constraints")

SECTION_TITLES = {
    "in_scope": "In scope",
    "out_of_scope": "Out of scope",
    "success_criteria": "Success criteria",
    "assumptions": "Assumptions",
    "constraints": "Constraints",
    "glossary": "Glossary",
}


def section_key(title: str) -> Optional[str]:
    """Нормализовать заголовок подраздела ("Out-of-scope:" -> "out_of_scope")."""
    words = " ".join(re.sub(r"[^a-z]+", " ", title.lower()).split())
    if words.startswith("in scope"):
        return "in_scope"
    if words.startswith("out of scope"):
        return "out_of_scope"
    if words.startswith("success criteri"):
        return "success_criteria"
    if words.startswith("assumption"):
        return "assumptions"
    if words.startswith("constraint"):
        return "constraints"
    if words.startswith("glossary"):
        return "glossary"
    return None


@dataclass
class _ObjectiveDraft:
    identifier: str
    title: str
    source: SourceLine
    statements: Dict[str, List[Statement]] = field(
        default_factory=lambda: {key: [] for key in OBJECTIVE_SECTIONS}
    )

    def build(self) -> Objective:
        return Objective(
            identifier=self.identifier,
            title=self.title,
            source=self.source,
            **{key: tuple(items) for key, items in self.statements.items()},
        )


@dataclass
class _RequirementDraft:
    identifier: str
    parts: List[str]
    lines: List[SourceLine]
    # "## BR-01: Title" entries keep their body across paragraphs
    heading: bool = False


@dataclass
class _Collected:
    """Промежуточное состояние загрузки одного прогона."""

    objectives: List[Objective] = field(default_factory=list)
    requirements: List[_RequirementDraft] = field(default_factory=list)
    glossary: List[GlossaryEntry] = field(default_factory=list)
    assumptions: List[Statement] = field(default_factory=list)
    constraints: List[Statement] = field(default_factory=list)
    lines: List[SourceLine] = field(default_factory=list)
    rejections: List[Rejection] = field(default_factory=list)
    references: List[Tuple[str, SourceLine, Path]] = field(default_factory=list)
    documents: List[str] = field(default_factory=list)


class DocumentLoader:
    """
    Загрузчик входных документов.

    Конфигурация передаётся при создании; загрузчик не хранит состояние
    между вызовами load().
    """

    def __init__(self, config: AuditConfig):
        self.config = config
        self.objective_id_re: Pattern[str] = re.compile(config.objective_id_pattern)
        self.requirement_id_re: Pattern[str] = re.compile(config.requirement_id_pattern)
        self.objective_ref_re: Pattern[str] = re.compile(rf"\b(?:{config.objective_id_pattern})\b")
        self.requirement_ref_re: Pattern[str] = re.compile(rf"\b(?:{config.requirement_id_pattern})\b")

    def load(self) -> DocumentSet:
        """
        Загрузить все настроенные документы.

        Returns:
            DocumentSet с сущностями и строками для evidence

        Raises:
            LoadError: файл отсутствует или не читается
            MalformedIdentifier: битый идентификатор в режиме strict
        """
        collected = _Collected()

        if self.config.objectives_path is not None:
            path = Path(self.config.objectives_path)
            self._parse_objectives(path, self.read(path), collected)

        if self.config.requirements_path is not None:
            path = Path(self.config.requirements_path)
            self._parse_requirements(path, self.read(path), collected)

        if self.config.glossary_path is not None:
            path = Path(self.config.glossary_path)
            self._parse_glossary(path, self.read(path), collected)

        requirements = self._build_requirements(collected)
        self._reject_malformed_references(collected)

        logger.info(
            f"Loaded {len(collected.objectives)} objectives, {len(requirements)} requirements, "
            f"{len(collected.glossary)} glossary entries, {len(collected.rejections)} rejections"
        )

        return DocumentSet(
            objectives=tuple(collected.objectives),
            requirements=requirements,
            glossary=tuple(collected.glossary),
            global_assumptions=tuple(collected.assumptions),
            global_constraints=tuple(collected.constraints),
            lines=tuple(collected.lines),
            rejections=tuple(sorted(collected.rejections, key=lambda r: r.source.sort_key)),
            documents=tuple(collected.documents),
        )

    @staticmethod
    def read(path: Path) -> str:
        """Прочитать документ целиком."""
        if not path.exists():
            raise LoadError(path, "file not found")
        if not path.is_file():
            raise LoadError(path, "not a regular file")
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(path, f"cannot read file: {e}") from e

    # ═══════════════════════════════════════════════════════
    # OBJECTIVES
    # ═══════════════════════════════════════════════════════

    def _parse_objectives(self, path: Path, text: str, collected: _Collected) -> None:
        kind = DocumentKind.OBJECTIVES
        collected.documents.append(path.name)

        current: Optional[_ObjectiveDraft] = None
        subsection: Optional[str] = None
        global_section: Optional[str] = None
        skipping = False
        heading_title = path.name

        def flush():
            nonlocal current
            if current is not None:
                collected.objectives.append(current.build())
            current = None

        for line_no, raw in enumerate(text.splitlines(), 1):
            stripped = raw.strip()
            if not stripped:
                continue

            heading = HEADING_RE.match(stripped)
            if heading:
                level = len(heading.group("level"))
                title = heading.group("title")
                if level <= 2:
                    flush()
                    subsection = None
                    global_section = None
                    skipping = False
                    heading_title = title
                    source = self._source(path, kind, line_no, title, stripped)
                    entry = ENTRY_RE.match(title)
                    if entry and CANDIDATE_RE.match(entry.group("token")):
                        identifier = self._accept(
                            entry.group("token"), self.objective_id_re, source, path, collected
                        )
                        if identifier:
                            source = self._source(path, kind, line_no, identifier, stripped)
                            current = _ObjectiveDraft(identifier, entry.group("body").strip(), source)
                            heading_title = identifier
                        else:
                            skipping = True
                    else:
                        global_section = self._global_section(title)
                    if global_section != "glossary":
                        collected.lines.append(source)
                    continue

                key = section_key(title)
                if current is not None:
                    subsection = key if key in OBJECTIVE_SECTIONS else None
                    global_section = "glossary" if key == "glossary" else None
                elif not skipping:
                    global_section = key if key in GLOBAL_SECTIONS else None
                section = f"{heading_title} / {SECTION_TITLES.get(key, title)}"
                if global_section != "glossary":
                    collected.lines.append(self._source(path, kind, line_no, section, stripped))
                continue

            if global_section == "glossary":
                self._glossary_line(path, kind, line_no, stripped, collected)
                continue

            if current is not None and subsection:
                section = f"{current.identifier} / {SECTION_TITLES[subsection]}"
            elif global_section:
                section = SECTION_TITLES[global_section]
            else:
                section = heading_title
            source = self._source(path, kind, line_no, section, stripped)
            collected.lines.append(source)

            bullet = BULLET_RE.match(stripped)
            if not bullet:
                continue
            statement = self._statement(bullet.group("content"), source, path, collected)
            if current is not None and subsection:
                current.statements[subsection].append(statement)
            elif global_section == "assumptions":
                collected.assumptions.append(statement)
            elif global_section == "constraints":
                collected.constraints.append(statement)

        flush()

    # ═══════════════════════════════════════════════════════
    # REQUIREMENTS
    # ═══════════════════════════════════════════════════════

    def _parse_requirements(self, path: Path, text: str, collected: _Collected) -> None:
        kind = DocumentKind.REQUIREMENTS
        collected.documents.append(path.name)

        current: Optional[_RequirementDraft] = None
        global_section: Optional[str] = None
        heading_title = path.name
        # Blank line seen since the last line of the current requirement
        gap = False

        def flush():
            nonlocal current
            if current is not None:
                collected.requirements.append(current)
            current = None

        for line_no, raw in enumerate(text.splitlines(), 1):
            stripped = raw.strip()
            if not stripped:
                gap = True
                continue

            heading = HEADING_RE.match(stripped)
            if heading:
                flush()
                gap = False
                title = heading.group("title")
                heading_title = title
                global_section = None
                source = self._source(path, kind, line_no, title, stripped)
                if self._is_entry(title):
                    current = self._start_requirement(title, source, path, collected, heading=True)
                    collected.lines.append(current.lines[0] if current else source)
                    continue
                global_section = self._global_section(title)
                if global_section != "glossary":
                    collected.lines.append(source)
                continue

            if global_section == "glossary":
                self._glossary_line(path, kind, line_no, stripped, collected)
                continue

            bullet = BULLET_RE.match(stripped)
            content = bullet.group("content") if bullet else stripped

            if global_section in ("assumptions", "constraints"):
                source = self._source(path, kind, line_no, SECTION_TITLES[global_section], stripped)
                collected.lines.append(source)
                if bullet:
                    target = collected.assumptions if global_section == "assumptions" else collected.constraints
                    target.append(self._statement(content, source, path, collected))
                continue

            if self._is_entry(content):
                flush()
                gap = False
                source = self._source(path, kind, line_no, heading_title, stripped)
                current = self._start_requirement(content, source, path, collected)
                collected.lines.append(current.lines[0] if current else source)
                continue

            # A list entry ends at a blank line unless the next line is indented under it
            if current is not None and not current.heading and gap and not raw[:1].isspace():
                flush()

            if current is not None:
                source = self._source(path, kind, line_no, current.identifier, stripped)
                current.parts.append(content)
                current.lines.append(source)
                self._check_references(content, source, path, collected)
            else:
                source = self._source(path, kind, line_no, heading_title, stripped)
            collected.lines.append(source)
            gap = False

        flush()

    def _is_entry(self, content: str) -> bool:
        entry = ENTRY_RE.match(content)
        if not entry or not CANDIDATE_RE.match(entry.group("token")):
            return False
        # Objective identifiers quoted in the requirements document are not requirements
        return not self.objective_id_re.fullmatch(entry.group("token"))

    def _start_requirement(
        self,
        content: str,
        source: SourceLine,
        path: Path,
        collected: _Collected,
        heading: bool = False,
    ) -> Optional[_RequirementDraft]:
        entry = ENTRY_RE.match(content)
        identifier = self._accept(entry.group("token"), self.requirement_id_re, source, path, collected)
        if not identifier:
            return None
        line = SourceLine(
            document=source.document,
            doc_index=source.doc_index,
            line_no=source.line_no,
            section=identifier,
            text=source.text,
        )
        self._check_references(entry.group("body"), line, path, collected)
        return _RequirementDraft(
            identifier=identifier,
            parts=[entry.group("body").strip()],
            lines=[line],
            heading=heading,
        )

    def _build_requirements(self, collected: _Collected) -> Tuple[Requirement, ...]:
        known_objectives = {o.identifier for o in collected.objectives}
        seen: Dict[str, SourceLine] = {}
        requirements = []

        for draft in collected.requirements:
            if draft.identifier in seen:
                collected.rejections.append(Rejection(
                    kind=RejectionKind.DUPLICATE,
                    token=draft.identifier,
                    reason=f"duplicate identifier (first defined at line {seen[draft.identifier].line_no})",
                    source=draft.lines[0],
                ))
                continue
            seen[draft.identifier] = draft.lines[0]

            body = " ".join(part for part in draft.parts if part)
            refs = tuple(dict.fromkeys(self.objective_ref_re.findall(body)))
            if known_objectives:
                for ref in refs:
                    if ref not in known_objectives:
                        line = next((l for l in draft.lines if ref in l.text), draft.lines[0])
                        collected.rejections.append(Rejection(
                            kind=RejectionKind.DANGLING,
                            token=ref,
                            reason=f"{draft.identifier} references unknown objective {ref}",
                            source=line,
                        ))
            requirements.append(Requirement(
                identifier=draft.identifier,
                body=body,
                lines=tuple(draft.lines),
                objective_refs=refs,
            ))

        return tuple(requirements)

    # ═══════════════════════════════════════════════════════
    # GLOSSARY
    # ═══════════════════════════════════════════════════════

    def _parse_glossary(self, path: Path, text: str, collected: _Collected) -> None:
        kind = DocumentKind.GLOSSARY
        collected.documents.append(path.name)
        for line_no, raw in enumerate(text.splitlines(), 1):
            stripped = raw.strip()
            if stripped and not HEADING_RE.match(stripped):
                self._glossary_line(path, kind, line_no, stripped, collected)

    def _glossary_line(
        self,
        path: Path,
        kind: DocumentKind,
        line_no: int,
        stripped: str,
        collected: _Collected,
    ) -> None:
        source = self._source(path, kind, line_no, SECTION_TITLES["glossary"], stripped)

        row = TABLE_ROW_RE.match(stripped)
        if row:
            cells = [c.strip().strip("*").strip() for c in row.group("cells").split("|")]
            if len(cells) < 2 or not cells[0] or set(cells[0]) <= set("-: "):
                return
            if cells[0].lower() == "term":
                return
            collected.glossary.append(GlossaryEntry(term=cells[0], definition=cells[1], source=source))
            return

        bullet = BULLET_RE.match(stripped)
        content = bullet.group("content") if bullet else stripped
        entry = GLOSSARY_ENTRY_RE.match(content)
        if entry:
            collected.glossary.append(GlossaryEntry(
                term=entry.group("term").strip(),
                definition=entry.group("definition").strip(),
                source=source,
            ))

    # ═══════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════

    def _accept(
        self,
        token: str,
        pattern: Pattern[str],
        source: SourceLine,
        path: Path,
        collected: _Collected,
    ) -> Optional[str]:
        """Вернуть идентификатор или записать Rejection (в strict режиме - исключение)."""
        if pattern.fullmatch(token):
            return token
        self._reject(token, pattern.pattern, "malformed identifier", source, path, collected)
        return None

    def _reject(
        self,
        token: str,
        pattern: str,
        what: str,
        source: SourceLine,
        path: Path,
        collected: _Collected,
    ) -> None:
        error = MalformedIdentifier(path, token, source.line_no, pattern)
        if self.config.strict:
            raise error
        logger.warning(f"Skipping entity: {error}")
        collected.rejections.append(Rejection(
            kind=RejectionKind.MALFORMED,
            token=token,
            reason=f"{what} (expected pattern {pattern})",
            source=source,
        ))

    def _check_references(self, text: str, source: SourceLine, path: Path, collected: _Collected) -> None:
        """Запомнить похожие на идентификаторы токены для проверки после разбора."""
        for token in dict.fromkeys(m.group(0) for m in REFERENCE_CANDIDATE_RE.finditer(text)):
            if self.objective_id_re.fullmatch(token) or self.requirement_id_re.fullmatch(token):
                continue
            collected.references.append((token, source, path))

    def _reject_malformed_references(self, collected: _Collected) -> None:
        """
        Битые ссылки в тексте ("Traces to OBJ-1", "(BR-7)").

        Учитываются только токены с префиксом определённой цели или
        требования; "UTF-8" при требованиях BR-NN ссылкой не является.
        """
        objective_prefixes = {o.identifier.split("-", 1)[0] for o in collected.objectives}
        requirement_prefixes = {d.identifier.split("-", 1)[0] for d in collected.requirements}
        for token, source, path in collected.references:
            prefix = REFERENCE_CANDIDATE_RE.match(token).group("prefix")
            if prefix in objective_prefixes:
                pattern = self.config.objective_id_pattern
            elif prefix in requirement_prefixes:
                pattern = self.config.requirement_id_pattern
            else:
                continue
            self._reject(token, pattern, "malformed reference", source, path, collected)

    def _statement(self, content: str, source: SourceLine, path: Path, collected: _Collected) -> Statement:
        self._check_references(content, source, path, collected)
        cited = tuple(
            dict.fromkeys(
                ref for ref in self.requirement_ref_re.findall(content)
                if not self.objective_id_re.fullmatch(ref)
            )
        )
        return Statement(text=content.strip(), source=source, cited_ids=cited)

    @staticmethod
    def _global_section(title: str) -> Optional[str]:
        key = section_key(title)
        return key if key in GLOBAL_SECTIONS else None

    @staticmethod
    def _source(path: Path, kind: DocumentKind, line_no: int, section: str, text: str) -> SourceLine:
        return SourceLine(
            document=path.name,
            doc_index=kind.value,
            line_no=line_no,
            section=section,
            text=text,
        )
