"""
Unit tests for DocumentLoader.
"""

import pytest

from so_audit.core.exceptions import LoadError, MalformedIdentifier
from so_audit.core.models import RejectionKind
from so_audit.loader import DocumentLoader, section_key

from samples import SCENARIO_A_OBJECTIVES, SCENARIO_A_REQUIREMENTS


def load(config):
    return DocumentLoader(config).load()


class TestObjectives:

    def test_sections(self, make_config):
        documents = load(make_config(objectives=SCENARIO_A_OBJECTIVES))

        assert documents.objective_ids() == ("OBJ-01",)
        objective = documents.objectives[0]
        assert objective.title == "Online booking"
        assert [s.text for s in objective.in_scope] == ["Online booking"]
        assert [s.text for s in objective.out_of_scope] == ["Refunds"]
        assert [s.text for s in objective.success_criteria] == ["Customers can book online"]

    def test_statement_source_is_verbatim_line(self, make_config):
        documents = load(make_config(objectives=SCENARIO_A_OBJECTIVES))

        refunds = documents.objectives[0].out_of_scope[0]
        assert refunds.source.text == "- Refunds"
        assert refunds.source.line_no == 7
        assert refunds.source.location == "objectives.md § OBJ-01 / Out of scope (line 7)"

    def test_global_assumptions_and_constraints(self, make_config):
        documents = load(make_config(objectives="""\
            ## OBJ-01: Payments
            ### In scope
            - Card payments

            ## Assumptions
            - Customers already have an account

            ## Constraints
            - No storage of card numbers
            """))

        assert [s.text for s in documents.global_assumptions] == ["Customers already have an account"]
        assert [s.text for s in documents.constraints] == ["No storage of card numbers"]
        assert documents.constraints[0].source.section == "Constraints"

    def test_cited_requirement_ids(self, make_config):
        documents = load(make_config(objectives="""\
            ## OBJ-01: Payments
            ### Success criteria
            - 95% of payments succeed first time (see PAY-07, OBJ-02)
            """))

        assert documents.objectives[0].success_criteria[0].cited_ids == ("PAY-07",)

    def test_glossary_section_is_not_evidence(self, make_config):
        documents = load(make_config(objectives="""\
            ## OBJ-01: Payments
            - Card payments

            ## Glossary
            - **Customer**: a person who pays; also called client
            """))

        assert [e.term for e in documents.glossary] == ["Customer"]
        assert all("also called client" not in line.text for line in documents.lines)


class TestRequirements:

    def test_list_entries_and_objective_refs(self, make_config):
        documents = load(make_config(
            objectives=SCENARIO_A_OBJECTIVES,
            requirements=SCENARIO_A_REQUIREMENTS,
        ))

        assert documents.requirement_ids() == ("BR-01", "BR-03")
        br01 = documents.requirements[0]
        assert br01.objective_refs == ("OBJ-01",)
        assert br01.source.location == "requirements.md § BR-01 (line 3)"
        assert documents.documents == ("objectives.md", "requirements.md")
        assert documents.rejections == ()

    def test_heading_entries_with_continuation_lines(self, make_config):
        documents = load(make_config(requirements="""\
            ## NFR-01: Availability
            The booking service is available 99.9% of the time.
            Measured monthly.

            ## NFR-02 — Latency
            Search answers within 2 seconds.
            """))

        assert documents.requirement_ids() == ("NFR-01", "NFR-02")
        nfr01 = documents.requirements[0]
        assert nfr01.body == "Availability The booking service is available 99.9% of the time. Measured monthly."
        assert [line.line_no for line in nfr01.lines] == [1, 2, 3]

    def test_list_entry_ends_at_blank_line(self, make_config):
        documents = load(make_config(requirements="""\
            - BR-01: Customers can create an online booking.

            Refunds are handled by the call centre.
            """))

        br01 = documents.requirements[0]
        assert br01.body == "Customers can create an online booking."
        assert [line.line_no for line in br01.lines] == [1]
        assert "Refunds are handled by the call centre." in [line.text for line in documents.lines]

    def test_indented_paragraph_continues_list_entry(self, make_config):
        documents = load(make_config(requirements="""\
            - BR-01: Customers can create an online booking.

              Bookings are confirmed by email.
            - BR-02: Customers can cancel a booking.
            """))

        assert documents.requirement_ids() == ("BR-01", "BR-02")
        assert documents.requirements[0].body == (
            "Customers can create an online booking. Bookings are confirmed by email."
        )

    def test_heading_entry_keeps_later_paragraphs(self, make_config):
        documents = load(make_config(requirements="""\
            ## NFR-01: Availability
            The booking service is available 99.9% of the time.

            Planned maintenance is excluded.
            """))

        assert documents.requirements[0].body == (
            "Availability The booking service is available 99.9% of the time. "
            "Planned maintenance is excluded."
        )

    def test_malformed_identifier_is_rejected(self, make_config):
        documents = load(make_config(requirements="""\
            - BR-01: Customers can book online.
            - BR-2: Customers can cancel a booking.
            """))

        assert documents.requirement_ids() == ("BR-01",)
        assert len(documents.rejections) == 1
        rejection = documents.rejections[0]
        assert rejection.kind == RejectionKind.MALFORMED
        assert rejection.token == "BR-2"
        assert rejection.source.text == "- BR-2: Customers can cancel a booking."

    def test_strict_mode_raises(self, make_config):
        config = make_config(requirements="- BR-2: Customers can cancel a booking.\n", strict=True)

        with pytest.raises(MalformedIdentifier) as exc_info:
            load(config)

        assert exc_info.value.token == "BR-2"
        assert exc_info.value.line_no == 1
        assert isinstance(exc_info.value, LoadError)

    def test_duplicate_identifier(self, make_config):
        documents = load(make_config(requirements="""\
            - BR-01: Customers can book online.
            - BR-01: Customers can cancel a booking.
            """))

        assert documents.requirement_ids() == ("BR-01",)
        assert [r.kind for r in documents.rejections] == [RejectionKind.DUPLICATE]
        assert documents.rejections[0].source.line_no == 2

    def test_dangling_objective_reference(self, make_config):
        documents = load(make_config(
            objectives=SCENARIO_A_OBJECTIVES,
            requirements="- BR-01: Customers can book online. Traces to OBJ-09.\n",
        ))

        assert [r.kind for r in documents.rejections] == [RejectionKind.DANGLING]
        assert documents.rejections[0].token == "OBJ-09"

    def test_objective_refs_not_checked_without_objectives(self, make_config):
        documents = load(make_config(requirements="- BR-01: Customers can book online. Traces to OBJ-09.\n"))

        assert documents.rejections == ()


class TestReferences:

    def test_malformed_objective_reference(self, make_config):
        documents = load(make_config(
            objectives=SCENARIO_A_OBJECTIVES,
            requirements="- BR-01: Customers can create an online booking. Traces to OBJ-1.\n",
        ))

        assert documents.requirements[0].objective_refs == ()
        assert len(documents.rejections) == 1
        rejection = documents.rejections[0]
        assert rejection.kind == RejectionKind.MALFORMED
        assert rejection.token == "OBJ-1"
        assert rejection.reason.startswith("malformed reference")
        assert rejection.source.text == "- BR-01: Customers can create an online booking. Traces to OBJ-1."

    def test_malformed_citation_in_capability(self, make_config):
        documents = load(make_config(
            objectives="""\
                ## OBJ-01: Self-service bookings
                ### In scope
                - Booking cancellation (BR-7)
                """,
            requirements="- BR-01: Customers can create an online booking.\n",
        ))

        assert [(r.kind, r.token) for r in documents.rejections] == [(RejectionKind.MALFORMED, "BR-7")]
        assert documents.rejections[0].source.text == "- Booking cancellation (BR-7)"
        assert documents.objectives[0].in_scope[0].cited_ids == ()

    def test_malformed_reference_in_continuation_line(self, make_config):
        documents = load(make_config(
            objectives=SCENARIO_A_OBJECTIVES,
            requirements="""\
                ## BR-01: Online booking
                Customers can create an online booking (see OBJ-1).
                """,
        ))

        assert [r.token for r in documents.rejections] == ["OBJ-1"]
        assert documents.rejections[0].source.line_no == 2

    def test_unrelated_prefixes_are_ignored(self, make_config):
        documents = load(make_config(
            objectives=SCENARIO_A_OBJECTIVES,
            requirements="- BR-01: Booking exports use UTF-8 and follow ISO-8601 dates. Traces to OBJ-01.\n",
        ))

        assert documents.rejections == ()

    def test_strict_mode_raises(self, make_config):
        config = make_config(
            objectives=SCENARIO_A_OBJECTIVES,
            requirements="- BR-01: Customers can create an online booking. Traces to OBJ-1.\n",
            strict=True,
        )

        with pytest.raises(MalformedIdentifier) as exc_info:
            load(config)

        assert exc_info.value.token == "OBJ-1"
        assert exc_info.value.line_no == 1


class TestGlossary:

    def test_bullets_and_table_rows(self, make_config):
        documents = load(make_config(glossary="""\
            # Glossary

            - **Booking**: a confirmed reservation of a slot

            | Term | Definition |
            |------|------------|
            | Customer | a person who books; also called client |
            """))

        assert [(e.term, e.definition) for e in documents.glossary] == [
            ("Booking", "a confirmed reservation of a slot"),
            ("Customer", "a person who books; also called client"),
        ]
        assert documents.documents == ("glossary.md",)


class TestInputs:

    def test_missing_file(self, tmp_path):
        from so_audit.config import load_config

        config = load_config(objectives_path=tmp_path / "nope.md")

        with pytest.raises(LoadError) as exc_info:
            load(config)

        assert exc_info.value.reason == "file not found"
        assert exc_info.value.path == tmp_path / "nope.md"

    def test_directory_is_not_a_document(self, tmp_path):
        from so_audit.config import load_config

        with pytest.raises(LoadError, match="not a regular file"):
            load(load_config(requirements_path=tmp_path))

    def test_nothing_configured(self, make_config):
        documents = load(make_config())

        assert documents.is_empty
        assert documents.documents == ()


@pytest.mark.parametrize("title,expected", [
    ("In scope", "in_scope"),
    ("In-Scope:", "in_scope"),
    ("Out of scope", "out_of_scope"),
    ("Out-of-scope items", "out_of_scope"),
    ("Success criteria", "success_criteria"),
    ("Assumptions", "assumptions"),
    ("Constraints", "constraints"),
    ("Glossary", "glossary"),
    ("Background", None),
])
def test_section_key(title, expected):
    assert section_key(title) == expected
