"""Unit tests for the question catalog and specialist directory."""

import pytest

from growth_diagnostic.core.catalog import (
    CatalogQuestion,
    DomainSpecialist,
    QuestionCatalog,
    SpecialistDirectory,
    build_default_catalog,
    build_default_specialists,
)


class TestDefaultCatalog:
    def test_has_120_questions_across_12_domains(self) -> None:
        catalog = build_default_catalog()

        assert catalog.total_questions == 120
        assert len(catalog.domains) == 12
        assert set(catalog.domain_question_counts().values()) == {10}

    def test_question_ids_are_domain_dot_index(self) -> None:
        catalog = build_default_catalog()

        assert catalog.domains[0] == "Strategic Alignment"
        assert catalog.domain_of("1.1") == "Strategic Alignment"
        assert catalog.domain_of("4.7") == "Operations Excellence"
        assert catalog.domain_of("12.10") == "Governance & Compliance"

    def test_unknown_question(self) -> None:
        catalog = build_default_catalog()

        assert not catalog.contains("13.1")
        assert catalog.get("13.1") is None
        assert catalog.domain_of("13.1") is None

    def test_questions_for_unknown_domain_is_empty(self) -> None:
        assert build_default_catalog().questions_for("Astrology") == ()

    def test_domain_rank_follows_declaration_order(self) -> None:
        catalog = build_default_catalog()

        assert catalog.domain_rank("Strategic Alignment") == 0
        assert catalog.domain_rank("Financial Management") == 1
        assert catalog.domain_rank("Astrology") == len(catalog.domains)


class TestCatalogValidation:
    def test_empty_catalog_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one question"):
            QuestionCatalog([])

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate question id"):
            QuestionCatalog(
                [
                    CatalogQuestion("1.1", "Alpha", "a", 1),
                    CatalogQuestion("1.1", "Beta", "b", 1),
                ]
            )


class TestSpecialistDirectory:
    def test_every_default_domain_has_a_distinct_specialist(self) -> None:
        catalog = build_default_catalog()
        directory = build_default_specialists()

        names = {directory.for_domain(domain).name for domain in catalog.domains}

        assert len(names) == len(catalog.domains)

    def test_exact_specialty_match_preferred(self) -> None:
        directory = build_default_specialists()

        assert directory.for_domain("Operations Excellence").name == "David Park"

    def test_first_word_match(self) -> None:
        directory = build_default_specialists()

        assert directory.for_domain("Strategic Alignment").name == "Dr. Alexandra Chen"
        assert directory.for_domain("Financial Management").name == "Marcus Rodriguez"

    def test_unmatched_domain_falls_back_to_first(self) -> None:
        first = DomainSpecialist("Ada", "Generalist", "Consultant", "Everything")
        directory = SpecialistDirectory(
            [first, DomainSpecialist("Bo", "Finance", "CFO", "Cash")]
        )

        assert directory.for_domain("Astrology") is first

    def test_empty_directory_rejected(self) -> None:
        with pytest.raises(ValueError):
            SpecialistDirectory([])
