"""Question catalog and domain specialist directory.

Static reference data for the diagnostic questionnaire: 120 questions across
12 operational domains, plus the specialist persona that briefs the inference
service for each domain. Both are immutable and injected into services so
tests can substitute smaller catalogs.

Domains (declaration order is the triage tie-break order):
    Strategic Alignment, Financial Management, Revenue Engine,
    Operations Excellence, People & Organization, Technology & Data,
    Customer Success, Product Strategy, Market Position, Risk Management,
    Innovation Pipeline, Governance & Compliance

Question identifiers follow ``"<domain index>.<question index>"`` (e.g. "1.1").
Full question wording and answer options are maintained outside this service;
each catalog entry carries only a short topic label.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class CatalogQuestion:
    """A single question in the diagnostic catalog.

    Attributes:
        question_id: Unique identifier (e.g. '4.7').
        domain_name: Operational domain the question belongs to.
        topic: Short label describing what the question probes.
        order_index: 1-based position within its domain.
    """

    question_id: str
    domain_name: str
    topic: str
    order_index: int


class QuestionCatalog:
    """Immutable lookup over a set of catalog questions.

    Domain order is the order in which each domain's first question appears.

    Args:
        questions: Catalog entries. Question ids must be unique.

    Raises:
        ValueError: If the catalog is empty or contains duplicate ids.
    """

    def __init__(self, questions: list[CatalogQuestion]) -> None:
        if not questions:
            raise ValueError("A question catalog needs at least one question.")

        by_id: dict[str, CatalogQuestion] = {}
        by_domain: dict[str, list[CatalogQuestion]] = {}
        for question in questions:
            if question.question_id in by_id:
                raise ValueError(f"Duplicate question id {question.question_id!r} in catalog.")
            by_id[question.question_id] = question
            by_domain.setdefault(question.domain_name, []).append(question)

        self._questions: tuple[CatalogQuestion, ...] = tuple(questions)
        self._by_id: Mapping[str, CatalogQuestion] = MappingProxyType(by_id)
        self._by_domain: Mapping[str, tuple[CatalogQuestion, ...]] = MappingProxyType(
            {domain: tuple(items) for domain, items in by_domain.items()}
        )
        self._domains: tuple[str, ...] = tuple(by_domain)

    @property
    def questions(self) -> tuple[CatalogQuestion, ...]:
        return self._questions

    @property
    def domains(self) -> tuple[str, ...]:
        """Domain names in declaration order."""
        return self._domains

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    def contains(self, question_id: str) -> bool:
        return question_id in self._by_id

    def get(self, question_id: str) -> CatalogQuestion | None:
        return self._by_id.get(question_id)

    def domain_of(self, question_id: str) -> str | None:
        """Return the domain a question belongs to, or None if unknown."""
        question = self._by_id.get(question_id)
        return question.domain_name if question else None

    def questions_for(self, domain_name: str) -> tuple[CatalogQuestion, ...]:
        return self._by_domain.get(domain_name, ())

    def domain_question_counts(self) -> dict[str, int]:
        """Number of catalog questions per domain, in declaration order."""
        return {domain: len(self._by_domain[domain]) for domain in self._domains}

    def domain_rank(self, domain_name: str) -> int:
        """Declaration position of a domain; unknown domains sort last."""
        try:
            return self._domains.index(domain_name)
        except ValueError:
            return len(self._domains)


# ---------------------------------------------------------------------------
# Default catalog: 12 domains x 10 questions
# ---------------------------------------------------------------------------

_DOMAIN_TOPICS: dict[str, tuple[str, ...]] = {
    "Strategic Alignment": (
        "Clarity of the three-year vision",
        "Strategy in resource allocation",
        "Team goals traced to company objectives",
        "Accuracy of competitive self-assessment",
        "Cadence of strategy reviews",
        "Communication of strategic priorities",
        "Saying no to off-strategy opportunities",
        "Leadership alignment on priorities",
        "Strategic KPIs and tracking",
        "Translating strategy into quarterly plans",
    ),
    "Financial Management": (
        "Cash runway visibility",
        "Budgeting and forecasting accuracy",
        "Unit economics understanding",
        "Month-end close speed",
        "Working capital management",
        "Pricing and margin discipline",
        "Financial reporting to leadership",
        "Cost control processes",
        "Capital planning and fundraising readiness",
        "Financial systems and tooling",
    ),
    "Revenue Engine": (
        "Pipeline predictability",
        "Sales process definition",
        "Lead qualification criteria",
        "Win rate tracking",
        "Sales cycle length",
        "Revenue forecasting accuracy",
        "Sales and marketing alignment",
        "Customer acquisition cost awareness",
        "Sales enablement and onboarding",
        "Expansion and upsell motion",
    ),
    "Operations Excellence": (
        "Process documentation",
        "Bottleneck identification",
        "Automation of repetitive work",
        "Operational KPIs",
        "Cross-team handoffs",
        "Quality control",
        "Capacity planning",
        "Vendor and supplier management",
        "Continuous improvement practice",
        "Scalability of core processes",
    ),
    "People & Organization": (
        "Organisational structure clarity",
        "Hiring speed and quality",
        "Onboarding effectiveness",
        "Performance management",
        "Leadership bench strength",
        "Employee retention",
        "Culture and values in practice",
        "Decision rights and accountability",
        "Learning and development",
        "Compensation competitiveness",
    ),
    "Technology & Data": (
        "Systems integration",
        "Data quality and accessibility",
        "Reporting and analytics",
        "Technical debt",
        "Infrastructure scalability",
        "Security practices",
        "Tool sprawl",
        "Engineering delivery cadence",
        "Data-driven decision making",
        "Technology roadmap ownership",
    ),
    "Customer Success": (
        "Customer onboarding",
        "Churn visibility",
        "Customer health scoring",
        "Support responsiveness",
        "Customer feedback loops",
        "Net revenue retention",
        "Account management coverage",
        "Customer segmentation",
        "Renewal process",
        "Customer advocacy",
    ),
    "Product Strategy": (
        "Product roadmap clarity",
        "Market validation before build",
        "Feature prioritisation",
        "Product metrics",
        "User research practice",
        "Release cadence",
        "Product-market fit signals",
        "Pricing and packaging",
        "Competitive differentiation",
        "Product and engineering alignment",
    ),
    "Market Position": (
        "Ideal customer profile definition",
        "Brand awareness",
        "Positioning clarity",
        "Competitive intelligence",
        "Go-to-market channels",
        "Market share trajectory",
        "Messaging consistency",
        "Analyst and partner relationships",
        "Thought leadership",
        "New market entry readiness",
    ),
    "Risk Management": (
        "Risk register and ownership",
        "Business continuity planning",
        "Key-person dependency",
        "Customer concentration",
        "Regulatory exposure",
        "Cyber risk management",
        "Contractual risk review",
        "Insurance coverage",
        "Crisis response readiness",
        "Financial risk controls",
    ),
    "Innovation Pipeline": (
        "Idea capture process",
        "Experimentation practice",
        "Innovation budget",
        "Time allocated to innovation",
        "Stage-gate decisions",
        "Learning from failed experiments",
        "Customer co-creation",
        "Emerging technology scanning",
        "Intellectual property management",
        "Commercialising new offerings",
    ),
    "Governance & Compliance": (
        "Board effectiveness",
        "Policy documentation",
        "Compliance monitoring",
        "Audit readiness",
        "Delegation of authority",
        "Conflict of interest handling",
        "Stakeholder reporting",
        "Data protection compliance",
        "Internal controls",
        "Governance review cadence",
    ),
}


def build_default_catalog() -> QuestionCatalog:
    """Build the standard 120-question catalog (12 domains x 10 questions)."""
    questions = [
        CatalogQuestion(
            question_id=f"{domain_index}.{question_index}",
            domain_name=domain_name,
            topic=topic,
            order_index=question_index,
        )
        for domain_index, (domain_name, topics) in enumerate(_DOMAIN_TOPICS.items(), start=1)
        for question_index, topic in enumerate(topics, start=1)
    ]
    return QuestionCatalog(questions)


# ---------------------------------------------------------------------------
# Domain specialists
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainSpecialist:
    """Persona used to brief the inference service for one domain.

    Attributes:
        name: Display name of the specialist.
        specialty: Area of specialism, matched against domain names.
        background: Professional background summary.
        expertise: Comma-separated focus areas.
    """

    name: str
    specialty: str
    background: str
    expertise: str


class SpecialistDirectory:
    """Immutable domain-to-specialist mapping.

    A domain is matched to the specialist whose specialty equals the domain
    name, otherwise to the first specialist whose specialty contains the first
    word of the domain name (case-insensitive). Unmatched domains fall back to
    the first specialist.

    Args:
        specialists: Non-empty list of specialists.
    """

    def __init__(self, specialists: list[DomainSpecialist]) -> None:
        if not specialists:
            raise ValueError("A specialist directory needs at least one specialist.")
        self._specialists: tuple[DomainSpecialist, ...] = tuple(specialists)

    @property
    def specialists(self) -> tuple[DomainSpecialist, ...]:
        return self._specialists

    def for_domain(self, domain_name: str) -> DomainSpecialist:
        for specialist in self._specialists:
            if specialist.specialty.lower() == domain_name.lower():
                return specialist

        keyword = domain_name.split(" ")[0].lower()
        for specialist in self._specialists:
            if keyword and keyword in specialist.specialty.lower():
                return specialist
        return self._specialists[0]


DEFAULT_SPECIALISTS: tuple[DomainSpecialist, ...] = (
    DomainSpecialist(
        name="Dr. Alexandra Chen",
        specialty="Strategic Transformation",
        background="Former strategy consulting principal focused on organisational transformation",
        expertise="Vision clarity, strategic coherence, resource allocation",
    ),
    DomainSpecialist(
        name="Marcus Rodriguez",
        specialty="Financial Operations",
        background="Scale-up CFO specialised in high-growth financial modelling",
        expertise="Cash flow, capital efficiency, planning and analysis",
    ),
    DomainSpecialist(
        name="Sarah Mitchell",
        specialty="Revenue Operations",
        background="Sales executive with repeated experience scaling revenue teams",
        expertise="Sales process, pipeline management, revenue predictability",
    ),
    DomainSpecialist(
        name="David Park",
        specialty="Operations Excellence",
        background="Operations director and Six Sigma practitioner",
        expertise="Workflow optimisation, process automation, operational efficiency",
    ),
    DomainSpecialist(
        name="Dr. Rachel Thompson",
        specialty="People & Organization",
        background="People operations leader with an organisational psychology doctorate",
        expertise="Team structures, leadership development, culture",
    ),
    DomainSpecialist(
        name="Kevin Wu",
        specialty="Technology & Data",
        background="Former scale-up CTO and data architecture specialist",
        expertise="Technology scaling, data infrastructure, systems integration",
    ),
    DomainSpecialist(
        name="Maria Santos",
        specialty="Customer Success",
        background="Chief customer officer across several SaaS companies",
        expertise="Retention, success metrics, lifecycle management, churn reduction",
    ),
    DomainSpecialist(
        name="James Anderson",
        specialty="Product Strategy",
        background="Product executive with a record of shipping platform products",
        expertise="Roadmapping, market validation, prioritisation, user research",
    ),
    DomainSpecialist(
        name="Lisa Chen",
        specialty="Market Position",
        background="Strategy partner specialised in competitive positioning",
        expertise="Competitive analysis, positioning, brand, go-to-market",
    ),
    DomainSpecialist(
        name="Dr. Robert Kim",
        specialty="Risk Management",
        background="Former chief risk officer with a risk analytics doctorate",
        expertise="Enterprise risk, crisis management, business continuity",
    ),
    DomainSpecialist(
        name="Elena Petrov",
        specialty="Innovation Pipeline",
        background="Innovation director who launched multiple new product lines",
        expertise="Innovation frameworks, R&D optimisation, intellectual property",
    ),
    DomainSpecialist(
        name="Michael Taylor",
        specialty="Governance & Compliance",
        background="Risk advisory partner with corporate governance background",
        expertise="Board governance, regulatory compliance, audit frameworks",
    ),
)


def build_default_specialists() -> SpecialistDirectory:
    return SpecialistDirectory(list(DEFAULT_SPECIALISTS))
