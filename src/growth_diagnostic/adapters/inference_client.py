"""OpenAI-backed implementation of the inference client.

Triage and domain analysis request a JSON object response; the executive
summary is plain text. Transport and parse errors are raised as
InferenceError. Fallback policy and per-call timeouts belong to the pipeline
stages, not to this adapter.
"""

import json
from typing import Any

import openai
from openai import AsyncOpenAI

from growth_diagnostic.core.catalog import DomainSpecialist
from growth_diagnostic.core.results import CompanyContext
from growth_diagnostic.errors import InferenceError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

_TRIAGE_SYSTEM_PROMPT = (
    "You are an expert business analyst performing operational triage. "
    "Identify the most critical bottlenecks limiting growth."
)
_DOMAIN_SYSTEM_PROMPT = (
    "You are an expert business consultant specializing in growth bottleneck "
    "analysis. Provide detailed, actionable insights in JSON format."
)
_SUMMARY_SYSTEM_PROMPT = (
    "You are a senior strategy consultant creating an executive summary for a "
    "growth bottleneck analysis. Write in a professional, actionable tone."
)


def _company_line(context: CompanyContext) -> str:
    return (
        f"{context.company_name}, a {context.industry} company with "
        f"{context.revenue_band} revenue and {context.team_size} employees"
    )


class OpenAIInferenceClient:
    """Inference client over the OpenAI chat completions API."""

    def __init__(self, api_key: str, model: str = "gpt-4o", client: AsyncOpenAI | None = None) -> None:
        """Initialise the client.

        Args:
            api_key: OpenAI API key.
            model: Chat model name.
            client: Pre-built AsyncOpenAI client, mainly for tests.
        """
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model

    async def _complete(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = await self._client.chat.completions.create(**kwargs)
        except openai.OpenAIError as exc:
            raise InferenceError(f"Inference request failed: {exc}") from exc

        if not completion.choices:
            raise InferenceError("Inference response contained no choices.")
        content = completion.choices[0].message.content
        if not content:
            raise InferenceError("Inference response was empty.")
        return content

    async def _complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        content = await self._complete(system_prompt, user_prompt, json_mode=True)
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise InferenceError(f"Inference response was not valid JSON: {exc}") from exc

    async def triage(
        self,
        responses: list[dict[str, Any]],
        context: CompanyContext,
        domains: list[str],
    ) -> Any:
        prompt = (
            f"Perform triage analysis for {_company_line(context)}.\n\n"
            f"Assessment responses:\n{json.dumps(responses, indent=2)}\n\n"
            f"Domains, lowest average score first: {', '.join(domains)}\n\n"
            "Respond with a JSON object:\n"
            '{"priorityDomains": ["<3-5 domains needing urgent attention>"], '
            '"criticalIssues": ["<key issues identified>"]}\n'
            "Use domain names exactly as listed."
        )
        logger.debug("Requesting triage", response_count=len(responses))
        return await self._complete_json(_TRIAGE_SYSTEM_PROMPT, prompt)

    async def analyze_domain(
        self,
        domain_name: str,
        specialist: DomainSpecialist,
        responses: list[dict[str, Any]],
        documents: list[dict[str, Any]],
        context: CompanyContext,
    ) -> Any:
        document_lines = "\n".join(
            f"- {d['file_name']} ({d['file_type']})" for d in documents
        ) or "- none"
        prompt = (
            f"You are {specialist.name}, {specialist.background}. "
            f"Your expertise: {specialist.expertise}.\n\n"
            f"Analyze the {domain_name} domain for {_company_line(context)}.\n\n"
            f"Assessment responses:\n{json.dumps(responses, indent=2)}\n\n"
            f"Uploaded documents:\n{document_lines}\n\n"
            "Respond with a JSON object:\n"
            '{"score": <number 1-10>, "summary": "<200-word summary>", '
            '"recommendations": ["..."], "keyInsights": ["..."], '
            '"quickWins": ["..."], "riskFactors": ["..."]}\n'
            f"Focus on actionable insights based on your expertise in {specialist.specialty}."
        )
        logger.debug("Requesting domain analysis", domain_name=domain_name)
        return await self._complete_json(_DOMAIN_SYSTEM_PROMPT, prompt)

    async def summarize(
        self,
        analyses: list[dict[str, Any]],
        context: CompanyContext,
    ) -> str:
        results = "\n".join(
            f"{a['domain_name']}: Score {a['score']}/10 ({a['health']}) - {a['summary']}"
            for a in analyses
        )
        prompt = (
            f"Generate an executive summary of the operational assessment of "
            f"{_company_line(context)}.\n\n"
            f"Domain analysis results:\n{results}\n\n"
            "Cover the overall operational health, the top three bottlenecks "
            "limiting growth, the top three strategic opportunities, and a "
            "recommended prioritisation. Audience: C-level executives, 500-800 words."
        )
        logger.debug("Requesting executive summary", domain_count=len(analyses))
        return await self._complete(_SUMMARY_SYSTEM_PROMPT, prompt, json_mode=False)
