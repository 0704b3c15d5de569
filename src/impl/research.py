"""
Company research via the Gemini SDK.
Search-grounded structured output: a company profile plus the web sources it was built from.
"""

from typing import Dict, List

from google import genai
from google.genai import types

from common.logging import get_logger
from common.utils import clean_and_parse_json
from config.settings import RESEARCH_MODEL
from schemas.ai_types import CompanyProfile
from services.exceptions import ResearchError

logger = get_logger(__name__)

COMPANY_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "industry": {"type": "STRING"},
        "description": {"type": "STRING"},
        "promoters": {"type": "ARRAY", "items": {"type": "STRING"}},
        "gstNumber": {"type": "STRING"},
        "products": {"type": "ARRAY", "items": {"type": "STRING"}},
        "customers": {"type": "ARRAY", "items": {"type": "STRING"}},
        "marketPosition": {"type": "STRING"},
    },
    "required": [
        "name",
        "industry",
        "description",
        "promoters",
        "gstNumber",
        "products",
        "customers",
    ],
}

RESEARCH_PROMPT = """Perform comprehensive research on the company: "{company}".
Provide details for the following fields:
- Exact Legal Name
- Industry Category
- Detailed Description of Business
- Promoter/Founder/Director Details
- GST Number (if publicly available/registrations)
- Key Products/Services Offered
- Primary Customer Segments (B2B, B2C, target audience)
- Current Market Standing

Be as factual as possible using search results."""


class CompanyResearchProvider:
    """
    Stateless research provider; every call is an independent SDK request.
    """

    def __init__(self, client: genai.Client, model: str = RESEARCH_MODEL):
        """
        Args:
            client (genai.Client): Pre-initialized Google GenAI client instance.
            model (str): Model ID used for research calls.
        """
        self.client = client
        self.model = model

    def config_builder(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            response_schema=COMPANY_RESPONSE_SCHEMA,
        )

    def extract_sources(self, response) -> List[Dict[str, str]]:
        """
        Collect web sources from the response's grounding metadata.

        Returns:
            list[dict]: {"title", "uri"} for every chunk that has both.
        """
        try:
            chunks = response.candidates[0].grounding_metadata.grounding_chunks or []
        except (AttributeError, IndexError, TypeError):
            return []

        sources = []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            uri = getattr(web, "uri", None)
            title = getattr(web, "title", None)
            if uri and title:
                sources.append({"title": title, "uri": uri})
        return sources

    def research_company(self, company_name: str) -> CompanyProfile:
        """
        Research a company on the web and return a structured profile.

        Args:
            company_name (str): Company to research.

        Returns:
            CompanyProfile: Parsed profile with grounding sources.

        Raises:
            ValueError: If the company name is blank.
            ResearchError: If the SDK call fails.
        """
        company_name = (company_name or "").strip()
        if not company_name:
            raise ValueError("Company name is required")

        logger.info("Researching company", extra={"company": company_name, "model": self.model})
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=RESEARCH_PROMPT.format(company=company_name),
                config=self.config_builder(),
            )
        except Exception as e:
            logger.error("Company research failed", extra={"company": company_name, "error": str(e)})
            raise ResearchError("Company research failed", original_error=e)

        payload = clean_and_parse_json(response.text or "{}")
        if not isinstance(payload, dict):
            payload = {}

        sources = self.extract_sources(response)
        logger.debug("Research sources collected", extra={"count": len(sources)})
        return CompanyProfile.from_payload(payload, sources)
