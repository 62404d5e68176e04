"""
Clause Description Generator
Drafts the description of a contract clause with an OpenAI chat model
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from ..config import OPENAI_API_KEY, OPENAI_MODEL

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a legal expert specializing in contract law. "
    "Generate professional, legally sound clause descriptions."
)
EMPTY_COMPLETION_MESSAGE = "Unable to generate description. Please write manually."
UNAVAILABLE_MESSAGE = "AI generation unavailable. Please write the description manually."


def build_clause_prompt(title: str, contract_type: str, project_title: Optional[str]) -> str:
    project_title = project_title or ""
    if contract_type == "client":
        subject, audience = project_title, f"client {project_title.lower()}s"
    else:
        subject, audience = "Employment Contract", "employment contracts"

    return (
        f"Generate a professional legal clause description for a {contract_type} contract.\n\n"
        f'Clause Title: "{title}"\n'
        f"Contract Type: {subject}\n\n"
        "Requirements:\n"
        "- Write in clear, professional legal language\n"
        f"- Make it specific to {audience}\n"
        "- Include relevant terms and conditions\n"
        "- Keep it concise but comprehensive (2-4 sentences)\n"
        "- Focus on protecting both parties\n\n"
        "Generate only the clause description, no additional text:"
    )


class ClauseGenerator:
    """
    Generates clause descriptions for the contract wizard.

    Model failures never reach the caller: the agency gets a short message
    asking them to write the description themselves.
    """

    def __init__(self, client=None, api_key: Optional[str] = OPENAI_API_KEY, model: str = OPENAI_MODEL):
        self._client = client
        self.api_key = api_key
        self.model = model

    @property
    def client(self) -> Optional[AsyncOpenAI]:
        if self._client is None and self.api_key:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def generate(self, title: str, contract_type: str, project_title: Optional[str] = None) -> str:
        client = self.client
        if client is None:
            logger.warning("⚠️ OPENAI_API_KEY not set - clause generation unavailable")
            return UNAVAILABLE_MESSAGE

        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_clause_prompt(title, contract_type, project_title)},
                ],
                max_tokens=200,
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.error(f"❌ Error generating clause description: {e}")
            return UNAVAILABLE_MESSAGE

        content = completion.choices[0].message.content if completion.choices else None
        description = (content or "").strip()
        if not description:
            return EMPTY_COMPLETION_MESSAGE

        logger.info(f"✍️ Generated description for clause '{title}' ({contract_type})")
        return description


clause_generator = ClauseGenerator()
