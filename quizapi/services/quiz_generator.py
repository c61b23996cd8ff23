"""LLM-backed quiz generator."""
import logging
from typing import List, Optional

from openai import OpenAI, OpenAIError

from quizapi.core.config import settings
from quizapi.core.exceptions import DependencyError

logger = logging.getLogger(__name__)


class QuizGenerator:
    """Sends quiz prompts to an OpenAI-compatible chat completions endpoint.

    The SDK's automatic retries are disabled; a failed call surfaces as a
    :class:`DependencyError` on the first attempt.
    """
    
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client from explicit arguments or settings."""
        self.client = OpenAI(
            api_key=api_key or settings.OPENAI_API_KEY,
            base_url=base_url or settings.OPENAI_BASE_URL,
            timeout=timeout or settings.GENERATION_TIMEOUT_SECONDS,
            max_retries=0,
        )
        self.model = model or settings.OPENAI_MODEL
    
    def build_prompt(self, links: List[str]) -> str:
        """Build the generation prompt for a list of article links."""
        articles = "".join(f"\nArticle {i}: {link}" for i, link in enumerate(links, 1))
        return f"""Please read these articles one by one and generate real exam level MCQ questions with answers in the Indian competitive exam context.

REQUIREMENTS:
- Generate 2 to 3 questions for each article
- Each question must have exactly 4 options labeled A, B, C and D
- Exactly one option is correct
- Include a short explanation of the correct answer

Return ONLY a JSON array in this format:
[
  {{
    "question": "The question text",
    "options": {{"A": "Option A text", "B": "Option B text", "C": "Option C text", "D": "Option D text"}},
    "answer": "A",
    "explanation": "Why A is correct"
  }}
]
{articles}"""
    
    def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the raw text of the first completion.
        
        Raises:
            DependencyError: the request failed or timed out
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are an expert exam question setter."},
                    {"role": "user", "content": prompt}
                ],
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.error("Quiz generation request failed: %s", e)
            raise DependencyError("Failed to generate quiz") from e
        
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
