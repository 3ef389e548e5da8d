"""Pydantic AI agent turning a free-text job description into a TaskDraft.

Extraction never fails from the caller's point of view: without an API key, or
when the model call or its output validation fails, a fallback draft built from
the raw text is returned so posting a task can always be completed.
"""

import logging

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openrouter import OpenRouterProvider

from worklink.core.config import Constants, settings
from worklink.core.logging import span
from worklink.domain.draft import TaskDraft
from worklink.domain.task import TaskCategory


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an AI assistant for a gig marketplace app.
Extract structured task data from the user's raw description.

1. Create a catchy title.
2. Write a professional description.
3. Estimate a fair budget in USD (if not specified, estimate based on market rates for such a task).
4. Select the best category: Cleaning, Shifting, Helper, Repair, Delivery or Other.
5. Suggest a date/time (e.g. "This Weekend", "ASAP", or the specific date if mentioned).
6. List 2-4 required skills for this job.
7. Extract the location/address if mentioned, otherwise leave it null."""


class _AgentState:
    """Singleton state for agent instance."""

    instance: Agent[None, TaskDraft] | None = None


def create_extraction_agent(model: Model | str | None = None) -> Agent[None, TaskDraft]:
    """Build the extraction agent, defaulting to the configured OpenRouter model."""
    if model is None:
        api_key = settings.require_credential("openrouter_api_key", "OpenRouter API key")
        model = OpenRouterModel(model_name=settings.model_id, provider=OpenRouterProvider(api_key=api_key))

    return Agent(
        model=model,
        output_type=TaskDraft,
        system_prompt=SYSTEM_PROMPT,
        retries=1,
    )


def get_extraction_agent() -> Agent[None, TaskDraft]:
    """Get or create the shared extraction agent."""
    if _AgentState.instance is None:
        _AgentState.instance = create_extraction_agent()
    return _AgentState.instance


def fallback_draft(text: str) -> TaskDraft:
    """Draft used when extraction is unavailable: the raw text, uncategorized and unpriced."""
    text = text.strip()
    title = text[: Constants.FALLBACK_TITLE_LENGTH]
    if len(text) > Constants.FALLBACK_TITLE_LENGTH:
        title += "..."
    return TaskDraft(
        title=title or "New Request",
        description=text,
        budget=None,
        category=TaskCategory.OTHER,
        date=None,
        location_text=None,
        skills=[],
    )


async def extract_task_draft(text: str, *, agent: Agent[None, TaskDraft] | None = None) -> TaskDraft:
    """Extract a TaskDraft from ``text``, falling back to fallback_draft() on any failure."""
    if not text.strip():
        return fallback_draft(text)

    with span("extraction_agent.extract_task_draft"):
        try:
            if agent is None:
                if not settings.openrouter_api_key:
                    logger.warning("OpenRouter API key not configured, using fallback task draft")
                    return fallback_draft(text)
                agent = get_extraction_agent()

            result = await agent.run(f'User Description: "{text}"')
            return result.output
        except Exception as e:
            logger.error("Task extraction failed, using fallback draft: %s", e)
            return fallback_draft(text)
