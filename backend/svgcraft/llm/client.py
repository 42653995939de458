"""LangChain ChatAnthropic wrapper."""

from __future__ import annotations

from svgcraft.config import settings
from svgcraft.errors import NormalizationError
from svgcraft.llm.model_router import get_model_for_task


def llm_configured() -> bool:
    return bool(settings.anthropic_api_key)


async def get_completion(
    system: str,
    user: str,
    task: str = "normalize",
    temperature: float = 0.2,
    model: str | None = None,
) -> str:
    """Single-turn completion. Raises NormalizationError when no API key is set."""
    if not llm_configured():
        raise NormalizationError("LLM not configured — set ANTHROPIC_API_KEY in .env")

    from langchain_anthropic import ChatAnthropic
    from langchain_core.messages import HumanMessage, SystemMessage

    llm = ChatAnthropic(
        model=get_model_for_task(task, model),
        api_key=settings.anthropic_api_key,
        temperature=temperature,
        max_tokens=2048,
    )

    response = await llm.ainvoke([SystemMessage(content=system), HumanMessage(content=user)])
    return str(response.content)
