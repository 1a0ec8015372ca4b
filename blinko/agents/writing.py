"""Agente de escrita (expandir, polir ou pedido livre)."""

from contextlib import aclosing
from typing import AsyncIterator

from langchain_core.messages import HumanMessage, SystemMessage

from blinko.agents.base_agent import BaseAgent

WRITING_PROMPTS = {
    "expand": """You are a writing assistant.

**YOUR TASK:**
Expand the user's note: develop the ideas, add detail and examples.

**RULES:**
- Keep the original language and tone
- Keep the Markdown formatting
- Answer ONLY with the expanded text""",
    "polish": """You are a writing assistant.

**YOUR TASK:**
Polish the user's note: fix grammar, improve clarity and flow.

**RULES:**
- Keep the original language, meaning and Markdown formatting
- Answer ONLY with the polished text""",
    "custom": """You are a writing assistant for a note-taking app.

Follow the user's request about their note. Use Markdown and keep the
language of the note unless asked otherwise.""",
}


class WritingAgent(BaseAgent):
    """Ajuda a escrever notas."""

    SYSTEM_PROMPT = WRITING_PROMPTS["custom"]

    async def write(self, question: str, content: str | None = None) -> AsyncIterator[str]:
        """Transmite o texto gerado para o pedido sobre a nota."""
        messages = [
            HumanMessage(content=question),
            SystemMessage(content=f"This is the user's note content: {content or ''}"),
        ]
        async with aclosing(self.stream(messages)) as deltas:
            async for delta in deltas:
                yield delta
