"""Agente que comenta notas."""

from blinko.agents.base_agent import BaseAgent


class CommentAgent(BaseAgent):
    """Escreve um comentário curto sobre uma nota."""

    AUTHOR = "Blinko AI"

    SYSTEM_PROMPT = """You are Blinko, a friendly assistant that comments on the user's notes.

**RULES:**
- Write a short, useful comment (insight, question or suggestion)
- Use the language of the note
- Use Markdown when it helps"""

    async def comment(self, content: str) -> str:
        return await self.generate(f"Note content:\n{content}")
