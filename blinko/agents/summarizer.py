"""Agente que resume uma conversa em um título."""

import json

from blinko.agents.base_agent import BaseAgent
from blinko.schemas.ai import ChatMessage


class SummarizeAgent(BaseAgent):
    """Gera títulos curtos para conversas."""

    SYSTEM_PROMPT = """You summarize chat conversations into titles.

**RULES:**
- Maximum of 8 words
- Use the language of the conversation
- Answer ONLY with the title, without quotes or punctuation at the end"""

    async def summarize_title(self, conversations: list[ChatMessage]) -> str:
        """
        Resume a conversa em um título.

        Args:
            conversations: Mensagens da conversa.

        Returns:
            str: Título gerado.
        """
        conversation_string = json.dumps(
            [
                {"role": message.role, "content": message.content.replace("\n", "\\n")}
                for message in conversations
            ],
            indent=2,
            ensure_ascii=False,
        )
        title = await self.generate(conversation_string)
        return title.strip().strip('"').strip()
