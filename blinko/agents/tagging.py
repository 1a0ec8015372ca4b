"""Agentes de sugestão de tags e emojis."""

from blinko.agents.base_agent import BaseAgent, split_list


class TagAgent(BaseAgent):
    """Sugere tags hierárquicas para uma nota."""

    SYSTEM_PROMPT = """You are a tagging assistant for a personal note-taking app.

**YOUR TASK:**
Suggest the most relevant tags for the note content provided by the user.

**RULES:**
- Prefer tags from the existing tag list when they fit
- Always use the full hierarchical path (#Parent/Child), never just #Child
- Suggest at most 5 tags
- Answer ONLY with the tags separated by commas, no explanation"""

    async def suggest_tags(self, content: str, existing_tags: list[str]) -> list[str]:
        """
        Sugere tags para o conteúdo.

        Args:
            content: Conteúdo da nota.
            existing_tags: Tags já usadas no sistema.

        Returns:
            list[str]: Tags sugeridas.
        """
        result = await self.generate(
            f"Existing tags list: [{', '.join(existing_tags)}]\n"
            f"Note content: {content}\n"
            "Please suggest appropriate tags for this content. Include full hierarchical "
            "paths for tags like #Parent/Child instead of just #Child."
        )
        return split_list(result)


class EmojiAgent(BaseAgent):
    """Sugere emojis para uma nota."""

    SYSTEM_PROMPT = """You are an emoji assistant.

**YOUR TASK:**
Pick emojis that represent the note content provided by the user.

**RULES:**
- Suggest between 1 and 5 emojis
- Answer ONLY with the emojis separated by commas, no text"""

    async def suggest_emojis(self, content: str) -> list[str]:
        result = await self.generate(
            "Please select and suggest appropriate emojis for the above content" + content
        )
        return split_list(result)
