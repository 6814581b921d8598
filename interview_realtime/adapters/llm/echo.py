"""
Echo generator.

Offline generator that echoes the question back, useful for local
development and for exercising the full exchange without a hosted model.
"""

import logging
from typing import Any, Dict, Optional

from ...core.interfaces import GenerationResult

logger = logging.getLogger(__name__)

QUESTION_MARKER = "Question:"


class EchoLLMEngine:
    """Returns the question text, optionally prefixed."""

    name = "echo"

    def __init__(self, add_prefix: bool = True, prefix_text: str = "You asked: "):
        self.add_prefix = add_prefix
        self.prefix_text = prefix_text
        logger.info(f"Echo generator initialized: prefix={add_prefix}")

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        system: Optional[str] = None
    ) -> GenerationResult:
        # Strip the instructional wrapper and answer with the bare question
        question = prompt.rsplit(QUESTION_MARKER, 1)[-1].strip()
        text = f"{self.prefix_text}{question}" if self.add_prefix else question
        return GenerationResult(text=text, provider=self.name, model="echo")

    def get_config(self) -> Dict[str, Any]:
        return {"provider": self.name, "add_prefix": self.add_prefix, "prefix_text": self.prefix_text}


def create_echo_llm_from_config(config: Dict[str, Any]) -> EchoLLMEngine:
    return EchoLLMEngine(
        add_prefix=config.get("add_prefix", True),
        prefix_text=config.get("prefix_text", "You asked: "),
    )
