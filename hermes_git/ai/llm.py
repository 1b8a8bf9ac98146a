from dataclasses import dataclass
import aisuite

from typing import Dict, List, Optional


@dataclass
class LLMCompletionResponse:
    """Wraps the full assistant message from the LLM API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


class LLMClient:
    """
    A thin wrapper around aisuite so the advisor does not depend on a
    specific provider library.
    """

    def __init__(self, provider_configs: Dict):
        """
        Args:
            provider_configs: Per-provider settings (API keys, base URLs),
                passed to aisuite as is.
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    def completion(self, model: str, messages: List[Dict], **kwargs) -> LLMCompletionResponse:
        response = self.client.chat.completions.create(model=model, messages=messages, **kwargs)

        # The message object from aisuite/openai can be converted to a dict.
        # We exclude unset values to keep the payload clean.
        message_dict = response.choices[0].message.model_dump(exclude_unset=True)
        return LLMCompletionResponse(assistant_message=message_dict)
