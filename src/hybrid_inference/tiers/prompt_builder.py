"""
Prompt builder for remote tier requests.

Responsible for:
- Loading and rendering Jinja2 templates (system + user prompts)
- Constructing the complete LLMGenerationRequest for a tier's model
"""

from pathlib import Path
from typing import Optional

import structlog
from jinja2 import Environment, FileSystemLoader

from hybrid_inference.models.llm_models import ChatMessage, LLMGenerationRequest
from hybrid_inference.models.request_models import InferenceRequest

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "prompts"


class PromptBuilder:
    """
    Build chat-completion prompts from InferenceRequest objects.

    The system prompt carries the safety policy; the user prompt carries the
    event context and the expected answer format.
    """

    def __init__(
        self,
        templates_dir: Path = DEFAULT_TEMPLATES_DIR,
        default_temperature: float = 0.7,
        default_max_tokens: int = 1000,
    ):
        self.templates_dir = Path(templates_dir)
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # We're generating prompts, not HTML
        )

        try:
            self.system_template = self.jinja_env.get_template("system_prompt.txt")
            self.user_template = self.jinja_env.get_template("user_prompt_template.txt")
            logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))
        except Exception as e:
            logger.error("Failed to load prompt templates", error=str(e))
            raise

    def build_system_prompt(self, request: InferenceRequest) -> str:
        """Render the system prompt for a request's safety policy."""
        return self.system_template.render(
            safety_policy=request.preferences.safety_policy.value
        ).strip()

    def build_user_prompt(self, request: InferenceRequest) -> str:
        """Render the user prompt from the request's event context."""
        return self.user_template.render(context=request.context).strip()

    def build_request(
        self,
        request: InferenceRequest,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMGenerationRequest:
        """
        Build the complete generation request.

        Args:
            request: Inference request
            model: Model identifier for the target tier
            temperature: Override default temperature
            max_tokens: Override default max tokens
        """
        messages = [
            ChatMessage(role="system", content=self.build_system_prompt(request)),
            ChatMessage(role="user", content=self.build_user_prompt(request)),
        ]
        generation_request = LLMGenerationRequest(
            messages=messages,
            model=model,
            temperature=temperature if temperature is not None else self.default_temperature,
            max_tokens=max_tokens if max_tokens is not None else self.default_max_tokens,
        )

        logger.debug(
            "Built generation request",
            model=model,
            entity_id=request.context.entity_id,
            user_prompt_length=len(messages[1].content),
        )
        return generation_request
