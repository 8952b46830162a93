"""
Generative model collaborator.

The rest of the pipeline only sees ``CompletionClient.complete``: a prompt
goes in, untrusted text comes out. Provider selection follows the
``ai_provider`` setting.
"""
import logging
from typing import Tuple
from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_ollama import ChatOllama
from weekdigest.config import settings
from weekdigest.errors import CompletionError

logger = logging.getLogger(__name__)


def get_chat_model(temperature: float, max_tokens: int) -> Tuple[BaseChatModel, str]:
    """Factory returning (chat model, model name) for the configured provider"""
    if settings.ai_provider.lower() == "claude":
        if not settings.claude_api_key:
            raise ValueError("CLAUDE_API_KEY not set in environment variables")

        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(
            model=settings.claude_model,
            api_key=settings.claude_api_key,
            temperature=temperature,
            max_tokens=max_tokens
        ), settings.claude_model

    return ChatOllama(
        model=settings.ollama_model,
        base_url=settings.ollama_base_url,
        temperature=temperature,
        num_predict=max_tokens,
        format="json"
    ), settings.ollama_model


class CompletionClient:
    """Send one prompt to a chat model and return its raw text"""

    def __init__(self, llm: BaseChatModel, model_name: str):
        self.llm = llm
        self.model_name = model_name
        # Prompt text is passed as a variable so JSON braces are not template fields
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", "{system}"),
            ("human", "{prompt}")
        ])
        self.chain = self.prompt | self.llm | StrOutputParser()

    async def complete(self, prompt: str, system: str) -> str:
        try:
            return await self.chain.ainvoke({"system": system, "prompt": prompt})
        except Exception as e:
            logger.warning("Completion with %s failed: %s", self.model_name, e)
            raise CompletionError(f"Model call failed: {e}", model=self.model_name) from e


def get_completion_client(kind: str = "schedule") -> CompletionClient:
    """Completion client tuned for schedule reconciliation or resource curation"""
    if kind == "resources":
        llm, model_name = get_chat_model(settings.resource_temperature, settings.max_output_tokens_resources)
    else:
        llm, model_name = get_chat_model(settings.schedule_temperature, settings.max_output_tokens_schedule)
    return CompletionClient(llm, model_name)
