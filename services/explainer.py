# WORKFLOW: LLM explainer service for human-readable compliance justifications.
# Used by: Policy evaluator (unknown codes), jurisdiction adapters (denials, unresolved items)
# Functions:
# 1. generate() - Safe LLM call returning text or None on any provider failure
# 2. explain() - generate() with a templated fallback, never raises
#
# Explanation flow: Engine prompt -> Safety instructions -> Ollama -> Short paragraph
# Degradation flow: Timeout / connection error / empty output -> Templated reason
# The LLM only explains a decision already taken from reference data; it never
# decides whether an item is allowed.

from typing import Optional
import logging

import httpx
import ollama

from core.config import settings

logger = logging.getLogger(__name__)


class ExplainerService:
    """Ollama-backed text generation with strict guardrails and templated fallbacks."""

    def __init__(self, client: Optional[ollama.Client] = None, model: Optional[str] = None):
        self.client = client or ollama.Client(host=settings.ollama_url, timeout=settings.llm_timeout_seconds)
        self.model = model or settings.llm_model

    def generate(self, prompt: str, max_tokens: Optional[int] = None) -> Optional[str]:
        """
        Call the LLM with safety guardrails.

        Args:
            prompt: Task prompt
            max_tokens: Output budget, defaults to settings.llm_max_tokens

        Returns:
            Generated text, or None when the provider is unavailable
        """
        safety_prompt = f"""
            {prompt}

            SAFETY INSTRUCTIONS:
            - Only use information provided in the prompt
            - Do not invent HS codes, policies or legal references
            - Answer in one short paragraph
            """

        try:
            response = self.client.generate(
                model=self.model,
                prompt=safety_prompt,
                options={
                    "temperature": 0.1,  # Low temperature for factual responses
                    "num_predict": max_tokens or settings.llm_max_tokens,
                },
            )
            text = (response["response"] or "").strip()
        except httpx.TimeoutException as e:
            logger.error(f"LLM call timed out: {e}")
            return None
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            return None

        return text or None

    def explain(self, prompt: str, fallback: str, max_tokens: Optional[int] = None) -> str:
        """Generate an explanation, substituting ``fallback`` when generation fails."""
        text = self.generate(prompt, max_tokens=max_tokens)
        if text is None:
            logger.info("Using templated explanation")
            return fallback
        return text


# Global explainer instance (lazy-loaded)
_explainer = None

def get_explainer() -> ExplainerService:
    """Get the global explainer instance (lazy-loaded)."""
    global _explainer
    if _explainer is None:
        _explainer = ExplainerService()
    return _explainer
