import json
import logging
from typing import Optional

import openai
from openai import DefaultHttpxClient, OpenAI

from gitea_reviewer.config import Settings
from gitea_reviewer.review.errors import LLMCallError
from gitea_reviewer.review.prompts import ComposedPrompt

logger = logging.getLogger(__name__)

RESPONSE_FORMAT_NAME = "pull_request_review"


class LLMWorker:
    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.settings = settings
        self._client = client or OpenAI(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=float(settings.llm_timeout),
            max_retries=0,
            http_client=DefaultHttpxClient(verify=settings.verify_tls),
        )

    def client(self) -> OpenAI:
        return self._client

    def build_request(self, prompt: ComposedPrompt) -> dict:
        return {
            "model": self.settings.llm_model,
            "messages": prompt.messages(),
            "temperature": self.settings.llm_temperature,
            "max_tokens": self.settings.llm_max_tokens,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": RESPONSE_FORMAT_NAME,
                    "strict": True,
                    "schema": prompt.output_schema,
                },
            },
        }

    def complete(self, prompt: ComposedPrompt) -> str:
        request = self.build_request(prompt)
        if self.settings.debug:
            logger.debug("LLM request:\n%s", json.dumps(request, indent=2))

        try:
            response = self.client().chat.completions.create(**request)
        except openai.APIStatusError as e:
            raise LLMCallError(f"LLM API error: {e.status_code}") from e
        except openai.OpenAIError as e:
            raise LLMCallError(f"LLM API call failed: {e}") from e

        if not response.choices:
            raise LLMCallError("no response from LLM")

        return response.choices[0].message.content or ""
