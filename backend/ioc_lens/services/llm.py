import json
import logging
import time
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from ioc_lens.core.errors import UpstreamUnavailable, ValidationError
from ioc_lens.metrics.prometheus import reasoning_latency_seconds

logger = logging.getLogger(__name__)


def parse_json_payload(text: Optional[str]) -> Any:
    """Decode the model's answer; a non-JSON answer is an upstream shape fault."""
    if not text:
        raise ValidationError("Reasoning service returned an empty response", upstream=True)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Reasoning service returned invalid JSON: {e.msg}",
            errors=[{"loc": "<root>", "msg": e.msg, "type": "json_invalid", "expected": "JSON object"}],
            upstream=True,
        ) from e


class ReasoningClient:
    """Single-shot JSON completions against the OpenAI chat API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    def _openai(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def complete_json(self, instruction: str, content: str, task: str = "completion") -> str:
        start = time.perf_counter()
        try:
            resp = self._openai().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": instruction},
                    {"role": "user", "content": content},
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("reasoning call (%s) failed: %s", task, e)
            raise UpstreamUnavailable(f"Reasoning service error: {e}") from e
        finally:
            reasoning_latency_seconds.labels(task=task).observe(time.perf_counter() - start)

        if not resp.choices:
            raise UpstreamUnavailable("Reasoning service returned no choices")
        return resp.choices[0].message.content or ""
