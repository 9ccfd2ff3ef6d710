from __future__ import annotations

import os
from typing import List

import requests
import structlog
from openai import OpenAI, OpenAIError

from studypartner.services.errors import BackendFailure

logger = structlog.get_logger()

DEFAULT_HF_URL = "https://api-inference.huggingface.co/models"

SUMMARY_MODELS = [
    "facebook/bart-large-cnn",
    "google/pegasus-xsum",
    "microsoft/DialoGPT-medium",
]

STRUCTURED_MODELS = [
    "microsoft/DialoGPT-medium",
    "facebook/bart-large-cnn",
    "google/pegasus-xsum",
]


def backend_timeout() -> float:
    return float(os.getenv("BACKEND_TIMEOUT_SECONDS", "60"))


def huggingface_headers() -> dict:
    headers = {"Content-Type": "application/json"}
    # Read per call so a rotated key is picked up without a restart
    api_key = os.getenv("HUGGINGFACE_API_KEY")
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def huggingface_url(model: str) -> str:
    base = os.getenv("HUGGINGFACE_API_URL", DEFAULT_HF_URL).rstrip("/")
    return f"{base}/{model}"


def post_inputs(name: str, url: str, text: str):
    """POST {"inputs": text} and return the decoded JSON body."""
    try:
        resp = requests.post(
            url,
            headers=huggingface_headers(),
            json={"inputs": text},
            timeout=backend_timeout(),
        )
    except requests.RequestException as e:
        raise BackendFailure(name, f"request failed: {e}") from e

    if not 200 <= resp.status_code < 300:
        raise BackendFailure(name, f"status {resp.status_code}, body: {resp.text[:200]}")
    try:
        return resp.json()
    except ValueError as e:
        raise BackendFailure(name, f"undecodable response: {e}") from e


class GenerationBackend:
    """One external text generator. Subclasses raise BackendFailure on any error."""

    name = "backend"

    def generate(self, prompt: str) -> str:
        raise NotImplementedError

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


class HuggingFaceBackend(GenerationBackend):
    def __init__(self, model: str):
        self.model = model
        self.name = model

    def generate(self, prompt: str) -> str:
        data = post_inputs(self.name, huggingface_url(self.model), prompt)
        if not isinstance(data, list) or not data:
            raise BackendFailure(self.name, "no response from HuggingFace")
        first = data[0]
        if not isinstance(first, dict):
            raise BackendFailure(self.name, "unexpected response shape")
        return str(first.get("generated_text") or "")


class OpenAIBackend(GenerationBackend):
    def __init__(self, model: str | None = None):
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.name = f"openai/{self.model}"

    def _get_client(self) -> OpenAI:
        if not os.getenv("OPENAI_API_KEY"):
            raise BackendFailure(self.name, "OPENAI_API_KEY not set")
        return OpenAI().with_options(timeout=backend_timeout())

    def generate(self, prompt: str) -> str:
        client = self._get_client()
        try:
            rsp = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.2,
            )
        except OpenAIError as e:
            raise BackendFailure(self.name, str(e)) from e
        if not rsp.choices:
            raise BackendFailure(self.name, "no choices returned")
        return rsp.choices[0].message.content or ""


def default_backends(models: List[str]) -> List[GenerationBackend]:
    """Hugging Face models in order, then OpenAI when a key is configured."""
    backends: List[GenerationBackend] = [HuggingFaceBackend(m) for m in models]
    if os.getenv("OPENAI_API_KEY"):
        backends.append(OpenAIBackend())
    return backends
