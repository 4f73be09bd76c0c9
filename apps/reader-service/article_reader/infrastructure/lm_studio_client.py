from __future__ import annotations

import requests

from article_reader.domain.errors import SummarizationFailed


class LmStudioClient:
    """OpenAI-compatible chat completions client (LM Studio, OpenAI, vLLM...)."""

    def __init__(self, base_url: str, model_id: str, api_key: str = "", timeout_seconds: int = 30) -> None:
        self._base_url = base_url.rstrip("/")
        self._model_id = model_id
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    def summarize(self, text: str) -> str:
        prompt = (
            "Summarize the following article in 5-6 sentences. "
            "Focus on concrete facts and keep the output plain text suitable for reading aloud.\n\n"
            f"Article:\n{text}"
        )
        return self._chat(prompt)

    def _chat(self, prompt: str) -> str:
        payload = {
            "model": self._model_id,
            "messages": [
                {"role": "system", "content": "You are a concise assistant."},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        try:
            response = requests.post(
                f"{self._base_url}/chat/completions",
                json=payload,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise SummarizationFailed("Summarization failed", details=str(exc)) from exc

        if response.status_code == 429:
            raise SummarizationFailed("Summarization failed", details="rate limited by summarization service")
        if response.status_code >= 400:
            raise SummarizationFailed(
                "Summarization failed",
                details=f"HTTP {response.status_code}: {response.text[:200]}",
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise SummarizationFailed("Summarization failed", details="malformed response") from exc

        text = self._extract_text(body).strip()
        if not text:
            raise SummarizationFailed("Summarization failed", details="empty response")
        return text

    @staticmethod
    def _extract_text(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return ""

        message = choices[0].get("message")
        if message and isinstance(message, dict):
            content = message.get("content", "")
            if isinstance(content, str):
                return content
            if isinstance(content, list):
                parts: list[str] = []
                for item in content:
                    if isinstance(item, dict) and item.get("type") == "text":
                        parts.append(str(item.get("text", "")))
                return " ".join(parts)

        text = choices[0].get("text")
        if isinstance(text, str):
            return text

        return ""
