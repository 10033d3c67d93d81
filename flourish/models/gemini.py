# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import logging
import time
from typing import Optional

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"
PLACEHOLDER_API_KEY = "REPLACE_ME"
RESPONSE_TEMPERATURE = 0.7
RESPONSE_MAX_OUTPUT_TOKENS = 2048


class GeminiInvalidResponseException(Exception):
    pass


class GeminiClient:
    """Thin wrapper over the genai client that asks for JSON output."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL):
        self.model = model
        self.client = genai.Client(api_key=api_key)

    def generate_json(self, prompt: str) -> str:
        """Returns the raw response text, which the model was asked to emit as JSON."""
        start_time = time.time()
        response = self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                temperature=RESPONSE_TEMPERATURE,
                max_output_tokens=RESPONSE_MAX_OUTPUT_TOKENS,
            ),
        )
        logger.debug("Gemini call took %.2fs", time.time() - start_time)
        if not response.text:
            raise GeminiInvalidResponseException()
        return response.text


def has_usable_key(api_key: Optional[str]) -> bool:
    return bool(api_key) and api_key != PLACEHOLDER_API_KEY


def create_client(
    api_key: Optional[str], model: str = DEFAULT_MODEL
) -> Optional[GeminiClient]:
    """Returns None when no real key is configured, so callers serve mocks."""
    if not has_usable_key(api_key):
        logger.warning("No Gemini API key configured; AI endpoints will return mock responses")
        return None
    return GeminiClient(api_key=api_key, model=model)
