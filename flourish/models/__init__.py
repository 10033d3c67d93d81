"""Gemini client, prompts and fallback responses."""
