"""Data models for PromptVault.

Updates: v0.2.0 - 2026-09-28 - Export GistInfo for share lookups.
Updates: v0.1.0 - 2026-09-07 - Export prompt, index, and cache dataclasses.
"""

from .prompt_model import (
    ZERO_TIMESTAMP,
    CacheInfo,
    GistInfo,
    IndexedPrompt,
    Prompt,
    PromptIndex,
)

__all__ = [
    "ZERO_TIMESTAMP",
    "CacheInfo",
    "GistInfo",
    "IndexedPrompt",
    "Prompt",
    "PromptIndex",
]
