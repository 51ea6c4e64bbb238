"""Backend adapter implementations."""

from .custom import CustomAdapter
from .openai_compat import OpenAICompatAdapter

__all__ = ["CustomAdapter", "OpenAICompatAdapter"]
