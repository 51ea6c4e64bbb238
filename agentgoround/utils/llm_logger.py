"""LLM interaction logger for debugging and auditing backend exchanges."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from agentgoround.utils.log_utils import truncate_log_text


class LLMLogger:
    """Logger for backend exchanges with detailed request/response tracking."""

    def __init__(self, log_dir: str = "logs"):
        """Initialize LLM logger.

        Args:
            log_dir: Directory to store log files
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger("llm_interactions")
        self.logger.setLevel(logging.DEBUG)

        # Prevent duplicate handlers
        if not self.logger.handlers:
            log_file = self.log_dir / f"llm_interactions_{datetime.now().strftime('%Y%m%d')}.log"
            fh = logging.FileHandler(log_file, encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(fh)

    def log_exchange(
        self,
        *,
        agent_name: str,
        input_text: str,
        history_size: int,
        system: Optional[str],
        output_text: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log one complete backend exchange.

        Args:
            agent_name: Display name of the agent that was called
            input_text: User-turn text sent with the request
            history_size: Number of history messages replayed
            system: System text, if any
            output_text: Final text returned by the adapter
            extra: Additional fields (mode, round, etc.)
        """
        timestamp = datetime.now().isoformat()
        log_entry: Dict[str, Any] = {
            "timestamp": timestamp,
            "agent": agent_name,
            "request": {
                "input": truncate_log_text(input_text),
                "history_size": history_size,
                "has_system": bool((system or "").strip()),
            },
            "response": {
                "chars": len(output_text or ""),
                "content": truncate_log_text(output_text),
            },
        }
        if extra:
            log_entry["extra"] = extra

        separator = "=" * 80
        self.logger.debug(separator)
        self.logger.debug(json.dumps(log_entry, ensure_ascii=False, indent=2))
        self.logger.info(
            f"LLM Call | Agent: {agent_name} | History: {history_size} msgs | "
            f"Received: {len(output_text or '')} chars"
        )


_llm_logger: Optional[LLMLogger] = None


def get_llm_logger() -> LLMLogger:
    """Get the process-wide LLM logger."""
    global _llm_logger
    if _llm_logger is None:
        from agentgoround.api.config import settings

        _llm_logger = LLMLogger(str(settings.logs_dir))
    return _llm_logger
