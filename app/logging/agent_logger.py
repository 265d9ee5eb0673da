"""
Agent Logger for Markdown Conversation Logs.
Creates human-readable logs of booking conversations for review and debugging.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AgentLogger:
    """
    Markdown logger for booking conversations.

    Documents:
    - Session starts
    - Each turn with the resolved dialogue state and serving LLM provider
    - Booking outcomes
    - Errors and system events

    Entries go through a queue drained by a background writer once
    `start()` has been awaited; before that they are written directly.
    """

    def __init__(self, log_path: str = "logs/agent_log.md"):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self._queue: asyncio.Queue = asyncio.Queue()
        self._writer_task: Optional[asyncio.Task] = None
        self._running = False

    async def start(self):
        """Start the background log writer."""
        if self._writer_task is None:
            self._running = True
            self._writer_task = asyncio.create_task(self._write_loop())

    async def _write_loop(self):
        """Background loop to write logs asynchronously."""
        while self._running:
            try:
                entry = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                self._write_entry(entry)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Log writer error: {e}")

    def _write_entry(self, entry: str):
        """Append a log entry to the file."""
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(entry)
                f.write("\n")
        except OSError as e:
            logger.error(f"Failed to write log: {e}")

    async def _log(self, entry: str):
        """Add a log entry to the queue."""
        if self._running and self._writer_task:
            await self._queue.put(entry)
        else:
            self._write_entry(entry)

    # =========================
    # Public Logging Methods
    # =========================

    async def log_session_start(self, session_id: str):
        """Log the start of a new session."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        entry = f"""
---

## 🆕 Session Started: `{session_id}`

**Timestamp:** {timestamp}

---
"""
        await self._log(entry)

    async def log_turn_complete(
        self,
        session_id: str,
        user_text: str,
        agent_text: str,
        state: str,
        provider: str,
        ask_for: Optional[str] = None,
        slot_context: Optional[str] = None,
        latency_ms: Optional[float] = None
    ):
        """Log a complete conversation turn."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        entry = f"""### ✅ Turn Complete | {timestamp}

**Session:** `{session_id}`

> **User:** {user_text or '_(no final utterance)_'}
>
> **Agent:** {agent_text}

| Field | Value |
|-------|-------|
| State | `{state}` |
| Ask For | `{ask_for or 'none'}` |
| Provider | {provider} |
| Slot Context | {slot_context or 'none'} |
| Latency | {f'{latency_ms:.0f}ms' if latency_ms is not None else 'N/A'} |

---
"""
        await self._log(entry)

    async def log_booking(
        self,
        session_id: Optional[str],
        meeting_time: datetime,
        status: str,
        error: Optional[str] = None
    ):
        """Log a booking attempt."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        icon = "📅" if status == "confirmed" else "⚠️"

        entry = f"""### {icon} Booking {status.title()} | {timestamp}

**Session:** `{session_id or 'direct'}`
**Meeting Time:** {meeting_time:%Y-%m-%d %H:%M}
"""
        if error:
            entry += f"**Error:** {error}\n"

        await self._log(entry)

    async def log_error(
        self,
        session_id: str,
        error_type: str,
        error_message: str
    ):
        """Log an error."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        entry = f"""### ❌ Error | {timestamp}

**Session:** `{session_id}`
**Type:** `{error_type}`
**Message:** {error_message}
"""
        await self._log(entry)

    async def log_system_event(
        self,
        event: str,
        details: Dict[str, Any]
    ):
        """Log a system event."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        details_str = ""
        for key, value in details.items():
            details_str += f"- **{key}:** {value}\n"

        entry = f"""### ⚙️ System Event | {timestamp}

**Event:** {event}

{details_str}
---
"""
        await self._log(entry)

    async def initialize_log(self, app_name: str, version: str):
        """Initialize the log file with header."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        header = f"""# 🎙️ {app_name} Conversation Log

**Generated:** {timestamp}
**Version:** {version}

---

## System Overview

**Pipeline:** Transcript → Slot Context → LLM (Groq, OpenAI fallback) → Field Extraction → TTS

**Collection Order:** name → meeting time → email → confirmation

---

## Conversation Log

"""
        # Overwrite file with header
        with open(self.log_path, "w", encoding="utf-8") as f:
            f.write(header)

        logger.info(f"Agent log initialized: {self.log_path}")

    async def close(self):
        """Close the logger and flush pending entries."""
        self._running = False

        if self._writer_task:
            self._writer_task.cancel()
            try:
                await self._writer_task
            except asyncio.CancelledError:
                pass
            self._writer_task = None

        # Write any remaining entries
        while not self._queue.empty():
            try:
                self._write_entry(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break

        logger.info("Agent logger closed")
