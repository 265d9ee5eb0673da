"""Markdown conversation logging."""

from app.logging.agent_logger import AgentLogger

__all__ = ["AgentLogger"]
