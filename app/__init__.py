"""
Voice Booking Agent
===================
Conversational backend that books a call through speech or text.

Features:
- Real-time turns over WebSocket or HTTP
- Slot suggestion from tomorrow's open half-hour slots
- Spoken time and email reconstruction
- Booking persistence with a pre-filled Calendly link

Tech Stack:
- FastAPI (async backend)
- AssemblyAI streaming tokens (STT)
- Groq API with OpenAI fallback (LLM)
- ElevenLabs (TTS)
"""

__version__ = "1.0.0"
