"""Provider and scheduling services.

Each subpackage is imported directly (``app.services.llm``,
``app.services.tts``, ``app.services.stt``, ``app.services.calendar``,
``app.services.booking``) so that importing one provider does not pull in
the others.
"""
