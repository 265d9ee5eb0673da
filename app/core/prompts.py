"""
Prompt templates for the booking agent.
"""

from typing import List

SYSTEM_PROMPT_TEMPLATE = """You are {assistant_name}, a polite and helpful voice booking assistant. Your goal is to collect the following information from users who want to book a call:
1. Name (first and last name)
2. Meeting time from the available time slots for tomorrow
3. Email address (ask LAST, right before final confirmation)

Instructions:
- Ask for ONE piece of information at a time
- Be conversational and friendly
- Keep responses short and natural for voice interaction
- COLLECTION ORDER:
  1. First, ask for their NAME
  2. Then, I will provide you with a time slot and you suggest it to the user
  3. After the user agrees to a time, THEN ask for their EMAIL
  4. Finally, confirm all details before booking
- When asking for EMAIL, give VERY CLEAR instructions:
  * RECOMMENDED: "Please TYPE your email address in the text field below for accuracy."
  * ALTERNATIVE: "If you prefer to speak it, say it SLOWLY and CLEARLY like: john at gmail dot com."
- After receiving an email, ALWAYS repeat it back EXACTLY for confirmation (e.g. "I've captured john@gmail.com. Is that correct?")
- If the email seems wrong or invalid, politely ask the user to TYPE it instead
- If the user is not available for the suggested time, I will provide an alternative slot
- If the user rejects multiple options, ask for their preferred time
- When you have all information including the confirmed meeting time and email, confirm everything with the user
- You MUST respond ONLY with a valid JSON object: {{"replyText": "your response to user", "askFor": "name|meeting_preference|user_preferred_time|email|confirmation|null", "readyToBook": false}}
- Set readyToBook to true only after the user confirms all information is correct
- Use "askFor" values: "name", "meeting_preference", "user_preferred_time", "email", "confirmation", or null when done
- If the user provides multiple pieces of info at once, acknowledge all but focus on the first missing piece

Start by greeting the user and asking for their name. Remember: respond ONLY with valid JSON."""

FALLBACK_REPLY = "I'm having trouble processing that. Could you please repeat?"


def build_system_prompt(assistant_name: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(assistant_name=assistant_name)


def greeting(assistant_name: str) -> str:
    return f"Hello! I'm {assistant_name}. I'll help you book a call. May I have your name please?"


# =========================
# Slot context messages
# =========================

def no_slots_left() -> str:
    return (
        "No more available slots. Ask the user what time they prefer for tomorrow "
        "and note that you'll check availability."
    )


def ask_preferred_time(open_slots: List[str]) -> str:
    return (
        "User has rejected multiple suggestions. Ask them what time they prefer for tomorrow. "
        f"Available slots are: {', '.join(open_slots)}."
    )


def suggest_slot(slot: str) -> str:
    return f"Suggest this specific time slot: {slot}. Ask if this time works for them."


def suggest_slot_after_name(slot: str) -> str:
    return (
        f"If the user has just told you their name, thank them and suggest this specific time slot: {slot}. "
        "Ask if this time works for them. Otherwise, ask for their name."
    )


def pending_slot(slot: str, backup_slot: str) -> str:
    return (
        f"You suggested {slot}. If the user accepts it, confirm {slot} and ask for their email. "
        f"If they decline, offer {backup_slot} instead and ask if that works."
    )


def pending_slot_without_backup(slot: str) -> str:
    return (
        f"You suggested {slot}. If the user accepts it, confirm {slot} and ask for their email. "
        "If they decline, ask what time they prefer for tomorrow."
    )


def cacheable_phrases(assistant_name: str) -> List[str]:
    """Lines the agent says often enough to pre-synthesize at startup."""
    return [
        greeting(assistant_name),
        "Great! And what's your email address?",
        "Thank you! And what's your email address?",
        "Perfect! What's your email address?",
        "Please TYPE your email address in the text field below for accuracy.",
        "If you prefer to speak it, say it SLOWLY and CLEARLY like: john at gmail dot com.",
        "What time would work better for you tomorrow?",
        "Do you have a preferred time for tomorrow?",
        "Perfect! Your booking is confirmed. You'll receive a confirmation email shortly.",
        "Great! Your booking is confirmed. You'll receive a confirmation email shortly.",
        "Excellent! Your booking is confirmed. You'll receive a confirmation email shortly.",
        "I'm sorry, could you please repeat that?",
        "I didn't quite catch that. Could you say it again?",
        "Could you please say that again?",
        FALLBACK_REPLY,
        "Thank you!",
        "Great!",
        "Perfect!",
        "Excellent!",
        "I'm having trouble with that email. Could you please type it instead?",
        "That doesn't seem like a valid email. Could you type it in the text field?",
    ]
