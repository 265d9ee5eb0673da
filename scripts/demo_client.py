"""
Demo Client for the Voice Booking Agent API.
Walks a scripted booking conversation through the HTTP endpoints.
"""

import asyncio
import sys
import uuid

import httpx


BASE_URL = "http://localhost:8000"

SCRIPT = [
    "Hi there",
    "My name is Jane Doe",
    "No, that doesn't work for me",
    "Yes, that works",
    "jane dot doe at gmail dot com",
    "Yes, that's all correct",
]


async def check_health(client: httpx.AsyncClient):
    """Check health endpoints."""
    print("\n🏥 Checking Health Endpoints...")

    response = await client.get(f"{BASE_URL}/health")
    print(f"   /health: {response.status_code}")

    response = await client.get(f"{BASE_URL}/health/ready")
    print(f"   /health/ready: {response.status_code}")
    print(f"   {response.json()}")


async def run_conversation(client: httpx.AsyncClient):
    """Send the scripted utterances as final transcripts of one session."""
    print("\n💬 Running Booking Conversation...")
    session_id = f"demo-{uuid.uuid4().hex[:8]}"

    for text in SCRIPT:
        print(f"\n   📤 User: {text}")

        response = await client.post(
            f"{BASE_URL}/api/agent",
            json={"sessionId": session_id, "text": text, "final": True}
        )

        if response.status_code != 200:
            print(f"   ❌ Error: {response.status_code}")
            print(f"   {response.text}")
            return

        data = response.json()
        collected = data["sessionState"]["collectedData"]
        print(f"   🤖 Agent: {data['replyText']}")
        print(f"   📋 askFor={data['askFor']} slot={collected['lastSuggestedSlot']} "
              f"meeting={collected['meetingPreference']}")
        if "audioUrl" in data:
            print(f"   🔊 Audio: {len(data['audioUrl'])} chars")

        booking = data.get("booking")
        if booking:
            print(f"   📅 Booking {booking['status']}: {booking.get('calendlyUrl') or booking.get('error')}")
            return


async def main():
    """Run the demo."""
    print("=" * 60)
    print("🧪 Voice Booking Agent Demo Client")
    print("=" * 60)
    print(f"Target: {BASE_URL}")

    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            await check_health(client)
            await run_conversation(client)

        print("\n" + "=" * 60)
        print("✅ Demo completed!")
        print("=" * 60)

    except httpx.ConnectError:
        print("\n❌ Cannot connect to server. Make sure it's running:")
        print("   uvicorn app.main:app --reload")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
