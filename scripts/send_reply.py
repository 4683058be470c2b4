"""
Manual relay probe

Posts one reply to /receive-response the way the n8n workflow does, so the
broadcast path can be checked without running the workflow.

Usage:
    python scripts/send_reply.py conv_123_abc "Hello from the workflow"
    python scripts/send_reply.py conv_123_abc "Hi" --url http://localhost:8000
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import httpx

from src.config.settings import get_settings


def send_reply(base_url: str, conversation_id: str, reply: str, secret: str = "") -> int:
    """Send the reply and print the outcome; returns a process exit code"""
    headers = {"Authorization": f"Bearer {secret}"} if secret else {}
    url = f"{base_url.rstrip('/')}/receive-response"

    print("="*60)
    print(f"POST {url}")
    print(f"conversationId: {conversation_id}")
    print("="*60)

    try:
        response = httpx.post(
            url,
            json={"conversationId": conversation_id, "reply": reply},
            headers=headers,
            timeout=10.0,
        )
    except httpx.HTTPError as e:
        print(f"\n❌ Request failed: {e}")
        return 1

    if response.is_success:
        print(f"\n✅ Delivered ({response.status_code})")
        return 0

    print(f"\n❌ Relay answered {response.status_code}: {response.text}")
    return 1


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Send a test reply through the relay")
    parser.add_argument("conversation_id")
    parser.add_argument("reply")
    parser.add_argument("--url", default=settings.api_base_url or "http://localhost:8000")
    parser.add_argument("--secret", default=settings.webhook_secret, help="Defaults to WEBHOOK_SECRET")
    args = parser.parse_args()

    sys.exit(send_reply(args.url, args.conversation_id, args.reply, args.secret))


if __name__ == "__main__":
    main()
