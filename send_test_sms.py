# send_test_sms.py
import sys

from hardware_store.core.config import get_settings
from hardware_store.core.sms_client import SmsClient


def main():
    phone = sys.argv[1] if len(sys.argv) > 1 else "09171234567"  # <-- your own number
    settings = get_settings()

    print(f"Sending test SMS to {phone}...")

    client = SmsClient(settings)
    try:
        result = client.send(
            phone,
            f"[{settings.STORE_NAME}] Test message from the order backend.",
        )
    finally:
        client.close()

    print(f"Done: provider={result.provider} mode={result.mode} id={result.message_id}")


if __name__ == "__main__":
    main()
