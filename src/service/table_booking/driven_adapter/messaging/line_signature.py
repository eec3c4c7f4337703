import base64
import hashlib
import hmac


def compute_line_signature(*, body: bytes, channel_secret: str) -> str:
    digest = hmac.new(channel_secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_line_signature(*, body: bytes, signature: str, channel_secret: str) -> bool:
    """`X-Line-Signature` is base64(HMAC-SHA256(channel secret, raw request body))."""
    expected = compute_line_signature(body=body, channel_secret=channel_secret)
    return hmac.compare_digest(expected, signature or '')
