from __future__ import annotations


def dest_hint(v: str, keep: int = 4) -> str:
    # Never log full phone numbers; the tail is enough to correlate with the provider console.
    v = (v or "").strip()
    if not v:
        return ""
    if len(v) <= keep:
        return v
    return f"...{v[-keep:]}"
