"""chat.py: optional structured payloads for chat front-ends.

The ring carries payloads verbatim; this helper gives front-ends a shared
one-line encoding that pairs a display name with the message text.
"""
import json
from dataclasses import dataclass


@dataclass(frozen=True)
class ChatMessage:
    """A named chat message."""
    name: str
    text: str

    def encode(self) -> str:
        """Encodes as single-line JSON (newlines inside fields are escaped)."""
        return json.dumps({"name": self.name, "msg": self.text},
                          ensure_ascii=False)

    @classmethod
    def decode(cls, payload: str) -> "ChatMessage":
        """Decodes a payload; anything that is not our JSON is anonymous."""
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            return cls(name="", text=payload)
        if not isinstance(data, dict) or "msg" not in data:
            return cls(name="", text=payload)
        return cls(name=str(data.get("name", "")), text=str(data["msg"]))
