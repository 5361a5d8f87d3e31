"""Editable projection of a tunnel configuration."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .lines import find_comment

INTERFACE_SECTION = "Interface"
PEER_SECTION = "Peer"

# Draft field name -> configuration key, per section
INTERFACE_FIELDS: dict[str, str] = {
    "address": "Address",
    "dns": "DNS",
    "listen_port": "ListenPort",
    "mtu": "MTU",
}
PEER_FIELDS: dict[str, str] = {
    "peer_endpoint": "Endpoint",
    "peer_allowed_ips": "AllowedIPs",
    "peer_keepalive": "PersistentKeepalive",
}

PROTECTED_KEYS = frozenset(
    key.casefold()
    for key in (
        "PrivateKey",
        "PublicKey",
        "PresharedKey",
        "PreUp",
        "PostUp",
        "PreDown",
        "PostDown",
        "SaveConfig",
    )
)

_INTERFACE_LOOKUP = {key.casefold(): name for name, key in INTERFACE_FIELDS.items()}
_PEER_LOOKUP = {key.casefold(): name for name, key in PEER_FIELDS.items()}


def is_protected(key: str) -> bool:
    return key.casefold() in PROTECTED_KEYS


def field_for(section: str | None, peer_index: int, key: str) -> str | None:
    """Map a key found in a given scope to its draft field name.

    Interface keys are editable in any ``[Interface]`` section; peer keys
    only inside the first ``[Peer]`` section. Protected keys and keys in
    any other scope map to ``None``.

    Args:
        section: Enclosing section name, ``None`` before the first header
        peer_index: Number of ``[Peer]`` headers seen so far
        key: Configuration key as written in the file

    Returns:
        Draft field name, or None if the key is not editable in this scope
    """
    if section is None or is_protected(key):
        return None
    folded_section = section.casefold()
    if folded_section == INTERFACE_SECTION.casefold():
        return _INTERFACE_LOOKUP.get(key.casefold())
    if folded_section == PEER_SECTION.casefold() and peer_index == 1:
        return _PEER_LOOKUP.get(key.casefold())
    return None


class EditableDraft(BaseModel):
    """Mutable draft of the editable tunnel fields.

    Absent fields are empty strings. An empty value means "leave as is"
    when the draft is written back.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True, validate_assignment=True, extra="forbid"
    )

    address: str = Field(default="", description="Interface Address")
    dns: str = Field(default="", description="Interface DNS")
    listen_port: str = Field(default="", description="Interface ListenPort")
    mtu: str = Field(default="", description="Interface MTU")
    peer_endpoint: str = Field(default="", description="First peer Endpoint")
    peer_allowed_ips: str = Field(default="", description="First peer AllowedIPs")
    peer_keepalive: str = Field(
        default="", description="First peer PersistentKeepalive"
    )

    @field_validator("*")
    @classmethod
    def validate_single_line(cls, v: str) -> str:
        """Values must survive being written into one configuration line."""
        if "\n" in v or "\r" in v:
            raise ValueError("Value must be a single line")
        if find_comment(v) >= 0:
            raise ValueError(
                "Value cannot contain an unescaped '#' or ';' (write \\# or \\;)"
            )
        return v

    @classmethod
    def field_names(cls) -> list[str]:
        return list(cls.model_fields)

    def filled(self) -> dict[str, str]:
        """Fields that carry a non-empty value."""
        return {name: value for name, value in self.model_dump().items() if value}
