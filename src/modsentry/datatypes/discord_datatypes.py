"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers, but the word store and the settings
table keep them as strings. These wrappers give one consistent interface for
guild, channel, role and user IDs and compare equal to the raw int and str
forms of the same snowflake.
"""

from __future__ import annotations

from typing import Any, Union


class Snowflake:
    """
    Base class for Discord snowflake ID wrappers.

    The value is stored as a canonical decimal string. Subclasses only differ
    by type so a ``GuildID`` can never be passed where a ``ChannelID`` is
    expected without a type checker noticing.

    Example:
        >>> gid = GuildID(123456789012345678)
        >>> gid.to_int()
        123456789012345678
        >>> str(gid)
        '123456789012345678'
        >>> gid == "123456789012345678"
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another snowflake wrapper.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            if value < 0:
                raise ValueError(f"Snowflake IDs cannot be negative: {value}")
            self._value = str(value)
        elif isinstance(value, str):
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        """Create an ID from an integer snowflake."""
        return cls(value)

    @classmethod
    def from_object(cls, obj: Any):
        """Create an ID from any Discord model exposing an ``id`` attribute."""
        return cls(obj.id)

    def to_int(self) -> int:
        """Return the snowflake as an integer for Discord API calls."""
        return int(self._value)

    def __int__(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, str):
            return self._value == other.strip()
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(Snowflake):
    """Type-safe wrapper for Discord guild snowflake IDs."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild: Any) -> "GuildID":
        """Create a GuildID from a Discord Guild object."""
        return cls(guild.id)


class ChannelID(Snowflake):
    """Type-safe wrapper for Discord channel snowflake IDs."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: Any) -> "ChannelID":
        """Create a ChannelID from a Discord channel object."""
        return cls(channel.id)


class RoleID(Snowflake):
    """Type-safe wrapper for Discord role snowflake IDs."""

    __slots__ = ()

    @classmethod
    def from_role(cls, role: Any) -> "RoleID":
        """Create a RoleID from a Discord Role object."""
        return cls(role.id)


class UserID(Snowflake):
    """Type-safe wrapper for Discord user snowflake IDs."""

    __slots__ = ()

    @classmethod
    def from_user(cls, member: Any) -> "UserID":
        """Create a UserID from a Discord Member or User object."""
        return cls(member.id)
