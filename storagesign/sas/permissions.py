"""
Permission, resource type and service flags for SAS tokens.

Each class holds a fixed set of boolean flags. ``str()`` encodes the set flags
in the order the service requires, which is neither declaration nor
alphabetical order. ``parse()`` accepts the characters in any order and
rejects characters outside the alphabet.

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/create-service-sas
"""

from dataclasses import dataclass
from typing import ClassVar, Dict, Tuple

from storagesign.auth.exceptions import InvalidArgumentError, assert_not_none


@dataclass(frozen=True)
class _SASFlags:
    """Base for flag sets encoded as one character per flag."""

    # (field name, character) in encoding order
    _FLAGS: ClassVar[Tuple[Tuple[str, str], ...]] = ()
    _KIND: ClassVar[str] = "Permissions"

    @classmethod
    def parse(cls, value: str):
        """
        Parse a flag string in any order.

        Raises:
            InvalidArgumentError: If a character is not part of the alphabet
        """
        assert_not_none(cls._KIND.lower(), value)
        by_char: Dict[str, str] = {char: name for name, char in cls._FLAGS}
        flags: Dict[str, bool] = {}
        for char in value:
            name = by_char.get(char)
            if name is None:
                raise InvalidArgumentError(
                    f"{cls._KIND} could not be parsed from '{value}' due to invalid value '{char}'."
                )
            flags[name] = True
        return cls(**flags)

    def __str__(self) -> str:
        return "".join(char for name, char in self._FLAGS if getattr(self, name))


@dataclass(frozen=True)
class BlobSASPermission(_SASFlags):
    """Permissions granted by a service SAS on a blob."""

    _FLAGS = (("read", "r"), ("add", "a"), ("create", "c"), ("write", "w"), ("delete", "d"))

    read: bool = False
    add: bool = False
    create: bool = False
    write: bool = False
    delete: bool = False


@dataclass(frozen=True)
class ContainerSASPermission(_SASFlags):
    """Permissions granted by a service SAS on a container."""

    _FLAGS = (
        ("read", "r"),
        ("add", "a"),
        ("create", "c"),
        ("write", "w"),
        ("delete", "d"),
        ("list", "l"),
    )

    read: bool = False
    add: bool = False
    create: bool = False
    write: bool = False
    delete: bool = False
    list: bool = False


@dataclass(frozen=True)
class FileSASPermission(_SASFlags):
    """Permissions granted by a service SAS on a file."""

    _FLAGS = (("read", "r"), ("create", "c"), ("write", "w"), ("delete", "d"))

    read: bool = False
    create: bool = False
    write: bool = False
    delete: bool = False


@dataclass(frozen=True)
class ShareSASPermission(_SASFlags):
    """Permissions granted by a service SAS on a share."""

    _FLAGS = (("read", "r"), ("create", "c"), ("write", "w"), ("delete", "d"), ("list", "l"))

    read: bool = False
    create: bool = False
    write: bool = False
    delete: bool = False
    list: bool = False


@dataclass(frozen=True)
class AccountSASPermission(_SASFlags):
    """Permissions granted by an account SAS."""

    _FLAGS = (
        ("read", "r"),
        ("write", "w"),
        ("delete", "d"),
        ("list", "l"),
        ("add", "a"),
        ("create", "c"),
        ("update", "u"),
        ("process_messages", "p"),
    )

    read: bool = False
    write: bool = False
    delete: bool = False
    list: bool = False
    add: bool = False
    create: bool = False
    update: bool = False
    process_messages: bool = False


@dataclass(frozen=True)
class AccountSASResourceType(_SASFlags):
    """Resource types an account SAS may access (srt)."""

    _FLAGS = (("service", "s"), ("container", "c"), ("object", "o"))
    _KIND = "Resource types"

    service: bool = False
    container: bool = False
    object: bool = False


@dataclass(frozen=True)
class AccountSASService(_SASFlags):
    """Services an account SAS may access (ss)."""

    _FLAGS = (("blob", "b"), ("file", "f"), ("queue", "q"), ("table", "t"))
    _KIND = "Services"

    blob: bool = False
    file: bool = False
    queue: bool = False
    table: bool = False
