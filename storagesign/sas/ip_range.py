"""IP address ranges that restrict where a SAS may be used from."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class IPRange:
    """
    An inclusive range of IP addresses, or a single address.

    ``str()`` gives "min-max", "min" when there is no max, and "" when there is
    no min (even if a max is set). ``IPRange.parse("")`` yields ``ip_min=""``
    rather than None.
    """

    ip_min: Optional[str] = None
    ip_max: Optional[str] = None

    @classmethod
    def parse(cls, range_str: str) -> "IPRange":
        """Parse "min-max" or "min", splitting on the first dash."""
        ip_min, sep, ip_max = range_str.partition("-")
        if not sep:
            return cls(ip_min=range_str)
        return cls(ip_min=ip_min, ip_max=ip_max)

    def __str__(self) -> str:
        if self.ip_min is None:
            return ""
        if self.ip_max is None:
            return self.ip_min
        return f"{self.ip_min}-{self.ip_max}"
