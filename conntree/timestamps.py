from typing import Any, Optional

import pendulum
from pendulum.parsing.exceptions import ParserError

from conntree.errors import InvalidTimestampError


class TimestampUtils:
    """
    Relation timestamps arrive as ISO-8601 strings. They are parsed strictly:
    anything pendulum cannot read as a full date-time is rejected rather than
    coerced into an arbitrary position in the sort order.

    Run metadata is written as canonical UTC strings with milliseconds:
    YYYY-MM-DDTHH:MM:SS.sssZ
    """
    ISO_UTC_MILLIS = "YYYY-MM-DD[T]HH:mm:ss.SSS[Z]"

    @staticmethod
    def now_utc() -> str:
        return pendulum.now("UTC").format(TimestampUtils.ISO_UTC_MILLIS)

    @staticmethod
    def parse_strict(value: Any, actor_id: Optional[int] = None) -> pendulum.DateTime:
        """Parse an ISO-8601 date-time, raising InvalidTimestampError on failure."""
        if not isinstance(value, str) or not value.strip():
            raise InvalidTimestampError(value, actor_id)
        try:
            parsed = pendulum.parse(value.strip(), tz="UTC")
        except (ParserError, ValueError) as e:
            raise InvalidTimestampError(value, actor_id) from e
        # Durations and bare times parse too, but cannot be ordered as instants
        if not isinstance(parsed, pendulum.DateTime):
            raise InvalidTimestampError(value, actor_id)
        return parsed.in_timezone("UTC")
