from __future__ import annotations

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

# Shared by every record that crosses the JSON boundary: camelCase on the
# wire, snake_case accepted on input, unknown keys dropped.
RECORD_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
