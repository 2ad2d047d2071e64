"""Wire-format translation layer.

Inside the package every field uses snake_case. HTTP payloads use camelCase;
the alias generator here is the single place that translation happens.
Inputs are accepted in either spelling so older clients that post
``transport_type`` keep working.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )
