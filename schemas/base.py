# schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
     """API models read and write camelCase keys; snake_case is accepted on input too."""
     model_config = ConfigDict(
          alias_generator=to_camel,
          populate_by_name=True,
          str_strip_whitespace=True,
     )
