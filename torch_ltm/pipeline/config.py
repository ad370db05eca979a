from pathlib import Path
from typing import Annotated, Literal, get_args, get_origin

from beartype import beartype
from pydantic import BaseModel, GetCoreSchemaHandler
from pydantic_core import core_schema

from ..util import clamp


class Validator:
  """Base class for all field validators."""
  description: str


class Float(Validator):
  def __init__(self, range: tuple[float, float], description: str):
    self.range = range
    self.description = description

  def __get_pydantic_core_schema__(self, _source_type, _handler: GetCoreSchemaHandler):
    def validate(v: float):
      v = float(v)
      if not (self.range[0] <= v <= self.range[1]):
        raise ValueError(f"{v} not in [{self.range[0]}, {self.range[1]}]")
      return v
    return core_schema.no_info_plain_validator_function(validate)


class Int(Validator):
  def __init__(self, range: tuple[int, int], description: str, step: int | None = None):
    self.range = range
    self.description = description
    self.step = step

  def __get_pydantic_core_schema__(self, _source_type, _handler: GetCoreSchemaHandler):
    def validate(v: int):
      if isinstance(v, float) and not v.is_integer():
        raise ValueError(f"{v} is not an integer")
      v = int(v)
      if not (self.range[0] <= v <= self.range[1]):
        raise ValueError(f"{v} not in [{self.range[0]}, {self.range[1]}]")
      return v
    return core_schema.no_info_plain_validator_function(validate)


class Bool(Validator):
  def __init__(self, description: str):
    self.description = description

  def __get_pydantic_core_schema__(self, _source_type, _handler: GetCoreSchemaHandler):
    def validate(v: bool):
      return bool(v)
    return core_schema.no_info_plain_validator_function(validate)


def get_validator(model: type[BaseModel], field_name: str) -> Validator | None:
  """Extract the validator instance from a field's annotation."""
  annotation = model.__annotations__.get(field_name)
  if annotation is None:
    return None
  if get_origin(annotation) is Annotated:
    args = get_args(annotation)
    for arg in args[1:]:  # Skip the first arg (the actual type)
      if isinstance(arg, Validator):
        return arg
  return None


class LocalToneMapSettings(BaseModel, frozen=True):
  type: Literal['local_tonemap_settings'] = 'local_tonemap_settings'

  enable_local_tonemapping: Annotated[bool, Bool(description='Spread the synthetic exposures apart')] = True
  boost_local_contrast: Annotated[bool, Bool(description='Weight Laplacians by their magnitude')] = False

  exposure: Annotated[float, Float(range=(0.01, 16.0), description='Linear gain before tone mapping')] = 0.7

  # Synthetic exposure spread in stops
  shadows: Annotated[float, Float(range=(0.0, 4.0), description='Shadow exposure boost (stops)')] = 1.5
  highlights: Annotated[float, Float(range=(0.0, 4.0), description='Highlight exposure cut (stops)')] = 2.0

  # Coarsest pyramid level blended, clamped to the levels the image has
  mip_level: Annotated[int, Int(range=(0, 16), description='Coarsest pyramid level used')] = 6
  # Level the guided upsampling starts from, clamped to mip_level
  display_mip: Annotated[int, Int(range=(0, 16), description='Guided upsampling level')] = 2

  weight_sigma: Annotated[float, Float(range=(0.1, 20.0), description='Exposure preference sharpness')] = 5.0

  def clamped_levels(self, num_levels: int) -> tuple[int, int]:
    """(mip_level, display_mip) clamped to a pyramid with num_levels levels."""
    mip_level = clamp(self.mip_level, 0, num_levels - 1)
    return mip_level, clamp(self.display_mip, 0, mip_level)

  @beartype
  def save_json(self, path: Path) -> None:
    """Save settings to a JSON file."""
    path.write_text(self.model_dump_json(indent=2))

  @classmethod
  @beartype
  def load_json(cls, path: Path) -> 'LocalToneMapSettings':
    """Load settings from a JSON file."""
    return cls.model_validate_json(path.read_text())
