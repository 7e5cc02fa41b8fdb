from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseDTO(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod#every DTO defines its mapping explicitly
    def from_domain_model(cls, *args, **kwargs):
        """
        Subclasses must override
        """
        raise NotImplementedError(
            f"{cls.__name__}.from_domain_model() must be implemented"
        )
