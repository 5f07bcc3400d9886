"""Input and output records of the coffee flows."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SimpleGreetingInput(BaseModel):
    """Input for the simpleGreeting prompt and flow."""

    model_config = ConfigDict(populate_by_name=True)

    customer_name: str = Field(alias="customerName", examples=["Sam"])


class CustomerTimeAndHistoryInput(BaseModel):
    """Input for the greetingWithHistory prompt and flow."""

    model_config = ConfigDict(populate_by_name=True)

    customer_name: str = Field(alias="customerName", examples=["Sam"])
    current_time: str = Field(alias="currentTime", examples=["09:45am"])
    previous_order: str = Field(alias="previousOrder", examples=["Caramel Macchiato"])


class TestAllCoffeeFlowsOutput(BaseModel):
    """Result of the composite flow.

    ``replies`` is set iff ``pass`` is true, ``error`` iff it is false.
    """

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"pass": True, "replies": ["Good morning, Sam!", "Welcome back, Sam!"]},
                {"pass": False, "error": "invalid authorization header"},
            ]
        },
    )

    passed: bool = Field(alias="pass")
    replies: list[str] | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> Self:
        if self.passed and (self.replies is None or self.error is not None):
            raise ValueError("a passing result carries replies and no error")
        if not self.passed and (self.error is None or self.replies is not None):
            raise ValueError("a failing result carries an error and no replies")
        return self

    @classmethod
    def succeeded(cls, replies: list[str]) -> "TestAllCoffeeFlowsOutput":
        return cls(passed=True, replies=list(replies))

    @classmethod
    def failed(cls, error: str) -> "TestAllCoffeeFlowsOutput":
        return cls(passed=False, error=error)
