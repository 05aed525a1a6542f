"""Runtime settings of the calculator agent."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class AgentSettings(BaseModel):
    """
    Settings shared by the shell, the policy and the dispatcher.

    Frozen so that the configuration cannot drift during a session.
    """

    model_config = ConfigDict(frozen=True)

    app_name: str = Field(default="calculator_agent", min_length=1, description="Application name")
    user_id: str = Field(default="calculator_user", min_length=1, description="Session user identity")
    max_workers: int = Field(default=4, ge=1, le=64, description="Concurrent invocations per batch")
    log_level: LogLevel = Field(default="INFO", description="Package log level")
    user_prompt: str = Field(default="\nCalculator User > ", description="Prompt shown before input")
    agent_prompt: str = Field(default="\nCalculator Agent > ", description="Prefix of each answer")
