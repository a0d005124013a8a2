"""
Configuration management for PromptBinder.

Loads all configuration from environment variables (and a local ``.env``
file) with sensible defaults for local development.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class LLMConfig:
    """Configuration for the OpenAI-compatible completion endpoint."""
    base_url: str = os.getenv("OPENAI_BASE_URL", "")
    api_key: str = os.getenv("OPENAI_API_KEY", "")
    model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    max_tokens: int = int(os.getenv("LLM_MAX_TOKENS", "1000"))
    timeout: float = float(os.getenv("LLM_TIMEOUT", "60"))


@dataclass
class OrchestrationConfig:
    """Configuration for the tool-calling loop."""
    # One round = one dispatched batch of tool calls + one follow-up completion.
    max_tool_rounds: int = int(os.getenv("MAX_TOOL_ROUNDS", "5"))
    prompt_key_prefix: str = os.getenv("PROMPT_KEY_PREFIX", "tool:")
    system_prompt: str = os.getenv("SYSTEM_PROMPT", "")


@dataclass
class ServersConfig:
    """Location of the YAML server registry."""
    servers_config_path: str = os.getenv("PROMPTBINDER_SERVERS_PATH", "")


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = os.getenv("LANGFUSE_DEBUG", "false").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    llm: LLMConfig
    orchestration: OrchestrationConfig
    servers: ServersConfig
    langfuse: LangfuseConfig
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration."""
    return Config(
        llm=LLMConfig(),
        orchestration=OrchestrationConfig(),
        servers=ServersConfig(),
        langfuse=LangfuseConfig(),
    )


# Global config instance
config = get_config()
