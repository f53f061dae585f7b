"""Pydantic models for relaychat.yaml configuration."""

from pydantic import BaseModel, Field, model_validator


class LocalModelConfig(BaseModel):
    """Locally executed model configuration."""

    model: str = Field(
        default="Llama-3.2-1B-Instruct-q4f32_1-MLC",
        description="Model identifier served by the local runtime",
    )
    base_url: str = Field(
        default="http://localhost:11434/v1",
        description="OpenAI-compatible endpoint of the local runtime",
    )
    use_cache: bool = Field(
        default=True,
        description="Reuse an already initialized engine instead of creating a new one",
    )
    model_url: str | None = Field(
        default="https://huggingface.co/mlc-ai/Llama-3.2-1B-Instruct-q4f32_1-MLC",
        description="Where the model artifacts are published",
    )
    model_lib: str | None = Field(
        default=None,
        description="URL of the compiled model library for the runtime",
    )
    vram_required_mb: float | None = Field(
        default=1128.82,
        description="Minimum VRAM hint in MB; a warning is logged when less is detected",
        ge=0,
    )
    low_resource: bool = Field(
        default=False,
        description="Run with a reduced output budget on constrained hardware",
    )
    context_window_size: int = Field(
        default=4096,
        description="Context window of the local model, in tokens",
        ge=256,
    )
    temperature: float = Field(default=0.7, description="Sampling temperature", ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, description="Maximum tokens per reply", ge=1)
    timeout: int = Field(default=120, description="Request timeout in seconds", ge=1)

    @model_validator(mode="after")
    def _check_output_budget(self) -> "LocalModelConfig":
        if self.max_tokens >= self.context_window_size:
            raise ValueError("max_tokens must be smaller than context_window_size")
        return self


class RemoteModelConfig(BaseModel):
    """Remote completions API configuration."""

    api_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint (streams Server-Sent Events)",
    )
    model: str = Field(default="gpt-4", description="Remote model name")
    temperature: float = Field(default=0.7, description="Sampling temperature", ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, description="Maximum tokens per reply", ge=1)
    api_key_env: str = Field(
        default="OPENAI_API_KEY",
        description="Environment variable name containing the API key",
    )
    timeout: int = Field(default=120, description="Request timeout in seconds", ge=1)


class RoutingConfig(BaseModel):
    """Per-turn backend selection."""

    word_count_threshold: int = Field(
        default=100,
        description="Prompts with more words than this always go to the remote model",
        ge=1,
    )
    score_min: int = Field(default=1, description="Lowest complexity score")
    score_max: int = Field(default=5, description="Highest complexity score")
    score_threshold: float = Field(
        default=3,
        description="Scores at or above this route to the remote model",
    )
    classifier_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    classifier_max_tokens: int = Field(default=200, ge=1)
    remote_tag: str = Field(
        default="@openai", min_length=1, description="Inline tag forcing the remote model"
    )
    local_tag: str = Field(
        default="@webllm", min_length=1, description="Inline tag forcing the local model"
    )

    @model_validator(mode="after")
    def _check_score_range(self) -> "RoutingConfig":
        if self.score_min > self.score_max:
            raise ValueError("score_min must not exceed score_max")
        if not self.score_min <= self.score_threshold <= self.score_max:
            raise ValueError("score_threshold must lie within [score_min, score_max]")
        return self


class PrivacyConfig(BaseModel):
    """Name redaction applied before remote calls."""

    redact_remote: bool = Field(
        default=True,
        description="Replace person and organization names with pseudonyms before remote calls",
    )
    detection_max_tokens: int = Field(
        default=500,
        description="Output budget for the entity detection call",
        ge=1,
    )


class ChatConfig(BaseModel):
    """Conversation settings shared by both backends."""

    system_prompt: str = Field(
        default="You are a helpful AI assistant.",
        description="System preamble prepended by each backend adapter",
    )


class RelayConfig(BaseModel):
    """Root configuration schema for relaychat."""

    local: LocalModelConfig = Field(default_factory=LocalModelConfig)
    remote: RemoteModelConfig = Field(default_factory=RemoteModelConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    privacy: PrivacyConfig = Field(default_factory=PrivacyConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
