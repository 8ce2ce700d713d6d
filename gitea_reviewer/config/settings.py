import os
from typing import Optional, Tuple, Type

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH_ENV = "GITEA_REVIEWER_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_PORT = 8080
DEFAULT_LLM_TIMEOUT = 90
DEFAULT_LLM_MODEL = "gemini-2.5-pro"

CHAT_COMPLETIONS_PATH = "/chat/completions"


class Settings(BaseSettings):
    gitea_token: str
    gitea_username: str = ""
    gitea_timeout: float = 30.0

    # llm_endpoint/llm_token/model/temperature are the legacy config.yaml keys.
    llm_base_url: str = Field(validation_alias=AliasChoices("llm_base_url", "llm_endpoint"))
    llm_api_key: str = Field(validation_alias=AliasChoices("llm_api_key", "llm_token"))
    llm_model: str = Field(
        DEFAULT_LLM_MODEL, validation_alias=AliasChoices("llm_model", "model")
    )
    llm_temperature: float = Field(
        0.7, validation_alias=AliasChoices("llm_temperature", "temperature")
    )
    llm_max_tokens: int = 2000
    llm_timeout: int = DEFAULT_LLM_TIMEOUT

    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None
    position_guide: bool = True

    insecure_skip_tls_verify: bool = False
    port: int = DEFAULT_PORT

    app_name: str = "Gitea PR Reviewer"
    log_level: str = "INFO"
    debug: bool = False

    lmnr_project_api_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        yaml_file = settings_cls.model_config.get("yaml_file") or os.getenv(
            CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH
        )
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return init_settings, env_settings, dotenv_settings, yaml_settings

    @field_validator("gitea_token", "llm_base_url", "llm_api_key")
    @classmethod
    def _required(cls, value: str, info) -> str:
        if not value:
            raise ValueError(f"{info.field_name} must not be empty")
        return value

    @field_validator("llm_base_url")
    @classmethod
    def _base_url(cls, value: str) -> str:
        # A full completion endpoint is reduced to the base URL the SDK expects.
        url = value.rstrip("/")
        if url.endswith(CHAT_COMPLETIONS_PATH):
            return url[: -len(CHAT_COMPLETIONS_PATH)]
        return value

    @field_validator("port")
    @classmethod
    def _port_in_range(cls, value: int) -> int:
        if 0 < value < 65535:
            return value
        return DEFAULT_PORT

    @field_validator("llm_timeout")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_LLM_TIMEOUT

    @property
    def verify_tls(self) -> bool:
        return not self.insecure_skip_tls_verify

    @property
    def wildcard_reviewer(self) -> bool:
        return self.gitea_username == "*"


def load_settings(config_path: Optional[str] = None, **overrides) -> Settings:
    """Build the process-wide settings snapshot.

    ``config_path`` points at a YAML file whose keys match the field names
    (legacy key names are accepted too). Without it the path comes from
    ``GITEA_REVIEWER_CONFIG`` or defaults to ``config.yaml``. Environment
    variables and ``.env`` take precedence over the file.
    """
    settings_cls = Settings
    if config_path:
        settings_cls = type(
            "Settings",
            (Settings,),
            {"model_config": SettingsConfigDict(yaml_file=config_path)},
        )
    return settings_cls(**overrides)
