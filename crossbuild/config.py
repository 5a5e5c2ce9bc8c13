"""
Tool configuration
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from crossbuild import MAX_CONCURRENCY


class Settings(BaseSettings):
    """Tool settings, overridable via CROSSBUILD_* environment variables."""

    # Native build tool
    BUILD_TOOL: str = "bun"
    BUILD_SUBCOMMAND: List[str] = ["build", "--compile"]
    TARGET_PREFIX: str = "bun-"  # build tool spells linux-x64 as bun-linux-x64

    # Defaults
    DEFAULT_OUT_DIR: str = "dist"
    DEFAULT_CONCURRENCY: int = 4

    model_config = SettingsConfigDict(
        env_prefix="CROSSBUILD_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def default_concurrency(self) -> int:
        """Default worker count, kept inside [1, MAX_CONCURRENCY]."""
        return max(1, min(self.DEFAULT_CONCURRENCY, MAX_CONCURRENCY))

    @property
    def command_template(self) -> str:
        """Representative build command for receipts."""
        parts = [self.BUILD_TOOL, *self.BUILD_SUBCOMMAND]
        parts += ["--target", f"{self.TARGET_PREFIX}<target>", "--outfile", "<out_file>"]
        parts += ["[--minify]", "[--sourcemap]", "[--bytecode]", "<entries...>"]
        return " ".join(parts)


settings = Settings()
