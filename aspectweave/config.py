# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BeforeFailurePolicy = Literal["propagate", "ensure"]

__all__ = ("AspectSettings", "BeforeFailurePolicy", "settings")


class AspectSettings(BaseSettings, frozen=True):
    """Package settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    ASPECTWEAVE_BEFORE_FAILURE_POLICY: BeforeFailurePolicy = Field(
        default="propagate",
        description=(
            "What a failing before-phase call does: 'propagate' re-raises at "
            "once, 'ensure' runs the ensured after calls first"
        ),
    )

    ASPECTWEAVE_LOG_LEVEL: str = Field(
        default="WARNING",
        description="Level applied to the 'aspectweave' logger on import",
    )

    @field_validator("ASPECTWEAVE_LOG_LEVEL")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


settings = AspectSettings()
