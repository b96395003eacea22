from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class GetAppResponse(BaseModel):
    model_config = {"populate_by_name": True}

    app_title: str = Field(
        "",
        validation_alias=AliasChoices("app_title", "appTitle"),
        serialization_alias="appTitle",
    )
    setup_mode: bool = Field(
        False,
        validation_alias=AliasChoices("setup_mode", "setupMode"),
        serialization_alias="setupMode",
        description="True until the first user has been registered.",
    )
    allow_register: bool = Field(
        False,
        validation_alias=AliasChoices("allow_register", "allowRegister"),
        serialization_alias="allowRegister",
    )
    allow_admin: bool = Field(
        False,
        validation_alias=AliasChoices("allow_admin", "allowAdmin"),
        serialization_alias="allowAdmin",
    )
    version: Optional[str] = Field(
        None, description="Server version. Only reported to logged-in users."
    )
    git_sha: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("git_sha", "gitSha"),
        serialization_alias="gitSha",
    )
